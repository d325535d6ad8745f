"""Centralized exceptions for the offline agent."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from offline_agent.batch import AttemptResult
    from offline_agent.lifecycle import LifecycleState


class OfflineAgentError(Exception):
    """Base exception for all offline agent errors."""


class InstallError(OfflineAgentError):
    """Raised when one or more static assets could not be fetched at install time."""

    def __init__(self, generation: str, failures: Sequence[AttemptResult]) -> None:
        self.generation = generation
        self.failures = list(failures)
        names = ", ".join(result.identity for result in self.failures)
        super().__init__(f"Install of {generation} failed for {len(self.failures)} asset(s): {names}")


class ActivationError(OfflineAgentError):
    """Raised when activation cannot complete."""

    def __init__(self, generation: str, original_exception: Exception) -> None:
        self.generation = generation
        self.original_exception = original_exception
        super().__init__(f"Activation of {generation} failed: {original_exception}")


class InvalidStateError(OfflineAgentError):
    """Raised when a lifecycle transition is requested from the wrong state."""

    def __init__(self, operation: str, state: LifecycleState) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while in state {state.value}")
