"""Results of batch operations made of independent attempts."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class AttemptResult(Generic[T]):
    """Outcome of one attempt inside a batch."""

    identity: str
    success: bool
    value: T | None = None
    cause: BaseException | None = None

    @classmethod
    def ok(cls, identity: str, value: T | None = None) -> AttemptResult[T]:
        return cls(identity=identity, success=True, value=value)

    @classmethod
    def failed(cls, identity: str, cause: BaseException) -> AttemptResult[T]:
        return cls(identity=identity, success=False, cause=cause)


async def attempt(identity: str, operation: Callable[[], Awaitable[T]]) -> AttemptResult[T]:
    """Run *operation* and capture its outcome instead of raising."""
    try:
        value = await operation()
    except Exception as e:  # noqa: BLE001 - the caller decides the aggregate policy
        return AttemptResult.failed(identity, e)
    return AttemptResult.ok(identity, value)


def failures(results: Iterable[AttemptResult[T]]) -> list[AttemptResult[T]]:
    return [result for result in results if not result.success]
