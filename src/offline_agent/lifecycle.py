"""Install and activation lifecycle of an agent instance.

An instance moves through ``PARSED -> INSTALLING -> INSTALLED -> ACTIVATING ->
ACTIVE``. ``FAILED`` is reachable from ``INSTALLING`` and ``ACTIVATING``; a
failed install may be retried.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import uuid
from collections.abc import Iterable
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING

from offline_agent.batch import AttemptResult, attempt, failures
from offline_agent.exceptions import ActivationError, InstallError, InvalidStateError
from offline_agent.messages import AgentRequest, ResponseSnapshot, request_identity

if TYPE_CHECKING:
    from offline_agent.cache.store import TierStore
    from offline_agent.config.settings import AgentSettings
    from offline_agent.network import NetworkFetcher
    from offline_agent.pages import PageRegistry

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    """States of an agent instance."""

    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVE = "active"
    FAILED = "failed"


async def delete_tiers(store: TierStore, names: Iterable[str]) -> list[AttemptResult[bool]]:
    """Delete each tier in *names* as an independent attempt."""
    names = list(names)
    results = await asyncio.gather(
        *(attempt(name, partial(asyncio.to_thread, store.delete_tier, name)) for name in names)
    )
    for result in results:
        if result.success:
            logger.info("Deleted cache tier %s", result.identity)
        else:
            logger.warning("Failed to delete cache tier %s: %s", result.identity, result.cause)
    return list(results)


class LifecycleController:
    """Drives one agent instance from installation to active service."""

    def __init__(
        self,
        store: TierStore,
        fetcher: NetworkFetcher,
        pages: PageRegistry,
        settings: AgentSettings,
        *,
        agent_id: str | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.pages = pages
        self.settings = settings
        self.agent_id = agent_id or uuid.uuid4().hex
        self._state = LifecycleState.PARSED
        self._skip_waiting = settings.skip_waiting_on_install

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def waiting(self) -> bool:
        """True while installed but held back by pages served by another instance."""
        if self._state is not LifecycleState.INSTALLED or self._skip_waiting:
            return False
        return bool(self.pages.controlled_by_other(self.agent_id))

    async def install(self) -> list[AttemptResult[ResponseSnapshot]]:
        """Fetch every static asset and store them in the current static generation.

        Raises:
            InstallError: If any asset could not be fetched or stored. Nothing
                is written to the static tier when a fetch fails.
            InvalidStateError: If the instance is already installed or active.

        """
        if self._state not in (LifecycleState.PARSED, LifecycleState.FAILED):
            raise InvalidStateError("install", self._state)

        self._state = LifecycleState.INSTALLING
        generation = self.settings.generations.static
        logger.info("Installing: caching %d static assets into %s", len(self.settings.static_assets), generation)

        requests = [AgentRequest.build(self.settings.origin, path) for path in self.settings.static_assets]
        results = list(
            await asyncio.gather(
                *(attempt(request_identity(request), partial(self._fetch_asset, request)) for request in requests)
            )
        )

        failed = failures(results)
        if failed:
            self._state = LifecycleState.FAILED
            for result in failed:
                logger.error("Failed to cache static asset %s: %s", result.identity, result.cause)
            raise InstallError(generation, failed)

        try:
            await asyncio.to_thread(self._store_assets, generation, results)
        except (OSError, sqlite3.Error) as e:
            self._state = LifecycleState.FAILED
            logger.exception("Failed to write static tier %s", generation)
            raise InstallError(generation, [AttemptResult.failed(generation, e)]) from e

        self._state = LifecycleState.INSTALLED
        logger.info("Static assets cached in %s", generation)

        if self._skip_waiting:
            await self.activate()
        return results

    async def _fetch_asset(self, request: AgentRequest) -> ResponseSnapshot:
        response = await self.fetcher.fetch(request)
        response.raise_for_status()
        return ResponseSnapshot.from_response(response)

    def _store_assets(self, generation: str, results: list[AttemptResult[ResponseSnapshot]]) -> None:
        with self.store.open(generation) as tier:
            for result in results:
                if result.value is not None:
                    tier.put(result.identity, result.value)

    async def activate(self) -> list[AttemptResult[bool]]:
        """Evict stale generations and claim every open page.

        Running it again on an active instance repeats the cleanup, which
        leaves the surviving tiers unchanged.

        Raises:
            ActivationError: If the tier store cannot be enumerated.
            InvalidStateError: If the instance has not been installed.

        """
        if self._state not in (LifecycleState.INSTALLED, LifecycleState.ACTIVE):
            raise InvalidStateError("activate", self._state)

        self._state = LifecycleState.ACTIVATING
        logger.info("Activating agent %s", self.agent_id)
        try:
            results = await self.evict_stale_generations()
        except (OSError, sqlite3.Error) as e:
            self._state = LifecycleState.FAILED
            raise ActivationError(self.settings.generations.static, e) from e

        claimed = self.pages.claim(self.agent_id)
        self._state = LifecycleState.ACTIVE
        logger.info("Activated; now serving %d page(s)", len(self.pages.pages(controlled_by=self.agent_id)))
        logger.debug("Claimed %d page(s) from previous instances", claimed)
        return results

    async def evict_stale_generations(self) -> list[AttemptResult[bool]]:
        """Delete every tier that is not one of the current generations."""
        names = await asyncio.to_thread(self.store.list_tier_names)
        stale = [name for name in names if not self.settings.generations.is_current(name)]
        if not stale:
            return []
        return await delete_tiers(self.store, stale)

    async def skip_waiting(self) -> bool:
        """Stop waiting for old pages to go away.

        Returns:
            True if this call activated the instance.

        """
        self._skip_waiting = True
        if self._state is LifecycleState.INSTALLED:
            await self.activate()
            return True
        return False

    async def activate_if_ready(self) -> bool:
        """Activate an installed instance unless it still has to wait."""
        if self._state is LifecycleState.INSTALLED and not self.waiting:
            await self.activate()
            return True
        return False
