"""Request routing: cache first, then network, then fallback."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from offline_agent.messages import ResponseSnapshot, is_same_origin, request_identity

if TYPE_CHECKING:
    from offline_agent.cache.store import TierStore
    from offline_agent.config.settings import AgentSettings
    from offline_agent.fallback import FallbackSynthesizer
    from offline_agent.messages import AgentRequest
    from offline_agent.network import NetworkFetcher

logger = logging.getLogger(__name__)

HTTP_OK = 200


class FetchInterceptor:
    """Answers eligible requests from the tier store or the network.

    Cached entries never expire by time. They are replaced by a newer write
    for the same identity or removed with their whole generation.
    """

    def __init__(
        self,
        store: TierStore,
        fetcher: NetworkFetcher,
        fallback: FallbackSynthesizer,
        settings: AgentSettings,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.fallback = fallback
        self.settings = settings
        self._pending_writes: set[asyncio.Task[None]] = set()

    def is_eligible(self, request: AgentRequest) -> bool:
        return request.method == "GET" and is_same_origin(request.url, self.settings.origin)

    def should_cache_dynamically(self, url: str) -> bool:
        path = httpx.URL(url).path
        return any(path.startswith(prefix) for prefix in self.settings.dynamic_prefixes)

    async def handle(self, request: AgentRequest) -> httpx.Response | None:
        """Produce a response for *request*, or None to let the host handle it.

        Raises:
            httpx.TransportError: If the network failed and the request is
                neither a navigation nor an image.

        """
        if not self.is_eligible(request):
            return None

        identity = request_identity(request)
        cached = await asyncio.to_thread(self.store.match, identity)
        if cached is not None:
            logger.debug("Serving from cache: %s", request.url)
            return cached.to_response(request)

        try:
            response = await self.fetcher.fetch(request)
        except httpx.TransportError as e:
            logger.info("Fetch failed for %s: %s", request.url, e)
            return await self.fallback.respond(request, e)

        if response.status_code != HTTP_OK or not is_same_origin(response.url, self.settings.origin):
            return response

        if self.should_cache_dynamically(request.url):
            self._schedule_write(identity, ResponseSnapshot.from_response(response))
        return response

    def _schedule_write(self, identity: str, snapshot: ResponseSnapshot) -> None:
        task = asyncio.create_task(self._write(identity, snapshot), name=f"cache-write {identity}")
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write(self, identity: str, snapshot: ResponseSnapshot) -> None:
        generation = self.settings.generations.dynamic
        try:
            await asyncio.to_thread(self._put, generation, identity, snapshot)
        except Exception as e:  # noqa: BLE001 - a failed write only costs future hits
            logger.warning("Failed to cache %s in %s: %s", identity, generation, e)
            return
        logger.debug("Cached dynamic asset %s in %s", identity, generation)

    def _put(self, generation: str, identity: str, snapshot: ResponseSnapshot) -> None:
        with self.store.open(generation) as tier:
            tier.put(identity, snapshot)

    @property
    def pending_writes(self) -> int:
        return len(self._pending_writes)

    async def drain(self) -> None:
        """Wait for every scheduled cache write to finish."""
        while self._pending_writes:
            await asyncio.gather(*self._pending_writes)
