from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
import respx

from offline_agent.agent import Agent
from offline_agent.cache.store import TierStore
from offline_agent.config.settings import AgentSettings, CacheGenerations
from offline_agent.messages import ResponseSnapshot, request_identity, resolve_url
from offline_agent.network import NetworkFetcher
from offline_agent.pages import PageRegistry

ORIGIN = "http://app.test"


@pytest.fixture
def settings(tmp_path: Path) -> AgentSettings:
    return AgentSettings(
        origin=ORIGIN,
        cache_dir=tmp_path / "caches",
        static_assets=("/", "/app.css"),
        generations=CacheGenerations(static_version="v1", dynamic_version="v1"),
        fetch_timeout=1.0,
    )


@pytest.fixture
def store(settings: AgentSettings) -> TierStore:
    return TierStore(settings.cache_dir)


@pytest.fixture
def pages() -> PageRegistry:
    return PageRegistry()


@pytest.fixture
def network() -> Iterator[respx.MockRouter]:
    """Mocked network for the test origin; unmatched requests fail loudly."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest_asyncio.fixture
async def fetcher() -> AsyncIterator[NetworkFetcher]:
    client = NetworkFetcher(timeout=1.0)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def agent(
    settings: AgentSettings, store: TierStore, fetcher: NetworkFetcher, pages: PageRegistry
) -> AsyncIterator[Agent]:
    instance = Agent(settings, store=store, fetcher=fetcher, pages=pages)
    yield instance
    await instance.interceptor.drain()


@pytest.fixture
def seed_tier(store: TierStore) -> Callable[..., ResponseSnapshot]:
    """Write a 200 snapshot for *path* straight into *tier_name*."""

    def _seed(
        tier_name: str,
        path: str,
        body: bytes = b"cached",
        content_type: str = "text/plain",
    ) -> ResponseSnapshot:
        url = resolve_url(ORIGIN, path)
        snapshot = ResponseSnapshot(url=url, status=200, headers=[("content-type", content_type)], content=body)
        with store.open(tier_name) as tier:
            tier.put(request_identity(url), snapshot)
        return snapshot

    return _seed


@pytest.fixture
def tier_keys(store: TierStore) -> Callable[[str], list[str]]:
    """Return the identities stored in a tier, or [] when the tier does not exist."""

    def _keys(tier_name: str) -> list[str]:
        if not store.has_tier(tier_name):
            return []
        with store.open(tier_name) as tier:
            return tier.keys()

    return _keys
