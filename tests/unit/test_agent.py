from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from offline_agent.agent import Agent
from offline_agent.control import ReplyChannel
from offline_agent.lifecycle import LifecycleState
from offline_agent.network import NetworkFetcher
from offline_agent.pages import PageRegistry

ORIGIN = "http://app.test"


@pytest.fixture
def site(network):
    network.get(f"{ORIGIN}/").mock(return_value=httpx.Response(200, html="<h1>home</h1>"))
    network.get(f"{ORIGIN}/app.css").mock(return_value=httpx.Response(200, text="body {}"))
    return network


@pytest.mark.asyncio
async def test_start_installs_and_activates(agent, site, store):
    with store.open("static-v0"):
        pass

    await agent.start()

    assert agent.lifecycle.state is LifecycleState.ACTIVE
    assert store.list_tier_names() == ["static-v1"]


@pytest.mark.asyncio
async def test_start_waits_while_old_pages_are_open(agent, site, pages):
    pages.open_page(f"{ORIGIN}/", controller="previous")

    await agent.start()
    assert agent.lifecycle.state is LifecycleState.INSTALLED

    await agent.on_message({"type": "SKIP_WAITING"})
    assert agent.lifecycle.state is LifecycleState.ACTIVE


@pytest.mark.asyncio
async def test_installed_assets_are_served_offline(agent, site):
    await agent.start()
    site.get(f"{ORIGIN}/app.css").mock(side_effect=httpx.ConnectError)

    response = await agent.on_fetch(agent.request("/app.css", destination="style"))

    assert response.text == "body {}"


@pytest.mark.asyncio
async def test_version_and_clear_cache_through_messages(agent, site, store):
    await agent.start()
    reply = ReplyChannel()

    await agent.on_message({"type": "GET_VERSION", "ports": [reply]})
    await agent.on_message({"type": "CLEAR_CACHE"})

    assert (await reply.receive(timeout=1.0))["version"] == "static-v1"
    assert store.list_tier_names() == []


@pytest.mark.asyncio
async def test_push_and_click_round_trip(agent, pages):
    notification = await agent.on_push(b'{"title": "Hello", "body": "World"}')

    page = agent.on_notification_click(notification, "explore")

    assert notification.closed
    assert page.url == f"{ORIGIN}/#demos"


@pytest.mark.asyncio
async def test_only_background_sync_tag_is_handled(agent):
    assert await agent.on_sync("background-sync") is True
    assert await agent.on_sync("periodic") is False


def test_injected_empty_components_are_kept(settings, store):
    pages = PageRegistry()

    agent = Agent(settings, store=store, fetcher=AsyncMock(spec=NetworkFetcher), pages=pages)

    assert agent.pages is pages
    assert agent.lifecycle.pages is pages
    assert agent.store is store


@pytest.mark.asyncio
async def test_foreign_directory_in_cache_dir_is_left_alone(agent, site, store):
    await agent.start()
    (store.base_dir / ".DS_Store_dir").mkdir()
    site.get(f"{ORIGIN}/x.js").mock(return_value=httpx.Response(200, text="x"))

    response = await agent.on_fetch(agent.request("/x.js"))
    await agent.on_message({"type": "CLEAR_CACHE"})

    assert response.text == "x"
    assert store.list_tier_names() == []
    assert (store.base_dir / ".DS_Store_dir").is_dir()
