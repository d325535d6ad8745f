from __future__ import annotations

import httpx
import pytest

from offline_agent.messages import AgentRequest
from offline_agent.network import NetworkFetcher

ORIGIN = "http://app.test"


@pytest.mark.asyncio
async def test_fetch_returns_read_response(fetcher, network):
    network.get(f"{ORIGIN}/index.html").mock(return_value=httpx.Response(200, html="<p>hi</p>"))

    response = await fetcher.fetch(AgentRequest.build(ORIGIN, "/index.html"))

    assert response.status_code == 200
    assert response.content == b"<p>hi</p>"


@pytest.mark.asyncio
async def test_transport_errors_are_retried(network):
    route = network.get(f"{ORIGIN}/flaky")
    route.side_effect = [httpx.ConnectError("reset"), httpx.Response(200, text="ok")]

    async with NetworkFetcher(timeout=1.0, max_attempts=2) as fetcher:
        response = await fetcher.fetch(AgentRequest.build(ORIGIN, "/flaky"))

    assert response.text == "ok"
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_status_codes_are_not_retried(network):
    route = network.get(f"{ORIGIN}/broken").mock(return_value=httpx.Response(503))

    async with NetworkFetcher(timeout=1.0, max_attempts=3) as fetcher:
        response = await fetcher.fetch(AgentRequest.build(ORIGIN, "/broken"))

    assert response.status_code == 503
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_single_attempt_reraises_transport_error(fetcher, network):
    network.get(f"{ORIGIN}/down").mock(side_effect=httpx.ReadTimeout)

    with pytest.raises(httpx.ReadTimeout):
        await fetcher.fetch(AgentRequest.build(ORIGIN, "/down"))


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    client = httpx.AsyncClient()
    fetcher = NetworkFetcher(client)

    await fetcher.aclose()

    assert not client.is_closed
    await client.aclose()


def test_from_settings_uses_configured_timeout(settings):
    fetcher = NetworkFetcher.from_settings(settings)

    assert fetcher.client.timeout.read == 1.0
    assert fetcher.max_attempts == 1
