"""Locally generated responses for requests the network could not answer."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from offline_agent.cache.exceptions import CacheDeserializationError, CachePayloadTypeError
from offline_agent.messages import request_identity, resolve_url

if TYPE_CHECKING:
    from offline_agent.cache.store import TierStore
    from offline_agent.config.settings import AgentSettings
    from offline_agent.messages import AgentRequest, ResponseSnapshot

logger = logging.getLogger(__name__)

FALLBACK_HEADER = "X-Offline-Fallback"

OFFLINE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Offline</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            display: flex;
            flex-direction: column;
            align-items: center;
            justify-content: center;
            min-height: 100vh;
            margin: 0;
            background: linear-gradient(135deg, #2196F3, #1976D2);
            color: white;
            text-align: center;
            padding: 20px;
        }
        h1 { font-size: 2.5rem; margin-bottom: 1rem; }
        p { font-size: 1.2rem; margin-bottom: 2rem; opacity: 0.9; }
        .retry-btn {
            background: #FFC107;
            color: #212121;
            border: none;
            padding: 12px 24px;
            border-radius: 8px;
            font-size: 1rem;
            font-weight: 600;
            cursor: pointer;
        }
    </style>
</head>
<body>
    <h1>You're Offline</h1>
    <p>This page is not available offline. Please check your internet connection and try again.</p>
    <button class="retry-btn" onclick="window.location.reload()">Retry</button>
</body>
</html>
"""

PLACEHOLDER_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="400" height="300" viewBox="0 0 400 300">
    <rect width="400" height="300" fill="#f0f0f0"/>
    <text x="200" y="150" text-anchor="middle" dy=".3em" fill="#999" font-family="Arial, sans-serif" font-size="18">
        Image unavailable offline
    </text>
</svg>
"""


def offline_page_response(request: AgentRequest) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"Content-Type": "text/html; charset=utf-8", FALLBACK_HEADER: "1"},
        content=OFFLINE_HTML.encode("utf-8"),
        request=request.to_httpx(),
    )


def placeholder_image_response(request: AgentRequest) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"Content-Type": "image/svg+xml", FALLBACK_HEADER: "1"},
        content=PLACEHOLDER_SVG.encode("utf-8"),
        request=request.to_httpx(),
    )


class FallbackSynthesizer:
    """Substitutes local responses for failed navigations and images.

    Any other kind of request gets the original network error back: scripts,
    styles and data are never replaced with decoys.
    """

    def __init__(self, store: TierStore, settings: AgentSettings) -> None:
        self.store = store
        self.settings = settings

    async def respond(self, request: AgentRequest, error: httpx.TransportError) -> httpx.Response:
        """Return a substitute for *request* or re-raise *error*."""
        if request.is_navigation:
            cached = await asyncio.to_thread(self._cached_offline_document)
            if cached is not None:
                logger.info("Network unavailable for %s; serving cached offline page", request.url)
                return cached.to_response(request)
            logger.info("Network unavailable for %s; serving generated offline page", request.url)
            return offline_page_response(request)

        if request.is_image:
            logger.info("Network unavailable for %s; serving placeholder image", request.url)
            return placeholder_image_response(request)

        raise error

    def _cached_offline_document(self) -> ResponseSnapshot | None:
        generation = self.settings.generations.static
        if not self.store.has_tier(generation):
            return None
        identity = request_identity(resolve_url(self.settings.origin, self.settings.offline_document))
        with self.store.open(generation) as tier:
            try:
                return tier.match(identity)
            except (CacheDeserializationError, CachePayloadTypeError) as e:
                logger.warning("Cached offline page is unreadable: %s", e)
                return None
