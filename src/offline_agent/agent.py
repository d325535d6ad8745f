"""The agent: one object exposing a handler per host event.

The host (an event loop, a proxy, the CLI) decides how events arrive and
calls ``on_install``, ``on_activate``, ``on_fetch``, ``on_message``,
``on_push``, ``on_notification_click`` and ``on_sync``.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any

from offline_agent.cache.store import TierStore
from offline_agent.control import ControlChannel
from offline_agent.fallback import FallbackSynthesizer
from offline_agent.interceptor import FetchInterceptor
from offline_agent.lifecycle import LifecycleController
from offline_agent.messages import AgentRequest
from offline_agent.network import NetworkFetcher
from offline_agent.notifications import InMemoryNotificationHost, NotificationDispatcher
from offline_agent.pages import PageRegistry

if TYPE_CHECKING:
    from collections.abc import Mapping

    import httpx

    from offline_agent.batch import AttemptResult
    from offline_agent.config.settings import AgentSettings
    from offline_agent.messages import ResponseSnapshot
    from offline_agent.notifications import Notification, NotificationHost
    from offline_agent.pages import Page

logger = logging.getLogger(__name__)

BACKGROUND_SYNC_TAG = "background-sync"


class Agent:
    """Wires the lifecycle, interceptor, fallback, control and notification components."""

    def __init__(
        self,
        settings: AgentSettings,
        *,
        store: TierStore | None = None,
        fetcher: NetworkFetcher | None = None,
        pages: PageRegistry | None = None,
        notification_host: NotificationHost | None = None,
        agent_id: str | None = None,
    ) -> None:
        self.settings = settings
        # Registries define __len__, so an empty one is falsy.
        self.store = store if store is not None else TierStore(settings.cache_dir)
        self.fetcher = fetcher if fetcher is not None else NetworkFetcher.from_settings(settings)
        self.pages = pages if pages is not None else PageRegistry()
        self.notification_host = notification_host if notification_host is not None else InMemoryNotificationHost()

        self.lifecycle = LifecycleController(self.store, self.fetcher, self.pages, settings, agent_id=agent_id)
        self.fallback = FallbackSynthesizer(self.store, settings)
        self.interceptor = FetchInterceptor(self.store, self.fetcher, self.fallback, settings)
        self.control = ControlChannel(self.store, self.lifecycle, settings)
        self.notifications = NotificationDispatcher(
            self.notification_host, self.pages, settings.notifications, settings.origin
        )

    @property
    def agent_id(self) -> str:
        return self.lifecycle.agent_id

    def request(self, url: str, **kwargs: Any) -> AgentRequest:
        """Build a request against the agent's origin."""
        return AgentRequest.build(self.settings.origin, url, **kwargs)

    async def on_install(self) -> list[AttemptResult[ResponseSnapshot]]:
        return await self.lifecycle.install()

    async def on_activate(self) -> list[AttemptResult[bool]]:
        return await self.lifecycle.activate()

    async def start(self) -> None:
        """Install, then activate unless older pages keep this instance waiting."""
        await self.on_install()
        if not await self.lifecycle.activate_if_ready() and self.lifecycle.waiting:
            logger.info("Installed; waiting for pages served by the previous instance")

    async def on_fetch(self, request: AgentRequest) -> httpx.Response | None:
        return await self.interceptor.handle(request)

    async def on_message(self, message: Any) -> None:
        await self.control.handle(message)

    async def on_push(self, payload: bytes | str | Mapping[str, Any] | None) -> Notification | None:
        return await self.notifications.on_push(payload)

    def on_notification_click(self, notification: Notification, action: str | None = None) -> Page | None:
        return self.notifications.on_click(notification, action)

    async def on_sync(self, tag: str) -> bool:
        """Handle a background sync event. Only ``background-sync`` is recognised."""
        if tag != BACKGROUND_SYNC_TAG:
            return False
        logger.info("Background sync triggered")
        await self.interceptor.drain()
        return True

    async def aclose(self) -> None:
        await self.interceptor.drain()
        await self.fetcher.aclose()

    async def __aenter__(self) -> Agent:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
