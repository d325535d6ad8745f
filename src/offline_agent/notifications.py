"""Push payload handling and notification click routing."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from offline_agent.config.settings import NotificationAction
from offline_agent.messages import resolve_url

if TYPE_CHECKING:
    from offline_agent.config.settings import NotificationSettings
    from offline_agent.pages import Page, PageRegistry

logger = logging.getLogger(__name__)

DISMISS_ACTION = "dismiss"
EXPLORE_ACTION = "explore"


class PushPayload(BaseModel):
    """Payload delivered by the push service."""

    title: str
    body: str = ""
    data: Any = None


class NotificationDescriptor(BaseModel):
    """Everything the host needs to display a notification."""

    title: str
    body: str
    icon: str
    badge: str
    vibrate: list[int]
    data: Any = None
    actions: list[NotificationAction] = Field(default_factory=list)


@dataclass(slots=True)
class Notification:
    """A notification currently shown by the host."""

    descriptor: NotificationDescriptor
    closed: bool = False

    def close(self) -> None:
        self.closed = True


class NotificationHost(Protocol):
    """Displays notifications on behalf of the agent."""

    async def show_notification(self, descriptor: NotificationDescriptor) -> Notification: ...


class InMemoryNotificationHost:
    """Keeps shown notifications in a list."""

    def __init__(self) -> None:
        self.shown: list[Notification] = []

    async def show_notification(self, descriptor: NotificationDescriptor) -> Notification:
        notification = Notification(descriptor)
        self.shown.append(notification)
        return notification


def parse_push_payload(raw: bytes | str | Mapping[str, Any] | None) -> PushPayload | None:
    """Return the payload, or None when it is absent or malformed."""
    if raw is None:
        return None
    try:
        if isinstance(raw, bytes | str):
            return PushPayload.model_validate_json(raw)
        return PushPayload.model_validate(raw)
    except ValidationError as e:
        logger.debug("Ignoring malformed push payload: %s", e.error_count())
        return None


class NotificationDispatcher:
    """Turns push payloads into notifications and clicks into navigation."""

    def __init__(
        self,
        host: NotificationHost,
        pages: PageRegistry,
        settings: NotificationSettings,
        origin: str,
    ) -> None:
        self.host = host
        self.pages = pages
        self.settings = settings
        self.origin = origin

    def build_descriptor(self, payload: PushPayload) -> NotificationDescriptor:
        return NotificationDescriptor(
            title=payload.title,
            body=payload.body,
            icon=self.settings.icon,
            badge=self.settings.badge,
            vibrate=list(self.settings.vibrate),
            data=payload.data,
            actions=list(self.settings.actions),
        )

    async def on_push(self, raw: bytes | str | Mapping[str, Any] | None) -> Notification | None:
        payload = parse_push_payload(raw)
        if payload is None:
            return None
        logger.debug("Showing notification %r", payload.title)
        return await self.host.show_notification(self.build_descriptor(payload))

    def on_click(self, notification: Notification, action: str | None = None) -> Page | None:
        """Close *notification*, then navigate according to *action*.

        ``dismiss`` only closes; ``explore`` opens the explore view; anything
        else, including a plain click, opens the root view.
        """
        notification.close()
        if action == DISMISS_ACTION:
            return None
        target = self.settings.explore_url if action == EXPLORE_ACTION else self.settings.root_url
        return self.pages.focus_or_open(resolve_url(self.origin, target))
