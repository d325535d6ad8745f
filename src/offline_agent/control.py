"""Control messages sent by pages to the agent."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Annotated, Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from offline_agent.lifecycle import delete_tiers

if TYPE_CHECKING:
    from offline_agent.batch import AttemptResult
    from offline_agent.cache.store import TierStore
    from offline_agent.config.settings import AgentSettings
    from offline_agent.lifecycle import LifecycleController

logger = logging.getLogger(__name__)


@runtime_checkable
class ReplyPort(Protocol):
    """Anything a reply can be posted to."""

    def post_message(self, message: dict[str, Any]) -> None: ...


class ReplyChannel:
    """Queue-backed reply port for hosts that await the answer in-process."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def post_message(self, message: dict[str, Any]) -> None:
        self._queue.put_nowait(message)

    async def receive(self, timeout: float | None = None) -> dict[str, Any]:
        return await asyncio.wait_for(self._queue.get(), timeout)


class GetVersion(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: Literal["GET_VERSION"]
    ports: list[Any] = Field(min_length=1)

    @field_validator("ports")
    @classmethod
    def _require_reply_ports(cls, value: list[Any]) -> list[Any]:
        if not all(isinstance(port, ReplyPort) for port in value):
            msg = "ports must provide post_message()"
            raise ValueError(msg)
        return value


class SkipWaiting(BaseModel):
    type: Literal["SKIP_WAITING"]


class ClearCache(BaseModel):
    type: Literal["CLEAR_CACHE"]


ControlMessage = Annotated[GetVersion | SkipWaiting | ClearCache, Field(discriminator="type")]
_control_message_adapter: TypeAdapter[GetVersion | SkipWaiting | ClearCache] = TypeAdapter(ControlMessage)


def parse_control_message(raw: Any) -> GetVersion | SkipWaiting | ClearCache | None:
    """Validate *raw* as a control message, returning None for anything unrecognised."""
    try:
        return _control_message_adapter.validate_python(raw)
    except ValidationError as e:
        logger.debug("Ignoring malformed control message: %s", e.error_count())
        return None


class ControlChannel:
    """Stateless dispatcher for page-to-agent control messages."""

    def __init__(self, store: TierStore, lifecycle: LifecycleController, settings: AgentSettings) -> None:
        self.store = store
        self.lifecycle = lifecycle
        self.settings = settings

    async def handle(self, raw: Any) -> None:
        """Dispatch one message. Unrecognised messages are ignored."""
        message = parse_control_message(raw)
        if message is None:
            return

        if isinstance(message, GetVersion):
            self.reply_version(message.ports[0])
        elif isinstance(message, SkipWaiting):
            await self.lifecycle.skip_waiting()
        elif isinstance(message, ClearCache):
            await self.clear_cache()

    def reply_version(self, port: ReplyPort) -> None:
        port.post_message({"version": self.settings.generations.static, "release": self.settings.release})

    async def clear_cache(self) -> list[AttemptResult[bool]]:
        """Delete every tier in the store, whatever its generation."""
        names = await asyncio.to_thread(self.store.list_tier_names)
        logger.info("Clearing %d cache tier(s)", len(names))
        return await delete_tiers(self.store, names)
