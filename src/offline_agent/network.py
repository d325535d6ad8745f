"""Network access for the agent: one httpx client with timeout and retry."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

if TYPE_CHECKING:
    from offline_agent.config.settings import AgentSettings
    from offline_agent.messages import AgentRequest

logger = logging.getLogger(__name__)

# A transport error means no response arrived at all. Status codes are answers
# and are handed back to the caller unchanged.
RETRYABLE_EXCEPTIONS = (httpx.TransportError,)


def get_async_retrying(
    max_attempts: int = 1,
    min_wait: float = 0.1,
    max_wait: float = 1.0,
    multiplier: float = 0.5,
) -> AsyncRetrying:
    """Get a tenacity AsyncRetrying object for network fetches.

    Args:
        max_attempts: Maximum number of attempts (1 disables retrying)
        min_wait: Minimum wait time in seconds
        max_wait: Maximum wait time in seconds
        multiplier: Exponential backoff multiplier

    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        reraise=True,
    )


class NetworkFetcher:
    """Performs the network leg of a request on behalf of the agent."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = 10.0,
        max_attempts: int = 1,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True)
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(cls, settings: AgentSettings, client: httpx.AsyncClient | None = None) -> NetworkFetcher:
        return cls(client, timeout=settings.fetch_timeout, max_attempts=settings.fetch_retries)

    async def fetch(self, request: AgentRequest) -> httpx.Response:
        """Send *request* and return the fully-read response.

        Raises:
            httpx.TransportError: If no response could be obtained.

        """
        async for attempt in get_async_retrying(self.max_attempts):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.debug("Retrying %s (attempt %d)", request.url, attempt.retry_state.attempt_number)
                return await self.client.send(request.to_httpx(), follow_redirects=True)
        msg = "unreachable: retrying always returns or re-raises"
        raise AssertionError(msg)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> NetworkFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
