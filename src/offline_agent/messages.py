"""Request and response value types shared by the agent components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from urllib.parse import urldefrag, urlsplit, urlunsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "AgentRequest",
    "ResponseSnapshot",
    "is_same_origin",
    "origin_of",
    "request_identity",
    "resolve_url",
]

# Headers describing the wire encoding of the original body. Snapshots keep the
# decoded body, so these would make httpx try to decode it a second time.
_WIRE_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


def resolve_url(origin: str, url: str) -> str:
    """Return *url* as an absolute URL, resolving relative paths against *origin*."""
    return str(httpx.URL(origin).join(url))


def origin_of(url: str | httpx.URL) -> tuple[str, str, int | None]:
    """Return the ``(scheme, host, port)`` origin triple of *url*.

    httpx normalises default ports to ``None`` so ``http://a:80`` and
    ``http://a`` share an origin.
    """
    parsed = url if isinstance(url, httpx.URL) else httpx.URL(url)
    return (parsed.scheme, parsed.host, parsed.port)


def is_same_origin(url: str | httpx.URL, origin: str) -> bool:
    return origin_of(url) == origin_of(origin)


@dataclass(frozen=True, slots=True)
class AgentRequest:
    """An outbound request routed through the agent.

    ``mode`` and ``destination`` follow the browser fetch vocabulary:
    ``mode="navigate"`` marks a full page load and ``destination="image"``
    marks an image subresource.
    """

    url: str
    method: str = "GET"
    mode: str = "no-cors"
    destination: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        origin: str,
        url: str,
        *,
        method: str = "GET",
        mode: str = "no-cors",
        destination: str = "",
        headers: dict[str, str] | None = None,
    ) -> AgentRequest:
        return cls(
            url=resolve_url(origin, url),
            method=method.upper(),
            mode=mode,
            destination=destination,
            headers=dict(headers or {}),
        )

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"

    @property
    def is_image(self) -> bool:
        return self.destination == "image"

    def to_httpx(self) -> httpx.Request:
        return httpx.Request(self.method, self.url, headers=self.headers)


def request_identity(request: AgentRequest | str, method: str = "GET") -> str:
    """Return the cache key for *request*: method plus absolute URL without fragment."""
    if isinstance(request, AgentRequest):
        url, method = request.url, request.method
    else:
        url = request
    parts = urlsplit(urldefrag(url).url)
    # A bare origin names the same resource as its root path.
    if not parts.path:
        parts = parts._replace(path="/")
    return f"{method.upper()} {httpx.URL(urlunsplit(parts))}"


class ResponseSnapshot(BaseModel):
    """A fully-read response as persisted inside a cache tier."""

    model_config = ConfigDict(frozen=True)

    url: str
    status: int
    reason: str = ""
    headers: list[tuple[str, str]] = Field(default_factory=list)
    content: bytes = b""
    stored_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_response(cls, response: httpx.Response) -> ResponseSnapshot:
        """Snapshot a response whose body has already been read."""
        headers = [(k, v) for k, v in response.headers.multi_items() if k.lower() not in _WIRE_HEADERS]
        return cls(
            url=str(response.url),
            status=response.status_code,
            reason=response.reason_phrase,
            headers=headers,
            content=response.content,
        )

    def to_response(self, request: AgentRequest | None = None) -> httpx.Response:
        """Rebuild an ``httpx.Response`` from the snapshot."""
        outgoing = request.to_httpx() if request is not None else httpx.Request("GET", self.url)
        return httpx.Response(
            self.status,
            headers=self.headers,
            content=self.content,
            request=outgoing,
        )

    @property
    def content_type(self) -> str | None:
        for key, value in self.headers:
            if key.lower() == "content-type":
                return value
        return None
