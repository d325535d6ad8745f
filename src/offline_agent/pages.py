"""Registry of the pages (clients) that depend on the agent."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Page:
    """An open page and the agent instance currently serving its requests."""

    url: str
    controller: str | None = None
    focused: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


class PageRegistry:
    """In-process view of open pages, shared by every agent instance of a host."""

    def __init__(self) -> None:
        self._pages: dict[str, Page] = {}

    def open_page(self, url: str, controller: str | None = None) -> Page:
        page = Page(url=url, controller=controller)
        self._pages[page.id] = page
        return page

    def close_page(self, page_id: str) -> None:
        self._pages.pop(page_id, None)

    def pages(self, controlled_by: str | None = None) -> list[Page]:
        if controlled_by is None:
            return list(self._pages.values())
        return [page for page in self._pages.values() if page.controller == controlled_by]

    def controlled_by_other(self, agent_id: str) -> list[Page]:
        """Pages still served by a different agent instance."""
        return [page for page in self._pages.values() if page.controller not in (None, agent_id)]

    def claim(self, agent_id: str) -> int:
        """Make *agent_id* the controller of every open page.

        Returns:
            The number of pages whose controller changed.

        """
        claimed = 0
        for page in self._pages.values():
            if page.controller != agent_id:
                page.controller = agent_id
                claimed += 1
        logger.debug("Agent %s claimed %d page(s)", agent_id, claimed)
        return claimed

    def focus(self, page: Page) -> Page:
        for other in self._pages.values():
            other.focused = other.id == page.id
        return page

    def open_window(self, url: str, controller: str | None = None) -> Page:
        return self.focus(self.open_page(url, controller))

    def focus_or_open(self, url: str, controller: str | None = None) -> Page:
        """Focus an open page showing *url*, or open a new one."""
        for page in self._pages.values():
            if page.url == url:
                return self.focus(page)
        return self.open_window(url, controller)

    def __len__(self) -> int:
        return len(self._pages)
