"""In-memory page model: a parsed HTML document plus its URL.

The page stands in for the browser document. Content inserted or removed
through :meth:`Page.append_html` / :meth:`Page.remove` is reported to
registered observers as a batch of :class:`MutationRecord`, the way a
DOM MutationObserver reports ``childList`` changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import soupsieve
from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement

from app.dom.exceptions import SelectorError

MutationCallback = Callable[[list["MutationRecord"]], None]


@dataclass
class MutationRecord:
    """A ``childList`` change under ``target``."""

    target: Tag
    added_nodes: list[PageElement] = field(default_factory=list)
    removed_nodes: list[PageElement] = field(default_factory=list)


class MutationObserver:
    """Handle returned by :meth:`Page.observe`."""

    def __init__(self, page: Page, callback: MutationCallback) -> None:
        self._page = page
        self.callback = callback
        self.connected = True

    def disconnect(self) -> None:
        if self.connected:
            self._page._observers.remove(self)
            self.connected = False


class Page:
    """A parsed HTML document bound to the URL it was loaded from.

    Example:
        page = Page("<html><body><h1>Acme</h1></body></html>", url="https://app.example.com/")
        for heading in page.select("h1"):
            print(heading.get_text())
    """

    def __init__(self, html: str, url: str = "", parser: str = "html.parser") -> None:
        self.url = url
        self.parser = parser
        self.soup = BeautifulSoup(html, parser)
        self._observers: list[MutationObserver] = []

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def root(self) -> Tag:
        """The document element (``<html>``), or the soup for fragments."""
        html = self.soup.find("html")
        return html if isinstance(html, Tag) else self.soup

    @property
    def head(self) -> Tag | None:
        head = self.soup.find("head")
        return head if isinstance(head, Tag) else None

    @property
    def body(self) -> Tag | None:
        body = self.soup.find("body")
        return body if isinstance(body, Tag) else None

    def contains(self, element: PageElement) -> bool:
        """Check whether *element* is still attached to this document."""
        if element is self.soup:
            return True
        return any(parent is self.soup for parent in element.parents)

    def get_by_id(self, element_id: str) -> Tag | None:
        found = self.soup.find(id=element_id)
        return found if isinstance(found, Tag) else None

    def new_tag(self, name: str, **attrs: str) -> Tag:
        return self.soup.new_tag(name, attrs=attrs)

    def to_html(self) -> str:
        return str(self.soup)

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def select(self, selector: str, root: Tag | None = None) -> list[Tag]:
        """All elements under *root* (default: document) matching *selector*.

        Raises:
            SelectorError: if the selector is not valid CSS.
        """
        scope = root if root is not None else self.soup
        try:
            return list(soupsieve.select(selector, scope))
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorError(f"Invalid selector '{selector}': {exc}") from exc

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        scope = root if root is not None else self.soup
        try:
            return soupsieve.select_one(selector, scope)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorError(f"Invalid selector '{selector}': {exc}") from exc

    def matches(self, element: Tag, selector: str) -> bool:
        try:
            return soupsieve.match(selector, element)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorError(f"Invalid selector '{selector}': {exc}") from exc

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def observe(self, callback: MutationCallback) -> MutationObserver:
        observer = MutationObserver(self, callback)
        self._observers.append(observer)
        return observer

    def append_html(self, parent: Tag, html: str) -> list[PageElement]:
        """Parse *html* and append its top-level nodes to *parent*."""
        fragment = BeautifulSoup(html, self.parser)
        added: list[PageElement] = []
        for node in list(fragment.contents):
            node.extract()
            parent.append(node)
            added.append(node)
        self._notify([MutationRecord(target=parent, added_nodes=added)])
        return added

    def remove(self, element: Tag) -> None:
        parent = element.parent
        element.extract()
        if isinstance(parent, Tag):
            self._notify([MutationRecord(target=parent, removed_nodes=[element])])

    def _notify(self, records: list[MutationRecord]) -> None:
        for observer in list(self._observers):
            observer.callback(records)


def describe(element: Tag) -> str:
    """Short signature like ``div#main.card.title`` for log lines."""
    signature = element.name or "#document"
    element_id = element.get("id")
    if element_id:
        signature += f"#{element_id}"
    classes = element.get("class")
    if classes:
        signature += "." + ".".join(classes)
    return signature
