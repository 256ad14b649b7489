from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from hopp.parsers.utils import element_text, squash
from hopp.schemas import Post


class DomTree:
    """Parsed HTML document, queryable by CSS selector.

    Owned by a single pipeline run. Candidates keep back-references to its
    elements but never copy or mutate the tree.
    """

    def __init__(self, soup: BeautifulSoup, source_url: str):
        self.soup = soup
        self.source_url = source_url

    def select(self, selector: str, within: Tag | None = None) -> list[Tag]:
        return (within or self.soup).select(selector)

    def iter_elements(self) -> list[Tag]:
        """Every element under <body> (the whole document if there is none), in document order."""
        return (self.soup.body or self.soup).find_all(True)

    def first_text(self, selector: str, within: Tag | None = None) -> str | None:
        """Squashed text of the first element matching *selector*, or None."""
        el = (within or self.soup).select_one(selector)
        if el is None:
            return None
        return squash(el.get_text()) or None

    def first_attr(self, selector: str, attr: str, within: Tag | None = None) -> str | None:
        el = (within or self.soup).select_one(selector)
        if el is None:
            return None
        value = el.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        return value.strip() if value else None

    def text(self, within: Tag | None = None) -> str:
        """Whole-subtree text with blank lines dropped and spaces collapsed."""
        return element_text(within or self.soup)

    def resolve_url(self, href: str | None) -> str:
        """Resolve *href* against the document URL; fall back to the URL itself."""
        if not href:
            return self.source_url
        return urljoin(self.source_url, href)


@dataclass(frozen=True)
class PostList:
    """Ordered posts from one feed payload."""

    posts: tuple[Post, ...] = ()
    username: str | None = None
    note: str | None = None

    def __len__(self) -> int:
        return len(self.posts)

    def __iter__(self):
        return iter(self.posts)


ParsedContent = Union[DomTree, PostList]
