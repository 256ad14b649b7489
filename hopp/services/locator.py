"""Candidate location: find text blocks that look like one event or post.

DOM documents go through an ordered chain of strategies. Each strategy
implements ``locate(tree) -> list[Candidate]``; the chain stops at the first
strategy that returns anything, so results are never merged across
strategies. The keyword fallback sits last in the default chain and therefore
only runs when every structural selector came up empty.

Post feeds need no heuristics: every post with a caption is a candidate.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence

from bs4 import Tag

from hopp.parsers.base import DomTree, ParsedContent, PostList
from hopp.parsers.utils import first_line
from hopp.schemas import Post

logger = logging.getLogger(__name__)

TBD = "TBD"

DEFAULT_EVENT_SELECTORS = (
    ".tribe-events-list-widget-events .tribe-events-list-widget-event",
    ".tribe-events-calendar-month .tribe-events-calendar-month-mobile",
    ".event",
    ".tribe-event",
    '[class*="event"]',
    "article",
    ".post",
)

# Navigation/boilerplate markers: a title containing one of these is a page
# section, not a record. Matched case-sensitively against the title.
TITLE_DENYLIST = ("INQUIRIES", "MENU", "ABOUT", "CONTACT")

FALLBACK_KEYWORDS = (
    "Beer Pong", "Trivia", "Music", "Tour", "Release", "Party", "Market", "Cook-Off",
)

TIME_HINT_RE = re.compile(
    r"(\d{1,2}:\d{2}|\d{1,2}/\d{1,2}|\d{1,2}@\d{1,2})\s*(AM|PM)?", re.IGNORECASE
)


@dataclass(frozen=True)
class Candidate:
    """A text span suspected of describing one event or post."""

    text: str
    source_url: str
    title: str | None = None
    time_text: str | None = None
    description: str | None = None
    link: str | None = None
    element: Tag | None = field(default=None, compare=False, repr=False)
    post: Post | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BlockRules:
    """Acceptance rules for structural candidates."""

    min_text_length: int = 20
    max_text_length: int = 500
    min_title_length: int = 5  # exclusive
    max_title_length: int = 100  # exclusive
    title_denylist: tuple[str, ...] = TITLE_DENYLIST
    title_selector: str = "h1, h2, h3, h4, .title, .event-title"
    time_selector: str = '.date, .time, time, [class*="date"], [class*="time"]'
    description_selector: str = ".description, .event-description, p"
    description_slice_end: int = 200

    def text_ok(self, text: str) -> bool:
        return self.min_text_length <= len(text) <= self.max_text_length

    def title_length_ok(self, title: str) -> bool:
        return self.min_title_length < len(title) < self.max_title_length

    def title_ok(self, title: str | None) -> bool:
        if not title or not self.title_length_ok(title):
            return False
        return not any(marker in title for marker in self.title_denylist)


class LocatorStrategy(ABC):
    """One heuristic for finding candidate blocks in a DOM tree."""

    name: str = "strategy"

    @abstractmethod
    def locate(self, tree: DomTree) -> list[Candidate]:
        ...


class SelectorStrategy(LocatorStrategy):
    """Structural strategy: elements matching one CSS selector."""

    def __init__(self, selector: str, rules: BlockRules | None = None):
        self.selector = selector
        self.rules = rules or BlockRules()
        self.name = f"selector {selector!r}"

    def locate(self, tree: DomTree) -> list[Candidate]:
        candidates = []
        for el in tree.select(self.selector):
            candidate = self._candidate_from(tree, el)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def _candidate_from(self, tree: DomTree, el: Tag) -> Candidate | None:
        rules = self.rules
        text = tree.text(el)
        if not rules.text_ok(text):
            return None

        # Heading/title-class child first, then the first line of the block
        title = tree.first_text(rules.title_selector, within=el) or first_line(text)
        if not rules.title_ok(title):
            return None

        time_text = tree.first_text(rules.time_selector, within=el)
        if not time_text:
            m = TIME_HINT_RE.search(text)
            time_text = m.group(0).strip() if m else TBD

        description = tree.first_text(rules.description_selector, within=el)
        if not description:
            description = text[len(title):rules.description_slice_end].strip() or None

        return Candidate(
            text=text,
            source_url=tree.source_url,
            title=title,
            time_text=time_text,
            description=description,
            link=tree.resolve_url(tree.first_attr("a[href]", "href", within=el)),
            element=el,
        )


class KeywordFallbackStrategy(LocatorStrategy):
    """Content-pattern fallback: any element whose text names an activity.

    This does not scan every element in the document. Only elements under
    ``<body>`` are considered, so ``<html>`` and ``<head>`` never match.
    Nested elements repeat the same text, so each title is emitted once
    rather than once per wrapping element. The record date is left to the
    assembler's placeholder policy.
    """

    name = "keyword fallback"

    def __init__(
        self,
        keywords: Sequence[str] = FALLBACK_KEYWORDS,
        rules: BlockRules | None = None,
    ):
        self.keywords = tuple(keywords)
        self.rules = rules or BlockRules()

    def locate(self, tree: DomTree) -> list[Candidate]:
        seen: set[str] = set()
        candidates = []
        for el in tree.iter_elements():
            text = tree.text(el)
            if not any(k in text for k in self.keywords):
                continue
            title = first_line(text, min_length=5) or text[:50].strip()
            if not self.rules.title_length_ok(title) or title in seen:
                continue
            seen.add(title)
            candidates.append(Candidate(
                text=text,
                source_url=tree.source_url,
                title=title,
                time_text=TBD,
                description=text[:self.rules.description_slice_end],
                link=tree.source_url,
                element=el,
            ))
        return candidates


class PostFeedLocator:
    """Every post with a non-empty caption is a candidate."""

    def locate(self, posts: PostList) -> list[Candidate]:
        return [
            Candidate(
                text=post.caption,
                source_url=post.permalink or "",
                description=post.caption,
                link=post.permalink,
                post=post,
            )
            for post in posts
            if post.caption.strip()
        ]


def default_strategies(rules: BlockRules | None = None) -> list[LocatorStrategy]:
    rules = rules or BlockRules()
    strategies: list[LocatorStrategy] = [SelectorStrategy(s, rules) for s in DEFAULT_EVENT_SELECTORS]
    strategies.append(KeywordFallbackStrategy(rules=rules))
    return strategies


class CandidateLocator:
    """Dispatch on the parsed content variant and run the strategy chain."""

    def __init__(
        self,
        strategies: Sequence[LocatorStrategy] | None = None,
        post_locator: PostFeedLocator | None = None,
    ):
        self.strategies = tuple(strategies) if strategies is not None else tuple(default_strategies())
        self.post_locator = post_locator or PostFeedLocator()

    def locate(self, content: ParsedContent) -> list[Candidate]:
        if isinstance(content, PostList):
            candidates = self.post_locator.locate(content)
            logger.info("Post feed: %d of %d posts are candidates", len(candidates), len(content))
            return candidates

        for strategy in self.strategies:
            candidates = strategy.locate(content)
            if candidates:
                logger.info(
                    "%s: %d candidates via %s", content.source_url, len(candidates), strategy.name
                )
                return candidates

        logger.info("%s: no candidates found", content.source_url)
        return []
