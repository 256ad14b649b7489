"""Keyword-taxonomy classification of candidates into events and beer releases."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable

from hopp.services.locator import Candidate

logger = logging.getLogger(__name__)


class Tag(str, enum.Enum):
    EVENT = "event"
    BEER_RELEASE = "beer-release"


EVENT_KEYWORDS = (
    "event", "trivia", "bingo", "live music", "food truck", "party", "tasting",
    "tour", "workshop", "meetup", "tap takeover", "happy hour", "special event",
)

RELEASE_KEYWORDS = (
    "beer release", "new beer", "hits taps", "now available", "collaboration beer",
    "limited release", "special release", "seasonal beer",
)


@dataclass(frozen=True)
class KeywordTaxonomy:
    """Two disjoint lowercase keyword vocabularies."""

    event: tuple[str, ...] = EVENT_KEYWORDS
    release: tuple[str, ...] = RELEASE_KEYWORDS

    def __post_init__(self):
        overlap = {k.lower() for k in self.event} & {k.lower() for k in self.release}
        if overlap:
            raise ValueError(f"Keyword sets must be disjoint, both contain: {sorted(overlap)}")


@dataclass(frozen=True)
class ClassifiedCandidate:
    candidate: Candidate
    tag: Tag
    tags: frozenset[Tag]


class EventClassifier:
    """Tag candidates by plain substring containment over lowercased text.

    Classification Strategy:
    1. Lowercase the candidate text (caption or DOM block)
    2. Any event keyword present -> Tag.EVENT
    3. Any release keyword present -> Tag.BEER_RELEASE
    4. No keyword -> empty tag set, the candidate is dropped

    Matching is substring containment, not word-boundary: "tour" matches
    "tours" and "detour" alike.
    """

    def __init__(self, taxonomy: KeywordTaxonomy | None = None):
        self.taxonomy = taxonomy or KeywordTaxonomy()

    def classify(self, text: str) -> frozenset[Tag]:
        lowered = (text or "").lower()
        tags = set()
        if any(k.lower() in lowered for k in self.taxonomy.event):
            tags.add(Tag.EVENT)
        if any(k.lower() in lowered for k in self.taxonomy.release):
            tags.add(Tag.BEER_RELEASE)
        return frozenset(tags)

    def classify_candidates(self, candidates: Iterable[Candidate]) -> list[ClassifiedCandidate]:
        """Emit one ClassifiedCandidate per matched tag, in document order."""
        classified: list[ClassifiedCandidate] = []
        dropped = 0
        for candidate in candidates:
            tags = self.classify(candidate.text)
            if not tags:
                dropped += 1
                continue
            # Fixed order so a candidate tagged twice yields event first
            for tag in (Tag.EVENT, Tag.BEER_RELEASE):
                if tag in tags:
                    classified.append(ClassifiedCandidate(candidate=candidate, tag=tag, tags=tags))
        if dropped:
            logger.debug("Classifier dropped %d candidates with no keyword match", dropped)
        return classified
