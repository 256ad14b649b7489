"""Record assembly: merge extracted fields with defaults into final records.

Events with no recognisable date get a placeholder from a PlaceholderDatePolicy.
The default picks a random near-future day rather than signalling "unknown";
FixedOffsetDatePolicy pins it and NoPlaceholderDatePolicy leaves it unset.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Callable, Protocol

from hopp.parsers.utils import first_line
from hopp.schemas import (
    ELLIPSIS,
    MAX_DESCRIPTION_LENGTH,
    BeerReleaseRecord,
    EventRecord,
    TargetEntity,
)
from hopp.services.event_classifier import ClassifiedCandidate, Tag
from hopp.services.field_extractor import BeerFields, EventFields

logger = logging.getLogger(__name__)


class EntityResolver(Protocol):
    async def lookup_or_create_entity(self, name: str, location: str | None = None) -> int:
        ...


# ---------------------------------------------------------------------------
# Placeholder date policies
# ---------------------------------------------------------------------------


class PlaceholderDatePolicy(ABC):
    @abstractmethod
    def placeholder(self, today: date) -> date | None:
        """Date to use for an event whose text carries no usable date."""


class RandomFutureDatePolicy(PlaceholderDatePolicy):
    """1..max_days days ahead. Pass a seeded ``random.Random`` for repeatability."""

    def __init__(self, max_days: int = 30, rng: random.Random | None = None):
        if max_days < 1:
            raise ValueError("max_days must be at least 1")
        self.max_days = max_days
        self.rng = rng or random.Random()

    def placeholder(self, today: date) -> date | None:
        return today + timedelta(days=self.rng.randint(1, self.max_days))


class FixedOffsetDatePolicy(PlaceholderDatePolicy):
    def __init__(self, days: int = 7):
        self.days = days

    def placeholder(self, today: date) -> date | None:
        return today + timedelta(days=self.days)


class NoPlaceholderDatePolicy(PlaceholderDatePolicy):
    """Leave the date unset."""

    def placeholder(self, today: date) -> date | None:
        return None


def truncate_description(text: str | None, limit: int = MAX_DESCRIPTION_LENGTH) -> str | None:
    """Cut *text* to *limit* chars, appending "..." only when something was cut."""
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


# ---------------------------------------------------------------------------
# RecordAssembler
# ---------------------------------------------------------------------------


class RecordAssembler:
    def __init__(
        self,
        date_policy: PlaceholderDatePolicy | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.date_policy = date_policy or RandomFutureDatePolicy()
        self.today = today

    def build(
        self,
        classified: ClassifiedCandidate,
        fields: EventFields | BeerFields,
        target: TargetEntity,
    ) -> EventRecord | BeerReleaseRecord:
        if classified.tag is Tag.EVENT:
            return self._build_event(classified, fields, target)
        return self._build_release(classified, fields, target)

    def _build_event(
        self, classified: ClassifiedCandidate, fields: EventFields, target: TargetEntity
    ) -> EventRecord:
        candidate = classified.candidate
        event_date = fields.resolved_date
        if event_date is None:
            event_date = self.date_policy.placeholder(self.today())
            logger.debug("No date in %r, placeholder %s", candidate.title, event_date)

        return EventRecord(
            title=candidate.title or first_line(candidate.text) or candidate.text,
            date=event_date,
            start_time=fields.start_time,
            description=truncate_description(candidate.description),
            venue=target.name,
            location=target.location,
            source_url=candidate.link or candidate.source_url or None,
        )

    def _build_release(
        self, classified: ClassifiedCandidate, fields: BeerFields, target: TargetEntity
    ) -> BeerReleaseRecord:
        candidate = classified.candidate
        return BeerReleaseRecord(
            beer_name=fields.beer_name,
            beer_type=fields.beer_type,
            release_date=fields.release_date,
            abv=fields.abv,
            description=truncate_description(candidate.description or candidate.text),
            source_url=candidate.link or candidate.source_url or None,
            brewery_name=target.name,
        )

    async def resolve(
        self,
        record: EventRecord | BeerReleaseRecord,
        target: TargetEntity,
        resolver: EntityResolver,
    ) -> EventRecord | BeerReleaseRecord:
        """Attach the collaborator's entity id for the target brewery."""
        entity_id = await resolver.lookup_or_create_entity(target.name, target.location)
        return record.model_copy(update={"brewery_id": entity_id})

    async def assemble(
        self,
        classified: ClassifiedCandidate,
        fields: EventFields | BeerFields,
        target: TargetEntity,
        resolver: EntityResolver | None = None,
    ) -> EventRecord | BeerReleaseRecord:
        record = self.build(classified, fields, target)
        if resolver is None:
            return record
        return await self.resolve(record, target, resolver)
