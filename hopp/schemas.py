from __future__ import annotations

import datetime as dt
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 200
ELLIPSIS = "..."
UNKNOWN_BEER = "Unknown Beer"


def _clip_title(v: str) -> str:
    return (v or "").strip()[:MAX_TITLE_LENGTH].strip()


# --- Fetcher / parser payloads ---
class RawDocument(BaseModel):
    """A fetched payload. Discarded once parsed."""

    url: str
    status: int
    headers: dict[str, str] = {}
    text: str
    content_type: str | None = None

    model_config = {"frozen": True}


class Post(BaseModel):
    """One post from an API feed, normalised to a uniform shape."""

    id: str
    caption: str = ""
    timestamp: str | None = None  # ISO-8601, UTC
    media_type: str | None = None
    media_url: str | None = None
    permalink: str | None = None
    shortcode: str | None = None

    model_config = {"frozen": True}


class TargetEntity(BaseModel):
    """The brewery/venue the crawled content belongs to."""

    name: str
    location: str | None = None

    model_config = {"frozen": True}


# --- Extracted records ---
class EventRecord(BaseModel):
    kind: Literal["event"] = "event"
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    date: dt.date | None = None
    start_time: str | None = None  # "HH:MM:SS"
    end_time: str | None = None
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH + len(ELLIPSIS))
    venue: str | None = None
    location: str | None = None
    cost: str | None = None
    is_recurring: bool = False
    featured: bool = False
    source_url: str | None = None
    brewery_id: int | None = None

    model_config = {"frozen": True}

    @field_validator("title", mode="before")
    @classmethod
    def clip_title(cls, v: str) -> str:
        return _clip_title(v)


class BeerReleaseRecord(BaseModel):
    kind: Literal["beer_release"] = "beer_release"
    beer_name: str = Field(UNKNOWN_BEER, min_length=1, max_length=MAX_TITLE_LENGTH)
    beer_type: str | None = None
    release_date: str | None = None  # ISO for today/tomorrow, raw text otherwise
    abv: float | None = None
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH + len(ELLIPSIS))
    source_url: str | None = None
    brewery_name: str | None = None
    brewery_id: int | None = None

    model_config = {"frozen": True}

    @field_validator("beer_name", mode="before")
    @classmethod
    def clip_beer_name(cls, v: str | None) -> str:
        return _clip_title(v) or UNKNOWN_BEER


ExtractedRecord = Annotated[Union[EventRecord, BeerReleaseRecord], Field(discriminator="kind")]


def record_label(record: EventRecord | BeerReleaseRecord) -> str:
    """Human-readable name used in logs and batch outcomes."""
    if isinstance(record, EventRecord):
        return record.title
    return record.beer_name


# --- Persistence outcomes ---
class RecordOutcome(BaseModel):
    label: str
    kind: str
    status: Literal["success", "error"]
    id: int | None = None
    error: str | None = None


class BatchResult(BaseModel):
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    results: list[RecordOutcome] = []


class CrawlResult(BaseModel):
    source: str
    candidates_found: int = 0
    records: list[ExtractedRecord] = []
    posts: list[Post] = []
    batch: BatchResult | None = None
    dry_run: bool = False
    note: str | None = None

    @property
    def events(self) -> list[EventRecord]:
        return [r for r in self.records if isinstance(r, EventRecord)]

    @property
    def releases(self) -> list[BeerReleaseRecord]:
        return [r for r in self.records if isinstance(r, BeerReleaseRecord)]


# --- API requests ---
class CrawlEventsRequest(BaseModel):
    target: str
    venue: str | None = None
    location: str | None = None
    since_days: int = Field(7, alias="sinceDays")
    dry_run: bool = Field(False, alias="dryRun")

    model_config = {"populate_by_name": True}


class CrawlInstagramRequest(BaseModel):
    username: str
    limit: int = Field(25, ge=1, le=100)
    venue: str | None = None
    location: str | None = None
    dry_run: bool = Field(False, alias="dryRun")
    extract_events: bool = Field(False, alias="extractEvents")

    model_config = {"populate_by_name": True}


class EventIn(BaseModel):
    """Caller-supplied event for /upsert-events."""

    title: str = Field(min_length=1)
    brewery_id: int | None = None
    venue: str | None = None
    location: str | None = None
    event_date: dt.date | None = None
    date: dt.date | None = None
    time: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    cost: str | None = None
    is_recurring: bool = False
    description: str | None = None
    featured: bool = False
    url: str | None = None


class BeerReleaseIn(BaseModel):
    """Caller-supplied beer release for /upsert-beer-releases."""

    beer_name: str = Field(min_length=1)
    brewery_id: int | None = None
    brewery_name: str | None = None
    beer_type: str | None = None
    release_date: str | None = None
    description: str | None = None
    abv: float | None = Field(None, alias="ABV")

    model_config = {"populate_by_name": True}


class UpsertEventsRequest(BaseModel):
    events: list[EventIn]
    dry_run: bool = Field(False, alias="dryRun")

    model_config = {"populate_by_name": True}


class UpsertBeerReleasesRequest(BaseModel):
    releases: list[BeerReleaseIn]
    dry_run: bool = Field(False, alias="dryRun")

    model_config = {"populate_by_name": True}


# --- API responses ---
class BreweryOut(BaseModel):
    id: int
    name: str
    address: str | None

    model_config = {"from_attributes": True}


class EventOut(BaseModel):
    id: int
    brewery_id: int
    brewery_name: str
    brewery_address: str | None
    title: str
    event_date: dt.date
    start_time: str | None
    end_time: str | None
    cost: str | None
    is_recurring: bool
    description: str | None
    featured: bool
    created_at: dt.datetime


class BeerReleaseOut(BaseModel):
    id: int
    brewery_id: int
    brewery_name: str
    brewery_address: str | None
    beer_name: str
    beer_type: str | None
    release_date: str
    description: str | None
    abv: float | None
    created_at: dt.datetime


class UpsertResult(BaseModel):
    dry_run: bool = False
    records: list[ExtractedRecord] = []
    batch: BatchResult | None = None
