"""Pattern-based field extraction for classified candidates.

Events get a date and a start time from an ordered list of patterns. The
list is scanned to the end without early exit, so for each category the
LAST pattern that matches anywhere in the text wins: a caption with both
"June 5" and "Friday" resolves to "Friday". Changing that ordering changes
what ambiguous captions extract.

Beer releases get a name, ABV, style and release date from dedicated
patterns. Unmatched fields stay None; only the beer name has an explicit
"Unknown Beer" fallback.

All extraction is deterministic for a fixed text and clock. "today" and
"tomorrow" are resolved against the injected ``today`` callable.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Sequence

from hopp.parsers.utils import MONTH_NAMES, WEEKDAY_NAMES
from hopp.schemas import UNKNOWN_BEER
from hopp.services.event_classifier import ClassifiedCandidate, Tag
from hopp.services.locator import TBD, Candidate

logger = logging.getLogger(__name__)

_MONTHS = "|".join(MONTH_NAMES)
_WEEKDAYS = "|".join(WEEKDAY_NAMES)

# ── Event date/time patterns ─────────────────────────────────────────
# Order matters (last match wins per category). The first pattern whose
# source contains a colon is the time pattern, so none of these may use
# (?:...) groups.
EVENT_DATE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})"),
    re.compile(rf"({_MONTHS})\s+\d{{1,2}}", re.IGNORECASE),
    re.compile(rf"({_WEEKDAYS})", re.IGNORECASE),
    re.compile(r"(\d{1,2}:\d{2}\s*(am|pm))", re.IGNORECASE),
    re.compile(r"(today|tomorrow|this week|next week)", re.IGNORECASE),
)

# ── Beer release patterns ────────────────────────────────────────────
BEER_NAME_RE = re.compile(
    r"(?:new|collaboration|limited|special|seasonal)\s+([A-Za-z\s]+?)"
    r"(?:\s+(?:beer|ale|lager|ipa|stout|porter|pilsner|wheat|sour|barrel|aged))",
    re.IGNORECASE,
)

ABV_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"(\d+\.?\d*)\s*%?\s*abv", re.IGNORECASE),  # "6.5% ABV"
    re.compile(r"abv\s*:?\s*(\d+\.?\d*)", re.IGNORECASE),  # "ABV 6.5"
)

BEER_STYLES = (
    "ipa", "stout", "porter", "pilsner", "wheat", "sour", "barrel", "aged",
    "lager", "ale", "hazy", "double", "triple", "imperial", "session",
    "blonde", "brown", "red", "amber", "pale", "black", "white", "golden",
    "dark", "light",
)
# Plain substring match, leftmost wins: "Featured ... Dark Lager" gives "red"
BEER_STYLE_RE = re.compile("(" + "|".join(BEER_STYLES) + ")", re.IGNORECASE)

RELEASE_DATE_RE = re.compile(
    r"(?:hits taps|now available|released|launching)\s+"
    r"(?:today|tomorrow|this\s+(?:week|month)|next\s+(?:week|month)"
    rf"|(\d{{1,2}}/\d{{1,2}})|(\d{{1,2}}\s+(?:{_MONTHS})))",
    re.IGNORECASE,
)

# ── Normalisation patterns ───────────────────────────────────────────
_CLOCK_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?", re.IGNORECASE)
_NUMERIC_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2,4})")
_MONTH_DAY_RE = re.compile(rf"({_MONTHS})\s+(\d{{1,2}})", re.IGNORECASE)


@dataclass(frozen=True)
class EventFields:
    date_text: str | None = None
    time_text: str | None = None
    resolved_date: date | None = None
    start_time: str | None = None


@dataclass(frozen=True)
class BeerFields:
    beer_name: str = UNKNOWN_BEER
    beer_type: str | None = None
    abv: float | None = None
    release_date: str | None = None


def parse_time(text: str | None) -> str | None:
    """Normalise a clock time to 24-hour ``HH:MM:SS``.

    Accepts "7:00 PM", "7pm", "19:00". A bare number with neither minutes
    nor am/pm is not a time (it is usually part of a date), so it is skipped.
    Older clients read a bare "7" as 07:00:00; here it gives None.
    """
    if not text or text.strip().upper() == TBD:
        return None

    for m in _CLOCK_RE.finditer(text):
        hours_raw, minutes_raw, meridiem = m.groups()
        if minutes_raw is None and meridiem is None:
            continue
        hours = int(hours_raw)
        minutes = int(minutes_raw) if minutes_raw else 0
        meridiem = meridiem.upper() if meridiem else None

        if meridiem and not 1 <= hours <= 12:
            return None
        if meridiem == "PM" and hours != 12:
            hours += 12
        if meridiem == "AM" and hours == 12:
            hours = 0
        if hours > 23 or minutes > 59:
            return None
        return f"{hours:02d}:{minutes:02d}:00"
    return None


def resolve_event_date(text: str | None, today: date) -> date | None:
    """Turn an extracted date phrase into a calendar date.

    Weekdays resolve to their next occurrence, today included. Month/day
    phrases use the current year. Impossible dates give None.
    """
    if not text:
        return None
    lowered = " ".join(text.lower().split())

    if lowered in ("today", "this week"):
        return today
    if lowered == "tomorrow":
        return today + timedelta(days=1)
    if lowered == "next week":
        return today + timedelta(days=7)
    if lowered in WEEKDAY_NAMES:
        days_ahead = (WEEKDAY_NAMES.index(lowered) - today.weekday()) % 7
        return today + timedelta(days=days_ahead)

    try:
        m = _NUMERIC_DATE_RE.fullmatch(lowered)
        if m:
            month, day, year = (int(g) for g in m.groups())
            if len(m.group(3)) == 2:
                year += 2000
            return date(year, month, day)

        m = _MONTH_DAY_RE.fullmatch(lowered)
        if m:
            month = MONTH_NAMES.index(m.group(1).lower()) + 1
            return date(today.year, month, int(m.group(2)))
    except ValueError:
        logger.debug("Impossible date %r", text)
    return None


class FieldExtractor:
    """Extract typed fields from classified candidates."""

    def __init__(
        self,
        today: Callable[[], date] = date.today,
        date_patterns: Sequence[re.Pattern] = EVENT_DATE_PATTERNS,
    ):
        self.today = today
        self.date_patterns = tuple(date_patterns)
        self._time_pattern_index = next(
            (i for i, p in enumerate(self.date_patterns) if ":" in p.pattern), None
        )

    def extract(self, classified: ClassifiedCandidate) -> EventFields | BeerFields:
        if classified.tag is Tag.EVENT:
            return self.extract_event(classified.candidate)
        return self.extract_beer(classified.candidate.text)

    def extract_event(self, candidate: Candidate) -> EventFields:
        text = candidate.text
        date_text = None
        time_text = None

        # No early exit: later matches overwrite earlier ones
        for i, pattern in enumerate(self.date_patterns):
            m = pattern.search(text)
            if not m:
                continue
            if i == self._time_pattern_index:
                time_text = m.group(0)
            else:
                date_text = m.group(0)

        start_time = parse_time(time_text) or parse_time(candidate.time_text)
        return EventFields(
            date_text=date_text,
            time_text=time_text,
            resolved_date=resolve_event_date(date_text, self.today()),
            start_time=start_time,
        )

    def extract_beer(self, text: str) -> BeerFields:
        m = BEER_NAME_RE.search(text)
        beer_name = m.group(1).strip() if m and m.group(1).strip() else UNKNOWN_BEER

        m = BEER_STYLE_RE.search(text)
        beer_type = m.group(1).lower() if m else None

        return BeerFields(
            beer_name=beer_name,
            beer_type=beer_type,
            abv=extract_abv(text),
            release_date=self._release_date(text),
        )

    def _release_date(self, text: str) -> str | None:
        m = RELEASE_DATE_RE.search(text)
        if not m:
            return None
        if m.group(1):
            return m.group(1)  # M/D, passed through unparsed
        if m.group(2):
            return m.group(2)  # D Month, passed through unparsed
        phrase = m.group(0).lower()
        if "today" in phrase:
            return self.today().isoformat()
        if "tomorrow" in phrase:
            return (self.today() + timedelta(days=1)).isoformat()
        # "this week", "next month": matched but left unresolved
        return None


def extract_abv(text: str) -> float | None:
    for pattern in ABV_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        try:
            return float(m.group(1))
        except ValueError:
            return None
    return None
