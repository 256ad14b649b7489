"""Shared text utilities for the document parsers and the pipeline stages.

Whitespace normalisation for DOM text, first-line selection, and the
month/weekday vocabularies used by the date patterns.
"""

from __future__ import annotations

import re

from bs4 import Tag

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
WEEKDAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)

_INLINE_WS_RE = re.compile(r"[ \t\r\f\v\u00a0]+")
_ANY_WS_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace and remove blank lines.

    Line structure is kept so callers can still take the first line of a
    block; runs of spaces/tabs inside a line become one space.
    """
    text = _INLINE_WS_RE.sub(" ", text)
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def squash(text: str) -> str:
    """Collapse all whitespace, newlines included, into single spaces."""
    return _ANY_WS_RE.sub(" ", text).strip()


def element_text(element: Tag) -> str:
    """Whole-subtree text of a DOM element, normalised."""
    return collapse_whitespace(element.get_text())


def first_line(text: str, min_length: int = 0) -> str | None:
    """Return the first stripped line longer than *min_length*, or None."""
    for line in text.splitlines():
        line = line.strip()
        if line and len(line) > min_length:
            return line
    return None
