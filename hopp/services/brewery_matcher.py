"""Lookup-or-create brewery resolution.

Names are matched by case-insensitive substring, so "Fremont" finds
"Fremont Brewing". The lowest id wins when several breweries match.
Unmatched names create a new brewery with placeholder contact details.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hopp.models import Brewery

logger = logging.getLogger(__name__)

ADDRESS_NOT_PROVIDED = "Address not provided"
PHONE_NOT_PROVIDED = "Phone not provided"


@dataclass
class BreweryMatch:
    brewery_id: int
    brewery_name: str
    match_type: str  # "existing" | "new"


async def find_brewery(session: AsyncSession, name: str) -> Brewery | None:
    name = (name or "").strip()
    if not name:
        return None
    result = await session.execute(
        select(Brewery)
        .where(Brewery.name.icontains(name, autoescape=True))
        .order_by(Brewery.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def match_brewery(
    session: AsyncSession,
    name: str,
    location: str | None = None,
    today: date | None = None,
) -> BreweryMatch:
    """Return the brewery for *name*, creating it if no brewery matches.

    The new row is flushed, not committed; the caller owns the transaction.
    """
    existing = await find_brewery(session, name)
    if existing is not None:
        logger.debug("Found existing brewery %r -> %d", name, existing.id)
        return BreweryMatch(brewery_id=existing.id, brewery_name=existing.name, match_type="existing")

    today = today or date.today()
    brewery = Brewery(
        name=name.strip(),
        address=location or ADDRESS_NOT_PROVIDED,
        phone=PHONE_NOT_PROVIDED,
        description=f"Brewery discovered via event crawling on {today.isoformat()}",
    )
    session.add(brewery)
    await session.flush()
    logger.info("New brewery created: '%s' (id=%d)", brewery.name, brewery.id)
    return BreweryMatch(brewery_id=brewery.id, brewery_name=brewery.name, match_type="new")
