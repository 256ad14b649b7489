"""SQLAlchemy-backed persistence collaborator.

Each public call runs in its own session and transaction, so a failing
record never rolls back one that was already stored.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hopp.database import async_session
from hopp.exceptions import PersistenceError
from hopp.models import BeerRelease, Event
from hopp.schemas import BeerReleaseRecord, EventRecord
from hopp.services.brewery_matcher import find_brewery, match_brewery

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def lookup_entity(self, name: str) -> int | None:
        ...

    async def lookup_or_create_entity(self, name: str, location: str | None = None) -> int:
        ...

    async def persist(self, record: EventRecord | BeerReleaseRecord) -> int:
        ...


class SqlRecordStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        today: Callable[[], date] = date.today,
    ):
        self.session_factory = session_factory
        self.today = today

    async def lookup_entity(self, name: str) -> int | None:
        async with self.session_factory() as session:
            try:
                brewery = await find_brewery(session, name)
            except SQLAlchemyError as e:
                raise PersistenceError(f"Brewery lookup failed for {name!r}: {e}") from e
        return brewery.id if brewery else None

    async def lookup_or_create_entity(self, name: str, location: str | None = None) -> int:
        async with self.session_factory() as session:
            try:
                match = await match_brewery(session, name, location, today=self.today())
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise PersistenceError(f"Failed to create brewery {name!r}: {e}") from e
        return match.brewery_id

    async def persist(self, record: EventRecord | BeerReleaseRecord) -> int:
        if record.brewery_id is None:
            raise PersistenceError("Record has no brewery_id")

        if isinstance(record, EventRecord):
            row = Event(
                brewery_id=record.brewery_id,
                title=record.title,
                event_date=record.date or self.today(),
                start_time=record.start_time,
                end_time=record.end_time,
                cost=record.cost,
                is_recurring=record.is_recurring,
                description=record.description,
                featured=record.featured,
                source_url=record.source_url,
            )
        else:
            row = BeerRelease(
                brewery_id=record.brewery_id,
                beer_name=record.beer_name,
                beer_type=record.beer_type,
                release_date=record.release_date or self.today().isoformat(),
                description=record.description,
                abv=record.abv,
                source_url=record.source_url,
            )

        async with self.session_factory() as session:
            try:
                session.add(row)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise PersistenceError(f"Insert failed: {e}") from e
            logger.debug("Stored %s id=%d", record.kind, row.id)
            return row.id


def get_store() -> RecordStore:
    """FastAPI dependency: a store on the application database."""
    return SqlRecordStore(async_session)
