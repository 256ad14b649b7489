"""Tests for the SQLAlchemy record store and brewery matching."""

from __future__ import annotations

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hopp.database import Base
from hopp.exceptions import PersistenceError
from hopp.models import BeerRelease, Brewery, Event
from hopp.schemas import BeerReleaseRecord, EventRecord
from hopp.services.brewery_matcher import find_brewery, match_brewery
from hopp.services.store import SqlRecordStore

TODAY = date(2026, 10, 19)


@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite shared across sessions via StaticPool."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory):
    return SqlRecordStore(session_factory, today=lambda: TODAY)


# ---------------------------------------------------------------------------
# Brewery matching
# ---------------------------------------------------------------------------
class TestBreweryMatcher:
    @pytest.mark.asyncio
    async def test_creates_new_brewery(self, session_factory):
        async with session_factory() as session:
            match = await match_brewery(session, "Red Leg Brewing", None, today=TODAY)
            await session.commit()

            assert match.match_type == "new"
            brewery = await session.get(Brewery, match.brewery_id)
            assert brewery.address == "Address not provided"
            assert brewery.phone == "Phone not provided"
            assert brewery.description == "Brewery discovered via event crawling on 2026-10-19"

    @pytest.mark.asyncio
    async def test_case_insensitive_substring_match(self, session_factory):
        async with session_factory() as session:
            session.add(Brewery(name="Red Leg Brewing Company", address="CO"))
            await session.flush()

            match = await match_brewery(session, "red leg")
            assert match.match_type == "existing"
            assert match.brewery_name == "Red Leg Brewing Company"

    @pytest.mark.asyncio
    async def test_lowest_id_wins(self, session_factory):
        async with session_factory() as session:
            first = Brewery(name="Bristol Brewing")
            second = Brewery(name="Bristol Brewing Taproom")
            session.add_all([first, second])
            await session.flush()

            found = await find_brewery(session, "Bristol")
            assert found.id == first.id

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, session_factory):
        async with session_factory() as session:
            session.add(Brewery(name="Red Leg Brewing"))
            await session.flush()
            assert await find_brewery(session, "%") is None
            assert await find_brewery(session, "") is None


# ---------------------------------------------------------------------------
# SqlRecordStore
# ---------------------------------------------------------------------------
class TestSqlRecordStore:
    @pytest.mark.asyncio
    async def test_lookup_or_create_is_stable(self, store):
        first = await store.lookup_or_create_entity("Red Leg Brewing", "2323 Garden of the Gods Rd")
        second = await store.lookup_or_create_entity("RED LEG")
        assert first == second

    @pytest.mark.asyncio
    async def test_lookup_entity_not_found(self, store):
        assert await store.lookup_entity("Nowhere Brewing") is None

    @pytest.mark.asyncio
    async def test_persist_event_defaults_date_to_today(self, store, session_factory):
        brewery_id = await store.lookup_or_create_entity("Red Leg Brewing")
        record_id = await store.persist(EventRecord(title="Trivia Night", start_time="19:00:00", brewery_id=brewery_id))

        async with session_factory() as session:
            event = await session.get(Event, record_id)
            assert event.title == "Trivia Night"
            assert event.event_date == TODAY
            assert event.start_time == "19:00:00"
            assert event.brewery_id == brewery_id

    @pytest.mark.asyncio
    async def test_persist_release_defaults_release_date(self, store, session_factory):
        brewery_id = await store.lookup_or_create_entity("Red Leg Brewing")
        record_id = await store.persist(BeerReleaseRecord(beer_name="Hazy Wonder", abv=6.5, brewery_id=brewery_id))

        async with session_factory() as session:
            release = await session.get(BeerRelease, record_id)
            assert release.release_date == "2026-10-19"
            assert release.abv == 6.5

    @pytest.mark.asyncio
    async def test_persist_keeps_raw_release_date(self, store, session_factory):
        brewery_id = await store.lookup_or_create_entity("Red Leg Brewing")
        record_id = await store.persist(
            BeerReleaseRecord(beer_name="Stout", release_date="3/14", brewery_id=brewery_id)
        )
        async with session_factory() as session:
            rows = (await session.execute(select(BeerRelease))).scalars().all()
            assert [(r.id, r.release_date) for r in rows] == [(record_id, "3/14")]

    @pytest.mark.asyncio
    async def test_persist_without_brewery_id_raises(self, store):
        with pytest.raises(PersistenceError):
            await store.persist(EventRecord(title="Orphan event"))

    @pytest.mark.asyncio
    async def test_database_error_becomes_persistence_error(self):
        engine = create_async_engine(
            "sqlite+aiosqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        # No tables created
        broken = SqlRecordStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
        with pytest.raises(PersistenceError):
            await broken.persist(EventRecord(title="Trivia", date=TODAY, brewery_id=1))
        with pytest.raises(PersistenceError):
            await broken.lookup_or_create_entity("Red Leg")
        await engine.dispose()
