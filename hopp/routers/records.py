from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from hopp.database import get_session
from hopp.models import BeerRelease, Brewery, Event
from hopp.schemas import (
    BeerReleaseIn,
    BeerReleaseOut,
    BeerReleaseRecord,
    BreweryOut,
    EventIn,
    EventOut,
    EventRecord,
    UpsertBeerReleasesRequest,
    UpsertEventsRequest,
    UpsertResult,
)
from hopp.services.assembler import truncate_description
from hopp.services.field_extractor import parse_time
from hopp.services.persistence import persist_batch
from hopp.services.store import RecordStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["records"])


@router.get("/ping")
async def ping():
    return {"ok": True, "msg": "pong"}


@router.get("/breweries", response_model=list[BreweryOut])
async def list_breweries(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(Brewery).order_by(Brewery.name))
    return result.scalars().all()


@router.get("/events", response_model=list[EventOut])
async def list_events(
    brewery_id: int | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    stmt = (
        select(Event)
        .join(Brewery, Event.brewery_id == Brewery.id)
        .options(contains_eager(Event.brewery))
        .order_by(Event.event_date, Event.id)
        .offset(offset)
        .limit(limit)
    )
    if brewery_id is not None:
        stmt = stmt.where(Event.brewery_id == brewery_id)

    result = await session.execute(stmt)
    return [
        EventOut(
            id=e.id,
            brewery_id=e.brewery_id,
            brewery_name=e.brewery.name,
            brewery_address=e.brewery.address,
            title=e.title,
            event_date=e.event_date,
            start_time=e.start_time,
            end_time=e.end_time,
            cost=e.cost,
            is_recurring=e.is_recurring,
            description=e.description,
            featured=e.featured,
            created_at=e.created_at,
        )
        for e in result.scalars().all()
    ]


@router.get("/beer-releases", response_model=list[BeerReleaseOut])
async def list_beer_releases(
    brewery_id: int | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    stmt = (
        select(BeerRelease)
        .join(Brewery, BeerRelease.brewery_id == Brewery.id)
        .options(contains_eager(BeerRelease.brewery))
        .order_by(BeerRelease.release_date.desc(), BeerRelease.id)
        .offset(offset)
        .limit(limit)
    )
    if brewery_id is not None:
        stmt = stmt.where(BeerRelease.brewery_id == brewery_id)

    result = await session.execute(stmt)
    return [
        BeerReleaseOut(
            id=r.id,
            brewery_id=r.brewery_id,
            brewery_name=r.brewery.name,
            brewery_address=r.brewery.address,
            beer_name=r.beer_name,
            beer_type=r.beer_type,
            release_date=r.release_date,
            description=r.description,
            abv=r.abv,
            created_at=r.created_at,
        )
        for r in result.scalars().all()
    ]


# ── Caller-supplied records ──────────────────────────────────────────


def _event_record(item: EventIn) -> EventRecord:
    return EventRecord(
        title=item.title,
        date=item.event_date or item.date,
        start_time=item.start_time or parse_time(item.time),
        end_time=item.end_time,
        description=truncate_description(item.description),
        venue=item.venue,
        location=item.location,
        cost=item.cost,
        is_recurring=item.is_recurring,
        featured=item.featured,
        source_url=item.url,
        brewery_id=item.brewery_id,
    )


def _release_record(item: BeerReleaseIn) -> BeerReleaseRecord:
    return BeerReleaseRecord(
        beer_name=item.beer_name,
        beer_type=item.beer_type,
        release_date=item.release_date,
        abv=item.abv,
        description=truncate_description(item.description),
        brewery_name=item.brewery_name,
        brewery_id=item.brewery_id,
    )


@router.post("/upsert-events", response_model=UpsertResult)
async def upsert_events(data: UpsertEventsRequest, store: RecordStore = Depends(get_store)):
    """Store caller-supplied events; each gets its own success/error outcome."""
    try:
        records = [_event_record(item) for item in data.events]
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    logger.info("Upserting %d events (dry_run=%s)", len(records), data.dry_run)
    if data.dry_run:
        return UpsertResult(dry_run=True, records=records)
    return UpsertResult(records=records, batch=await persist_batch(store, records))


@router.post("/upsert-beer-releases", response_model=UpsertResult)
async def upsert_beer_releases(
    data: UpsertBeerReleasesRequest, store: RecordStore = Depends(get_store)
):
    """Store caller-supplied beer releases; each gets its own success/error outcome."""
    try:
        records = [_release_record(item) for item in data.releases]
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    logger.info("Upserting %d beer releases (dry_run=%s)", len(records), data.dry_run)
    if data.dry_run:
        return UpsertResult(dry_run=True, records=records)
    return UpsertResult(records=records, batch=await persist_batch(store, records))
