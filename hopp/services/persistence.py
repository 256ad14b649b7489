"""Batch persistence with per-record outcomes.

Records are stored one at a time, in order. A failure is recorded against
that record and the loop moves on; nothing already stored is undone.
"""

from __future__ import annotations

import logging
from typing import Iterable

from hopp.exceptions import PersistenceError
from hopp.metrics import PERSIST_OUTCOMES
from hopp.schemas import BatchResult, BeerReleaseRecord, EventRecord, RecordOutcome, record_label
from hopp.services.store import RecordStore

logger = logging.getLogger(__name__)


async def resolve_brewery_id(store: RecordStore, record: EventRecord | BeerReleaseRecord) -> int:
    """Find the brewery a record belongs to.

    Events create their brewery from the venue when it is unknown. Beer
    releases only match an existing brewery by name.
    """
    if record.brewery_id is not None:
        return record.brewery_id

    if isinstance(record, EventRecord):
        if not record.venue:
            raise PersistenceError("Either brewery_id or venue must be provided")
        return await store.lookup_or_create_entity(record.venue, record.location)

    if not record.brewery_name:
        raise PersistenceError("Either brewery_id or brewery_name must be provided")
    brewery_id = await store.lookup_entity(record.brewery_name)
    if brewery_id is None:
        raise PersistenceError(f"Brewery not found: {record.brewery_name}")
    return brewery_id


async def persist_batch(
    store: RecordStore,
    records: Iterable[EventRecord | BeerReleaseRecord],
) -> BatchResult:
    batch = BatchResult()
    for record in records:
        label = record_label(record)
        batch.processed += 1
        try:
            brewery_id = await resolve_brewery_id(store, record)
            if brewery_id != record.brewery_id:
                record = record.model_copy(update={"brewery_id": brewery_id})
            record_id = await store.persist(record)
        except PersistenceError as e:
            logger.warning("Failed to store %s '%s': %s", record.kind, label, e)
            batch.failed += 1
            batch.results.append(
                RecordOutcome(label=label, kind=record.kind, status="error", error=str(e))
            )
            PERSIST_OUTCOMES.labels(kind=record.kind, status="error").inc()
            continue

        batch.succeeded += 1
        batch.results.append(
            RecordOutcome(label=label, kind=record.kind, status="success", id=record_id)
        )
        PERSIST_OUTCOMES.labels(kind=record.kind, status="success").inc()

    logger.info(
        "Stored %d/%d records (%d failed)", batch.succeeded, batch.processed, batch.failed
    )
    return batch
