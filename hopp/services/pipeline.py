"""Extraction pipeline orchestration.

fetch -> parse -> locate -> classify -> extract -> assemble -> persist

Everything between the fetch and the persistence collaborator is pure and
runs sequentially in document order. A dry run produces the same records
but skips entity resolution and never touches the store.
"""

from __future__ import annotations

import logging
import time

from hopp.config import Settings
from hopp.exceptions import FetchError, MalformedContentError, PersistenceError
from hopp.metrics import CANDIDATES_FOUND, CRAWL_TOTAL, PARSE_ERRORS_TOTAL, RECORDS_EXTRACTED
from hopp.parsers import ParsedContent, PostList, parse_html, parse_post_feed
from hopp.schemas import BeerReleaseRecord, CrawlResult, EventRecord, TargetEntity
from hopp.services.assembler import RandomFutureDatePolicy, RecordAssembler
from hopp.services.event_classifier import ClassifiedCandidate, EventClassifier
from hopp.services.fetcher import FetchConfig, Fetcher
from hopp.services.field_extractor import BeerFields, EventFields, FieldExtractor
from hopp.services.locator import CandidateLocator
from hopp.services.persistence import persist_batch
from hopp.services.store import RecordStore

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    def __init__(
        self,
        fetcher: Fetcher,
        locator: CandidateLocator,
        classifier: EventClassifier,
        extractor: FieldExtractor,
        assembler: RecordAssembler,
    ):
        self.fetcher = fetcher
        self.locator = locator
        self.classifier = classifier
        self.extractor = extractor
        self.assembler = assembler

    def extract(
        self, content: ParsedContent
    ) -> tuple[int, list[tuple[ClassifiedCandidate, EventFields | BeerFields]]]:
        """Locate, classify and extract. Returns (candidate count, extractions)."""
        candidates = self.locator.locate(content)
        classified = self.classifier.classify_candidates(candidates)
        return len(candidates), [(c, self.extractor.extract(c)) for c in classified]

    async def crawl_page(
        self,
        url: str,
        target: TargetEntity,
        dry_run: bool = False,
        store: RecordStore | None = None,
    ) -> CrawlResult:
        """Fetch one web page and turn it into records.

        FetchError propagates to the caller. Unparseable markup is logged and
        gives an empty result.
        """
        started = time.monotonic()
        try:
            doc = await self.fetcher.fetch(url)
        except FetchError:
            CRAWL_TOTAL.labels(source="web", status="failed").inc()
            raise

        try:
            content = parse_html(doc.text, doc.url)
        except MalformedContentError as e:
            return self._skipped(url, "web", dry_run, e)

        result = await self._run(url, "web", content, target, dry_run, store)
        logger.info(
            "Crawl of %s finished in %.1fs: %d candidates, %d records",
            url, time.monotonic() - started, result.candidates_found, len(result.records),
        )
        return result

    async def process_posts(
        self,
        posts: PostList,
        target: TargetEntity,
        dry_run: bool = False,
        store: RecordStore | None = None,
    ) -> CrawlResult:
        source = f"instagram:@{posts.username}" if posts.username else "instagram"
        result = await self._run(source, "instagram", posts, target, dry_run, store)
        return result.model_copy(update={"posts": list(posts.posts), "note": posts.note})

    async def process_payload(
        self,
        payload: str,
        username: str,
        target: TargetEntity,
        dry_run: bool = False,
        store: RecordStore | None = None,
        extract: bool = True,
    ) -> CrawlResult:
        """Parse a post-feed API payload and, if *extract*, turn it into records.

        An unreadable payload is logged and gives an empty result, like
        unparseable markup in crawl_page.
        """
        source = f"instagram:@{username}"
        try:
            posts = parse_post_feed(payload, username=username)
        except MalformedContentError as e:
            return self._skipped(source, "instagram", dry_run, e)

        if not extract:
            return CrawlResult(
                source=f"instagram:@{posts.username or username}",
                posts=list(posts.posts),
                dry_run=dry_run,
                note=posts.note,
            )
        return await self.process_posts(posts, target, dry_run=dry_run, store=store)

    def _skipped(self, source: str, source_kind: str, dry_run: bool, error: Exception) -> CrawlResult:
        logger.warning("Skipping %s: %s", source, error)
        PARSE_ERRORS_TOTAL.labels(source=source_kind).inc()
        CRAWL_TOTAL.labels(source=source_kind, status="completed").inc()
        return CrawlResult(source=source, dry_run=dry_run, note=str(error))

    async def _run(
        self,
        source: str,
        source_kind: str,
        content: ParsedContent,
        target: TargetEntity,
        dry_run: bool,
        store: RecordStore | None,
    ) -> CrawlResult:
        candidates_found, extractions = self.extract(content)
        CANDIDATES_FOUND.labels(source=source_kind).inc(candidates_found)

        resolver = None if dry_run else store
        records: list[EventRecord | BeerReleaseRecord] = []
        for classified, fields in extractions:
            record = self.assembler.build(classified, fields, target)
            if resolver is not None:
                try:
                    record = await self.assembler.resolve(record, target, resolver)
                except PersistenceError as e:
                    # Left unresolved; persist_batch reports it per record
                    logger.warning("Could not resolve brewery '%s': %s", target.name, e)
            records.append(record)
            RECORDS_EXTRACTED.labels(kind=record.kind).inc()

        batch = None
        if not dry_run and store is not None and records:
            batch = await persist_batch(store, records)

        CRAWL_TOTAL.labels(source=source_kind, status="completed").inc()
        return CrawlResult(
            source=source,
            candidates_found=candidates_found,
            records=records,
            batch=batch,
            dry_run=dry_run,
        )


def build_pipeline(settings: Settings, transport=None) -> ExtractionPipeline:
    """Wire the default stages from configuration."""
    fetcher = Fetcher(
        FetchConfig(user_agent=settings.user_agent, timeout=settings.fetch_timeout),
        transport=transport,
    )
    return ExtractionPipeline(
        fetcher=fetcher,
        locator=CandidateLocator(),
        classifier=EventClassifier(),
        extractor=FieldExtractor(),
        assembler=RecordAssembler(RandomFutureDatePolicy(max_days=settings.placeholder_max_days)),
    )
