from __future__ import annotations

import logging
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException

from hopp.config import settings
from hopp.exceptions import ConfigurationError, FetchError, HttpStatusError
from hopp.schemas import CrawlEventsRequest, CrawlInstagramRequest, CrawlResult, TargetEntity
from hopp.services.instagram import InstagramGraphClient, clean_handle
from hopp.services.pipeline import ExtractionPipeline, build_pipeline
from hopp.services.store import RecordStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["crawl"])


def get_pipeline() -> ExtractionPipeline:
    return build_pipeline(settings)


def get_instagram_client(pipeline: ExtractionPipeline = Depends(get_pipeline)) -> InstagramGraphClient:
    return InstagramGraphClient(
        pipeline.fetcher,
        access_token=settings.instagram_page_access_token,
        business_account_id=settings.instagram_business_account_id,
        api_version=settings.graph_api_version,
        base_url=settings.graph_api_base_url,
    )


@router.post("/crawl-events", response_model=CrawlResult)
async def crawl_events(
    data: CrawlEventsRequest,
    pipeline: ExtractionPipeline = Depends(get_pipeline),
    store: RecordStore = Depends(get_store),
):
    """Crawl one brewery web page for events and beer releases."""
    url = data.target.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise HTTPException(status_code=400, detail="target must be an http(s) URL")

    # Without an explicit venue the site's host stands in for the brewery name
    target = TargetEntity(name=data.venue or parsed.netloc, location=data.location)
    logger.info("Crawl of %s for '%s' (dry_run=%s)", url, target.name, data.dry_run)
    try:
        return await pipeline.crawl_page(url, target, dry_run=data.dry_run, store=store)
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Crawl failed: {e}")


@router.post("/crawl-instagram-graph", response_model=CrawlResult)
async def crawl_instagram_graph(
    data: CrawlInstagramRequest,
    pipeline: ExtractionPipeline = Depends(get_pipeline),
    store: RecordStore = Depends(get_store),
    client: InstagramGraphClient = Depends(get_instagram_client),
):
    """Fetch recent posts of a business account and optionally extract records."""
    try:
        doc = await client.fetch_payload(data.username, limit=data.limit)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except HttpStatusError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to crawl Instagram: {e}")

    username = clean_handle(data.username)
    target = TargetEntity(name=data.venue or username, location=data.location)
    return await pipeline.process_payload(
        doc.text,
        username,
        target,
        dry_run=data.dry_run,
        store=store,
        extract=data.extract_events,
    )
