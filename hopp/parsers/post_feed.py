"""Adapter from social API payloads to a uniform PostList.

Understands three payload shapes:

- Instagram Graph API business discovery:
  ``{"business_discovery": {"username": ..., "media": {"data": [...]}}}``
- a plain page of media objects: ``{"data": [...]}``
- a bare list of media objects

Media objects are either Graph API media (``caption``, ``timestamp``,
``media_type``...) or legacy timeline nodes (``edge_media_to_caption``,
``taken_at_timestamp``, ``shortcode``), optionally wrapped in ``{"node": ...}``.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from hopp.exceptions import MalformedContentError
from hopp.parsers.base import PostList
from hopp.schemas import Post

logger = logging.getLogger(__name__)

NOT_BUSINESS_ACCOUNT_NOTE = (
    "Account is personal, private, or not found. "
    "Instagram Graph API only works with business accounts."
)

# "+0000" -> "+00:00" so fromisoformat accepts Graph API timestamps
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")
_SHORTCODE_RE = re.compile(r"/(?:p|reel|tv)/([^/?#]+)")


def parse_post_feed(payload: Any, username: str | None = None) -> PostList:
    """Map an API payload into a PostList.

    Raises MalformedContentError when the payload is not JSON or not one of
    the understood shapes.
    """
    data = _load(payload)

    if isinstance(data, list):
        items = data
    elif isinstance(data, dict) and "business_discovery" in data:
        discovery = data["business_discovery"] or {}
        if not isinstance(discovery, dict):
            raise MalformedContentError("business_discovery is not an object")
        username = discovery.get("username") or username
        items = (discovery.get("media") or {}).get("data") or []
    elif isinstance(data, dict) and isinstance(data.get("data"), list):
        items = data["data"]
    elif isinstance(data, dict):
        logger.info("No business_discovery in payload for %s", username or "unknown account")
        return PostList(username=username, note=NOT_BUSINESS_ACCOUNT_NOTE)
    else:
        raise MalformedContentError(f"Unexpected post feed payload type: {type(data).__name__}")

    if not isinstance(items, list):
        raise MalformedContentError("Post feed media is not a list")

    posts = []
    for i, item in enumerate(items):
        if isinstance(item, dict) and isinstance(item.get("node"), dict):
            item = item["node"]
        if not isinstance(item, dict):
            logger.warning("Skipping non-object post entry at index %d", i)
            continue
        posts.append(_to_post(item, i))

    logger.info("Parsed %d posts for %s", len(posts), username or "unknown account")
    return PostList(posts=tuple(posts), username=username)


def _load(payload: Any) -> Any:
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedContentError(f"Post feed is not UTF-8: {e}") from e
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedContentError(f"Failed to parse post feed JSON: {e}") from e
    return payload


def _to_post(item: dict, index: int) -> Post:
    shortcode = item.get("shortcode")
    permalink = item.get("permalink") or item.get("url")
    if not permalink and shortcode:
        permalink = f"https://www.instagram.com/p/{shortcode}/"
    if not shortcode and permalink:
        m = _SHORTCODE_RE.search(permalink)
        shortcode = m.group(1) if m else None

    media_type = item.get("media_type")
    if media_type is None and "is_video" in item:
        media_type = "VIDEO" if item["is_video"] else "IMAGE"

    return Post(
        id=str(item.get("id") or f"post_{index}"),
        caption=_caption(item),
        timestamp=normalise_timestamp(item.get("timestamp", item.get("taken_at_timestamp"))),
        media_type=media_type,
        media_url=item.get("media_url") or item.get("display_url"),
        permalink=permalink,
        shortcode=shortcode,
    )


def _caption(item: dict) -> str:
    caption = item.get("caption")
    if isinstance(caption, dict):  # some endpoints nest {"text": ...}
        caption = caption.get("text")
    if caption is None:
        edges = (item.get("edge_media_to_caption") or {}).get("edges") or []
        if edges and isinstance(edges[0], dict):
            caption = (edges[0].get("node") or {}).get("text")
    return caption if isinstance(caption, str) else ""


def normalise_timestamp(value: Any) -> str | None:
    """Return *value* as an ISO-8601 UTC timestamp, or None if unparseable.

    Accepts epoch seconds, ``Z`` suffixes and compact ``+0000`` offsets.
    """
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        else:
            text = str(value).strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            text = _COMPACT_OFFSET_RE.sub(r"\1:\2", text)
            dt = datetime.fromisoformat(text)
    except (ValueError, OverflowError, OSError):
        logger.debug("Unparseable post timestamp: %r", value)
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()
