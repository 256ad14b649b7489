"""Instagram Graph API source.

Uses the business discovery edge, which only returns media for business
and creator accounts. Personal or private accounts come back without a
``business_discovery`` object and yield an empty PostList with a note.
"""

from __future__ import annotations

import logging

from hopp.exceptions import ConfigurationError, HttpStatusError
from hopp.parsers.base import PostList
from hopp.parsers.post_feed import parse_post_feed
from hopp.schemas import RawDocument
from hopp.services.fetcher import Fetcher

logger = logging.getLogger(__name__)

GRAPH_API_BASE_URL = "https://graph.facebook.com"
MEDIA_FIELDS = "id,caption,permalink,media_type,media_url,timestamp"

_STATUS_MESSAGES = {
    401: "Instagram access token expired or invalid. Please refresh your Page Access Token.",
    400: "Invalid request to Instagram Graph API. Check business account ID and username.",
}


class InstagramGraphClient:
    def __init__(
        self,
        fetcher: Fetcher,
        access_token: str,
        business_account_id: str,
        api_version: str = "v23.0",
        base_url: str = GRAPH_API_BASE_URL,
    ):
        self.fetcher = fetcher
        self.access_token = access_token
        self.business_account_id = business_account_id
        self.api_version = api_version
        self.base_url = base_url.rstrip("/")

    async def fetch_payload(self, username: str, limit: int = 25) -> RawDocument:
        """Fetch the raw business discovery response for *username*."""
        if not self.access_token or not self.business_account_id:
            raise ConfigurationError(
                "Instagram credentials not configured. Please set "
                "INSTAGRAM_PAGE_ACCESS_TOKEN and INSTAGRAM_BUSINESS_ACCOUNT_ID"
            )

        clean_username = clean_handle(username)
        url = f"{self.base_url}/{self.api_version}/{self.business_account_id}"
        params = {
            "fields": (
                f"business_discovery.username({clean_username})"
                f"{{media.limit({limit}){{{MEDIA_FIELDS}}}}}"
            ),
            "access_token": self.access_token,
        }

        logger.info("Fetching last %d posts of @%s from Graph API %s", limit, clean_username, self.api_version)
        try:
            return await self.fetcher.fetch(url, params=params)
        except HttpStatusError as e:
            message = _STATUS_MESSAGES.get(
                e.status, f"Instagram Graph API error: HTTP {e.status}"
            )
            raise HttpStatusError(e.url, e.status, body=e.body, message=message) from e

    async def fetch_posts(self, username: str, limit: int = 25) -> PostList:
        doc = await self.fetch_payload(username, limit=limit)
        return parse_post_feed(doc.text, username=clean_handle(username))


def clean_handle(username: str) -> str:
    return username.strip().lstrip("@")
