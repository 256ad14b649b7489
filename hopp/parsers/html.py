from __future__ import annotations

import logging

from bs4 import BeautifulSoup, ParserRejectedMarkup

from hopp.exceptions import MalformedContentError
from hopp.parsers.base import DomTree

logger = logging.getLogger(__name__)


def parse_html(text: str, source_url: str) -> DomTree:
    """Parse raw HTML into a DomTree.

    Raises MalformedContentError for non-text input or markup the parser
    refuses; the pipeline treats that as a document with no candidates.
    """
    if not isinstance(text, str):
        raise MalformedContentError(
            f"Expected HTML text from {source_url}, got {type(text).__name__}"
        )
    try:
        soup = BeautifulSoup(text, "html.parser")
    except ParserRejectedMarkup as e:
        raise MalformedContentError(f"Unparseable HTML from {source_url}: {e}") from e

    # Remove non-content elements so text scans never see inline code
    for tag in soup.find_all(["script", "style", "noscript", "template"]):
        tag.decompose()

    logger.debug("Parsed %d chars of HTML from %s", len(text), source_url)
    return DomTree(soup, source_url)
