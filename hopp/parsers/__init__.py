from hopp.parsers.base import DomTree, ParsedContent, PostList  # noqa: F401
from hopp.parsers.html import parse_html  # noqa: F401
from hopp.parsers.post_feed import parse_post_feed  # noqa: F401
