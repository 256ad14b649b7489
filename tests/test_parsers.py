"""Tests for the HTML and post-feed document parsers."""

from __future__ import annotations

import json

import pytest

from hopp.exceptions import MalformedContentError
from hopp.parsers import DomTree, PostList, parse_html, parse_post_feed
from hopp.parsers.post_feed import NOT_BUSINESS_ACCOUNT_NOTE, normalise_timestamp
from hopp.parsers.utils import collapse_whitespace, first_line, squash


# ---------------------------------------------------------------------------
# Text utilities
# ---------------------------------------------------------------------------
class TestTextUtils:
    def test_collapse_whitespace_keeps_lines(self):
        assert collapse_whitespace("  Trivia   Night \n\n\t 7:00 PM  \n") == "Trivia Night\n7:00 PM"

    def test_squash_joins_lines(self):
        assert squash("Trivia\n  Night ") == "Trivia Night"

    def test_first_line_min_length(self):
        assert first_line("Hi\nTrivia Night", min_length=5) == "Trivia Night"

    def test_first_line_none_when_no_line_long_enough(self):
        assert first_line("Hi\nYo", min_length=5) is None


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------
class TestParseHtml:
    def test_returns_dom_tree(self):
        tree = parse_html("<html><body><h2>Events</h2></body></html>", "https://brewery.example/")
        assert isinstance(tree, DomTree)
        assert tree.first_text("h2") == "Events"
        assert tree.source_url == "https://brewery.example/"

    def test_strips_scripts_and_styles(self):
        html = (
            "<html><head><style>.x{color:red}</style></head>"
            "<body><script>var trivia = 1;</script><p>Live music</p></body></html>"
        )
        tree = parse_html(html, "https://brewery.example/")
        assert "trivia" not in tree.text()
        assert "color" not in tree.text()
        assert tree.text() == "Live music"

    def test_non_string_input_raises(self):
        with pytest.raises(MalformedContentError):
            parse_html(b"<html></html>", "https://brewery.example/")

    def test_resolve_url(self):
        tree = parse_html("<a href='/events/1'>x</a>", "https://brewery.example/calendar")
        assert tree.resolve_url("/events/1") == "https://brewery.example/events/1"
        assert tree.resolve_url(None) == "https://brewery.example/calendar"

    def test_first_attr_missing(self):
        tree = parse_html("<p>no links</p>", "https://brewery.example/")
        assert tree.first_attr("a[href]", "href") is None


# ---------------------------------------------------------------------------
# Post feeds
# ---------------------------------------------------------------------------
GRAPH_PAYLOAD = {
    "business_discovery": {
        "username": "redlegbrewing",
        "media": {
            "data": [
                {
                    "id": "1789",
                    "caption": "Trivia night this Tuesday at 7:00 PM!",
                    "permalink": "https://www.instagram.com/p/Cx12abc/",
                    "media_type": "IMAGE",
                    "media_url": "https://cdn.example/1.jpg",
                    "timestamp": "2026-10-17T18:30:00+0000",
                },
                {
                    "id": "1790",
                    "permalink": "https://www.instagram.com/reel/Dy34def/",
                    "media_type": "VIDEO",
                    "timestamp": "2026-10-16T12:00:00+0000",
                },
            ]
        },
    },
    "id": "17841400000000000",
}


class TestParsePostFeed:
    def test_graph_business_discovery(self):
        posts = parse_post_feed(json.dumps(GRAPH_PAYLOAD))
        assert isinstance(posts, PostList)
        assert posts.username == "redlegbrewing"
        assert len(posts) == 2
        first = posts.posts[0]
        assert first.id == "1789"
        assert first.caption.startswith("Trivia night")
        assert first.shortcode == "Cx12abc"
        assert first.timestamp == "2026-10-17T18:30:00+00:00"

    def test_missing_caption_becomes_empty_string(self):
        posts = parse_post_feed(GRAPH_PAYLOAD)
        assert posts.posts[1].caption == ""
        assert posts.posts[1].shortcode == "Dy34def"

    def test_accepts_bytes(self):
        posts = parse_post_feed(json.dumps(GRAPH_PAYLOAD).encode())
        assert len(posts) == 2

    def test_plain_data_page(self):
        posts = parse_post_feed({"data": [{"id": "1", "caption": "Tap takeover"}]}, username="hops")
        assert [p.caption for p in posts] == ["Tap takeover"]
        assert posts.username == "hops"

    def test_bare_list_of_legacy_nodes(self):
        payload = [
            {
                "node": {
                    "id": "9",
                    "shortcode": "AbC",
                    "is_video": True,
                    "display_url": "https://cdn.example/9.jpg",
                    "taken_at_timestamp": 0,
                    "edge_media_to_caption": {"edges": [{"node": {"text": "New beer release"}}]},
                }
            }
        ]
        post = parse_post_feed(payload).posts[0]
        assert post.caption == "New beer release"
        assert post.media_type == "VIDEO"
        assert post.permalink == "https://www.instagram.com/p/AbC/"
        assert post.timestamp == "1970-01-01T00:00:00+00:00"

    def test_skips_non_object_entries(self):
        posts = parse_post_feed({"data": ["junk", {"id": "2", "caption": "Bingo"}]})
        assert len(posts) == 1

    def test_personal_account_gives_empty_list_with_note(self):
        posts = parse_post_feed({"id": "17841400000000000"}, username="someone")
        assert len(posts) == 0
        assert posts.note == NOT_BUSINESS_ACCOUNT_NOTE

    def test_invalid_json_raises(self):
        with pytest.raises(MalformedContentError):
            parse_post_feed("{not json")

    def test_wrong_payload_type_raises(self):
        with pytest.raises(MalformedContentError):
            parse_post_feed(42)


class TestNormaliseTimestamp:
    def test_z_suffix(self):
        assert normalise_timestamp("2026-10-17T18:30:00Z") == "2026-10-17T18:30:00+00:00"

    def test_offset_converted_to_utc(self):
        assert normalise_timestamp("2026-10-17T18:30:00-0600") == "2026-10-18T00:30:00+00:00"

    def test_unparseable(self):
        assert normalise_timestamp("last tuesday") is None
        assert normalise_timestamp(None) is None
