"""Property-based tests for feed URL building and parsing."""

from datetime import UTC, datetime
from html import escape
from urllib.parse import unquote

import pytest
from hypothesis import given
from hypothesis import strategies as st

from inosync.errors import BlockedResponseError
from inosync.rss import build_feed_url, parse_feed

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)

titles = st.text(
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd")),
    min_size=1,
    max_size=40,
)


class TestFeedParserProperties:
    """Property-based tests for the feed parser."""

    @given(st.lists(titles, max_size=15))
    def test_atom_entry_count_and_order_property(self, entry_titles):
        """
        For any Atom document with N entries, the parser returns exactly N
        items in document order.
        """
        entries = "".join(
            f"<entry><title>{escape(title)}</title></entry>" for title in entry_titles
        )
        feed = f'<feed xmlns="http://www.w3.org/2005/Atom">{entries}</feed>'

        items = parse_feed(feed, now=NOW)

        assert [item.title for item in items] == entry_titles

    @given(st.lists(titles, max_size=15))
    def test_rss_item_count_and_order_property(self, item_titles):
        """
        For any RSS document with N items and no entries, the parser returns
        exactly N items in document order.
        """
        items_xml = "".join(
            f"<item><title>{escape(title)}</title>"
            f"<guid>{escape(title)}-guid</guid></item>"
            for title in item_titles
        )
        feed = f'<rss version="2.0"><channel>{items_xml}</channel></rss>'

        items = parse_feed(feed, now=NOW)

        assert [item.title for item in items] == item_titles
        assert [item.id for item in items] == [f"{title}-guid" for title in item_titles]

    @given(st.text(max_size=200))
    def test_html_page_always_blocked_property(self, filler):
        """
        Any body starting with an HTML doctype is reported as blocked,
        whatever follows it.
        """
        with pytest.raises(BlockedResponseError):
            parse_feed(f"  <!DOCTYPE html>{filler}")

    @given(st.text(max_size=200))
    def test_html_tag_always_blocked_property(self, filler):
        with pytest.raises(BlockedResponseError):
            parse_feed(f"<rss>{filler}<html>")


class TestFeedUrlProperties:
    """Property-based tests for the feed URL builder."""

    @given(
        st.text(alphabet="0123456789", min_size=1, max_size=12),
        st.text(min_size=1, max_size=50).filter(lambda x: "\x00" not in x),
    )
    def test_tag_round_trips_through_url_property(self, user_id, tag):
        """
        The tag decodes back from the URL path and never leaks a space,
        slash or query character.
        """
        url = build_feed_url(user_id, tag)

        prefix = f"https://www.inoreader.com/stream/user/{user_id}/tag/"
        assert url.startswith(prefix)
        assert url.endswith("?n=200")

        encoded_tag = url[len(prefix) : -len("?n=200")]
        assert unquote(encoded_tag) == tag
        assert not any(ch in encoded_tag for ch in " /?&#")

    @given(st.integers(min_value=0, max_value=4_000_000_000))
    def test_force_bust_appends_one_parameter_property(self, epoch_seconds):
        now = datetime.fromtimestamp(epoch_seconds, UTC)

        url = build_feed_url("42", "tag", force_bust=True, now=now)

        assert url.count("?") == 1
        assert url.endswith(f"&t={epoch_seconds * 1000}")
