"""Inoreader tag feed fetching and parsing for InoSync."""

import re
from collections.abc import Callable
from datetime import UTC, datetime
from html import escape
from urllib.parse import quote

import requests
from dateutil import parser as date_parser
from lxml import etree

from .errors import BlockedResponseError, EmptyUserIdError, HttpError, MalformedFeedError
from .logging_config import ExecutionLogger, create_execution_logger
from .models import FeedItem, FeedResponse

FEED_HOST = "www.inoreader.com"
FEED_ITEM_LIMIT = 200

DEFAULT_TITLE = "Untitled"
DEFAULT_SOURCE_TITLE = "Inoreader"
DEFAULT_AUTHOR = "Unknown"

MOCK_ID_PREFIX = "tag:inoreader.com,2024:item/"

# Characters encodeURIComponent leaves alone besides alphanumerics
URI_COMPONENT_SAFE = "-_.!~*'()"

XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")

# Two unrelated fill-in dates; a value whose date depends on them is incomplete
DATE_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def build_feed_url(
    user_id: str, tag: str, force_bust: bool = False, now: datetime | None = None
) -> str:
    """Build the public stream URL for a user's tag.

    Args:
        user_id: Inoreader user ID
        tag: Tag name, percent-encoded into the path
        force_bust: Append a ``t=<epoch-ms>`` parameter to bypass caches
        now: Timestamp used for the cache-busting parameter

    Returns:
        Feed URL string
    """
    url = (
        f"https://{FEED_HOST}/stream/user/{user_id}/tag/"
        f"{quote(tag, safe=URI_COMPONENT_SAFE)}?n={FEED_ITEM_LIMIT}"
    )
    if force_bust:
        now = now or datetime.now(UTC)
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}t={int(now.timestamp() * 1000)}"
    return url


def qualified_name(element) -> str | None:
    """Tag name as written in the document (``prefix:local``), None for non-elements."""
    if not isinstance(element.tag, str):
        return None
    local = etree.QName(element).localname
    return f"{element.prefix}:{local}" if element.prefix else local


def text_content(element) -> str:
    """Concatenated text of an element and its descendants, comments excluded."""
    parts = [element.text or ""]
    for child in element:
        if isinstance(child.tag, str):
            parts.append(text_content(child))
        parts.append(child.tail or "")
    return "".join(parts)


def inner_html(element) -> str:
    """Markup held by an element.

    Escaped or CDATA content is returned as the HTML string it carries;
    inline child elements (Atom ``type="xhtml"``) are serialized back.
    """
    if not any(isinstance(child.tag, str) for child in element):
        return text_content(element)
    return escape(element.text or "", quote=False) + "".join(
        etree.tostring(child, encoding="unicode") for child in element
    )


def first_present(*attempts: Callable[[], str | None]) -> str | None:
    """Run extractor attempts in order and return the first non-empty value."""
    for attempt in attempts:
        value = attempt()
        if value:
            return value
    return None


class EntryReader:
    """Tag-name lookups over one Atom entry or RSS item.

    Lookups match the qualified tag name against every descendant, not
    only direct children, and ignore namespace URIs.
    """

    def __init__(self, element):
        self.element = element

    def all(self, name: str) -> list:
        return [el for el in self.element.iterdescendants() if qualified_name(el) == name]

    def first(self, name: str):
        for el in self.element.iterdescendants():
            if qualified_name(el) == name:
                return el
        return None

    def text(self, name: str) -> str | None:
        el = self.first(name)
        return text_content(el).strip() if el is not None else None

    def html(self, name: str) -> str | None:
        el = self.first(name)
        return inner_html(el) if el is not None else None

    def alternate_link(self) -> str | None:
        for link in self.all("link"):
            if link.get("rel") == "alternate" and link.get("href"):
                return link.get("href")
        return None

    def text_link(self) -> str | None:
        link = self.first("link")
        if link is None:
            return None
        value = text_content(link).strip()
        return value if value.startswith("http") else None

    def href_link(self) -> str | None:
        link = self.first("link")
        return link.get("href") if link is not None else None

    def source_title(self) -> str | None:
        source = self.first("source")
        if source is None:
            return None
        nested = EntryReader(source).text("title")
        return nested or text_content(source).strip()

    def person(self, name: str) -> str | None:
        el = self.first(name)
        if el is None:
            return None
        return EntryReader(el).text("name") or text_content(el).strip()

    def categories(self) -> tuple[str, ...]:
        values = []
        for el in self.all("category"):
            value = text_content(el).strip() or (el.get("term") or "").strip()
            if value:
                values.append(value)
        return tuple(values)


def parse_timestamp(value: str | None, now: datetime) -> float:
    """Parse a feed date into epoch seconds, falling back to ``now``.

    Naive timestamps are read as UTC. Values without a full calendar date
    (a weekday name, a bare time) count as unparsable.
    """
    if not value:
        return now.timestamp()
    try:
        parsed, other = (
            date_parser.parse(value, default=default) for default in DATE_FILL_DEFAULTS
        )
    except (ValueError, OverflowError):
        return now.timestamp()
    if parsed.date() != other.date():
        return now.timestamp()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def normalize_entry(element, now: datetime) -> FeedItem:
    """Normalize one ``<entry>`` or ``<item>`` element into a FeedItem."""
    entry = EntryReader(element)

    link_href = (
        first_present(entry.alternate_link, entry.text_link, entry.href_link) or ""
    )

    content_html = (
        first_present(
            lambda: entry.html("content:encoded"),
            lambda: entry.html("encoded"),
            lambda: entry.html("content"),
            lambda: entry.html("description"),
            lambda: entry.html("summary"),
        )
        or ""
    )

    published_text = first_present(
        lambda: entry.text("published"),
        lambda: entry.text("updated"),
        lambda: entry.text("pubDate"),
        lambda: entry.text("dc:date"),
    )

    return FeedItem(
        id=first_present(lambda: entry.text("id"), lambda: entry.text("guid"))
        or link_href,
        title=entry.text("title") or DEFAULT_TITLE,
        content_html=content_html,
        published=parse_timestamp(published_text, now),
        source_title=entry.source_title() or DEFAULT_SOURCE_TITLE,
        link_href=link_href,
        author=first_present(
            lambda: entry.person("author"), lambda: entry.text("dc:creator")
        )
        or DEFAULT_AUTHOR,
        categories=entry.categories(),
    )


def is_html_page(text: str) -> bool:
    """True when a response body is an HTML page rather than a feed."""
    lowered = text.strip().lower()
    return lowered.startswith("<!doctype html") or "<html" in lowered


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(
        recover=False, resolve_entities=False, no_network=True, strip_cdata=True
    )


def parse_feed(
    text: str,
    now: datetime | None = None,
    logger: ExecutionLogger | None = None,
) -> list[FeedItem]:
    """Parse an Atom or RSS document into FeedItems in document order.

    Args:
        text: Raw response body
        now: Fallback publication time for entries without a usable date
        logger: Logger used to report skipped entries

    Returns:
        List of FeedItem objects, empty when the feed has no entries

    Raises:
        BlockedResponseError: If the body is an HTML page
        MalformedFeedError: If the body is not well-formed XML
    """
    now = now or datetime.now(UTC)
    logger = logger or create_execution_logger("feed_parser")

    if is_html_page(text):
        logger.error("Received HTML page instead of a feed")
        raise BlockedResponseError()

    body = XML_DECLARATION_RE.sub("", text.strip(), count=1)
    try:
        root = etree.fromstring(body, parser=_xml_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.error(f"Failed to parse feed XML: {e}", error=str(e))
        raise MalformedFeedError() from e

    entries = [el for el in root.iter() if qualified_name(el) == "entry"]
    if not entries:
        entries = [el for el in root.iter() if qualified_name(el) == "item"]

    items = []
    for position, element in enumerate(entries):
        try:
            items.append(normalize_entry(element, now))
        except Exception as e:
            logger.warning(
                f"Skipping entry {position}: {e}", position=position, error=str(e)
            )
            continue

    logger.debug(
        "Parsed feed document", items_count=len(items), total_entries=len(entries)
    )
    return items


def parse_response(
    response: FeedResponse,
    now: datetime | None = None,
    logger: ExecutionLogger | None = None,
) -> list[FeedItem]:
    """Check the response status, then parse its body.

    Raises:
        HttpError: If the status is 400 or above
    """
    if response.status is not None and response.status >= 400:
        raise HttpError(response.status)
    return parse_feed(response.text, now=now, logger=logger)


def mock_items(tag: str, user_id: str, now: datetime | None = None) -> list[FeedItem]:
    """Deterministic placeholder items for offline runs."""
    now = now or datetime.now(UTC)
    published = now.timestamp()
    return [
        FeedItem(
            id=f"{MOCK_ID_PREFIX}{tag}_1",
            title=f"{tag}: The Comprehensive Guide",
            content_html=(
                f"This is a simulated article content retrieved for the tag "
                f"<b>{escape(tag)}</b> from user <b>{escape(user_id)}</b>."
            ),
            published=published,
            source_title="Inoreader Public Feed",
            link_href="https://inoreader.com/example/1",
            author=DEFAULT_AUTHOR,
        ),
        FeedItem(
            id=f"{MOCK_ID_PREFIX}{tag}_2",
            title=f"Why {tag} Matters in {now.year}",
            content_html=(
                "An analysis of current trends and future predictions based on "
                "public RSS data."
            ),
            published=published - 86400,
            source_title="Tech Weekly",
            link_href="https://inoreader.com/example/2",
            author=DEFAULT_AUTHOR,
        ),
        FeedItem(
            id=f"{MOCK_ID_PREFIX}{tag}_3",
            title=f"10 Tips for {tag}",
            content_html="A listicle format article with quick tips and tricks.",
            published=published - 172800,
            source_title="Daily Digest",
            link_href="https://inoreader.com/example/3",
            author=DEFAULT_AUTHOR,
        ),
    ]


class FeedProcessor:
    """Fetches and parses Inoreader tag feeds."""

    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    ACCEPT = (
        "application/atom+xml,application/rss+xml,application/xml,"
        "text/xml,text/html,*/*"
    )

    def __init__(
        self,
        timeout: int = 30,
        execution_id: str | None = None,
        offline: bool = False,
        session: requests.Session | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
            offline: Return placeholder items instead of fetching
            session: Optional preconfigured HTTP session
        """
        self.timeout = timeout
        self.offline = offline
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.parser_logger = create_execution_logger(
            "feed_parser", self.logger.execution_id
        )
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.USER_AGENT, "Accept": self.ACCEPT})

        self.logger.info("FeedProcessor initialized", timeout=timeout, offline=offline)

    def fetch_tag(
        self,
        tag: str,
        user_id: str,
        force: bool = False,
        now: datetime | None = None,
    ) -> list[FeedItem]:
        """Fetch and parse the feed for one tag.

        Args:
            tag: Tag name
            user_id: Inoreader user ID
            force: Bypass caches with a timestamp parameter
            now: Current time, used for cache busting and date fallbacks

        Returns:
            List of FeedItem objects

        Raises:
            EmptyUserIdError: If user_id is empty
            HttpError: If the server answers with an error status
            BlockedResponseError: If an HTML page comes back
            MalformedFeedError: If the feed is not valid XML
            requests.RequestException: If the download fails
        """
        if not user_id:
            raise EmptyUserIdError()

        now = now or datetime.now(UTC)

        if self.offline:
            self.logger.info("Offline mode, returning placeholder items", tag=tag)
            return mock_items(tag, user_id, now)

        url = build_feed_url(user_id, tag, force_bust=force, now=now)
        response = self.fetch_response(url)
        items = parse_response(response, now=now, logger=self.parser_logger)
        self.logger.log_feed_processing(tag, url, len(items))
        return items

    def fetch_response(self, url: str) -> FeedResponse:
        """Download a feed body without interpreting its status."""
        try:
            self.logger.info("Downloading feed content", feed_url=url)
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {url}: {e}", feed_url=url, error=str(e)
            )
            raise

        # requests assumes ISO-8859-1 for text/* without a charset
        if "charset" not in response.headers.get("Content-Type", "").lower():
            response.encoding = "utf-8"

        self.logger.info(
            "Feed downloaded",
            feed_url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return FeedResponse(text=response.text, status=response.status_code)
