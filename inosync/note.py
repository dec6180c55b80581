"""Markdown note rendering for feed items."""

import re
from datetime import UTC, datetime

from .converter import html_to_markdown
from .models import FeedItem, RenderedNote

DEFAULT_TEMPLATE = "default"
FALLBACK_URL = "https://inoreader.com"
FALLBACK_SOURCE = "Unknown"
FALLBACK_AUTHOR = "Unknown"

# Characters that are unsafe in file names on common platforms
UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|]')
TAG_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.ASCII)
WHITESPACE_RE = re.compile(r"\s")
PLACEHOLDER_RE = re.compile(r"\{\{(title|content|url|source|id|date|author|tags)\}\}")

BASE_TAGS = ("inoreader", "rss")


def sanitize_filename(title: str) -> str:
    """Replace each file-system-unsafe character of a title with ``-``."""
    return UNSAFE_FILENAME_RE.sub("-", title)


def escape_quotes(value: str) -> str:
    """Escape a value for a double-quoted YAML scalar."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def format_timestamp(epoch_seconds: float) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. ``2024-01-01T10:00:00.000Z``."""
    try:
        moment = datetime.fromtimestamp(epoch_seconds, UTC)
    except (OverflowError, OSError, ValueError):
        moment = datetime.fromtimestamp(0, UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_tags(categories) -> list[str]:
    """Turn feed categories into tag names: lowercase, no punctuation, no spaces."""
    tags = []
    for category in categories:
        tag = WHITESPACE_RE.sub("", TAG_PUNCTUATION_RE.sub("", category.lower()))
        if tag:
            tags.append(tag)
    return tags


def is_default_template(template: str | None) -> bool:
    return not template or not template.strip() or template.strip() == DEFAULT_TEMPLATE


def placeholder_values(item: FeedItem, body: str) -> dict[str, str]:
    """Values substituted for each ``{{name}}`` placeholder."""
    return {
        "title": item.title,
        "content": body,
        "url": item.link_href or FALLBACK_URL,
        "source": item.source_title or FALLBACK_SOURCE,
        "id": escape_quotes(item.id),
        "date": format_timestamp(item.published),
        "author": item.author or FALLBACK_AUTHOR,
        "tags": ",".join(normalize_tags(item.categories)),
    }


def apply_template(template: str, values: dict[str, str]) -> str:
    """Replace every known placeholder in one pass; others are left as-is."""
    return PLACEHOLDER_RE.sub(lambda match: values[match.group(1)], template)


def default_document(item: FeedItem, values: dict[str, str]) -> str:
    tags = ", ".join([*BASE_TAGS, *normalize_tags(item.categories)])
    return (
        "---\n"
        f'id: "{values["id"]}"\n'
        f'title: "{escape_quotes(item.title)}"\n'
        f'author: "{escape_quotes(values["author"])}"\n'
        f"date: {values['date']}\n"
        f'source: "{escape_quotes(values["source"])}"\n'
        f"tags: [{tags}]\n"
        f"url: {values['url']}\n"
        "---\n"
        "\n"
        f"# {item.title}\n"
        "\n"
        f"{values['content']}\n"
        "\n"
        f"[View Original Source]({values['url']})\n"
    )


def render_note(item: FeedItem, body: str, template: str | None = None) -> RenderedNote:
    """Render a feed item and its converted body into a note.

    Args:
        item: Parsed feed item
        body: Markdown body produced from the item's HTML
        template: User template; empty or ``"default"`` selects the
            built-in frontmatter layout

    Returns:
        RenderedNote with a safe file name stem and the document text
    """
    values = placeholder_values(item, body)
    if is_default_template(template):
        document = default_document(item, values)
    else:
        document = apply_template(template, values)

    return RenderedNote(
        file_name_stem=sanitize_filename(item.title), document_text=document
    )


def generate_note(item: FeedItem, template: str | None = None) -> RenderedNote:
    """Convert an item's HTML body and render it into a note."""
    return render_note(item, html_to_markdown(item.content_html), template)
