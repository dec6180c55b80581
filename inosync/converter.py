"""HTML to Markdown conversion for feed item bodies."""

import re
from collections.abc import Callable

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import NavigableString, PreformattedString, Tag

BLANK_LINES_RE = re.compile(r"\n\s*\n")
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

# Elements whose content never reaches the note
DROPPED_TAGS = frozenset({"script", "style"})

Transform = Callable[[Tag, str], str]


def _heading(level: int) -> Transform:
    marker = "#" * level
    return lambda tag, inner: f"\n{marker} {inner.strip()}\n"


def _block(tag: Tag, inner: str) -> str:
    return f"\n{inner.strip()}\n"


def _wrap(marker: str) -> Transform:
    return lambda tag, inner: f"{marker}{inner.strip()}{marker}"


def _blockquote(tag: Tag, inner: str) -> str:
    quoted = inner.strip().replace("\n", "\n> ")
    return f"\n> {quoted}\n"


def _list_item(tag: Tag, inner: str) -> str:
    marker = "- "
    if tag.parent is not None and tag.parent.name == "ol":
        position = len(tag.find_previous_siblings("li")) + 1
        marker = f"{position}. "
    return f"{marker}{inner.strip()}\n"


def _link(tag: Tag, inner: str) -> str:
    href = tag.get("href")
    if not href:
        return inner
    return f"[{inner.strip()}]({href})"


def _image(tag: Tag, inner: str) -> str:
    return f"![{tag.get('alt') or ''}]({tag.get('src') or ''})"


def _preformatted(tag: Tag, inner: str) -> str:
    return f"\n```\n{tag.get_text()}\n```\n"


TRANSFORMS: dict[str, Transform] = {
    **{f"h{level}": _heading(level) for level in range(1, 7)},
    "p": _block,
    "br": lambda tag, inner: "\n",
    "strong": _wrap("**"),
    "b": _wrap("**"),
    "em": _wrap("*"),
    "i": _wrap("*"),
    "blockquote": _blockquote,
    "ul": _block,
    "ol": _block,
    "li": _list_item,
    "a": _link,
    "img": _image,
    "hr": lambda tag, inner: "\n---\n",
    "pre": _preformatted,
    "code": _wrap("`"),
}


def convert_node(node) -> str:
    """Render a parsed HTML node and its subtree as Markdown.

    Unknown elements pass their children's text through unchanged.
    """
    if isinstance(node, Tag):
        name = node.name.lower()
        if name in DROPPED_TAGS:
            return ""
        inner = "".join(convert_node(child) for child in node.children)
        transform = TRANSFORMS.get(name)
        return transform(node, inner) if transform else inner

    # Comments, doctypes and CDATA are PreformattedString subclasses
    if isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
        return str(node)

    return ""


def clean_markdown(markdown: str) -> str:
    """Collapse blank-line runs and trim the result."""
    markdown = BLANK_LINES_RE.sub("\n\n", markdown)
    markdown = EXCESS_NEWLINES_RE.sub("\n\n", markdown)
    return markdown.strip()


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment into Markdown.

    Best effort: malformed markup is parsed leniently and never raises.

    Args:
        html: HTML fragment, typically a feed item's body

    Returns:
        Markdown text
    """
    if not html:
        return ""

    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup:
        return clean_markdown(html)

    try:
        markdown = convert_node(soup)
    except RecursionError:
        markdown = soup.get_text()
    return clean_markdown(markdown)
