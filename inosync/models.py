"""Data models for InoSync."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FeedItem:
    """Represents a single normalized Atom/RSS entry."""

    id: str
    title: str
    content_html: str
    published: float  # epoch seconds
    source_title: str
    link_href: str
    author: str
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class FeedResponse:
    """Raw response body handed over by the transport."""

    text: str
    status: int | None = None


@dataclass(frozen=True)
class RenderedNote:
    """Represents a rendered Markdown note ready to be written."""

    file_name_stem: str
    document_text: str

    @property
    def file_name(self) -> str:
        return f"{self.file_name_stem}.md"


@dataclass
class SyncLog:
    """One entry of the user-facing activity log."""

    id: str
    timestamp: float  # epoch milliseconds
    status: str  # success, error or info
    message: str
    details: str | None = None


@dataclass
class SyncReport:
    """Outcome of a single sync run."""

    force: bool = False
    tags_processed: int = 0
    tags_failed: int = 0
    items_found: int = 0
    notes_created: int = 0
    notes_updated: int = 0
    notes_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    logs: list[SyncLog] = field(default_factory=list)

    @property
    def notes_processed(self) -> int:
        return self.notes_created + self.notes_updated

    @property
    def success(self) -> bool:
        return not self.errors

    def metrics(self) -> dict:
        return {
            "force": self.force,
            "tags_processed": self.tags_processed,
            "tags_failed": self.tags_failed,
            "items_found": self.items_found,
            "notes_created": self.notes_created,
            "notes_updated": self.notes_updated,
            "notes_skipped": self.notes_skipped,
            "errors": list(self.errors),
        }
