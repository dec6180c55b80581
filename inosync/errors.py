"""Exceptions raised while fetching and parsing tag feeds."""


class FeedError(Exception):
    """Base class for failures of a single feed fetch attempt."""


class EmptyUserIdError(FeedError, ValueError):
    """Raised when no Inoreader user ID is configured."""

    def __init__(self, message: str = "User ID is required to fetch feeds."):
        super().__init__(message)


class HttpError(FeedError):
    """Raised when the feed endpoint answers with an error status."""

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"HTTP Error {status}")


class BlockedResponseError(FeedError):
    """Raised when an HTML page (bot challenge, error page) comes back instead of XML."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Received HTML instead of XML. The request might be blocked by "
            "Inoreader (Cloudflare/Bot Protection). Check User-Agent settings."
        )


class MalformedFeedError(FeedError, ValueError):
    """Raised when the response body is not well-formed XML."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message or "Failed to parse XML feed. The feed might be malformed."
        )
