"""Data models for WP Autopost."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FeedItem:
    """Represents a single RSS/Atom feed item."""

    title: str
    link: str
    snippet: str = ""  # Plain text, markup removed
    summary: str = ""  # Summary as published, may contain markup
    raw_content: str = ""
    enclosure_url: str | None = None
    media_content_url: str | None = None
    feed_url: str = ""


@dataclass(frozen=True)
class UploadedMedia:
    """A media library entry created for a featured image."""

    media_id: int
    source_url: str


@dataclass(frozen=True)
class PostDraft:
    """A post ready to be submitted to WordPress."""

    title: str
    html_body: str
    category_id: int
    featured_media_id: int | None = None
    status: str = "publish"

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body for the posts endpoint."""
        payload = {
            "title": self.title,
            "content": self.html_body,
            "status": self.status,
            "categories": [self.category_id],
        }
        if self.featured_media_id is not None:
            payload["featured_media"] = self.featured_media_id
        return payload


@dataclass(frozen=True)
class Structured:
    """Response body that parsed as JSON."""

    data: Any


@dataclass(frozen=True)
class Raw:
    """Response body that could not be parsed, kept as text."""

    text: str


@dataclass(frozen=True)
class ApiResponse:
    """Outcome of a single call to the WordPress REST API."""

    success: bool
    status_code: int
    body: Structured | Raw

    def message(self) -> str:
        """Return the most useful human readable part of the body."""
        if isinstance(self.body, Structured):
            data = self.body.data
            if isinstance(data, dict) and data.get("message"):
                return str(data["message"])
            return str(data)
        return self.body.text


@dataclass(frozen=True)
class ItemResult:
    """Outcome of publishing one selected feed item."""

    ok: bool
    title: str
    post_id: int | None = None
    link: str | None = None
    error: str | None = None

    @classmethod
    def published(cls, title: str, post_id: int, link: str) -> "ItemResult":
        return cls(ok=True, title=title, post_id=post_id, link=link)

    @classmethod
    def failed(cls, title: str, error: str) -> "ItemResult":
        return cls(ok=False, title=title, error=error)

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "id": self.post_id, "link": self.link}
        return {"ok": False, "title": self.title, "error": self.error}


@dataclass
class BatchResult:
    """Outcome of a whole batch run."""

    success: bool
    results: list[ItemResult] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "posted": [result.to_dict() for result in self.results],
        }
