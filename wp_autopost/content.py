"""Post body assembly for WP Autopost."""

import html

from bs4 import BeautifulSoup

from .models import FeedItem, PostDraft

MAX_CONTENT_CHARS = 500
SOURCE_LINK_TEXT = "Source"


def clean_html_content(content: str | None) -> str:
    """Remove HTML tags from content and normalize whitespace.

    Args:
        content: Raw content that may contain HTML

    Returns:
        Clean text content without HTML tags
    """
    if not content:
        return ""

    if "<" not in content and ">" not in content:
        return " ".join(content.split())

    soup = BeautifulSoup(content, "html.parser")

    for script in soup(["script", "style"]):
        script.decompose()

    text = soup.get_text(separator=" ")

    # Stray brackets survive get_text() when they are not part of a tag
    text = text.replace("<", "").replace(">", "")

    return " ".join(text.split())


class ContentBuilder:
    """Turns feed items into sanitized WordPress post bodies."""

    def __init__(self, max_content_chars: int = MAX_CONTENT_CHARS):
        self.max_content_chars = max_content_chars

    def body_text(self, item: FeedItem) -> str:
        """Pick the plain text used as the body of the post.

        The snippet wins, then the summary, then the full content truncated
        to ``max_content_chars``.
        """
        for candidate in (item.snippet, item.summary):
            text = clean_html_content(candidate)
            if text:
                return text
        return clean_html_content(item.raw_content)[: self.max_content_chars].rstrip()

    def build(self, item: FeedItem) -> str:
        """Build the HTML body for a feed item."""
        text = html.escape(self.body_text(item), quote=False)
        link = html.escape(item.link or "", quote=True)
        return (
            f"<p>{text}</p>\n"
            f'<p><a href="{link}" target="_blank" rel="nofollow noopener">'
            f"{SOURCE_LINK_TEXT}</a></p>"
        )

    def draft(
        self,
        item: FeedItem,
        category_id: int,
        featured_media_id: int | None = None,
    ) -> PostDraft:
        """Build the complete post draft for a feed item."""
        title = html.unescape(item.title or "").strip() or "Untitled"
        return PostDraft(
            title=title,
            html_body=self.build(item),
            category_id=category_id,
            featured_media_id=featured_media_id,
        )
