"""RSS Feed Processing module for WP Autopost."""

from collections.abc import Sequence
from urllib.parse import urlparse

import feedparser
import requests

from .content import clean_html_content
from .exceptions import FeedFetchError
from .logging_config import create_execution_logger
from .models import FeedItem

USER_AGENT = "WP-Autopost/1.0 (RSS to WordPress publisher)"


class FeedParser:
    """Downloads and normalizes a single RSS/Atom feed."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        execution_id: str | None = None,
    ):
        """Initialize FeedParser with configuration.

        Args:
            session: HTTP session to reuse, a new one is created if omitted
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_aggregator", execution_id)
        self.session = session or requests.Session()

    def parse(self, feed_url: str) -> list[FeedItem]:
        """Parse a single RSS/Atom feed.

        Args:
            feed_url: URL of the RSS/Atom feed

        Returns:
            List of FeedItem objects in feed order

        Raises:
            FeedFetchError: If the URL is not HTTP(S), the download fails, or
                the document is not a usable feed
        """
        self.logger.info("Starting to parse feed", feed_url=feed_url)

        try:
            scheme = urlparse(feed_url).scheme
        except ValueError as e:
            raise FeedFetchError(f"Invalid feed URL {feed_url}: {e}", feed_url) from e
        if scheme not in ("http", "https"):
            raise FeedFetchError(
                f"Feed URL must use HTTP or HTTPS protocol: {feed_url}", feed_url
            )

        try:
            response = self.session.get(
                feed_url, timeout=self.timeout, headers={"User-Agent": USER_AGENT}
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise FeedFetchError(
                f"Failed to download feed {feed_url}: {e}", feed_url
            ) from e

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )

        feed = feedparser.parse(response.content)

        if feed.bozo:
            exception = getattr(feed, "bozo_exception", None)
            if not feed.entries:
                raise FeedFetchError(
                    f"Unparsable feed {feed_url}: {exception}", feed_url
                )
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {exception}",
                feed_url=feed_url,
            )

        items = []
        for entry in feed.entries:
            try:
                items.append(self.normalize_item(entry, feed_url))
            except Exception as e:
                self.logger.warning(
                    f"Failed to normalize entry from {feed_url}: {e}",
                    feed_url=feed_url,
                    error=str(e),
                )

        self.logger.info(
            "Successfully parsed feed",
            feed_url=feed_url,
            items_count=len(items),
            total_entries=len(feed.entries),
        )
        return items

    def normalize_item(self, raw_item, feed_url: str) -> FeedItem:
        """Normalize a raw feedparser entry into a FeedItem.

        Args:
            raw_item: Raw feed entry from feedparser
            feed_url: Source feed URL

        Returns:
            Normalized FeedItem object
        """
        title = getattr(raw_item, "title", None) or "No Title"
        link = getattr(raw_item, "link", None) or ""

        summary = getattr(raw_item, "summary", None) or ""
        description = getattr(raw_item, "description", None) or ""
        snippet = clean_html_content(summary or description)

        raw_content = ""
        content = getattr(raw_item, "content", None)
        if isinstance(content, list) and content:
            raw_content = content[0].get("value", "") or ""
        elif isinstance(content, str):
            raw_content = content
        if not raw_content:
            raw_content = description

        return FeedItem(
            title=title,
            link=link,
            snippet=snippet,
            summary=summary,
            raw_content=raw_content,
            enclosure_url=self._enclosure_url(raw_item),
            media_content_url=self._media_content_url(raw_item),
            feed_url=feed_url,
        )

    def _enclosure_url(self, raw_item) -> str | None:
        enclosures = getattr(raw_item, "enclosures", None)
        if not isinstance(enclosures, list):
            return None

        urls = []
        for enclosure in enclosures:
            if not isinstance(enclosure, dict):
                continue
            url = enclosure.get("href") or enclosure.get("url")
            if not url:
                continue
            if "image" in (enclosure.get("type") or ""):
                return url
            urls.append(url)
        return urls[0] if urls else None

    def _media_content_url(self, raw_item) -> str | None:
        for attribute in ("media_content", "media_thumbnail"):
            media = getattr(raw_item, attribute, None)
            if isinstance(media, dict):
                media = [media]
            if not isinstance(media, list):
                continue
            for entry in media:
                if isinstance(entry, dict) and entry.get("url"):
                    return entry["url"]
        return None


class FeedAggregator:
    """Combines items from several feeds, isolating per-source failures."""

    def __init__(self, parser: FeedParser, execution_id: str | None = None):
        self.parser = parser
        self.logger = create_execution_logger("feed_aggregator", execution_id)
        self.sources_ok = 0
        self.sources_failed = 0
        self.errors: list[str] = []

    def collect(self, sources: Sequence[str], per_source_cap: int) -> list[FeedItem]:
        """Fetch every source once and combine their leading items.

        Args:
            sources: Feed URLs, processed in the given order
            per_source_cap: Maximum number of items taken from each source

        Returns:
            Combined items, possibly empty, in source then feed order
        """
        self.logger.info(
            f"Collecting items from {len(sources)} feeds", feed_count=len(sources)
        )
        all_items: list[FeedItem] = []

        for feed_url in sources:
            try:
                items = self.parser.parse(feed_url)
            except FeedFetchError as e:
                self.sources_failed += 1
                self.errors.append(str(e))
                self.logger.warning(
                    f"Skipping feed {feed_url}: {e}", feed_url=feed_url, error=str(e)
                )
                continue

            self.sources_ok += 1
            kept = items[: max(per_source_cap, 0)]
            all_items.extend(kept)
            self.logger.log_feed_processing(feed_url, len(kept))

        self.logger.info(
            f"Collected {len(all_items)} items from {self.sources_ok} feeds",
            total_items=len(all_items),
            sources_ok=self.sources_ok,
            sources_failed=self.sources_failed,
        )
        return all_items
