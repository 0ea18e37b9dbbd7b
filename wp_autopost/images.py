"""Featured image resolution for WP Autopost."""

import html
import re
from urllib.parse import urljoin

import requests

from .logging_config import create_execution_logger
from .models import FeedItem

USER_AGENT = "Mozilla/5.0 (compatible; WP-Autopost/1.0)"

OG_IMAGE_PATTERN = re.compile(
    r'<meta[^>]*property=["\']og:image["\'][^>]*content=["\']([^"\'>]+)["\']',
    re.IGNORECASE,
)
OG_IMAGE_ALT_PATTERN = re.compile(
    r'<meta[^>]*content=["\']([^"\'>]+)["\'][^>]*property=["\']og:image["\']',
    re.IGNORECASE,
)


def extract_og_image(page_html: str, page_url: str = "") -> str | None:
    """Return the first og:image URL declared in an HTML page.

    Both attribute orders are accepted; when both occur the one appearing
    first in the document wins. Relative URLs are resolved against
    ``page_url``.

    Raises:
        ValueError: If the declared URL cannot be parsed
    """
    if not page_html:
        return None

    matches = [
        match
        for match in (
            OG_IMAGE_PATTERN.search(page_html),
            OG_IMAGE_ALT_PATTERN.search(page_html),
        )
        if match
    ]
    if not matches:
        return None

    first = min(matches, key=lambda match: match.start())
    url = html.unescape(first.group(1)).strip()
    if not url:
        return None
    return urljoin(page_url, url) if page_url else url


class ImageResolver:
    """Finds a representative image for a feed item."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        execution_id: str | None = None,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = create_execution_logger("image_resolver", execution_id)

    def resolve(self, item: FeedItem) -> str | None:
        """Resolve an image URL, trying feed media before the article page.

        Returns:
            The image URL, or None when no image could be found
        """
        if item.enclosure_url:
            self.logger.debug(
                "Using enclosure image", item_title=item.title, image_url=item.enclosure_url
            )
            return item.enclosure_url

        if item.media_content_url:
            self.logger.debug(
                "Using media content image",
                item_title=item.title,
                image_url=item.media_content_url,
            )
            return item.media_content_url

        if not item.link:
            return None

        image_url = self._scrape_page(item.link)
        if image_url:
            self.logger.debug(
                "Using og:image from article page",
                item_title=item.title,
                image_url=image_url,
            )
        else:
            self.logger.info("No image found for item", item_title=item.title)
        return image_url

    def _scrape_page(self, page_url: str) -> str | None:
        try:
            response = self.session.get(
                page_url,
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT, "Accept": "text/html"},
            )
        except requests.RequestException as e:
            self.logger.warning(
                f"Failed to fetch article page {page_url}: {e}", error=str(e)
            )
            return None

        if not response.ok:
            self.logger.warning(
                f"Article page {page_url} returned {response.status_code}",
                status_code=response.status_code,
            )
            return None

        try:
            return extract_og_image(response.text, page_url)
        except ValueError as e:
            self.logger.warning(
                f"Malformed og:image on article page {page_url}: {e}", error=str(e)
            )
            return None
