"""Unit tests for featured image resolution."""

from unittest.mock import Mock

import pytest
import requests
from hypothesis import given
from hypothesis import strategies as st

from wp_autopost.images import ImageResolver, extract_og_image
from wp_autopost.models import FeedItem

ARTICLE_URL = "https://news.example.com/2024/01/story"

ARTICLE_HTML = """<!doctype html>
<html><head>
<title>Story</title>
<meta property="og:title" content="Story">
<meta property="og:image" content="https://cdn.example.com/og.jpg?w=1200&amp;h=630">
<meta property="og:image" content="https://cdn.example.com/second.jpg">
</head><body></body></html>"""


def _page_response(text: str = "", status_code: int = 200) -> Mock:
    response = Mock()
    response.text = text
    response.status_code = status_code
    response.ok = status_code < 400
    return response


class TestExtractOgImageUnit:
    """Unit tests for og:image extraction."""

    def test_first_og_image_wins(self):
        assert (
            extract_og_image(ARTICLE_HTML, ARTICLE_URL)
            == "https://cdn.example.com/og.jpg?w=1200&h=630"
        )

    def test_content_before_property(self):
        page = '<meta content="https://cdn.example.com/alt.png" property="og:image" />'
        assert extract_og_image(page) == "https://cdn.example.com/alt.png"

    def test_case_insensitive_and_single_quotes(self):
        page = "<META PROPERTY='og:image' CONTENT='https://cdn.example.com/x.gif'>"
        assert extract_og_image(page) == "https://cdn.example.com/x.gif"

    def test_relative_url_is_resolved_against_page(self):
        page = '<meta property="og:image" content="/images/lead.jpg">'
        assert (
            extract_og_image(page, ARTICLE_URL)
            == "https://news.example.com/images/lead.jpg"
        )

    def test_malformed_og_image_url_raises_value_error(self):
        page = '<meta property="og:image" content="https://[broken/x.jpg">'
        with pytest.raises(ValueError):
            extract_og_image(page, ARTICLE_URL)

    def test_missing_og_image(self):
        assert extract_og_image("<html><head></head></html>", ARTICLE_URL) is None
        assert extract_og_image("", ARTICLE_URL) is None
        page = '<meta name="twitter:image" content="https://cdn.example.com/t.jpg">'
        assert extract_og_image(page) is None


class TestImageResolverUnit:
    """Unit tests for ImageResolver fallback chain."""

    def setup_method(self):
        self.session = Mock()
        self.resolver = ImageResolver(session=self.session, timeout=7)

    def test_enclosure_wins(self):
        item = FeedItem(
            title="Story",
            link=ARTICLE_URL,
            enclosure_url="https://cdn.example.com/enclosure.jpg",
            media_content_url="https://cdn.example.com/media.jpg",
        )

        assert self.resolver.resolve(item) == "https://cdn.example.com/enclosure.jpg"
        self.session.get.assert_not_called()

    def test_media_content_used_without_enclosure(self):
        item = FeedItem(
            title="Story",
            link=ARTICLE_URL,
            media_content_url="https://cdn.example.com/media.jpg",
        )

        assert self.resolver.resolve(item) == "https://cdn.example.com/media.jpg"
        self.session.get.assert_not_called()

    def test_og_image_scraped_from_article_page(self):
        self.session.get.return_value = _page_response(ARTICLE_HTML)
        item = FeedItem(title="Story", link=ARTICLE_URL)

        assert (
            self.resolver.resolve(item) == "https://cdn.example.com/og.jpg?w=1200&h=630"
        )
        args, kwargs = self.session.get.call_args
        assert args == (ARTICLE_URL,)
        assert kwargs["timeout"] == 7

    def test_page_without_og_image_yields_none(self):
        self.session.get.return_value = _page_response("<html></html>")

        assert self.resolver.resolve(FeedItem(title="Story", link=ARTICLE_URL)) is None

    def test_network_failure_is_swallowed(self):
        self.session.get.side_effect = requests.ConnectionError("timed out")

        assert self.resolver.resolve(FeedItem(title="Story", link=ARTICLE_URL)) is None

    def test_error_status_is_treated_as_not_found(self):
        self.session.get.return_value = _page_response(ARTICLE_HTML, status_code=404)

        assert self.resolver.resolve(FeedItem(title="Story", link=ARTICLE_URL)) is None

    def test_malformed_og_image_yields_none(self):
        page = '<meta property="og:image" content="https://[broken/x.jpg">'
        self.session.get.return_value = _page_response(page)

        assert self.resolver.resolve(FeedItem(title="Story", link=ARTICLE_URL)) is None

    def test_item_without_link_makes_no_request(self):
        assert self.resolver.resolve(FeedItem(title="Story", link="")) is None
        self.session.get.assert_not_called()

    @given(
        st.text(
            alphabet=st.characters(whitelist_categories=("Ll", "Nd")),
            min_size=1,
            max_size=30,
        ),
        st.one_of(st.none(), st.just("https://cdn.example.com/media.jpg")),
    )
    def test_enclosure_short_circuit_property(self, name, media_url):
        """For any item with an enclosure, the article page is never fetched."""
        session = Mock()
        resolver = ImageResolver(session=session)
        enclosure = f"https://cdn.example.com/{name}.jpg"
        item = FeedItem(
            title=name,
            link=f"https://news.example.com/{name}",
            enclosure_url=enclosure,
            media_content_url=media_url,
        )

        assert resolver.resolve(item) == enclosure
        session.get.assert_not_called()
