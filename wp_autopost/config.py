"""Configuration management for WP Autopost."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from .exceptions import ConfigError


@dataclass
class WordPressConfig:
    """Configuration for the WordPress REST API."""

    base_url: str
    username: str
    app_password: str
    category_id: int
    timeout: float = 30.0


@dataclass
class BatchConfig:
    """Configuration for a single batch run."""

    items_per_run: int = 2
    items_per_feed: int = 3
    selection_mode: str = "first"


class Config:
    """Main configuration manager."""

    FEEDS_FILE = "feeds.json"

    DEFAULT_FEEDS = [
        "https://techcrunch.com/feed/",
        "https://www.theverge.com/rss/index.xml",
        "https://mashable.com/feed/",
        "https://www.marketingdive.com/feeds/news/",
        "https://www.socialmediatoday.com/feed",
    ]

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.wp_url = os.getenv("WP_URL", "").strip()
        self.wp_username = os.getenv("WP_USERNAME", "").strip()
        self.wp_app_password = os.getenv("WP_APP_PASSWORD", "")
        self.wp_app_password_secret_name = os.getenv(
            "WP_APP_PASSWORD_SECRET_NAME", ""
        ).strip()
        self.wp_category_id = os.getenv("WP_CATEGORY_ID", "").strip()
        self.items_per_run = os.getenv("ITEMS_PER_RUN", "2")
        self.items_per_feed = os.getenv("ITEMS_PER_FEED", "3")
        self.selection_mode = os.getenv("SELECTION_MODE", "first").strip().lower()
        self.request_timeout = os.getenv("REQUEST_TIMEOUT", "30")
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.metrics_enabled = os.getenv("METRICS_ENABLED", "true").strip().lower() in (
            "1",
            "true",
            "yes",
        )

    @property
    def uses_secret_password(self) -> bool:
        """Whether the app password must be read from Secrets Manager."""
        return not self.wp_app_password.strip() and bool(
            self.wp_app_password_secret_name
        )

    def get_feed_urls(self) -> list[str]:
        """Get feed URLs from RSS_FEED_URLS, feeds.json, or the defaults."""
        env_feeds = os.getenv("RSS_FEED_URLS", "")
        if env_feeds.strip():
            return [url.strip() for url in env_feeds.split(",") if url.strip()]

        feeds_file = Path(self.FEEDS_FILE)
        if not feeds_file.exists():
            # Try in Lambda root directory
            feeds_file = Path("/var/task") / self.FEEDS_FILE

        if not feeds_file.exists():
            return list(self.DEFAULT_FEEDS)

        try:
            with open(feeds_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in feeds file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading feeds file: {e}") from e

        feeds = data.get("feeds", []) if isinstance(data, dict) else []
        enabled_urls = [
            feed["url"]
            for feed in feeds
            if isinstance(feed, dict) and feed.get("enabled", True) and "url" in feed
        ]

        if not enabled_urls:
            raise ConfigError("No enabled feeds found in feeds.json")

        return enabled_urls

    def get_wordpress_config(self, app_password: str | None = None) -> WordPressConfig:
        """Validate and return the WordPress configuration.

        Args:
            app_password: Password obtained elsewhere (e.g. Secrets Manager),
                used instead of WP_APP_PASSWORD when given

        Raises:
            ConfigError: If a required value is missing or malformed
        """
        password = app_password if app_password is not None else self.wp_app_password

        missing = [
            name
            for name, value in (
                ("WP_URL", self.wp_url),
                ("WP_USERNAME", self.wp_username),
                ("WP_APP_PASSWORD", password.strip()),
                ("WP_CATEGORY_ID", self.wp_category_id),
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                f"Missing WordPress environment variables: {', '.join(missing)}"
            )

        if not self.wp_url.startswith(("http://", "https://")):
            raise ConfigError(f"WP_URL must be an http(s) URL: {self.wp_url}")

        return WordPressConfig(
            base_url=self.wp_url.rstrip("/"),
            username=self.wp_username,
            app_password=password,
            category_id=_parse_int("WP_CATEGORY_ID", self.wp_category_id),
            timeout=_parse_timeout(self.request_timeout),
        )

    def get_batch_config(self) -> BatchConfig:
        """Validate and return the batch configuration."""
        items_per_run = _parse_int("ITEMS_PER_RUN", self.items_per_run, minimum=1)
        items_per_feed = _parse_int("ITEMS_PER_FEED", self.items_per_feed, minimum=1)

        if self.selection_mode not in ("first", "random"):
            raise ConfigError(
                f"SELECTION_MODE must be 'first' or 'random', got '{self.selection_mode}'"
            )

        return BatchConfig(
            items_per_run=items_per_run,
            items_per_feed=items_per_feed,
            selection_mode=self.selection_mode,
        )


def _parse_int(name: str, value: str, minimum: int | None = None) -> int:
    try:
        number = int(str(value).strip())
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got '{value}'") from e
    if minimum is not None and number < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {number}")
    return number


def _parse_timeout(value: str) -> float:
    try:
        timeout = float(str(value).strip())
    except ValueError as e:
        raise ConfigError(f"REQUEST_TIMEOUT must be a number, got '{value}'") from e
    if timeout <= 0:
        raise ConfigError(f"REQUEST_TIMEOUT must be positive, got {timeout}")
    return timeout
