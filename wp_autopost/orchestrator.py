"""Batch orchestration for WP Autopost."""

from collections.abc import Sequence
from typing import Any

from .content import ContentBuilder
from .exceptions import MediaUploadError, NoItemsFound
from .images import ImageResolver
from .logging_config import create_execution_logger
from .media import MediaPublisher
from .models import BatchResult, FeedItem, ItemResult
from .rss import FeedAggregator
from .selection import SelectionPolicy
from .wordpress import WordPressClient


class BatchOrchestrator:
    """Runs one batch: verify credentials, aggregate, publish each item.

    Fatal conditions (rejected credentials, no feed items) are raised to the
    caller. Every selected item produces exactly one ItemResult, whatever
    step of its pipeline fails.
    """

    def __init__(
        self,
        client: WordPressClient,
        aggregator: FeedAggregator,
        resolver: ImageResolver,
        media_publisher: MediaPublisher,
        builder: ContentBuilder,
        policy: SelectionPolicy,
        category_id: int,
        execution_id: str | None = None,
    ):
        self.client = client
        self.aggregator = aggregator
        self.resolver = resolver
        self.media_publisher = media_publisher
        self.builder = builder
        self.policy = policy
        self.category_id = category_id
        self.logger = create_execution_logger("orchestrator", execution_id)
        self.state = "init"
        self.metrics: dict[str, Any] = {
            "feeds_processed": 0,
            "feeds_failed": 0,
            "items_found": 0,
            "items_selected": 0,
            "posts_created": 0,
            "posts_failed": 0,
            "images_uploaded": 0,
            "errors": [],
        }

    def run(self, sources: Sequence[str], per_source_cap: int) -> BatchResult:
        """Run the whole batch.

        Raises:
            AuthenticationFailed: If the credential self-test fails
            NoItemsFound: If no source yielded any item
        """
        self.logger.log_execution_start(feed_count=len(sources))

        try:
            self.client.self_test()
            self.state = "auth_verified"
            items = self._aggregate(sources, per_source_cap)
        except Exception:
            self.state = "aborted"
            raise
        self.state = "aggregated"

        selected = self.policy.select(items)
        self.metrics["items_selected"] = len(selected)
        self.logger.info(
            f"Selected {len(selected)} of {len(items)} items",
            items_found=len(items),
            items_selected=len(selected),
        )

        results = [self.process_item(item) for item in selected]

        self.state = "completed"
        self.logger.log_metrics(self.metrics)
        self.logger.log_execution_end(success=True)
        return BatchResult(success=True, results=results)

    def _aggregate(self, sources: Sequence[str], per_source_cap: int) -> list[FeedItem]:
        items = self.aggregator.collect(sources, per_source_cap)
        self.metrics["feeds_processed"] = self.aggregator.sources_ok
        self.metrics["feeds_failed"] = self.aggregator.sources_failed
        self.metrics["errors"].extend(self.aggregator.errors)
        self.metrics["items_found"] = len(items)
        if not items:
            raise NoItemsFound("No RSS items found")
        return items

    def process_item(self, item: FeedItem) -> ItemResult:
        """Publish one item; never raises."""
        try:
            featured_media_id = self._featured_media_id(item)
            draft = self.builder.draft(item, self.category_id, featured_media_id)
            post_id, link = self.client.create_post(draft)
        except Exception as e:
            error_msg = f"Failed to publish '{item.title}': {e}"
            self.metrics["posts_failed"] += 1
            self.metrics["errors"].append(error_msg)
            self.logger.log_item_processing(
                item.title, "publish_failed", success=False, error=str(e)
            )
            return ItemResult.failed(item.title, str(e))

        self.metrics["posts_created"] += 1
        self.logger.log_item_processing(item.title, "published", post_id=post_id)
        return ItemResult.published(item.title, post_id, link)

    def _featured_media_id(self, item: FeedItem) -> int | None:
        image_url = self.resolver.resolve(item)
        if not image_url:
            return None

        try:
            media = self.media_publisher.upload(image_url)
        except MediaUploadError as e:
            self.logger.log_item_processing(
                item.title,
                "image_skipped",
                success=False,
                image_url=image_url,
                error=str(e),
            )
            return None

        self.metrics["images_uploaded"] += 1
        return media.media_id
