"""Item selection policies for WP Autopost."""

import random
from collections.abc import Sequence
from typing import Protocol

from .exceptions import ConfigError
from .models import FeedItem


class SelectionPolicy(Protocol):
    """Chooses which aggregated items are published in a run."""

    def select(self, items: Sequence[FeedItem]) -> list[FeedItem]:
        """Return the items to publish, in publishing order."""


class FirstNSelection:
    """Publish the first ``count`` items, keeping aggregation order."""

    def __init__(self, count: int = 2):
        if count < 1:
            raise ConfigError(f"Items per run must be at least 1, got {count}")
        self.count = count

    def select(self, items: Sequence[FeedItem]) -> list[FeedItem]:
        return list(items[: self.count])


class RandomSelection:
    """Publish a single item chosen uniformly at random."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def select(self, items: Sequence[FeedItem]) -> list[FeedItem]:
        if not items:
            return []
        return [self.rng.choice(list(items))]


def selection_policy_for(mode: str, items_per_run: int) -> SelectionPolicy:
    """Build the policy configured by SELECTION_MODE."""
    if mode == "first":
        return FirstNSelection(items_per_run)
    if mode == "random":
        return RandomSelection()
    raise ConfigError(f"Unknown selection mode: {mode}")
