"""Caller-owned navigation stack and the helpers that fill it.

A ``NavigationStack`` is an immutable, non-empty sequence of levels; index 0
is the root and the last level is the one on display. Every operation returns
a new stack, so the caller decides which stack is current.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .classifier import ItemClassifier
from .exceptions import NavigationError
from .feed_parser import FeedParser
from .fetcher import FetchOrchestrator
from .models import FeedRequest, Item, NavigationLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationStack:
    levels: Tuple[NavigationLevel, ...]

    def __post_init__(self) -> None:
        if not self.levels:
            raise ValueError("NavigationStack needs at least one level")

    @classmethod
    def start(cls, level: NavigationLevel) -> "NavigationStack":
        return cls((level,))

    def __len__(self) -> int:
        return len(self.levels)

    def __iter__(self) -> Iterator[NavigationLevel]:
        return iter(self.levels)

    @property
    def current(self) -> NavigationLevel:
        return self.levels[-1]

    @property
    def root(self) -> NavigationLevel:
        return self.levels[0]

    def breadcrumbs(self) -> List[str]:
        return [level.title for level in self.levels]

    def reset(self, level: NavigationLevel) -> "NavigationStack":
        """Replace the whole stack with a single level."""
        return NavigationStack.start(level)

    def push(self, level: NavigationLevel) -> "NavigationStack":
        return NavigationStack(self.levels + (level,))

    def pop(self) -> "NavigationStack":
        """Drop the top level; a single-level stack is returned unchanged."""
        if len(self.levels) <= 1:
            return self
        return NavigationStack(self.levels[:-1])

    def truncate_to(self, index: int) -> "NavigationStack":
        """Keep levels ``0..index``, as when a breadcrumb is clicked.

        Raises:
            IndexError: If ``index`` does not name an existing level
        """
        if index < 0 or index >= len(self.levels):
            raise IndexError(f"breadcrumb index {index} out of range for {len(self.levels)} levels")
        return NavigationStack(self.levels[: index + 1])


def load_level(
    url: str,
    title: str,
    referer: Optional[str] = None,
    *,
    orchestrator: FetchOrchestrator,
    parser: Optional[FeedParser] = None,
    classifier: Optional[ItemClassifier] = None,
) -> NavigationLevel:
    """Fetch, parse and classify one feed into a navigation level.

    Raises:
        FeedFetchError: If the feed could not be fetched
    """
    parser = parser or FeedParser()
    classifier = classifier or ItemClassifier(orchestrator.cfg.folder_rules())

    logger.info("Navigating to: %s | %s", title, url)
    result = orchestrator.fetch(FeedRequest(url=url, referer=referer or None))
    parsed = parser.parse(result.text)
    items = classifier.classify_items(parsed.items)
    if parsed.degraded:
        logger.warning("Feed %s could not be parsed: %s", url, parsed.error)
    return NavigationLevel(
        source_url=url,
        title=title,
        items=tuple(items),
        raw_xml=result.text,
        degraded=result.degraded or parsed.degraded,
    )


def open_item(
    stack: NavigationStack,
    item: Item,
    *,
    orchestrator: FetchOrchestrator,
    parser: Optional[FeedParser] = None,
    classifier: Optional[ItemClassifier] = None,
) -> NavigationStack:
    """Open a folder item and push it, using the current level as Referer.

    Raises:
        NavigationError: If the item is a leaf
        FeedFetchError: If the folder's feed could not be fetched
    """
    if not item.is_folder:
        raise NavigationError(
            f"Item '{item.title}' is playable, not a folder",
            suggestion=f"Play {item.url} directly",
        )
    level = load_level(
        item.url,
        item.title,
        referer=stack.current.source_url,
        orchestrator=orchestrator,
        parser=parser,
        classifier=classifier,
    )
    return stack.push(level)
