"""Service API for programmatic use of feed_navigator.

This module exposes the fetch contract as plain function calls, the same
contract a desktop shell relays over IPC: one call taking ``(url, referer)``
that returns the feed text, degrades persistent blocking to a placeholder
feed, and raises only when every applicable strategy failed.

Example:
    >>> from feed_navigator import service
    >>> xml = service.fetch_rss("https://example.com/feed.xml")
    >>> result = service.list_items("https://example.com/feed.xml")
    >>> if result.success:
    ...     for item in result.items:
    ...         print(item.title, item.is_folder)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import navigation
from .classifier import ItemClassifier
from .config import Config
from .exceptions import FeedFetchError
from .feed_parser import FeedParser
from .fetcher import FetchOrchestrator
from .models import FeedRequest, Item, ParseResult

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Result of fetching and classifying one feed.

    Attributes:
        url: Feed URL that was requested
        title: Channel/feed title, empty when the feed has none
        items: Classified items in feed order
        degraded: True when the feed was blocked or could not be parsed
        parse_error: Parser diagnostic when parsing degraded
        success: Whether the feed could be fetched
        error: Error message if success is False, None otherwise
    """

    url: str
    title: str = ""
    items: List[Item] = field(default_factory=list)
    degraded: bool = False
    parse_error: Optional[str] = None
    success: bool = True
    error: Optional[str] = None


def _orchestrator(cfg: Optional[Config]) -> FetchOrchestrator:
    return FetchOrchestrator(cfg or Config())


def fetch_rss(url: str, referer: Optional[str] = None, cfg: Optional[Config] = None) -> str:
    """Fetch feed text through every applicable strategy.

    Args:
        url: Absolute feed URL
        referer: Optional Referer hint, usually the parent feed's URL
        cfg: Configuration; defaults to ``Config()``

    Returns:
        Feed text, or the placeholder feed when the provider kept answering 204

    Raises:
        FeedFetchError: If every applicable strategy including the relay failed
    """
    return _orchestrator(cfg).fetch(FeedRequest(url=url, referer=referer or None)).text


def parse_feed(xml_text: str, cfg: Optional[Config] = None) -> Tuple[ParseResult, List[Item]]:
    """Parse and classify feed text. Never raises."""
    cfg = cfg or Config()
    parsed = FeedParser().parse(xml_text)
    items = ItemClassifier(cfg.folder_rules()).classify_items(parsed.items)
    return parsed, items


def list_items(
    url: str,
    referer: Optional[str] = None,
    cfg: Optional[Config] = None,
    orchestrator: Optional[FetchOrchestrator] = None,
) -> ServiceResult:
    """Fetch, parse and classify a feed, reporting failures in the result."""
    orchestrator = orchestrator or _orchestrator(cfg)
    try:
        fetched = orchestrator.fetch(FeedRequest(url=url, referer=referer or None))
    except FeedFetchError as exc:
        logger.error("Fetching %s failed: %s", url, exc)
        return ServiceResult(url=url, success=False, error=str(exc))

    parsed, items = parse_feed(fetched.text, orchestrator.cfg)
    return ServiceResult(
        url=url,
        title=parsed.title,
        items=items,
        degraded=fetched.degraded or parsed.degraded,
        parse_error=parsed.error,
    )


def load_root(
    cfg: Optional[Config] = None,
    url: Optional[str] = None,
    title: Optional[str] = None,
    orchestrator: Optional[FetchOrchestrator] = None,
) -> navigation.NavigationStack:
    """Start a navigation session at the configured (or given) root feed.

    Raises:
        FeedFetchError: If the root feed could not be fetched
    """
    orchestrator = orchestrator or _orchestrator(cfg)
    level = navigation.load_level(
        url or orchestrator.cfg.root_feed_url,
        title or orchestrator.cfg.root_title,
        orchestrator=orchestrator,
    )
    return navigation.NavigationStack.start(level)


def open_item(
    stack: navigation.NavigationStack,
    item: Item,
    cfg: Optional[Config] = None,
    orchestrator: Optional[FetchOrchestrator] = None,
) -> navigation.NavigationStack:
    """Open a folder item on top of ``stack``.

    Raises:
        NavigationError: If the item is a leaf
        FeedFetchError: If the folder's feed could not be fetched
    """
    return navigation.open_item(stack, item, orchestrator=orchestrator or _orchestrator(cfg))
