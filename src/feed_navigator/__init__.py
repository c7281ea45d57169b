"""Feed Navigator - browse nested RSS/Atom feeds as a folder tree.

This package provides:
- Resilient feed acquisition that escalates through request disguises and a
  relay before degrading to an empty placeholder feed
- Tolerant RSS 2.0 / Atom parsing into folder and playable items
- A caller-owned navigation stack

Programmatic API Example:
    >>> import feed_navigator
    >>>
    >>> xml = feed_navigator.fetch_rss("https://example.com/feed.xml")
    >>> parsed, items = feed_navigator.parse_feed(xml)
    >>> folders = [item for item in items if item.is_folder]

CLI Usage:
    $ feed-navigator items https://example.com/feed.xml
    $ feed-navigator browse
    $ feed-navigator serve --port 3000
"""

from __future__ import annotations

__version__ = "0.3.0"

from .classifier import ItemClassifier
from .config import Config, FolderRules, load_config_file
from .exceptions import FeedConfigError, FeedFetchError, FeedNavigatorError, NavigationError
from .feed_parser import FeedParser
from .fetcher import FetchOrchestrator
from .models import FeedRequest, FetchOutcome, FetchResult, Item, NavigationLevel, ParseResult
from .navigation import NavigationStack
from .service import fetch_rss, list_items, parse_feed

__all__ = [
    "Config",
    "FeedConfigError",
    "FeedFetchError",
    "FeedNavigatorError",
    "FeedParser",
    "FeedRequest",
    "FetchOrchestrator",
    "FetchOutcome",
    "FetchResult",
    "FolderRules",
    "Item",
    "ItemClassifier",
    "NavigationError",
    "NavigationLevel",
    "NavigationStack",
    "ParseResult",
    "fetch_rss",
    "list_items",
    "load_config_file",
    "parse_feed",
    "__version__",
]
