"""Shared fixtures and test utilities for feed_navigator tests.

This module contains:
- Test constants
- Builders for RSS and Atom documents
- A fake transport that records strategy attempts
- Helper functions for creating test objects
"""

from typing import Callable, Dict, List, Optional, Union

import pytest

from feed_navigator import config
from feed_navigator.models import FetchOutcome, StrategyAttempt

# Test constants
TEST_BASE_URL = "https://example.com"
TEST_FEED_URL = f"{TEST_BASE_URL}/feed.xml"
TEST_SUBFEED_URL = f"{TEST_BASE_URL}/shows/drama.xml"
TEST_MEDIA_URL = f"{TEST_BASE_URL}/video/episode1.mp4"
TEST_THUMBNAIL_URL = f"{TEST_BASE_URL}/thumb.jpg"
TEST_BLOCKING_URL = "https://allrss.se/dramas/feed.xml"
TEST_PLAIN_HTTP_BLOCKING_URL = "http://allrss.se/dramas/feed.xml"
TEST_PARENT_URL = "https://rss.app/feeds/root.xml"
TEST_FEED_TITLE = "Test Feed"
TEST_RELAY_TEMPLATE = "https://relay.test/raw?url={url}"

TEST_MIME_RSS = "application/rss+xml"
TEST_MIME_XML = "application/xml"
TEST_MIME_MP4 = "video/mp4"

# Long enough to pass the relay plausibility check
TEST_RELAY_BODY = (
    "<rss version='2.0'><channel><title>Relayed</title>"
    "<item><title>Relayed item</title><link>https://example.com/v.mp4</link></item>"
    "</channel></rss>"
)


def build_rss_item(
    title: Optional[str] = "Episode 1",
    enclosure_url: Optional[str] = None,
    enclosure_type: Optional[str] = None,
    link: Optional[str] = None,
    extra: str = "",
) -> str:
    """Build one RSS <item> element.

    Args:
        title: Item title; None omits the element
        enclosure_url: Enclosure URL; None omits the enclosure
        enclosure_type: Enclosure MIME type
        link: Text of a <link> element; None omits it
        extra: Raw XML appended inside the item

    Returns:
        Item XML string
    """
    parts = ["<item>"]
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if enclosure_url is not None:
        type_attr = f' type="{enclosure_type}"' if enclosure_type is not None else ""
        parts.append(f'<enclosure url="{enclosure_url}"{type_attr} />')
    if link is not None:
        parts.append(f"<link>{link}</link>")
    parts.append(extra)
    parts.append("</item>")
    return "".join(parts)


def build_rss_xml(items: Union[str, List[str]] = "", title: str = TEST_FEED_TITLE) -> str:
    """Build an RSS 2.0 document with media and itunes namespaces declared."""
    body = "".join(items) if isinstance(items, list) else items
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>{title}</title>
    {body}
  </channel>
</rss>"""


def build_atom_xml(entries: Union[str, List[str]] = "", title: str = TEST_FEED_TITLE) -> str:
    """Build an Atom document."""
    body = "".join(entries) if isinstance(entries, list) else entries
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>{title}</title>
  {body}
</feed>"""


def build_atom_entry(title: str, href: Optional[str], summary: str = "") -> str:
    link = f'<link rel="alternate" href="{href}" />' if href is not None else ""
    summary_el = f"<summary>{summary}</summary>" if summary else ""
    return f"<entry><title>{title}</title>{link}{summary_el}</entry>"


def make_outcome(
    strategy_id: str, status_code: Optional[int], body: str = "", reason: str = ""
) -> FetchOutcome:
    # For transport failures the body slot carries the error text
    if status_code is None:
        return FetchOutcome(
            strategy_id, None, reason="ConnectTimeout", error=reason or body or "timed out"
        )
    return FetchOutcome(strategy_id, status_code, body=body, reason=reason or "OK")


class FakeTransport:
    """Stand-in for downloader.perform_request that records every attempt.

    Responses are looked up by strategy id; ids without an entry get ``default``.
    A responder callable, when given, decides instead.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, tuple]] = None,
        default: tuple = (200, "<rss/>"),
        responder: Optional[Callable[[StrategyAttempt], FetchOutcome]] = None,
    ) -> None:
        self.responses = responses or {}
        self.default = default
        self.responder = responder
        self.attempts: List[StrategyAttempt] = []

    def __call__(self, attempt: StrategyAttempt) -> FetchOutcome:
        self.attempts.append(attempt)
        if self.responder is not None:
            return self.responder(attempt)
        response = self.responses.get(attempt.strategy_id, self.default)
        return make_outcome(attempt.strategy_id, *response)

    @property
    def strategy_ids(self) -> List[str]:
        return [attempt.strategy_id for attempt in self.attempts]


def create_test_config(**overrides):
    """Create test Config object with defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        config.Config object with test defaults
    """
    defaults = {
        "timeout": 5,
        "relay_url_template": TEST_RELAY_TEMPLATE,
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return config.Config(**defaults)


@pytest.fixture(autouse=True)
def _clear_config_env(monkeypatch):
    """Keep developer environment variables out of Config defaults."""
    for name in ("LOG_LEVEL", "LOG_FILE", "TIMEOUT", "RELAY_URL_TEMPLATE", "ROOT_FEED_URL"):
        monkeypatch.delenv(name, raising=False)
