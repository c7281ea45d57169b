from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .xml_tree import Node


@dataclass(frozen=True)
class FeedRequest:
    """A feed URL plus the optional Referer hint supplied by the caller.

    Attributes:
        url: Absolute URL of the feed to fetch.
        referer: Absolute URL sent as Referer by strategies that honor it.
    """

    url: str
    referer: Optional[str] = None


@dataclass(frozen=True)
class StrategyAttempt:
    """One fully specified request disguise, ready to be sent.

    Attributes:
        strategy_id: Identifier of the strategy that built the attempt.
        url: URL actually requested (the relay URL for the relay strategy).
        headers: Request headers, including Referer when one is sent.
        referer: Referer carried in ``headers``, None when none is sent.
        timeout_seconds: Deadline for the whole attempt. Connect and each
            read are bounded by it, and body reading stops once it has passed.
    """

    strategy_id: str
    url: str
    headers: Dict[str, str]
    referer: Optional[str]
    timeout_seconds: float


@dataclass(frozen=True)
class FetchOutcome:
    """Result of a single attempt.

    ``status_code`` is None when the attempt failed before an HTTP status was
    received (DNS, timeout, connection reset); ``error`` then holds the reason.
    """

    strategy_id: str
    status_code: Optional[int]
    body: Optional[str] = None
    reason: str = ""
    error: Optional[str] = None

    @property
    def transport_failed(self) -> bool:
        return self.status_code is None

    @property
    def ok(self) -> bool:
        """True for a 2xx status that carries content (204 is never ok)."""
        return self.status_code is not None and 200 <= self.status_code < 300 and (
            self.status_code != 204
        )


@dataclass(frozen=True)
class FetchResult:
    """Text produced by the orchestrator with the attempts that led to it.

    Attributes:
        text: Feed text to hand to the parser.
        outcome: Outcome whose body was used (or the final 204 outcome when degraded).
        attempts: Every attempt made, in order.
        degraded: True when ``text`` is the synthesized placeholder feed.
    """

    text: str
    outcome: FetchOutcome
    attempts: Tuple[FetchOutcome, ...] = ()
    degraded: bool = False

    @property
    def strategy_ids(self) -> Tuple[str, ...]:
        return tuple(attempt.strategy_id for attempt in self.attempts)


@dataclass(frozen=True)
class ParseResult:
    """Raw items located in a feed document.

    ``error`` is set when the document could not be parsed at all, which lets
    callers tell a degraded parse apart from a feed that is truly empty.
    """

    items: Tuple[Node, ...] = ()
    title: str = ""
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class Item:
    """A classified feed entry.

    Attributes:
        id: Identifier unique within one classification run.
        title: Item title, a placeholder when the feed has none.
        url: Resolved enclosure or link URL, never empty.
        thumbnail: Thumbnail URL or empty string.
        description: Description or summary text or empty string.
        mime_type_hint: Declared enclosure MIME type or empty string.
        is_folder: True when the URL points at another feed.
    """

    id: str
    title: str
    url: str
    thumbnail: str = ""
    description: str = ""
    mime_type_hint: str = ""
    is_folder: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "thumbnail": self.thumbnail,
            "description": self.description,
            "mimeTypeHint": self.mime_type_hint,
            "isFolder": self.is_folder,
        }


@dataclass(frozen=True)
class NavigationLevel:
    """One fetched and classified feed in a navigation stack."""

    source_url: str
    title: str
    items: Tuple[Item, ...] = field(default_factory=tuple)
    raw_xml: str = ""
    degraded: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.items
