"""Feed parsing: locate the channel and its items in RSS 2.0 or Atom XML."""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

# Bandit: parsing handled via defusedxml safe APIs
import xml.etree.ElementTree as ET  # nosec B405

from defusedxml import DefusedXmlException

from . import config_constants
from .extraction import field_of, first_of, text_of
from .models import ParseResult
from .xml_tree import AttributedNode, build_tree, Node, SequenceNode

logger = logging.getLogger(__name__)

MAX_ITEMS_LOOKUP_DEPTH = config_constants.MAX_ITEMS_LOOKUP_DEPTH
ITEM_KEYS = ("item", "entry")


def _locate_channel(document: AttributedNode) -> Node:
    """Try ``rss.channel``, ``feed``, ``channel``, then fall back to the document."""
    for candidate in (
        field_of(field_of(document, "rss"), "channel"),
        field_of(document, "feed"),
        field_of(document, "channel"),
    ):
        if candidate is not None:
            return first_of(candidate) or document
    return document


def _as_sequence(items: Node) -> Tuple[Node, ...]:
    # A lone item is wrapped, never treated as the feed itself
    if isinstance(items, SequenceNode):
        return items.nodes
    return (items,)


def _deep_items(node: Optional[Node], depth: int) -> Tuple[Node, ...]:
    """Collect item/entry nodes below ``items`` wrappers, at most ``depth`` levels down.

    Repeated wrappers are searched one by one and their items kept in document
    order; the wrappers themselves are never returned as items.
    """
    if node is None or depth <= 0:
        return ()
    if isinstance(node, SequenceNode):
        return tuple(found for wrapper in node.nodes for found in _deep_items(wrapper, depth))
    for key in ITEM_KEYS:
        found = field_of(node, key)
        if found is not None:
            return _as_sequence(found)
    return _deep_items(field_of(node, "items"), depth - 1)


def _locate_items(channel: Node, document: AttributedNode) -> Optional[Tuple[Node, ...]]:
    for owner, key in (
        (channel, "item"),
        (channel, "entry"),
        (document, "item"),
        (document, "entry"),
    ):
        found = field_of(owner, key)
        if found is not None:
            return _as_sequence(found)

    logger.debug("No item/entry keys on channel or root; trying deep item search")
    for owner in (channel, document):
        nested = _deep_items(field_of(owner, "items"), MAX_ITEMS_LOOKUP_DEPTH)
        if nested:
            return nested
    return None


class FeedParser:
    """Turn raw feed text into an ordered tuple of raw item nodes.

    ``parse`` never raises. A document that cannot be parsed yields an empty
    result with ``error`` set; a parsed document without items yields an
    empty result without error.
    """

    def parse(self, xml_text: Union[str, bytes, None]) -> ParseResult:
        size = len(xml_text) if xml_text else 0
        logger.debug("Parsing XML, length: %d", size)
        if not xml_text or not xml_text.strip():
            logger.warning("Empty feed document")
            return ParseResult(error="empty document")

        try:
            document = build_tree(xml_text)
        except (ET.ParseError, DefusedXmlException) as exc:
            logger.warning("Failed to parse feed XML: %s", exc)
            return ParseResult(error=f"{type(exc).__name__}: {exc}")
        except Exception as exc:
            # Encoding lookups and pathological nesting surface as other errors
            logger.warning("Unexpected error parsing feed XML", exc_info=True)
            return ParseResult(error=f"{type(exc).__name__}: {exc}")

        channel = _locate_channel(document)
        title = text_of(field_of(channel, "title"))
        items = _locate_items(channel, document)
        if items is None:
            logger.warning("No items/entries found")
            return ParseResult(title=title)

        logger.debug("Located %d raw items", len(items))
        return ParseResult(items=items, title=title)


def parse_feed(xml_text: Union[str, bytes, None]) -> ParseResult:
    """Module-level shortcut for ``FeedParser().parse``."""
    return FeedParser().parse(xml_text)
