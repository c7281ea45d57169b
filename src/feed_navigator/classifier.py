"""Item classification: resolve URLs and metadata, tag folders and leaves."""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Iterable, List, Optional, Tuple

from . import config_constants
from .config import FolderRules
from .extraction import attribute_of, field_of, first_of, text_of
from .models import Item
from .xml_tree import Node, ScalarNode, SequenceNode

logger = logging.getLogger(__name__)

UNTITLED_ITEM_TITLE = config_constants.UNTITLED_ITEM_TITLE
ID_ENTROPY_LENGTH = 9
_ID_ALPHABET = string.ascii_lowercase + string.digits


def make_item_id(index: int) -> str:
    """Build an id from position, wall-clock milliseconds and random base36 characters."""
    entropy = "".join(random.choices(_ID_ALPHABET, k=ID_ENTROPY_LENGTH))  # nosec B311
    return f"item-{index}-{int(time.time() * 1000)}-{entropy}"


def _resolve_link(link: Optional[Node]) -> str:
    """Resolve a ``link`` value: plain text, Atom ``href``, or the element's text."""
    if link is None:
        return ""
    if isinstance(link, SequenceNode):
        for candidate in link.nodes:
            url = _resolve_link(candidate)
            if url:
                return url
        return ""
    if isinstance(link, ScalarNode):
        return link.text
    return attribute_of(link, "href") or text_of(link)


def resolve_url(raw: Node) -> Tuple[str, str]:
    """Return ``(url, mime_type)`` for a raw item.

    The first enclosure's ``url`` wins; otherwise the ``link`` field is used and
    the MIME type is whatever the enclosure declared (usually empty).
    """
    enclosure = first_of(field_of(raw, "enclosure"))
    url = ""
    mime_type = ""
    if enclosure is not None:
        url = attribute_of(enclosure, "url")
        mime_type = attribute_of(enclosure, "type") if not isinstance(enclosure, ScalarNode) else ""
    if not url:
        url = _resolve_link(field_of(raw, "link"))
    return url.strip(), mime_type.strip()


def resolve_thumbnail(raw: Node) -> str:
    thumbnail = attribute_of(field_of(raw, "media:thumbnail"), "url")
    if not thumbnail:
        thumbnail = attribute_of(field_of(raw, "itunes:image"), "href")
    return thumbnail


def resolve_description(raw: Node) -> str:
    return text_of(field_of(raw, "description")) or text_of(field_of(raw, "summary"))


class ItemClassifier:
    """Turn raw item nodes into Items tagged as folders or leaves.

    Args:
        rules: Folder markers; defaults to the built-in marker lists
    """

    def __init__(self, rules: Optional[FolderRules] = None) -> None:
        self.rules = rules or FolderRules()

    def classify(self, raw: Node, index: int = 0) -> Optional[Item]:
        """Classify one raw item, returning None when it has no usable URL."""
        url, mime_type = resolve_url(raw)
        if not url:
            logger.debug("Skipping item %d without a resolvable URL", index)
            return None

        title = text_of(field_of(raw, "title")) or UNTITLED_ITEM_TITLE
        is_folder = self.rules.matches(url, mime_type)
        item = Item(
            id=make_item_id(index),
            title=title,
            url=url,
            thumbnail=resolve_thumbnail(raw),
            description=resolve_description(raw),
            mime_type_hint=mime_type,
            is_folder=is_folder,
        )
        logger.debug(
            'Item %d: "%s" | Type: %s | %s',
            index,
            title,
            mime_type or "-",
            "FOLDER" if is_folder else "LEAF",
        )
        return item

    def classify_items(self, raw_items: Iterable[Node]) -> List[Item]:
        """Classify raw items in order, dropping the ones that cannot be resolved."""
        items: List[Item] = []
        for index, raw in enumerate(raw_items):
            try:
                item = self.classify(raw, index)
            except Exception:
                logger.warning("Failed to classify item %d; skipping", index, exc_info=True)
                continue
            if item is not None:
                items.append(item)
        logger.debug("Classified %d items", len(items))
        return items
