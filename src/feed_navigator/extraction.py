"""Scalar extraction from attributed tree nodes."""

from __future__ import annotations

from typing import Optional

from .xml_tree import AttributedNode, Node, ScalarNode, SequenceNode


def first_of(node: Optional[Node]) -> Optional[Node]:
    """Collapse a sequence to its first node; other nodes are returned as-is."""
    while isinstance(node, SequenceNode):
        node = node.nodes[0] if node.nodes else None
    return node


def field_of(node: Optional[Node], name: str) -> Optional[Node]:
    """Return the named attribute or child of a node, or None.

    Sequences are looked up through their first node.
    """
    node = first_of(node)
    if isinstance(node, AttributedNode):
        return node.fields.get(name)
    return None


def text_of(node: Optional[Node]) -> str:
    """Return the text content of a node, ``""`` when there is none."""
    node = first_of(node)
    if node is None:
        return ""
    return node.text


def attribute_of(node: Optional[Node], name: str) -> str:
    """Return the named attribute of a node as a string.

    A scalar node stands in for its own attribute: feeds that write
    ``<enclosure>url</enclosure>`` still resolve ``attribute_of(enclosure, "url")``.
    """
    node = first_of(node)
    if node is None:
        return ""
    if isinstance(node, ScalarNode):
        return node.text
    return text_of(node.fields.get(name))
