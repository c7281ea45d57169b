"""Generic attributed tree built from feed XML.

Feed dialects disagree on where values live: a title may be plain text, a link
may be text (RSS) or an ``href`` attribute (Atom), and any element may repeat.
The tree keeps that variety explicit as three node kinds:

- ``ScalarNode``: an element with neither attributes nor children.
- ``AttributedNode``: an element with attributes and/or children. Attributes and
  children share one ``fields`` mapping keyed by name.
- ``SequenceNode``: the value of a name that occurred more than once.
"""

from __future__ import annotations

import codecs
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

# Bandit: parsing handled via defusedxml safe APIs
import xml.etree.ElementTree as ET  # nosec B405

from defusedxml.ElementTree import iterparse as safe_iterparse

logger = logging.getLogger(__name__)

# Prefixes that are bound implicitly and never declared in documents
_BUILTIN_PREFIXES = {"http://www.w3.org/XML/1998/namespace": "xml"}

DEFAULT_FEED_ENCODING = "utf-8"

_XML_DECLARED_ENCODING = re.compile(rb"^\s*<\?xml[^>]*?\sencoding\s*=\s*[\"']([\w.:-]+)[\"']")
_XML_ENCODING_ATTRIBUTE = re.compile(r"^(\s*<\?xml[^>]*?)\s+encoding\s*=\s*[\"'][^\"']*[\"']")
_BOM_ENCODINGS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


@dataclass(frozen=True)
class ScalarNode:
    text: str


@dataclass(frozen=True)
class AttributedNode:
    text: str
    fields: Dict[str, "Node"] = field(default_factory=dict)


@dataclass(frozen=True)
class SequenceNode:
    nodes: Tuple["Node", ...]


Node = Union[ScalarNode, AttributedNode, SequenceNode]


def _qualified_name(tag: str, prefixes: Dict[str, str]) -> str:
    """Turn ``{uri}local`` into ``prefix:local`` using the document's own prefixes."""
    if not tag.startswith("{"):
        return tag
    uri, _, local = tag[1:].partition("}")
    prefix = prefixes.get(uri) or _BUILTIN_PREFIXES.get(uri, "")
    return f"{prefix}:{local}" if prefix else local


def _add_field(fields: Dict[str, Node], name: str, node: Node) -> None:
    existing = fields.get(name)
    if existing is None:
        fields[name] = node
    elif isinstance(existing, SequenceNode):
        fields[name] = SequenceNode(existing.nodes + (node,))
    else:
        fields[name] = SequenceNode((existing, node))


def _convert(element: ET.Element, prefixes: Dict[str, str]) -> Node:
    text = (element.text or "").strip()
    if not element.attrib and len(element) == 0:
        return ScalarNode(text)

    fields: Dict[str, Node] = {}
    for attr_name, attr_value in element.attrib.items():
        _add_field(fields, _qualified_name(attr_name, prefixes), ScalarNode(attr_value.strip()))
    for child in element:
        if not isinstance(child.tag, str):
            continue
        _add_field(fields, _qualified_name(child.tag, prefixes), _convert(child, prefixes))
    return AttributedNode(text, fields)


def _lookup_codec(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    try:
        return codecs.lookup(name.strip().strip("\"'")).name
    except LookupError:
        logger.debug("Unknown character encoding %r", name)
        return None


def sniff_encoding(data: bytes) -> Optional[str]:
    """Encoding announced by a byte order mark or the XML declaration, if any."""
    for bom, encoding in _BOM_ENCODINGS:
        if data.startswith(bom):
            return encoding
    match = _XML_DECLARED_ENCODING.match(data)
    if match:
        return _lookup_codec(match.group(1).decode("ascii"))
    return None


def decode_feed(data: bytes, charset: Optional[str] = None) -> str:
    """Decode feed bytes to text.

    A charset from the HTTP Content-Type wins, then a byte order mark or the
    XML declaration, then UTF-8. Undecodable bytes are replaced rather than
    failing the whole feed.

    Args:
        data: Raw response body
        charset: ``charset`` parameter of the Content-Type header, if present

    Returns:
        Decoded text
    """
    encoding = _lookup_codec(charset) or sniff_encoding(data) or DEFAULT_FEED_ENCODING
    if encoding == "utf-8" and data.startswith(codecs.BOM_UTF8):
        encoding = "utf-8-sig"
    return data.decode(encoding, errors="replace")


def strip_encoding_declaration(text: str) -> str:
    """Remove ``encoding=`` from the XML declaration of already decoded text.

    Decoded text is re-encoded as UTF-8 for the parser, so a declaration
    naming another encoding would make it decode the bytes a second time.
    """
    return _XML_ENCODING_ATTRIBUTE.sub(r"\1", text.lstrip("\ufeff"), count=1)


def build_tree(xml: Union[str, bytes]) -> AttributedNode:
    """Parse XML into a document node whose single field is the root element.

    Bytes are decoded with ``decode_feed`` first; text is parsed as it is,
    whatever its XML declaration claims.

    Args:
        xml: Raw XML text or bytes

    Returns:
        ``AttributedNode("", {root_name: root_node})``

    Raises:
        ET.ParseError: If the document is not well-formed XML
        defusedxml.DefusedXmlException: If the document uses forbidden constructs
    """
    text = decode_feed(xml) if isinstance(xml, bytes) else xml
    data = strip_encoding_declaration(text).encode("utf-8")
    prefixes: Dict[str, str] = {}
    elements: List[ET.Element] = []
    for event, payload in safe_iterparse(io.BytesIO(data), events=("start", "start-ns")):
        if event == "start-ns":
            prefix, uri = payload
            # First declaration wins; the default namespace keeps unprefixed names
            prefixes.setdefault(uri, prefix)
        elif not elements:
            elements.append(payload)

    if not elements:
        raise ET.ParseError("no element found")
    root = elements[0]
    return AttributedNode("", {_qualified_name(root.tag, prefixes): _convert(root, prefixes)})
