"""Decode subtree filter payloads into :class:`FilterNode` trees.

The payload of a ``<filter>`` element may hold several sibling top-level
elements, so it is parsed as a multi-root fragment by wrapping it in a
synthetic container. Parsing is done with ``xml.etree.ElementTree``'s pull
parser so the in-scope prefix bindings (lost by a plain ``ET.fromstring``)
can be recorded on every node; the compiler needs them to translate prefixed
content values such as identityrefs.

Typical usage:
        from netconf_filter.xml_parser import parse_filter

        nodes = parse_filter('<top xmlns="urn:example"><a>val</a></top>')
        print(nodes[0].name, nodes[0].namespace)   # top urn:example
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple, Union

from .errors import UnparsableFilterContent
from .models import FilterAttribute, FilterNode

logger = logging.getLogger(__name__)

_WRAPPER = "netconf-filter-payload"
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def split_tag(tag: str) -> Tuple[Optional[str], str]:
    """Split a Clark-notation tag (``{uri}local``) into ``(uri, local)``."""
    if tag.startswith("{"):
        uri, _, local = tag[1:].partition("}")
        return uri, local
    return None, tag


def _attributes(element: ET.Element) -> List[FilterAttribute]:
    attributes = []
    for key, value in element.attrib.items():
        namespace, name = split_tag(key)
        attributes.append(FilterAttribute(name=name, value=value, namespace=namespace))
    return attributes


def _build_node(
    element: ET.Element, nsmap: Dict[str, str], children: List[FilterNode]
) -> FilterNode:
    namespace, name = split_tag(element.tag)
    return FilterNode(
        name=name,
        namespace=namespace,
        attributes=_attributes(element),
        children=children,
        text=element.text,
        nsmap=nsmap,
    )


def parse_filter(payload: Union[str, bytes]) -> List[FilterNode]:
    """Parse a (possibly multi-root) subtree filter payload.

    Args:
        payload: XML text of the filter content, without the ``<filter>``
            element itself.

    Returns:
        Top-level :class:`FilterNode` objects in document order.

    Raises:
        UnparsableFilterContent: If the payload is not well-formed XML or
            cannot be decoded as UTF-8.
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise UnparsableFilterContent(f"Filter payload is not UTF-8: {exc}") from exc

    text = _XML_DECLARATION.sub("", payload.lstrip("\ufeff"), count=1)
    parser = ET.XMLPullParser(events=("start-ns", "start", "end"))
    try:
        parser.feed(f"<{_WRAPPER}>{text}</{_WRAPPER}>")
        events = list(parser.read_events())
        parser.close()
        events.extend(parser.read_events())
    except ET.ParseError as exc:
        raise UnparsableFilterContent(f"Malformed subtree filter: {exc}") from exc

    pending: Dict[str, str] = {}
    # (in-scope namespaces, finished children) per open element
    stack: List[Tuple[Dict[str, str], List[FilterNode]]] = []
    roots: List[FilterNode] = []
    for event, item in events:
        if event == "start-ns":
            prefix, uri = item
            pending[prefix] = uri
        elif event == "start":
            nsmap = dict(stack[-1][0]) if stack else {}
            nsmap.update(pending)
            pending = {}
            stack.append((nsmap, []))
        else:
            nsmap, children = stack.pop()
            if not stack:
                roots = children
                continue
            stack[-1][1].append(_build_node(item, nsmap, children))

    logger.debug(f"Parsed subtree filter with {len(roots)} top-level element(s)")
    return roots


def parse_element(element: ET.Element) -> FilterNode:
    """Convert an already parsed ``ElementTree`` element into a :class:`FilterNode`.

    ElementTree does not keep prefix declarations, so the resulting nodes have
    an empty ``nsmap`` and prefixed content values are left untranslated.
    """
    return _build_node(element, {}, [parse_element(child) for child in element])


def parse_carrier(payload: Union[str, bytes]) -> Tuple[Dict[str, str], List[FilterNode]]:
    """Parse a complete ``<filter>`` element.

    Returns:
        ``(attributes, children)`` where attributes are keyed by local name.

    Raises:
        UnparsableFilterContent: If the text does not hold exactly one element.
    """
    nodes = parse_filter(payload)
    if len(nodes) != 1:
        raise UnparsableFilterContent(
            f"Expected a single <filter> element, found {len(nodes)} elements"
        )
    carrier = nodes[0]
    attributes = {attribute.name: attribute.value for attribute in carrier.attributes}
    return attributes, carrier.children
