"""Core data structures for subtree filter compilation.

These lightweight dataclasses are produced by the XML decoding layer and
consumed by the compiler and the service surfaces. They avoid framework
dependencies so they can be built directly in tests or by any other XML
front end.

Overview:
        * ``FilterNode`` is a read-only view of one filter element: name,
            namespace, attributes, children, text and the in-scope prefix map.
        * ``ModuleCandidate`` pairs a schema module name with its namespace; a
            top-level element may resolve to several of them.
        * ``FilterSet`` is the ordered output of a filter build.

Typical construction (simplified)::

        from netconf_filter.models import FilterNode

        top = FilterNode(
                name="interfaces",
                namespace="urn:ietf:params:xml:ns:yang:ietf-interfaces",
                children=[
                        FilterNode(name="interface", children=[FilterNode(name="name", text="eth0")]),
                ],
        )

Design notes:
        * Children and attributes are plain lists in document order; output
            order depends on it.
        * Whitespace-only text is treated as absent through ``content``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

NETCONF_BASE_NS = "urn:ietf:params:xml:ns:netconf:base:1.0"


@dataclass
class FilterAttribute:
    """Attribute on a filter element.

    Attributes:
        name: Local attribute name.
        value: Attribute value as written.
        namespace: Namespace URI of a prefixed attribute, ``None`` otherwise.
    """

    name: str
    value: str
    namespace: Optional[str] = None


@dataclass
class FilterNode:
    """One element of a subtree filter.

    Attributes:
        name: Local element name.
        namespace: Namespace URI, ``None`` when the element has none.
        attributes: Attributes in document order.
        children: Child elements in document order.
        text: Raw text content (may be whitespace only).
        nsmap: In-scope ``prefix -> namespace`` bindings; the default namespace
            uses the empty string as prefix.

    Example:
        >>> leaf = FilterNode(name="name", text="  eth0 ")
        >>> leaf.content
        'eth0'
        >>> leaf.is_content_match
        True
    """

    name: str
    namespace: Optional[str] = None
    attributes: List[FilterAttribute] = field(default_factory=list)
    children: List["FilterNode"] = field(default_factory=list)
    text: Optional[str] = None
    nsmap: Dict[str, str] = field(default_factory=dict)

    @property
    def content(self) -> Optional[str]:
        """Trimmed text, or ``None`` when absent or whitespace only."""
        if self.text is None:
            return None
        stripped = self.text.strip()
        return stripped or None

    @property
    def is_content_match(self) -> bool:
        """True for a leaf whose text must equal the selected node's value."""
        return not self.children and self.content is not None

    def iter_nodes(self) -> Iterator["FilterNode"]:
        """Yield this node and all descendants depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def depth(self) -> int:
        """Number of element levels below and including this node."""
        deepest = 0
        stack = [(self, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((child, level + 1) for child in node.children)
        return deepest


@dataclass(frozen=True)
class ModuleCandidate:
    """A schema module able to hold a given top-level node."""

    name: str
    namespace: str


class FilterSet:
    """Ordered collection of finished XPath expressions.

    Insertion order is discovery order (top-level element order times module
    candidate order). Duplicates are kept; the union semantics of the
    consumer make them harmless and dropping them would hide compile order.
    """

    def __init__(self, filters: Optional[List[str]] = None) -> None:
        self._filters: List[str] = list(filters or [])

    def append(self, xpath: str) -> None:
        self._filters.append(xpath)

    def extend(self, xpaths: List[str]) -> None:
        self._filters.extend(xpaths)

    def to_list(self) -> List[str]:
        return list(self._filters)

    def __iter__(self) -> Iterator[str]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __bool__(self) -> bool:
        return bool(self._filters)

    def __getitem__(self, index: int) -> str:
        return self._filters[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FilterSet):
            return self._filters == other._filters
        if isinstance(other, list):
            return self._filters == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"FilterSet({self._filters!r})"
