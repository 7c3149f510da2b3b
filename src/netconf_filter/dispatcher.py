"""Turn a NETCONF ``<filter>`` element into the XPath set to evaluate.

A filter is either an ``xpath`` filter, whose ``select`` attribute is used
verbatim, or a ``subtree`` filter (the default), whose content is compiled
by :class:`~netconf_filter.compiler.SubtreeCompiler`. An empty result means
"no filtering": the caller selects everything.

Example::

        from netconf_filter.dispatcher import FilterCarrier, build_filters

        carrier = FilterCarrier(attributes={"type": "xpath", "select": "/m:top"})
        build_filters(carrier, registry).to_list()   # ["/m:top"]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Union

from .compiler import SubtreeCompiler
from .errors import MissingSelectAttribute, UnparsableFilterContent
from .models import FilterNode, FilterSet
from .registry import ModuleResolver
from .xml_parser import parse_carrier, parse_filter

logger = logging.getLogger(__name__)

FILTER_TYPE_XPATH = "xpath"
FILTER_TYPE_SUBTREE = "subtree"

Payload = Union[None, str, bytes, Sequence[FilterNode]]


@dataclass
class FilterCarrier:
    """The ``<filter>`` element of a retrieval request.

    Attributes:
        attributes: Attributes of the filter element keyed by local name
            (``type``, ``select``).
        payload: Subtree content as raw XML text, or already decoded nodes.
    """

    attributes: Dict[str, str] = field(default_factory=dict)
    payload: Payload = None

    @property
    def filter_type(self) -> str:
        if self.attributes.get("type") == FILTER_TYPE_XPATH:
            return FILTER_TYPE_XPATH
        return FILTER_TYPE_SUBTREE


def carrier_from_xml(text: Union[str, bytes]) -> FilterCarrier:
    """Decode a complete ``<filter ...>...</filter>`` element.

    Raises:
        UnparsableFilterContent: If ``text`` is not a single well-formed element.
    """
    attributes, children = parse_carrier(text)
    return FilterCarrier(attributes=attributes, payload=children)


def _subtree_nodes(payload: Payload) -> Sequence[FilterNode]:
    if isinstance(payload, (str, bytes)):
        return parse_filter(payload)
    if isinstance(payload, (list, tuple)) and all(
        isinstance(node, FilterNode) for node in payload
    ):
        return payload
    raise UnparsableFilterContent(
        f"Filter content of type {type(payload).__name__} cannot be decoded as an element tree"
    )


def build_filters(
    carrier: FilterCarrier,
    resolver: ModuleResolver,
    filters: Optional[FilterSet] = None,
) -> FilterSet:
    """Resolve ``carrier`` into the XPath expressions to evaluate.

    Args:
        carrier: The filter element.
        resolver: Module lookup used for subtree compilation.
        filters: Optional set to append to.

    Returns:
        The FilterSet (empty when everything should be selected).

    Raises:
        MissingSelectAttribute: For an ``xpath`` filter without ``select``.
        UnparsableFilterContent: If subtree content cannot be decoded.
        UnrepresentableContent: If a literal contains both quote characters.
        AllocationFailure: If memory runs out during compilation.
    """
    if filters is None:
        filters = FilterSet()

    if carrier.filter_type == FILTER_TYPE_XPATH:
        select = carrier.attributes.get("select")
        if select is None:
            raise MissingSelectAttribute(
                'RPC with an XPath filter without the "select" attribute'
            )
        if select:
            filters.append(select)
        else:
            logger.debug("Empty XPath filter selects everything")
        return filters

    payload = carrier.payload
    if payload is None or (isinstance(payload, (str, bytes, list, tuple)) and not payload):
        logger.debug("Empty subtree filter selects everything")
        return filters

    return SubtreeCompiler(resolver).compile(_subtree_nodes(payload), filters)
