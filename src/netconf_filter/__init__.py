"""NETCONF Filter
==============

Resolution of NETCONF ``<filter>`` elements into the XPath expressions a
datastore evaluates.

Key capabilities
----------------
- Compile RFC 6241 subtree filters (containment, selection and content-match
  nodes, namespaced attributes) into an equivalent set of XPath expressions
  with :class:`~netconf_filter.compiler.SubtreeCompiler`.
- Pass ``xpath`` filters through verbatim via
  :func:`~netconf_filter.dispatcher.build_filters`.
- Resolve element namespaces and bare top-level names against an injectable
  module registry (:class:`~netconf_filter.registry.SchemaRegistry`).
- FastAPI service and CLI front ends with cached registry loading and
  in-process metrics.

Design principles
-----------------
1. **Pure compilation** - the compiler is a deterministic function of the
    filter tree and a registry snapshot; it does no I/O and keeps no state.
2. **Skip, don't fail** - unknown namespaces match nothing and simply produce
    no expressions; only malformed input raises.
3. **One error per call** - a build returns a complete
    :class:`~netconf_filter.models.FilterSet` or raises one
    :class:`~netconf_filter.errors.FilterError`.

Minimal quick start
-------------------
>>> from netconf_filter import SchemaModule, SchemaRegistry, FilterCarrier, build_filters
>>> registry = SchemaRegistry([SchemaModule("m", "urn:m", top_level_nodes=["top"])])
>>> carrier = FilterCarrier(payload='<top xmlns="urn:m"><a>val</a></top>')
>>> build_filters(carrier, registry).to_list()
["/m:top[a='val']"]

FastAPI application instance (for ASGI servers like uvicorn):
>>> from netconf_filter.app import app  # noqa: F401
"""

__version__ = "0.1.0"

from .compiler import SubtreeCompiler, compile_subtree
from .dispatcher import FilterCarrier, build_filters, carrier_from_xml
from .errors import (
    AllocationFailure,
    FilterError,
    MissingSelectAttribute,
    UnparsableFilterContent,
    UnrepresentableContent,
)
from .models import FilterAttribute, FilterNode, FilterSet, ModuleCandidate
from .registry import ModuleResolver, SchemaModule, SchemaRegistry, load_registry
from .xml_parser import parse_filter

__all__ = [
    "AllocationFailure",
    "FilterAttribute",
    "FilterCarrier",
    "FilterError",
    "FilterNode",
    "FilterSet",
    "MissingSelectAttribute",
    "ModuleCandidate",
    "ModuleResolver",
    "SchemaModule",
    "SchemaRegistry",
    "SubtreeCompiler",
    "UnparsableFilterContent",
    "UnrepresentableContent",
    "build_filters",
    "carrier_from_xml",
    "compile_subtree",
    "load_registry",
    "parse_filter",
]
