"""Compile RFC 6241 subtree filters into XPath expressions.

The datastore only evaluates XPath, so every subtree filter is translated
into a set of XPath strings whose union selects the same data. The
translation walks the filter tree once per resolved top-level module:

* containment and selection nodes become path steps (``/m:top/child``),
* content-match leaves become predicates on the current step
  (``[name='value']``),
* namespaced attributes become attribute predicates (``[@m:attr='value']``),
* a node with several containment/selection children branches into one
  path per child.

Example::

        from netconf_filter.compiler import SubtreeCompiler
        from netconf_filter.registry import SchemaModule, SchemaRegistry
        from netconf_filter.xml_parser import parse_filter

        registry = SchemaRegistry([SchemaModule("m", "urn:m", top_level_nodes=["top"])])
        nodes = parse_filter('<top xmlns="urn:m"><a/><b>x</b></top>')
        SubtreeCompiler(registry).compile(nodes).to_list()
        # ["/m:top[b='x']/a"]

Module resolution:
    A top-level element with an explicit namespace resolves to exactly one
    module. An element without one (or in the NETCONF base namespace) may
    resolve to several modules defining a top-level node of that name; each
    one produces its own set of paths. Unknown namespaces match nothing and
    are skipped silently.

Literal quoting:
    Values are single-quoted, or double-quoted when they contain a single
    quote. A value containing both quote characters raises
    :class:`~netconf_filter.errors.UnrepresentableContent`.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Tuple

from .errors import AllocationFailure
from .fragment import AttributePredicate, XPathFragment
from .models import NETCONF_BASE_NS, FilterNode, FilterSet, ModuleCandidate
from .registry import ModuleResolver

logger = logging.getLogger(__name__)

# prefix of an XML qualified name inside a content value
_QNAME_PREFIX = re.compile(r"(?<![\w.:-])([A-Za-z_][\w.-]*):(?=[A-Za-z_*])")


class _UnresolvedNamespace(Exception):
    """Internal signal: a nested element's namespace maps to no module."""

    def __init__(self, namespace: str) -> None:
        super().__init__(namespace)
        self.namespace = namespace


class SubtreeCompiler:
    """Translate subtree filter elements into XPath strings.

    The compiler keeps no state between calls and performs no locking; the
    resolver it is given must not change while :meth:`compile` runs.

    Args:
        resolver: Module lookup capability (usually a
            :class:`~netconf_filter.registry.SchemaRegistry`).
    """

    def __init__(self, resolver: ModuleResolver) -> None:
        self.resolver = resolver

    def compile(
        self, nodes: Iterable[FilterNode], filters: Optional[FilterSet] = None
    ) -> FilterSet:
        """Compile top-level filter elements in document order.

        Args:
            nodes: Top-level filter elements.
            filters: Optional set to append to; a new one is created otherwise.

        Returns:
            The FilterSet holding every produced expression.

        Raises:
            UnrepresentableContent: If a literal contains both quote characters.
            AllocationFailure: If memory runs out while building paths.

        On error ``filters`` is left exactly as it was passed in.
        """
        if filters is None:
            filters = FilterSet()
        staged: List[str] = []
        try:
            for node in nodes:
                self._compile_top_level(node, staged)
        except MemoryError as exc:
            raise AllocationFailure("Out of memory while compiling subtree filter") from exc
        filters.extend(staged)
        logger.debug(f"Subtree filter compiled into {len(staged)} XPath expression(s)")
        return filters

    # ---------------- Internal helpers ---------------- #

    def candidate_modules(self, node: FilterNode) -> List[ModuleCandidate]:
        """Return the modules a top-level element may belong to."""
        if node.namespace and node.namespace != NETCONF_BASE_NS:
            module = self.resolver.resolve_by_namespace(node.namespace)
            if module is None:
                logger.debug(
                    f"Skipping top-level <{node.name}>: no module for namespace {node.namespace}"
                )
                return []
            return [ModuleCandidate(module, node.namespace)]

        candidates = self.resolver.resolve_by_name(node.name)
        if not candidates:
            logger.debug(f"Skipping top-level <{node.name}>: no module defines it")
        return candidates

    def _compile_top_level(self, node: FilterNode, out: List[str]) -> None:
        for candidate in self.candidate_modules(node):
            if node.is_content_match:
                fragment = XPathFragment()
                fragment.add_node(node.name, candidate.name)
                fragment.add_text_match(self._content_value(node))
                fragment.add_attributes(self._attribute_predicates(node))
                out.append(fragment.finalize())
                continue
            try:
                self._compile_element(
                    node, XPathFragment(), candidate.namespace, out, prefix=candidate.name
                )
            except _UnresolvedNamespace as exc:
                logger.debug(
                    f"Dropping <{node.name}> for module {candidate.name}: "
                    f"no module for namespace {exc.namespace}"
                )

    def _compile_element(
        self,
        node: FilterNode,
        fragment: XPathFragment,
        context_ns: str,
        out: List[str],
        prefix: Optional[str] = None,
    ) -> None:
        """Extend ``fragment`` with ``node`` and emit or branch.

        ``fragment`` is consumed: it is either finalized into ``out`` or passed
        on to exactly one recursive call.
        """
        if prefix is None:
            prefix, context_ns = self._qualify(node, context_ns)
        fragment.add_node(node.name, prefix, self._attribute_predicates(node))

        branches: List[FilterNode] = []
        for child in node.children:
            if child.is_content_match:
                child_prefix, _ = self._qualify(child, context_ns)
                fragment.add_content(
                    child.name,
                    self._content_value(child),
                    child_prefix,
                    self._attribute_predicates(child),
                )
            else:
                branches.append(child)

        if not branches:
            out.append(fragment.finalize())
            return

        last = len(branches) - 1
        for index, child in enumerate(branches):
            # every branch but the last works on a copy
            branch = fragment if index == last else fragment.copy()
            try:
                self._compile_element(child, branch, context_ns, out)
            except _UnresolvedNamespace as exc:
                logger.debug(
                    f"Dropping branch <{child.name}>: no module for namespace {exc.namespace}"
                )

    def _qualify(self, node: FilterNode, context_ns: str) -> Tuple[Optional[str], str]:
        """Return ``(prefix, namespace)`` for a nested element's step.

        No prefix is needed when the element has no namespace, shares the
        enclosing one, or sits in the NETCONF base namespace.
        """
        namespace = node.namespace
        if not namespace or namespace == context_ns or namespace == NETCONF_BASE_NS:
            return None, context_ns
        module = self.resolver.resolve_by_namespace(namespace)
        if module is None:
            raise _UnresolvedNamespace(namespace)
        return module, namespace

    def _attribute_predicates(self, node: FilterNode) -> List[AttributePredicate]:
        predicates: List[AttributePredicate] = []
        for attribute in node.attributes:
            module = None
            if attribute.namespace:
                module = self.resolver.resolve_by_namespace(attribute.namespace)
            if module is None:
                # unqualified or unknown attributes cannot match anything
                logger.debug(f"Ignoring attribute {attribute.name!r} on <{node.name}>")
                continue
            predicates.append((module, attribute.name, attribute.value))
        return predicates

    def _content_value(self, node: FilterNode) -> str:
        """Trimmed content with XML prefixes rewritten to module names.

        Identityref and instance-identifier values use prefixes bound in the
        filter document; the datastore expects module names instead. When any
        prefix cannot be mapped the trimmed value is returned unchanged.
        """
        value = node.content or ""
        prefixes = set(_QNAME_PREFIX.findall(value))
        if not prefixes or not node.nsmap:
            return value

        modules = {}
        for xml_prefix in prefixes:
            namespace = node.nsmap.get(xml_prefix)
            module = self.resolver.resolve_by_namespace(namespace) if namespace else None
            if module is None:
                return value
            modules[xml_prefix] = module
        return _QNAME_PREFIX.sub(lambda m: f"{modules[m.group(1)]}:", value)


def compile_subtree(nodes: Iterable[FilterNode], resolver: ModuleResolver) -> FilterSet:
    """Convenience wrapper compiling ``nodes`` into a new FilterSet."""
    return SubtreeCompiler(resolver).compile(nodes)
