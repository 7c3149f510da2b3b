"""Tests for subtree filter compilation."""

import pytest

from netconf_filter.compiler import SubtreeCompiler, compile_subtree
from netconf_filter.errors import AllocationFailure, UnrepresentableContent
from netconf_filter.fragment import XPathFragment
from netconf_filter.models import FilterAttribute, FilterNode, FilterSet
from netconf_filter.registry import ModuleResolver
from netconf_filter.xml_parser import parse_filter

M = 'xmlns="urn:example:m"'
ATTRS = 'xmlns:at="urn:example:attrs"'


def _compile(registry, payload):
    return compile_subtree(parse_filter(payload), registry).to_list()


def test_content_match_leaf_becomes_predicate(registry):
    assert _compile(registry, f"<top {M}><a>val</a></top>") == ["/m:top[a='val']"]


def test_selection_children_branch_in_document_order(registry):
    assert _compile(registry, f"<top {M}><a/><b/></top>") == ["/m:top/a", "/m:top/b"]


def test_single_quote_content_is_double_quoted(registry):
    assert _compile(registry, f"<top {M}><a>it's</a></top>") == ["/m:top[a=\"it's\"]"]


def test_content_with_both_quotes_is_rejected(registry):
    with pytest.raises(UnrepresentableContent):
        _compile(registry, f"<top {M}><a>it's \"quoted\"</a></top>")


def test_unknown_top_level_namespace_is_skipped(registry):
    assert _compile(registry, '<top xmlns="urn:example:unknown"><a/></top>') == []


def test_compilation_is_deterministic(registry):
    payload = f"<top {M}><k>1</k><a><b/><c/></a><d/></top><shared/>"
    first = _compile(registry, payload)
    second = _compile(registry, payload)
    assert first == second
    assert len(first) == 5


def test_top_level_content_uses_text_predicate(registry):
    assert _compile(registry, f"<top {M}>  v  </top>") == ["/m:top[text()='v']"]


def test_whitespace_only_leaf_is_selection_node(registry):
    assert _compile(registry, f"<top {M}><a>   \n </a></top>") == ["/m:top/a"]


def test_bare_top_level_element_selects_whole_subtree(registry):
    assert _compile(registry, f"<top {M}/>") == ["/m:top"]


def test_unqualified_name_resolves_to_every_defining_module(registry):
    assert _compile(registry, "<shared/>") == ["/m:shared", "/other:shared"]


def test_base_namespace_is_treated_as_unqualified(registry):
    payload = '<shared xmlns="urn:ietf:params:xml:ns:netconf:base:1.0"><x/></shared>'
    assert _compile(registry, payload) == ["/m:shared/x", "/other:shared/x"]


def test_unknown_unqualified_name_is_skipped(registry):
    assert _compile(registry, "<nowhere><a/></nowhere>") == []


def test_content_predicates_are_shared_by_all_branches(registry):
    payload = f"<top {M}><key>k1</key><a><b/><c>1</c></a><d/></top>"
    assert _compile(registry, payload) == [
        "/m:top[key='k1']/a[c='1']/b",
        "/m:top[key='k1']/d",
    ]


def test_nested_namespace_change_adds_prefix(registry):
    payload = (
        '<interfaces xmlns="urn:ietf:params:xml:ns:yang:ietf-interfaces">'
        "<interface><name>eth0</name>"
        '<extra xmlns="urn:example:other"><x>1</x></extra>'
        "</interface></interfaces>"
    )
    assert _compile(registry, payload) == [
        "/ietf-interfaces:interfaces/interface[name='eth0']/other:extra[x='1']"
    ]


def test_content_leaf_in_other_namespace_is_prefixed(registry):
    payload = f'<top {M}><flag xmlns="urn:example:other">on</flag></top>'
    assert _compile(registry, payload) == ["/m:top[other:flag='on']"]


def test_unknown_nested_namespace_drops_only_that_branch(registry):
    payload = f'<top {M}><a/><b xmlns="urn:example:unknown"/></top>'
    assert _compile(registry, payload) == ["/m:top/a"]


def test_unknown_content_namespace_drops_the_element(registry):
    payload = f'<top {M}><k xmlns="urn:example:unknown">1</k><a/></top>'
    assert _compile(registry, payload) == []


def test_namespaced_attributes_become_predicates(registry):
    payload = f'<top {M} {ATTRS} at:kind="x" plain="y"><a>1</a></top>'
    assert _compile(registry, payload) == ["/m:top[@attrs:kind='x'][a='1']"]


def test_attribute_with_unknown_namespace_is_dropped(registry):
    payload = f'<top {M} xmlns:u="urn:example:unknown" u:kind="x"><a/></top>'
    assert _compile(registry, payload) == ["/m:top/a"]


def test_attribute_on_content_leaf_precedes_comparison(registry):
    payload = f'<top {M} {ATTRS}><a at:k="v">1</a></top>'
    assert _compile(registry, payload) == ["/m:top[a[@attrs:k='v']='1']"]


def test_attribute_on_top_level_content_follows_text_predicate(registry):
    payload = f'<top {M} {ATTRS} at:k="v">val</top>'
    assert _compile(registry, payload) == ["/m:top[text()='val'][@attrs:k='v']"]


def test_prefixed_content_is_translated_to_module_name(registry):
    payload = (
        '<interfaces xmlns="urn:ietf:params:xml:ns:yang:ietf-interfaces" '
        'xmlns:ianaift="urn:ietf:params:xml:ns:yang:iana-if-type">'
        "<interface><type>ianaift:ethernetCsmacd</type><name/></interface>"
        "</interfaces>"
    )
    assert _compile(registry, payload) == [
        "/ietf-interfaces:interfaces/interface[type='iana-if-type:ethernetCsmacd']/name"
    ]


def test_unbound_prefix_in_content_is_left_alone(registry):
    assert _compile(registry, f"<top {M}><a>foo:bar</a></top>") == ["/m:top[a='foo:bar']"]


def test_instance_identifier_prefixes_are_translated(registry):
    payload = (
        f'<top {M} xmlns:o="urn:example:other">'
        "<ref>/o:extra/o:leaf</ref></top>"
    )
    assert _compile(registry, payload) == ["/m:top[ref='/other:extra/other:leaf']"]


def test_multiple_top_level_elements_keep_order(registry):
    assert _compile(registry, f"<top {M}/><shared/>") == [
        "/m:top",
        "/m:shared",
        "/other:shared",
    ]


def test_directly_built_nodes_compile(registry):
    node = FilterNode(
        name="top",
        namespace="urn:example:m",
        attributes=[FilterAttribute("kind", "x", "urn:example:attrs")],
        children=[FilterNode(name="a", text="1"), FilterNode(name="b")],
    )
    assert compile_subtree([node], registry).to_list() == ["/m:top[@attrs:kind='x'][a='1']/b"]


def test_existing_filter_set_is_appended_to(registry):
    filters = FilterSet(["/existing"])
    SubtreeCompiler(registry).compile(parse_filter(f"<top {M}/>"), filters)
    assert filters.to_list() == ["/existing", "/m:top"]


def test_failed_compile_leaves_filter_set_untouched(registry):
    filters = FilterSet(["/existing"])
    payload = f"<top {M}/><top {M}><a>it's \"x\"</a></top>"
    with pytest.raises(UnrepresentableContent):
        SubtreeCompiler(registry).compile(parse_filter(payload), filters)
    assert filters.to_list() == ["/existing"]


def test_memory_error_is_reported_as_allocation_failure():
    class ExhaustedResolver(ModuleResolver):
        def resolve_by_namespace(self, uri):
            raise MemoryError

        def resolve_by_name(self, local_name):
            raise MemoryError

    with pytest.raises(AllocationFailure):
        compile_subtree([FilterNode(name="top")], ExhaustedResolver())


def test_last_branch_reuses_fragment(registry, monkeypatch):
    copies = []
    original_copy = XPathFragment.copy

    def counting_copy(self):
        copies.append(str(self))
        return original_copy(self)

    monkeypatch.setattr(XPathFragment, "copy", counting_copy)
    result = _compile(registry, f"<top {M}><a/><b/><c/></top>")
    assert result == ["/m:top/a", "/m:top/b", "/m:top/c"]
    assert copies == ["/m:top", "/m:top"]
