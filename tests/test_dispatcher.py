"""Tests for xpath/subtree filter dispatch."""

from pathlib import Path

import pytest

from netconf_filter.dispatcher import FilterCarrier, build_filters, carrier_from_xml
from netconf_filter.errors import MissingSelectAttribute, UnparsableFilterContent
from netconf_filter.models import FilterNode, FilterSet

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def test_xpath_select_is_passed_through_verbatim(registry):
    select = "/m:top[a='x' and b=\"y\"]//c | /other:shared"
    carrier = FilterCarrier(attributes={"type": "xpath", "select": select})
    assert build_filters(carrier, registry).to_list() == [select]


def test_empty_xpath_select_selects_everything(registry):
    carrier = FilterCarrier(attributes={"type": "xpath", "select": ""})
    assert build_filters(carrier, registry).to_list() == []


def test_xpath_filter_without_select_is_an_error(registry):
    carrier = FilterCarrier(attributes={"type": "xpath"})
    with pytest.raises(MissingSelectAttribute) as excinfo:
        build_filters(carrier, registry)
    assert excinfo.value.error_tag == "missing-attribute"


def test_xpath_filter_ignores_subtree_payload(registry):
    carrier = FilterCarrier(
        attributes={"type": "xpath", "select": "/m:top"},
        payload='<top xmlns="urn:example:m"><a/></top>',
    )
    assert build_filters(carrier, registry).to_list() == ["/m:top"]


@pytest.mark.parametrize("payload", [None, "", b"", [], "  \n  "])
def test_empty_subtree_selects_everything(registry, payload):
    assert build_filters(FilterCarrier(payload=payload), registry).to_list() == []


def test_subtree_is_default_type(registry):
    carrier = FilterCarrier(payload='<top xmlns="urn:example:m"><a>val</a></top>')
    assert carrier.filter_type == "subtree"
    assert build_filters(carrier, registry).to_list() == ["/m:top[a='val']"]


def test_unrecognized_type_is_treated_as_subtree(registry):
    carrier = FilterCarrier(
        attributes={"type": "bogus"}, payload='<top xmlns="urn:example:m"/>'
    )
    assert build_filters(carrier, registry).to_list() == ["/m:top"]


def test_decoded_nodes_are_accepted(registry):
    nodes = [FilterNode(name="top", namespace="urn:example:m", children=[FilterNode(name="a")])]
    assert build_filters(FilterCarrier(payload=nodes), registry).to_list() == ["/m:top/a"]


def test_malformed_subtree_is_unparsable(registry):
    with pytest.raises(UnparsableFilterContent) as excinfo:
        build_filters(FilterCarrier(payload="<top><a></top>"), registry)
    assert excinfo.value.error_tag == "malformed-message"


def test_unsupported_payload_type_is_unparsable(registry):
    with pytest.raises(UnparsableFilterContent):
        build_filters(FilterCarrier(payload=42), registry)


def test_results_are_appended_to_shared_set(registry):
    filters = FilterSet(["/first"])
    build_filters(FilterCarrier(payload="<shared/>"), registry, filters)
    assert filters.to_list() == ["/first", "/m:shared", "/other:shared"]


def test_carrier_from_xml_reads_attributes_and_children(registry):
    carrier = carrier_from_xml((FIXTURES / "interfaces_filter.xml").read_text())
    assert carrier.attributes == {"type": "subtree"}
    assert [node.name for node in carrier.payload] == ["interfaces"]
    assert build_filters(carrier, registry).to_list() == [
        "/ietf-interfaces:interfaces/interface[type='iana-if-type:ethernetCsmacd']/name",
        "/ietf-interfaces:interfaces/interface[type='iana-if-type:ethernetCsmacd']/enabled",
    ]


def test_carrier_from_xml_xpath_filter(registry):
    carrier = carrier_from_xml(
        '<filter xmlns="urn:ietf:params:xml:ns:netconf:base:1.0" '
        'type="xpath" select="/m:top/a"/>'
    )
    assert carrier.filter_type == "xpath"
    assert build_filters(carrier, registry).to_list() == ["/m:top/a"]


def test_empty_filter_element_selects_everything(registry):
    carrier = carrier_from_xml('<filter type="subtree"/>')
    assert build_filters(carrier, registry).to_list() == []


def test_carrier_with_byte_order_mark(registry):
    carrier = carrier_from_xml(
        b'\xef\xbb\xbf<?xml version="1.0" encoding="UTF-8"?>'
        b'<filter><top xmlns="urn:example:m"/></filter>'
    )
    assert build_filters(carrier, registry).to_list() == ["/m:top"]
