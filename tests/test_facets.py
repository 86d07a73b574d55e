"""Tests for facet collection along restriction chains."""

from pathlib import Path

import pytest

from xsd_catalog import XS_NAMESPACE, FacetGroup, SchemaCatalog

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "schema" / "shop.xsd"

FIXED_FACETS_XSD = """<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           xmlns:t="urn:t" targetNamespace="urn:t">
    <xs:simpleType name="Derived">
        <xs:restriction base="t:Middle">
            <xs:maxLength value="10"/>
            <xs:pattern value="[a-z]+"/>
            <xs:pattern value="[0-9]+"/>
        </xs:restriction>
    </xs:simpleType>
    <xs:simpleType name="Middle">
        <xs:restriction base="t:Root">
            <xs:maxLength value="20" fixed="true"/>
            <xs:assertion test="string-length($value) gt 1"/>
        </xs:restriction>
    </xs:simpleType>
    <xs:simpleType name="Root">
        <xs:restriction base="xs:string">
            <xs:maxLength value="30"/>
            <xs:pattern value=".*"/>
            <xs:assertion test="true()"/>
        </xs:restriction>
    </xs:simpleType>
</xs:schema>"""


@pytest.fixture
def catalog():
    return SchemaCatalog.from_paths([FIXTURE])


def test_fixed_facet_coexists_with_base_facet(catalog):
    price = catalog.find_type_by_name("urn:shop", "Price")
    groups = catalog.collect_facets(price)

    assert [group.level for group in groups] == [0, 1]
    assert groups[0].kinds() == ["totalDigits", "minInclusive"]
    assert groups[0].values("totalDigits") == ["8"]
    assert groups[0].get("totalDigits")[0].is_fixed
    # The derived fixed totalDigits does not hide the base one
    assert groups[1].values("totalDigits") == ["12"]
    assert groups[1].values("fractionDigits") == ["2"]


def test_unfixed_facet_overrides_base_facet(catalog):
    sku = catalog.find_type_by_name("urn:shop", "Sku")
    groups = catalog.collect_facets(sku)

    assert [group.type_node.name for group in groups] == ["Sku", "Code", "token"]
    assert groups[0].values("maxLength") == ["12"]
    assert groups[1].kinds() == ["minLength"]
    assert groups[2].values("whiteSpace") == ["collapse"]
    # normalizedString only declares an overridden whiteSpace, so it is skipped
    assert all(group.type_node.name != "normalizedString" for group in groups)


def test_enumerations_accumulate_per_level(catalog):
    status = catalog.find_type_by_name("urn:shop", "Status")
    groups = catalog.collect_facets(status)

    assert [group.enumerations for group in groups] == [["shipped"], ["open", "closed"]]


def test_same_level_facets_are_kept_together():
    catalog = SchemaCatalog([FIXED_FACETS_XSD])
    groups = catalog.collect_facets(catalog.find_type_by_name("urn:t", "Derived"))

    assert groups[0].values("pattern") == ["[a-z]+", "[0-9]+"]
    assert groups[0].values("maxLength") == ["10"]


def test_fixed_and_assertion_facets_always_recorded():
    catalog = SchemaCatalog([FIXED_FACETS_XSD])
    groups = catalog.collect_facets(catalog.find_type_by_name("urn:t", "Derived"))

    middle, root = groups[1], groups[2]
    assert middle.values("maxLength") == ["20"]
    assert [facet.get("test") for facet in middle.get("assertion")] == [
        "string-length($value) gt 1"
    ]
    # maxLength and pattern were already set by Derived; assertion is fixed
    assert root.kinds() == ["assertion"]


def test_builtin_integer_facets():
    catalog = SchemaCatalog()
    groups = catalog.collect_facets(catalog.find_type_by_name(XS_NAMESPACE, "int"))

    assert [group.type_node.name for group in groups] == ["int", "integer"]
    assert [group.level for group in groups] == [0, 2]
    assert groups[0].values("maxInclusive") == ["2147483647"]
    assert groups[1].kinds() == ["fractionDigits", "pattern"]


def test_type_without_facets_yields_no_groups():
    catalog = SchemaCatalog()
    groups = catalog.collect_facets(catalog.find_type_by_name(XS_NAMESPACE, "ID"))

    # ID adds no facets; Name and normalizedString are hidden by nearer levels
    assert [group.type_node.name for group in groups] == ["NCName", "token"]
    assert [group.level for group in groups] == [1, 3]
    assert groups[-1].values("whiteSpace") == ["collapse"]


def test_facet_group_helpers(catalog):
    price = catalog.find_type_by_name("urn:shop", "Price")
    group = catalog.collect_facets(price)[0]

    assert isinstance(group, FacetGroup)
    assert len(group) == 2
    assert [facet.local_name for facet in group] == ["totalDigits", "minInclusive"]
    assert group.to_dict() == {
        "level": 0,
        "type": "Price",
        "facets": {
            "totalDigits": [{"value": "8", "fixed": True}],
            "minInclusive": [{"value": "0", "fixed": False}],
        },
    }
