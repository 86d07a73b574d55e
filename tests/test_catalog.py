"""Tests for catalog construction, registration and name lookups."""

from pathlib import Path

import pytest
from lxml import etree

from xsd_catalog import (
    XS_NAMESPACE,
    InvalidSchemaError,
    NodeKind,
    QualifiedName,
    SchemaCatalog,
    SchemaTree,
)

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "schema"
SHOP = FIXTURES / "shop.xsd"
SHOP_EXTRA = FIXTURES / "shop_extra.xsd"

CHAMELEON_XSD = """<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
    <xs:simpleType name="Local">
        <xs:restriction base="xs:string"/>
    </xs:simpleType>
    <xs:simpleType name="Derived">
        <xs:restriction base="Local">
            <xs:maxLength value="3"/>
        </xs:restriction>
    </xs:simpleType>
    <xs:element name="Thing" type="Derived"/>
</xs:schema>"""


@pytest.fixture
def catalog():
    return SchemaCatalog.from_paths([SHOP])


def test_basetypes_registered_first():
    catalog = SchemaCatalog()

    assert catalog.namespaces() == [XS_NAMESPACE]
    integer = catalog.find_type_by_name(XS_NAMESPACE, "integer")
    assert integer is not None
    assert integer.kind is NodeKind.SIMPLE_TYPE
    assert integer.tree is catalog.basetypes


def test_user_namespaces_follow_basetypes(catalog):
    assert catalog.namespaces() == [XS_NAMESPACE, "urn:shop"]
    assert len(catalog.trees("urn:shop")) == 1
    assert catalog.trees("urn:nowhere") == []


def test_find_element_matches_namespace_and_name(catalog):
    order = catalog.find_element("urn:shop", "Order")

    assert order is not None
    assert order.kind is NodeKind.ELEMENT
    assert order.qualified_name == QualifiedName("urn:shop", "Order")


def test_find_element_not_found_returns_none(catalog):
    assert catalog.find_element("urn:shop", "Invoice") is None
    assert catalog.find_element("urn:other", "Order") is None
    # Nested declarations are not top-level elements
    assert catalog.find_element("urn:shop", "Lines") is None


def test_find_type_by_name(catalog):
    customer = catalog.find_type_by_name("urn:shop", "Customer")
    sku = catalog.find_type_by_name("urn:shop", "Sku")

    assert customer.kind is NodeKind.COMPLEX_TYPE
    assert sku.kind is NodeKind.SIMPLE_TYPE
    assert catalog.find_type_by_name("urn:shop", "Order") is None
    assert catalog.find_type_by_name("urn:shop", "Missing") is None


def test_registration_order_decides_duplicate_types():
    shop_first = SchemaCatalog.from_paths([SHOP, SHOP_EXTRA])
    extra_first = SchemaCatalog.from_paths([SHOP_EXTRA, SHOP])

    assert shop_first.find_type_by_name("urn:shop", "Amount").tree.source.endswith("shop.xsd")
    assert extra_first.find_type_by_name("urn:shop", "Amount").tree.source.endswith("shop_extra.xsd")

    discount = shop_first.find_type_by_name("urn:shop", "Discount")
    assert shop_first.find_base_type_for(discount) == "decimal"
    discount = extra_first.find_type_by_name("urn:shop", "Discount")
    assert extra_first.find_base_type_for(discount) == "double"


def test_registering_same_document_twice_keeps_both():
    tree = SchemaTree.from_path(SHOP)
    catalog = SchemaCatalog([tree])
    extra = catalog.add_item(SchemaTree.from_path(SHOP_EXTRA))
    catalog.add_item(tree)

    trees = catalog.trees("urn:shop")
    assert len(trees) == 3
    assert trees[0] is tree and trees[2] is tree
    assert catalog.find_type_by_name("urn:shop", "Amount").tree is tree
    assert catalog.find_type_by_name("urn:shop", "Discount").tree is extra


def test_add_item_accepts_text_and_elements():
    catalog = SchemaCatalog()
    from_text = catalog.add_item(SHOP.read_text(encoding="utf-8"))
    from_element = catalog.add_item(etree.fromstring(SHOP_EXTRA.read_bytes()))

    assert from_text.target_namespace == "urn:shop"
    assert from_element.target_namespace == "urn:shop"
    assert catalog.find_element("urn:shop", "Coupon") is not None


def test_missing_target_namespace_is_rejected():
    with pytest.raises(InvalidSchemaError):
        SchemaCatalog([CHAMELEON_XSD])


def test_supplied_namespace_registers_chameleon_schema():
    catalog = SchemaCatalog()
    tree = catalog.add_item(CHAMELEON_XSD, namespace="urn:chameleon")

    assert tree.target_namespace == "urn:chameleon"
    derived = catalog.find_type_by_name("urn:chameleon", "Derived")
    assert catalog.find_restricted_type(derived).name == "Local"
    assert catalog.find_base_type_for(derived) == "string"

    thing = catalog.find_element("urn:chameleon", "Thing")
    assert catalog.find_element_type(thing) == derived


def test_supplied_namespace_overrides_declared_one():
    catalog = SchemaCatalog()
    catalog.add_item(SchemaTree.from_path(SHOP), namespace="urn:alias")

    order = catalog.find_element("urn:alias", "Order")
    assert order is not None
    assert order.target_namespace == "urn:alias"
    assert catalog.find_element("urn:shop", "Order") is None


def test_non_schema_documents_are_rejected():
    catalog = SchemaCatalog()
    with pytest.raises(InvalidSchemaError):
        catalog.add_item("<root/>", namespace="urn:x")
    with pytest.raises(InvalidSchemaError):
        catalog.add_item("<xs:schema xmlns:xs='http://www.w3.org/2001/XMLSchema'>", namespace="urn:x")


def test_find_type_definition_from_node_attr(catalog):
    line = catalog.find_type_by_name("urn:shop", "Line")
    sku_particle = catalog.get_complex_type_elements(line)[0]

    sku_type = catalog.find_type_definition_from_node_attr(sku_particle, "type")
    assert sku_type == catalog.find_type_by_name("urn:shop", "Sku")
    assert catalog.find_type_definition_from_node_attr(sku_particle, "substitutionGroup") is None


def test_find_type_definition_resolves_builtin_prefix(catalog):
    line = catalog.find_type_by_name("urn:shop", "Line")
    quantity = catalog.get_complex_type_elements(line)[1]

    positive = catalog.find_type_definition_from_node_attr(quantity, "type")
    assert positive is not None
    assert positive.tree is catalog.basetypes
    assert positive.name == "positiveInteger"


def test_summary_lists_sources():
    catalog = SchemaCatalog.from_paths([SHOP, SHOP_EXTRA])
    summary = catalog.summary()

    assert summary[XS_NAMESPACE] == ["<basetypes>"]
    assert [Path(source).name for source in summary["urn:shop"]] == ["shop.xsd", "shop_extra.xsd"]
