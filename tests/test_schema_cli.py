import json
from pathlib import Path

from xsd_catalog.schema_cli import main

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "schema"
SHOP = str(FIXTURES / "shop.xsd")
SHOP_EXTRA = str(FIXTURES / "shop_extra.xsd")
ORDER_XML = str(FIXTURES / "order.xml")


def run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_no_command_prints_help(capsys):
    code, out, _ = run(capsys)
    assert code == 1
    assert "xsd-catalog" in out


def test_element_command(capsys):
    code, out, _ = run(capsys, "element", SHOP, "--namespace", "urn:shop", "--name", "Order")
    assert code == 0
    assert json.loads(out)["name"] == "Order"


def test_type_command_not_found(capsys):
    code, out, err = run(capsys, "type", SHOP, "--namespace", "urn:shop", "--name", "Nope")
    assert code == 1
    assert out == ""
    assert "not found" in err


def test_base_type_command(capsys):
    code, out, _ = run(capsys, "base-type", SHOP, "--namespace", "urn:shop", "--name", "Sku")
    assert code == 0
    assert json.loads(out) == {"type": "Sku", "base_type": "string"}


def test_registration_order_decides_lookup(capsys):
    code, out, _ = run(
        capsys, "base-type", SHOP_EXTRA, SHOP, "--namespace", "urn:shop", "--name", "Price"
    )
    assert code == 0
    assert json.loads(out)["base_type"] == "double"


def test_facets_command(capsys):
    code, out, _ = run(capsys, "facets", SHOP, "--namespace", "urn:shop", "--name", "Status")
    assert code == 0
    groups = json.loads(out)
    assert [group["type"] for group in groups] == ["Status", "BaseStatus"]
    assert [f["value"] for f in groups[1]["facets"]["enumeration"]] == ["open", "closed"]


def test_chain_errors_are_reported(capsys):
    code, _, err = run(capsys, "base-type", SHOP, "--namespace", "urn:shop", "--name", "Tags")
    assert code == 1
    assert "list" in err


def test_max_chain_depth_option(capsys):
    code, _, err = run(
        capsys,
        "--max-chain-depth",
        "1",
        "base-type",
        SHOP,
        "--namespace",
        "urn:shop",
        "--name",
        "Sku",
    )
    assert code == 1
    assert "exceeds 1 levels" in err


def test_resolve_command(capsys):
    code, out, _ = run(
        capsys,
        "resolve",
        SHOP,
        "--instance",
        ORDER_XML,
        "--xpath",
        "/s:Order/s:Lines/s:Line/s:Price",
        "--ns",
        "s=urn:shop",
    )
    assert code == 0
    data = json.loads(out)
    assert data["name"] == "Price"
    assert data["attributes"]["type"] == "s:Price"


def test_resolve_command_without_match(capsys):
    code, _, err = run(
        capsys,
        "resolve",
        SHOP,
        "--instance",
        ORDER_XML,
        "--xpath",
        "/s:Order/s:Nothing",
        "--ns",
        "s=urn:shop",
    )
    assert code == 1
    assert "not found" in err
