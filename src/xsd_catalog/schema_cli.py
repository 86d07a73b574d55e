"""
CLI commands for querying an XSD catalog.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from lxml import etree

from .catalog import ResolverConfig, SchemaCatalog
from .exceptions import CatalogError
from .schema_tree import parse_xml


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def load_catalog(args) -> SchemaCatalog:
    """Build a catalog from the schema paths given on the command line."""
    config = ResolverConfig(max_chain_depth=args.max_chain_depth)
    return SchemaCatalog.from_paths(args.schemas, config=config)


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2))


def _not_found(what: str) -> int:
    print(f"✗ {what} not found", file=sys.stderr)
    return 1


def cmd_element(args):
    """Look up a top-level element definition."""
    setup_logging(args.verbose)

    node = load_catalog(args).find_element(args.namespace, args.name)
    if node is None:
        return _not_found(f"Element {{{args.namespace}}}{args.name}")
    _emit(node.to_dict())
    return 0


def cmd_type(args):
    """Look up a named type definition."""
    setup_logging(args.verbose)

    node = load_catalog(args).find_type_by_name(args.namespace, args.name)
    if node is None:
        return _not_found(f"Type {{{args.namespace}}}{args.name}")
    _emit(node.to_dict())
    return 0


def cmd_base_type(args):
    """Resolve the primitive base of a simpleType."""
    setup_logging(args.verbose)

    catalog = load_catalog(args)
    node = catalog.find_type_by_name(args.namespace, args.name)
    if node is None:
        return _not_found(f"Type {{{args.namespace}}}{args.name}")
    _emit({"type": args.name, "base_type": catalog.find_base_type_for(node)})
    return 0


def cmd_facets(args):
    """List the effective facets of a simpleType, one group per level."""
    setup_logging(args.verbose)

    catalog = load_catalog(args)
    node = catalog.find_type_by_name(args.namespace, args.name)
    if node is None:
        return _not_found(f"Type {{{args.namespace}}}{args.name}")
    _emit([group.to_dict() for group in catalog.collect_facets(node)])
    return 0


def cmd_resolve(args):
    """Find the element definition governing a node of an instance document."""
    setup_logging(args.verbose)

    catalog = load_catalog(args)
    try:
        document = parse_xml(Path(args.instance).read_bytes())
        matches = document.xpath(args.xpath, namespaces=dict(args.ns or []))
    except (etree.XMLSyntaxError, etree.XPathError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    if not isinstance(matches, list):
        matches = []
    matches = [match for match in matches if isinstance(match, etree._Element)]
    if not matches:
        return _not_found(f"Instance node {args.xpath}")
    node = catalog.find_element_for_xml_node(matches[0])
    if node is None:
        return _not_found(f"Definition for {args.xpath}")
    _emit(node.to_dict())
    return 0


def _prefix_binding(value: str):
    prefix, sep, uri = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError("namespace bindings look like prefix=uri")
    return prefix, uri


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="XSD type resolution CLI",
        prog="xsd-catalog"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--max-chain-depth",
        type=int,
        default=ResolverConfig.max_chain_depth,
        help="Maximum restriction/extension chain length before failing"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    def add_lookup(name, help_text, func):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("schemas", nargs="+", help="XSD files to register, in order")
        sub.add_argument("--namespace", required=True, help="Target namespace URI")
        sub.add_argument("--name", required=True, help="Local name to look up")
        sub.set_defaults(func=func)
        return sub

    add_lookup("element", "Find a top-level element definition", cmd_element)
    add_lookup("type", "Find a named type definition", cmd_type)
    add_lookup("base-type", "Resolve the primitive base of a simpleType", cmd_base_type)
    add_lookup("facets", "Show effective facets of a simpleType", cmd_facets)

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Map an instance document node to its element definition"
    )
    resolve_parser.add_argument("schemas", nargs="+", help="XSD files to register, in order")
    resolve_parser.add_argument("--instance", required=True, help="XML instance document")
    resolve_parser.add_argument("--xpath", required=True, help="XPath selecting the instance node")
    resolve_parser.add_argument(
        "--ns",
        action="append",
        type=_prefix_binding,
        help="Namespace binding for the XPath, as prefix=uri (repeatable)"
    )
    resolve_parser.set_defaults(func=cmd_resolve)

    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except CatalogError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
