"""Cross-document XSD type resolution.

:class:`SchemaCatalog` keeps every registered schema document bucketed by
target namespace and answers the questions a validator or serializer asks
about an XML document: which element or type definition governs a name, what
a simpleType restricts down to, which facets apply after overriding, and which
schema element governs a given instance node.

Resolution strategy:
* Lookups scan the documents of one namespace in registration order and the
  first match wins. Nothing is de-duplicated, so registering a document twice
  only lengthens the search.
* Restriction and extension chains are followed one ``base`` at a time. Every
  walk keeps a visited set and stops at ``ResolverConfig.max_chain_depth``;
  schema authors are untrusted, so a cycle raises
  :class:`~xsd_catalog.exceptions.MalformedChainError` instead of spinning.
* A name that is not present anywhere is reported as ``None``, never raised.

Typical usage:
        from xsd_catalog import SchemaCatalog

        catalog = SchemaCatalog([order_xsd_text])
        price = catalog.find_type_by_name("urn:shop", "Price")
        catalog.find_base_type_for(price)           # 'decimal'
        for group in catalog.collect_facets(price):
                print(group.level, group.kinds())

        instance = lxml.etree.fromstring(order_xml)
        line = instance.find(".//{urn:shop}Line")
        catalog.find_element_for_xml_node(line)     # SchemaNode(element 'Line')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from lxml import etree

from . import schema_tree
from .basetypes import BASETYPES_NAMESPACE, basetypes_root
from .exceptions import InvalidSchemaError, MalformedChainError, UnsupportedDerivationKind
from .models import XSI_NAMESPACE, FacetGroup, NodeKind, QualifiedName, SchemaNode
from .namespace_store import NamespaceStore
from .schema_tree import SchemaTree

logger = logging.getLogger(__name__)

Document = Union[SchemaTree, str, bytes, Any]


@dataclass
class ResolverConfig:
    """Configuration for chain walking.

    Args:
        max_chain_depth: Maximum number of type definitions a single
            restriction or extension walk may visit before it is reported as
            malformed.
        follow_element_refs: When True, ``<xs:element ref="...">`` particles
            are resolved to the referenced global element during descent and
            type lookup.
    """

    max_chain_depth: int = 64  # Upper bound per chain walk
    follow_element_refs: bool = True  # Resolve element refs to global elements


class _ChainGuard:
    """Visited set plus depth bound for one derivation walk."""

    def __init__(self, start: SchemaNode, max_depth: int, label: str) -> None:
        self.max_depth = max_depth
        self.label = label
        self.chain: List[SchemaNode] = [start]
        self._seen: Set[SchemaNode] = {start}

    def names(self) -> List[str]:
        return [node.name or "<anonymous>" for node in self.chain]

    def step(self, node: SchemaNode) -> None:
        if node in self._seen:
            raise MalformedChainError(
                f"Cyclic {self.label} chain: "
                f"{' -> '.join(self.names() + [node.name or '<anonymous>'])}",
                chain=self.names(),
            )
        if len(self.chain) >= self.max_depth:
            raise MalformedChainError(
                f"{self.label.capitalize()} chain exceeds {self.max_depth} levels "
                f"starting at '{self.chain[0].name}'",
                chain=self.names(),
            )
        self.chain.append(node)
        self._seen.add(node)


class SchemaCatalog:
    """Stores XSD documents by namespace and resolves definitions across them.

    The built-in base-type schema is always the first document registered,
    under the XML Schema namespace.

    Args:
        documents: Initial documents, registered in order via :meth:`add_item`.
        config: Optional :class:`ResolverConfig`.

    Raises:
        InvalidSchemaError: If an initial document cannot be registered.

    Example:
        catalog = SchemaCatalog([SchemaTree.from_path("order.xsd")])
        catalog.find_element("urn:shop", "Order")
    """

    def __init__(
        self,
        documents: Optional[Iterable[Document]] = None,
        config: Optional[ResolverConfig] = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self.store = NamespaceStore()
        self.basetypes = SchemaTree(basetypes_root(), source="<basetypes>")
        self.store.add(BASETYPES_NAMESPACE, self.basetypes)
        for document in documents or []:
            self.add_item(document)

    @classmethod
    def create(
        cls,
        documents: Optional[Iterable[Document]] = None,
        config: Optional[ResolverConfig] = None,
    ) -> "SchemaCatalog":
        return cls(documents, config=config)

    @classmethod
    def from_paths(
        cls, paths: Iterable[Union[str, Path]], config: Optional[ResolverConfig] = None
    ) -> "SchemaCatalog":
        """Parse and register each XSD file in ``paths`` in order."""
        return cls([SchemaTree.from_path(path) for path in paths], config=config)

    def __repr__(self) -> str:
        return f"SchemaCatalog(namespaces={self.namespaces()!r})"

    # ---------------- Registration ---------------- #

    def add_item(self, document: Document, namespace: Optional[str] = None) -> SchemaTree:
        """Register one schema document.

        Args:
            document: A :class:`SchemaTree`, an lxml element/tree rooted at
                ``xs:schema``, or XSD text.
            namespace: Namespace to file the document under; defaults to its
                declared ``targetNamespace``.

        Returns:
            The registered :class:`SchemaTree`.

        Raises:
            InvalidSchemaError: If no namespace is supplied and the document
                declares none, or the document is not a schema.
        """
        tree = self._as_tree(document)
        target = namespace if namespace is not None else tree.target_namespace
        if target is None:
            raise InvalidSchemaError(
                f"Schema {tree.source or '<memory>'} declares no targetNamespace "
                "and none was supplied"
            )
        if tree.target_namespace != target:
            tree = tree.with_namespace(target)
        self.store.add(target, tree)
        logger.debug(
            f"Registered schema {tree.source or '<memory>'} under '{target}' "
            f"({len(self.trees(target))} document(s) in namespace)"
        )
        return tree

    def namespaces(self) -> List[str]:
        return self.store.namespaces()

    def trees(self, namespace: str) -> List[SchemaTree]:
        """Documents registered under ``namespace`` in search order."""
        return list(self.store.get(namespace) or [])

    @staticmethod
    def _as_tree(document: Document) -> SchemaTree:
        if isinstance(document, SchemaTree):
            return document
        if isinstance(document, (str, bytes)):
            return SchemaTree.parse(document)
        return SchemaTree(document)

    # ---------------- Lookup by name ---------------- #

    def find_element(self, namespace: str, name: str) -> Optional[SchemaNode]:
        """Find a top-level ``xs:element`` declared in ``namespace``."""
        for tree in self.trees(namespace):
            element = tree.find_element(name)
            if element is not None:
                return element
        return None

    def find_type_by_name(self, namespace: str, name: str) -> Optional[SchemaNode]:
        """Find a top-level complexType/simpleType declared in ``namespace``."""
        for tree in self.trees(namespace):
            matches = tree.find_type_by_name(name)
            if matches:
                return matches[0]
        return None

    def find_type_definition_from_node_attr(
        self,
        node: Union[SchemaNode, Any],
        type_attr: str,
        type_attr_ns: Optional[str] = None,
    ) -> Optional[SchemaNode]:
        """Resolve the type named by an attribute of ``node``.

        Args:
            node: Schema node or instance element carrying the attribute.
            type_attr: Attribute local name (``type``, ``base``...).
            type_attr_ns: Attribute namespace, e.g. the ``xsi`` namespace.

        Returns:
            The type definition, or ``None`` if the attribute is absent or
            names an unknown type.
        """
        qname = schema_tree.get_type_from_node_attr(node, type_attr, type_attr_ns)
        if qname is None:
            return None
        return self.find_type_by_name(qname.namespace, qname.name)

    # ---------------- Type chains ---------------- #

    def _restriction_base(
        self, node: SchemaNode
    ) -> Tuple[Optional[SchemaNode], Optional[QualifiedName], bool]:
        """Return (base definition, base name, has_restriction) for ``node``."""
        restriction = schema_tree.get_restriction(node)
        if restriction is None:
            return None, None, False
        base = schema_tree.get_type_from_node_attr(restriction, "base")
        if base is None:
            return schema_tree.get_embedded_type(restriction), None, True
        return self.find_type_by_name(base.namespace, base.name), base, True

    def find_restricted_type(self, node: SchemaNode) -> Optional[SchemaNode]:
        """Type definition named by the ``base`` of ``node``'s restriction.

        An anonymous simpleType nested in a base-less restriction is returned
        as the base. ``list``/``union`` derivations yield ``None`` here; the
        chain walkers raise :class:`UnsupportedDerivationKind` for them.
        """
        base, _, _ = self._restriction_base(node)
        return base

    def find_extended_type(self, node: SchemaNode) -> Optional[SchemaNode]:
        """Type definition named by the ``base`` of a complexType's extension."""
        if node.kind is not NodeKind.COMPLEX_TYPE:
            return None
        derivation = schema_tree.get_derivation(node)
        if derivation is None or derivation.kind is not NodeKind.EXTENSION:
            return None
        base = schema_tree.get_type_from_node_attr(derivation, "base")
        if base is None:
            return None
        return self.find_type_by_name(base.namespace, base.name)

    @staticmethod
    def _ensure_restriction_derivation(node: SchemaNode) -> None:
        if node.kind is not NodeKind.SIMPLE_TYPE:
            return
        derivation = schema_tree.get_derivation(node)
        if derivation is not None and derivation.local_name in ("list", "union"):
            raise UnsupportedDerivationKind(node.name, derivation.local_name)

    def _restriction_chain(self, node: SchemaNode) -> Tuple[List[SchemaNode], Optional[str]]:
        """Walk restrictions from ``node`` outward.

        Returns:
            The visited definitions (``node`` first) and the local name of the
            terminal base, or ``None`` when a restriction has no usable base.
        """
        guard = _ChainGuard(node, self.config.max_chain_depth, "restriction")
        current = node
        while True:
            self._ensure_restriction_derivation(current)
            base, base_name, has_restriction = self._restriction_base(current)
            if not has_restriction:
                return guard.chain, current.name
            if base is None:
                if base_name is None:
                    logger.warning(
                        f"Restriction in type '{current.name}' has no base attribute "
                        "and no inline simpleType"
                    )
                    return guard.chain, None
                return guard.chain, base_name.name
            guard.step(base)
            current = base

    def find_base_type_for(self, node: SchemaNode) -> Optional[str]:
        """Follow restrictions until the base can no longer be resolved.

        Args:
            node: The type definition to start from.

        Returns:
            The local name of the terminal base (``string``, ``decimal``,
            ``dateTime``...). A node without a restriction returns its own
            name. ``None`` means a restriction along the way was malformed.

        Raises:
            MalformedChainError: On a cyclic or over-deep chain.
            UnsupportedDerivationKind: If the chain reaches a list/union type.
        """
        _, terminal = self._restriction_chain(node)
        return terminal

    def collect_facets(self, simple_type: SchemaNode) -> List[FacetGroup]:
        """Collect facets along the restriction chain of ``simple_type``.

        A non-enumeration facet declared nearer the start of the chain hides
        same-kind facets of farther ancestors. Fixed facets (``fixed="true"``
        and every ``assertion``) neither hide nor get hidden: they are always
        recorded. Enumerations accumulate per level.

        Returns:
            One :class:`FacetGroup` per level that contributed facets, most
            derived first.

        Raises:
            MalformedChainError: On a cyclic or over-deep chain.
            UnsupportedDerivationKind: If the chain reaches a list/union type.
        """
        chain, _ = self._restriction_chain(simple_type)
        groups: List[FacetGroup] = []
        overridden: Set[str] = set()
        for level, type_node in enumerate(chain):
            group = FacetGroup(level=level, type_node=type_node)
            declared: Set[str] = set()
            for facet in schema_tree.find_restricting_facets(type_node):
                kind = facet.local_name
                if kind == "enumeration" or facet.is_fixed:
                    group.add(facet)
                elif kind in overridden:
                    logger.debug(
                        f"Facet {kind} of '{type_node.name}' overridden by a derived type"
                    )
                else:
                    group.add(facet)
                    declared.add(kind)
            overridden |= declared
            if len(group):
                groups.append(group)
        return groups

    def _extension_chain(self, complex_type: SchemaNode) -> List[SchemaNode]:
        guard = _ChainGuard(complex_type, self.config.max_chain_depth, "extension")
        current = self.find_extended_type(complex_type)
        while current is not None:
            guard.step(current)
            current = self.find_extended_type(current)
        return guard.chain

    def get_complex_type_elements(self, complex_type: SchemaNode) -> List[SchemaNode]:
        """Element particles of ``complex_type`` and all of its extension bases.

        The derived type's own particles come first, then each ancestor's.
        Particles are not de-duplicated by name.

        Raises:
            MalformedChainError: On a cyclic or over-deep extension chain.
        """
        elements: List[SchemaNode] = []
        for type_node in self._extension_chain(complex_type):
            elements.extend(schema_tree.get_complex_type_elements(type_node))
        return elements

    def get_complex_type_asserts(self, complex_type: SchemaNode) -> List[SchemaNode]:
        """``xs:assert`` nodes of ``complex_type`` and its extension bases."""
        asserts: List[SchemaNode] = []
        for type_node in self._extension_chain(complex_type):
            asserts.extend(schema_tree.get_complex_type_asserts(type_node))
        return asserts

    # ---------------- Instance mapping ---------------- #

    def _referenced_element(self, particle: SchemaNode) -> Optional[SchemaNode]:
        ref = schema_tree.get_type_from_node_attr(particle, "ref")
        if ref is None:
            return None
        return self.find_element(ref.namespace, ref.name)

    def find_element_type(self, element_node: SchemaNode) -> Optional[SchemaNode]:
        """Type definition of an ``xs:element``: inline type first, then ``type``."""
        if self.config.follow_element_refs and element_node.get("ref"):
            target = self._referenced_element(element_node)
            if target is None:
                return None
            element_node = target
        embedded = schema_tree.get_embedded_type(element_node)
        if embedded is not None:
            return embedded
        return self.find_type_definition_from_node_attr(element_node, "type")

    def find_xsd_sub_node(
        self, definition_node: Optional[SchemaNode], name: str
    ) -> Optional[SchemaNode]:
        """Find the particle named ``name`` inside a definition's content.

        An ``xs:element`` is first redirected to its type. Inherited particles
        are searched after the type's own.
        """
        if definition_node is None:
            return None
        type_node = definition_node
        if definition_node.kind is NodeKind.ELEMENT:
            type_node = self.find_element_type(definition_node)
            if type_node is None:
                return None
        for particle in self.get_complex_type_elements(type_node):
            if particle.name == name:
                return particle
            ref = schema_tree.get_type_from_node_attr(particle, "ref")
            if ref is not None and ref.name == name:
                if not self.config.follow_element_refs:
                    return particle
                return self.find_element(ref.namespace, ref.name)
        return None

    def find_element_for_xml_node(self, instance_node: Any) -> Optional[SchemaNode]:
        """Map an instance element to the ``xs:element`` that governs it.

        Ancestors are collected up to the nearest one carrying ``xsi:type``
        (or the document root). The outermost collected ancestor is resolved
        from its ``xsi:type`` or as a root element; the rest are reached by
        descending one particle per level.

        Returns:
            The governing element definition, or ``None`` if the instance does
            not follow any registered definition.
        """
        if hasattr(instance_node, "getroot"):
            instance_node = instance_node.getroot()
        parents: List[Any] = []

        def _record(current: Any) -> bool:
            parents.append(current)
            return current.get(f"{{{XSI_NAMESPACE}}}type") is not None

        schema_tree.get_first_filtered_ancestor(instance_node, _record)

        if not parents:
            qname = QualifiedName.from_clark(instance_node.tag)
            return self.find_element(qname.namespace, qname.name)

        definition: Optional[SchemaNode] = None
        for index, parent in enumerate(reversed(parents)):
            local_name = etree.QName(parent).localname
            if index == 0:
                if parent.get(f"{{{XSI_NAMESPACE}}}type") is not None:
                    definition = self.find_type_definition_from_node_attr(
                        parent, "type", XSI_NAMESPACE
                    )
                else:
                    qname = QualifiedName.from_clark(parent.tag)
                    definition = self.find_element(qname.namespace, qname.name)
            else:
                definition = self.find_xsd_sub_node(definition, local_name)
            if definition is None:
                logger.debug(f"No schema definition found for instance node '{local_name}'")
                return None

        return self.find_xsd_sub_node(definition, etree.QName(instance_node).localname)

    # ---------------- Introspection ---------------- #

    def summary(self) -> Dict[str, Any]:
        """Namespaces and their registered documents, for diagnostics."""
        return {
            namespace: [tree.source or "<memory>" for tree in self.trees(namespace)]
            for namespace in self.namespaces()
        }
