"""Node-level queries over a single parsed XSD document.

The catalog never walks raw XML itself; everything it needs from one document
goes through the helpers in this module:

* :class:`SchemaTree` wraps the ``xs:schema`` root of one document and answers
  top-level lookups (``find_element``, ``find_type_by_name``).
* Module functions answer per-node questions (declared ``type`` reference,
  embedded anonymous type, restricting facets, content-model particles) and
  the one instance-side query the catalog needs
  (:func:`get_first_filtered_ancestor`).

Parsing uses ``lxml`` with entity resolution and network access disabled:
schema text is treated as untrusted input.

Example:
        from xsd_catalog.schema_tree import SchemaTree, find_restricting_facets

        tree = SchemaTree.parse(xsd_text)
        zip_code = tree.find_type_by_name("ZipCode")[0]
        [facet.local_name for facet in find_restricting_facets(zip_code)]
        # ['pattern']
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from lxml import etree

from .exceptions import InvalidSchemaError
from .models import XS_NAMESPACE, XSI_NAMESPACE, NodeKind, QualifiedName, SchemaNode

__all__ = [
    "XS_NAMESPACE",
    "XSI_NAMESPACE",
    "SchemaTree",
    "parse_to_dom",
    "parse_xml",
    "get_type_from_node_attr",
    "get_embedded_type",
    "get_first_filtered_ancestor",
    "get_restriction",
    "get_derivation",
    "find_restricting_facets",
    "get_complex_type_content",
    "get_complex_type_elements",
    "get_complex_type_asserts",
]

XS = f"{{{XS_NAMESPACE}}}"
MODEL_GROUPS = ("sequence", "choice", "all")
CONTENT_WRAPPERS = ("complexContent", "simpleContent")

XmlSource = Union[str, bytes]


def _make_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=False,
    )


def parse_xml(text: XmlSource) -> Any:
    """Parse XML text into an lxml root element with the hardened parser.

    Raises:
        etree.XMLSyntaxError: If ``text`` is not well-formed.
    """
    if isinstance(text, str):
        text = text.encode("utf-8")
    return etree.fromstring(text, _make_parser())


class SchemaTree:
    """One parsed schema document.

    Args:
        document: lxml element or element tree whose root is ``xs:schema``.
        target_namespace: Namespace to file the document under; defaults to
            the declared ``targetNamespace``. Supplying one for a schema that
            declares none gives chameleon behavior: its unqualified references
            resolve into the supplied namespace.
        source: Optional label (usually a file path) for logs and summaries.

    Raises:
        InvalidSchemaError: If the root element is not ``xs:schema``.
    """

    def __init__(
        self,
        document: Any,
        target_namespace: Optional[str] = None,
        source: Optional[str] = None,
    ) -> None:
        root = document.getroot() if hasattr(document, "getroot") else document
        if root.tag != f"{XS}schema":
            raise InvalidSchemaError(
                f"Expected an xs:schema root element, found {root.tag!r}"
            )
        self.root = root
        self.declared_namespace: Optional[str] = root.get("targetNamespace")
        self.target_namespace: Optional[str] = (
            target_namespace if target_namespace is not None else self.declared_namespace
        )
        self.source = source

    @classmethod
    def parse(
        cls,
        text: XmlSource,
        target_namespace: Optional[str] = None,
        source: Optional[str] = None,
    ) -> "SchemaTree":
        """Parse XSD text into a :class:`SchemaTree`.

        Raises:
            InvalidSchemaError: If the text is not well-formed XML or is not a
                schema document.
        """
        try:
            root = parse_xml(text)
        except etree.XMLSyntaxError as exc:
            raise InvalidSchemaError(f"Schema is not well-formed XML: {exc}") from exc
        return cls(root, target_namespace=target_namespace, source=source)

    @classmethod
    def from_path(
        cls, path: Union[str, Path], target_namespace: Optional[str] = None
    ) -> "SchemaTree":
        path = Path(path)
        return cls.parse(
            path.read_bytes(), target_namespace=target_namespace, source=str(path)
        )

    def with_namespace(self, target_namespace: str) -> "SchemaTree":
        """Return a view of the same document filed under another namespace."""
        return SchemaTree(self.root, target_namespace=target_namespace, source=self.source)

    def __repr__(self) -> str:
        return f"SchemaTree({self.source or '<memory>'!s}, ns={self.target_namespace!r})"

    @property
    def schema(self) -> SchemaNode:
        return self.node(self.root)

    def node(self, element: Any) -> SchemaNode:
        return SchemaNode.wrap(element, self)

    def find_element(self, name: str) -> Optional[SchemaNode]:
        """Locate a top-level ``xs:element`` by name."""
        for element in self.root.iterchildren(f"{XS}element"):
            if element.get("name") == name:
                return self.node(element)
        return None

    def find_type_by_name(self, name: str) -> List[SchemaNode]:
        """Return every top-level complexType/simpleType named ``name``."""
        return [
            self.node(element)
            for element in self.root.iterchildren(f"{XS}complexType", f"{XS}simpleType")
            if element.get("name") == name
        ]

    def resolve_qname(self, element: Any, value: str) -> QualifiedName:
        """Resolve a ``prefix:local`` attribute value in ``element``'s scope.

        Unprefixed names take the default namespace, falling back to this
        tree's target namespace when the document declares none itself.
        """
        qname = resolve_qname(element, value)
        if not qname.namespace and not self.declared_namespace and self.target_namespace:
            return QualifiedName(self.target_namespace, qname.name)
        return qname


def parse_to_dom(text: XmlSource, target_namespace: Optional[str] = None) -> SchemaTree:
    """Shorthand for :meth:`SchemaTree.parse`."""
    return SchemaTree.parse(text, target_namespace=target_namespace)


def resolve_qname(element: Any, value: str) -> QualifiedName:
    """Resolve a QName-valued attribute against the element's in-scope namespaces.

    An unknown prefix yields a name in no namespace keyed by the raw value's
    local part, which will simply not be found by any lookup.
    """
    value = value.strip()
    prefix, sep, local = value.partition(":")
    if not sep:
        return QualifiedName(element.nsmap.get(None) or "", value)
    namespace = element.nsmap.get(prefix)
    if namespace is None:
        return QualifiedName("", local)
    return QualifiedName(namespace, local)


def _element(node: Union[SchemaNode, Any]) -> Any:
    return node.element if isinstance(node, SchemaNode) else node


def _xs_children(node: SchemaNode, *local_names: str) -> List[SchemaNode]:
    tags = [f"{XS}{name}" for name in local_names]
    return [node.tree.node(child) for child in node.element.iterchildren(*tags)]


def _first_xs_child(node: SchemaNode, *local_names: str) -> Optional[SchemaNode]:
    children = _xs_children(node, *local_names)
    return children[0] if children else None


def get_type_from_node_attr(
    node: Union[SchemaNode, Any], attr_name: str, attr_ns: Optional[str] = None
) -> Optional[QualifiedName]:
    """Read a QName-valued attribute (``type``, ``base``, ``xsi:type``...).

    Args:
        node: A :class:`SchemaNode` or a raw lxml element (instance documents).
        attr_name: Local name of the attribute.
        attr_ns: Namespace of the attribute, e.g. :data:`XSI_NAMESPACE`.

    Returns:
        The resolved :class:`QualifiedName`, or ``None`` if the attribute is absent.
    """
    element = _element(node)
    key = f"{{{attr_ns}}}{attr_name}" if attr_ns else attr_name
    value = element.get(key)
    if not value or not value.strip():
        return None
    if isinstance(node, SchemaNode):
        return node.tree.resolve_qname(element, value)
    return resolve_qname(element, value)


def get_embedded_type(node: SchemaNode) -> Optional[SchemaNode]:
    """Return the anonymous simpleType/complexType declared inside ``node``."""
    return _first_xs_child(node, "simpleType", "complexType")


def get_first_filtered_ancestor(
    node: Any, predicate: Callable[[Any], Any]
) -> Optional[Any]:
    """Walk the ancestors of ``node`` nearest-first.

    ``predicate`` is invoked on every ancestor visited, so callers can record
    the path as it is walked. The walk stops at the first ancestor for which
    the predicate is truthy.

    Returns:
        That ancestor, or ``None`` when the document root was passed without a
        match.
    """
    for ancestor in _element(node).iterancestors(etree.Element):
        if predicate(ancestor):
            return ancestor
    return None


def get_complex_type_content(node: SchemaNode) -> SchemaNode:
    """Unwrap ``complexContent``/``simpleContent``; otherwise return ``node``."""
    wrapper = _first_xs_child(node, *CONTENT_WRAPPERS)
    return wrapper if wrapper is not None else node


def get_derivation(node: SchemaNode) -> Optional[SchemaNode]:
    """Return the derivation child (restriction, extension, list or union)."""
    if node.kind is NodeKind.COMPLEX_TYPE:
        content = get_complex_type_content(node)
        if content is node:
            return None
        return _first_xs_child(content, "restriction", "extension")
    return _first_xs_child(node, "restriction", "list", "union")


def get_restriction(node: SchemaNode) -> Optional[SchemaNode]:
    derivation = get_derivation(node)
    if derivation is not None and derivation.kind is NodeKind.RESTRICTION:
        return derivation
    return None


def find_restricting_facets(node: SchemaNode) -> List[SchemaNode]:
    """Facets declared by the restriction of ``node``, in document order."""
    restriction = get_restriction(node)
    if restriction is None:
        return []
    return [child for child in restriction.children() if child.kind is NodeKind.FACET]


def _content_body(node: SchemaNode) -> SchemaNode:
    if node.kind is not NodeKind.COMPLEX_TYPE:
        return node
    derivation = get_derivation(node)
    return derivation if derivation is not None else node


def _collect_particles(container: SchemaNode, found: List[SchemaNode]) -> None:
    for child in container.children():
        if child.kind is NodeKind.ELEMENT:
            found.append(child)
        elif child.namespace == XS_NAMESPACE and child.local_name in MODEL_GROUPS:
            _collect_particles(child, found)


def get_complex_type_elements(node: SchemaNode) -> List[SchemaNode]:
    """Element particles declared directly by ``node`` (inherited ones excluded).

    Nested sequence/choice/all groups are flattened; the content of nested
    element declarations is not entered.
    """
    found: List[SchemaNode] = []
    _collect_particles(_content_body(node), found)
    return found


def get_complex_type_asserts(node: SchemaNode) -> List[SchemaNode]:
    """XSD 1.1 ``xs:assert`` nodes declared directly by ``node``."""
    body = _content_body(node)
    asserts = _xs_children(body, "assert")
    if body is not node:
        asserts.extend(_xs_children(node, "assert"))
    return asserts
