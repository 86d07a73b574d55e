"""Core data structures shared by the schema tree and the catalog.

These are thin, non-owning views over parsed schema documents. A
:class:`SchemaNode` never copies XML; it keeps a reference to the lxml element
and to the :class:`~xsd_catalog.schema_tree.SchemaTree` it was found in so
that QName attributes (``type``, ``base``, ``ref``) can be resolved against the
right in-scope namespaces.

Overview:
        * ``QualifiedName`` is the universal lookup key (namespace + local name).
        * ``SchemaNode`` tags an XSD element with a :class:`NodeKind` so the
            resolution code can branch on kind instead of probing tag strings.
        * ``FacetGroup`` collects the facets contributed by one level of a
            simpleType restriction chain, bucketed by facet kind.

Typical use (simplified)::

        from xsd_catalog import SchemaCatalog

        catalog = SchemaCatalog([xsd_text])
        node = catalog.find_type_by_name("urn:example", "PostalCode")
        node.kind            # NodeKind.SIMPLE_TYPE
        node.name            # 'PostalCode'
        payload = node.to_dict()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from lxml import etree

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from .schema_tree import SchemaTree

XS_NAMESPACE = "http://www.w3.org/2001/XMLSchema"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

FACET_NAMES = frozenset(
    {
        "length",
        "minLength",
        "maxLength",
        "pattern",
        "enumeration",
        "whiteSpace",
        "maxInclusive",
        "maxExclusive",
        "minInclusive",
        "minExclusive",
        "totalDigits",
        "fractionDigits",
        "assertion",
        "explicitTimezone",
    }
)


class NodeKind(str, Enum):
    """Kinds of schema nodes the resolver distinguishes."""

    ELEMENT = "element"
    COMPLEX_TYPE = "complexType"
    SIMPLE_TYPE = "simpleType"
    RESTRICTION = "restriction"
    EXTENSION = "extension"
    FACET = "facet"
    ASSERT = "assert"
    OTHER = "other"

    @classmethod
    def classify(cls, namespace: Optional[str], local_name: str) -> "NodeKind":
        if namespace != XS_NAMESPACE:
            return cls.OTHER
        if local_name in FACET_NAMES:
            return cls.FACET
        for kind in (
            cls.ELEMENT,
            cls.COMPLEX_TYPE,
            cls.SIMPLE_TYPE,
            cls.RESTRICTION,
            cls.EXTENSION,
            cls.ASSERT,
        ):
            if kind.value == local_name:
                return kind
        return cls.OTHER


@dataclass(frozen=True)
class QualifiedName:
    """A (namespace URI, local name) pair.

    ``namespace`` is ``""`` for names in no namespace.

    Example:
        >>> qn = QualifiedName("http://www.w3.org/2001/XMLSchema", "string")
        >>> str(qn)
        '{http://www.w3.org/2001/XMLSchema}string'
    """

    namespace: str
    name: str

    @classmethod
    def from_clark(cls, value: str) -> "QualifiedName":
        """Build from ``{uri}local`` (or a bare local name)."""
        if value.startswith("{"):
            namespace, _, name = value[1:].partition("}")
            return cls(namespace, name)
        return cls("", value)

    def __str__(self) -> str:
        if not self.namespace:
            return self.name
        return f"{{{self.namespace}}}{self.name}"


@dataclass(frozen=True, eq=False)
class SchemaNode:
    """Tagged, non-owning handle to one element of a parsed schema document.

    Attributes:
        element: The wrapped lxml element.
        tree: The :class:`SchemaTree` the element belongs to.
        kind: Classification used by the resolver.
        namespace: Namespace URI of the element tag (XS namespace for XSD nodes).
        local_name: Local part of the element tag (``simpleType``, ``pattern``...).
    """

    element: Any
    tree: "SchemaTree"
    kind: NodeKind
    namespace: str
    local_name: str

    @classmethod
    def wrap(cls, element: Any, tree: "SchemaTree") -> "SchemaNode":
        qname = etree.QName(element)
        local_name = qname.localname
        namespace = qname.namespace or ""
        return cls(
            element=element,
            tree=tree,
            kind=NodeKind.classify(namespace, local_name),
            namespace=namespace,
            local_name=local_name,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaNode):
            return NotImplemented
        return self.element is other.element

    def __hash__(self) -> int:
        return hash(self.element)

    def __repr__(self) -> str:
        label = self.name or "<anonymous>"
        return f"SchemaNode({self.local_name} {label!r})"

    @property
    def name(self) -> Optional[str]:
        """Value of the ``name`` attribute, if any."""
        return self.element.get("name")

    @property
    def target_namespace(self) -> str:
        """Namespace the owning tree is registered under."""
        return self.tree.target_namespace

    @property
    def qualified_name(self) -> Optional[QualifiedName]:
        """The component name this node defines, or ``None`` when anonymous."""
        if self.name is None:
            return None
        return QualifiedName(self.target_namespace, self.name)

    @property
    def is_fixed(self) -> bool:
        """True for facets that derived types may not override.

        ``assertion`` facets are always treated as fixed.
        """
        if self.local_name == "assertion":
            return True
        return (self.element.get("fixed") or "").strip() in ("true", "1")

    def get(self, attr: str, default: Optional[str] = None) -> Optional[str]:
        return self.element.get(attr, default)

    def children(self) -> Iterator["SchemaNode"]:
        """Yield XSD child elements, skipping comments and processing instructions."""
        for child in self.element.iterchildren(etree.Element):
            yield SchemaNode.wrap(child, self.tree)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe summary of the node."""
        return {
            "kind": self.kind.value,
            "local_name": self.local_name,
            "name": self.name,
            "target_namespace": self.target_namespace,
            "attributes": {str(k): str(v) for k, v in self.element.attrib.items()},
            "line": self.element.sourceline,
        }


@dataclass
class FacetGroup:
    """Facets contributed by one level of a restriction chain.

    Attributes:
        level: 0 for the type the walk started from, 1 for its base, and so on.
        type_node: The type definition that declared these facets.
        buckets: Facet kind -> facet nodes, in document order. Kinds appear in
            the order they were first recorded at this level.
    """

    level: int
    type_node: SchemaNode
    buckets: Dict[str, List[SchemaNode]] = field(default_factory=dict)

    def add(self, facet: SchemaNode) -> None:
        self.buckets.setdefault(facet.local_name, []).append(facet)

    def kinds(self) -> List[str]:
        return list(self.buckets)

    def get(self, kind: str) -> List[SchemaNode]:
        return list(self.buckets.get(kind, []))

    def values(self, kind: str) -> List[Optional[str]]:
        """Return the ``value`` attributes of every facet of ``kind``."""
        return [facet.get("value") for facet in self.buckets.get(kind, [])]

    @property
    def enumerations(self) -> List[Optional[str]]:
        return self.values("enumeration")

    def __iter__(self) -> Iterator[SchemaNode]:
        for facets in self.buckets.values():
            yield from facets

    def __len__(self) -> int:
        return sum(len(facets) for facets in self.buckets.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "type": self.type_node.name,
            "facets": {
                kind: [
                    {"value": facet.get("value"), "fixed": facet.is_fixed}
                    for facet in facets
                ]
                for kind, facets in self.buckets.items()
            },
        }
