"""XSD Catalog
===========

Resolution engine for XML Schema type information. Given a namespace-qualified
element or type name it locates the defining schema node, follows
restriction/extension chains, merges facets, and maps XML instance nodes back
to the schema element that governs them.

Key capabilities
----------------
- Register any number of XSD documents per target namespace; the first
  registered match wins on lookup.
- Built-in base-type schema (derived XML Schema types such as ``integer`` or
  ``token``) registered automatically.
- Restriction chains resolved to their primitive base, with facet override
  rules applied per inheritance level.
- Extension chains flattened into particle and assertion lists.
- Instance-to-definition mapping that honors ``xsi:type`` overrides.
- Optional FastAPI surface and a small command line front end.

Design principles
-----------------
1. **Not found is not an error** - lookups return ``None``.
2. **Untrusted schemas** - every chain walk is bounded and raises
   :class:`~xsd_catalog.exceptions.MalformedChainError` on cycles.
3. **Non-owning views** - :class:`~xsd_catalog.models.SchemaNode` wraps parsed
   lxml elements without copying them.

Minimal quick start
-------------------
>>> from xsd_catalog import SchemaCatalog
>>> catalog = SchemaCatalog()
>>> catalog.find_base_type_for(catalog.find_type_by_name(
...     "http://www.w3.org/2001/XMLSchema", "unsignedByte"))
'decimal'

Public surface
--------------
Only a curated subset is exported at the package level to keep the import
surface stable; advanced modules can be imported explicitly.
"""

__version__ = "0.1.0"

from .catalog import ResolverConfig, SchemaCatalog
from .exceptions import (
    CatalogError,
    InvalidSchemaError,
    MalformedChainError,
    UnsupportedDerivationKind,
)
from .models import (
    XS_NAMESPACE,
    XSI_NAMESPACE,
    FacetGroup,
    NodeKind,
    QualifiedName,
    SchemaNode,
)
from .namespace_store import NamespaceStore
from .schema_tree import SchemaTree

__all__ = [
    "SchemaCatalog",
    "ResolverConfig",
    "SchemaTree",
    "NamespaceStore",
    "SchemaNode",
    "NodeKind",
    "QualifiedName",
    "FacetGroup",
    "CatalogError",
    "InvalidSchemaError",
    "MalformedChainError",
    "UnsupportedDerivationKind",
    "XS_NAMESPACE",
    "XSI_NAMESPACE",
]
