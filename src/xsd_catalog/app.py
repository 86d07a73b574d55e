"""FastAPI application exposing XSD catalog lookups.

Downstream validators and serializers that do not run in-process can query a
shared catalog over HTTP.

Quick start (run the server)::

    XSD_CATALOG_SCHEMAS=order.xsd:common.xsd uvicorn xsd_catalog.run_server:app --reload

Core endpoints (REST):

    GET  /health                 Basic health probe
    GET  /namespaces             Registered namespaces + document sources
    GET  /elements               Top-level element by namespace + name
    GET  /types                  Named type by namespace + name
    GET  /types/base             Primitive base of a simpleType
    GET  /types/facets           Effective facets of a simpleType
    GET  /types/elements         Flattened particles of a complexType
    POST /resolve                Element definition for an instance node
    GET  /config/resolver        Current resolver configuration

Example: primitive base of a derived type::

    curl "http://localhost:8000/types/base?namespace=urn:shop&name=Price"

Example: resolve an instance node::

    curl -X POST http://localhost:8000/resolve \
         -H "Content-Type: application/json" \
         -d '{"document": "<o:Order xmlns:o=\\"urn:shop\\">...</o:Order>",
              "xpath": "/o:Order/o:Line", "namespaces": {"o": "urn:shop"}}'

Configuration:
    * ``XSD_CATALOG_SCHEMAS`` - XSD paths separated by ``os.pathsep``.
    * ``XSD_CATALOG_CONFIG`` - comma-separated ``key=value`` overrides for
      :class:`~xsd_catalog.catalog.ResolverConfig`
      (e.g. ``max_chain_depth=16,follow_element_refs=false``).

Error handling:
    * 404 responses carry ``{"error": "Not Found", "detail": ..., "path": ...}``.
    * Malformed or unsupported derivation chains answer 422.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from lxml import etree
from pydantic import BaseModel, Field

from . import __version__
from .catalog import ResolverConfig, SchemaCatalog
from .exceptions import CatalogError
from .models import SchemaNode
from .schema_tree import parse_xml

logger = logging.getLogger(__name__)


def _get_resolver_config() -> ResolverConfig:
    """Get resolver configuration from environment variables."""
    config_str = os.getenv("XSD_CATALOG_CONFIG", "")
    config = ResolverConfig()

    if config_str:
        for pair in config_str.split(","):
            if "=" in pair:
                key, value = pair.split("=", 1)
                key = key.strip()
                value = value.strip()
                if hasattr(config, key):
                    if key.startswith("max_"):
                        setattr(config, key, int(value))
                    else:
                        setattr(config, key, value.lower() == "true")

    return config


def _get_schema_paths() -> List[Path]:
    raw = os.getenv("XSD_CATALOG_SCHEMAS", "")
    return [Path(item) for item in raw.split(os.pathsep) if item.strip()]


RESOLVER_CONFIG = _get_resolver_config()

app = FastAPI(
    title="XSD Catalog API",
    version=__version__,
    description="Lookups of XML Schema element and type definitions across namespaces",
    docs_url="/docs",
    redoc_url="/redoc",
)


class NodeResponse(BaseModel):
    """Serialized schema node."""

    kind: str = Field(..., description="Node kind (element, complexType, simpleType...)")
    local_name: str = Field(..., description="XSD tag local name")
    name: Optional[str] = Field(None, description="Value of the name attribute")
    target_namespace: Optional[str] = Field(
        None, description="Namespace the defining document is registered under"
    )
    attributes: Dict[str, str] = Field(default_factory=dict)
    line: Optional[int] = Field(None, description="Source line in the schema document")


class BaseTypeResponse(BaseModel):
    """Response model for the base type endpoint."""

    namespace: str
    name: str
    base_type: Optional[str] = Field(
        None, description="Terminal base type name; null if the chain is broken"
    )


class ResolveRequest(BaseModel):
    """Request model for instance node resolution."""

    document: str = Field(..., description="XML instance document text")
    xpath: str = Field(..., description="XPath selecting the instance node")
    namespaces: Dict[str, str] = Field(
        default_factory=dict, description="Prefix bindings used by the XPath"
    )


class ResolverConfigResponse(BaseModel):
    """Response model for resolver configuration."""

    max_chain_depth: int = Field(..., description="Current max chain depth")
    follow_element_refs: bool = Field(..., description="Whether element refs are followed")


class CatalogRepository:
    """Own one :class:`SchemaCatalog` for the lifetime of the application.

    Args:
        schema_paths: XSD files to register in order.
        config: Resolver configuration.
        catalog: Prebuilt catalog; when given, ``schema_paths`` is ignored.
    """

    def __init__(
        self,
        schema_paths: Optional[List[Path]] = None,
        config: Optional[ResolverConfig] = None,
        catalog: Optional[SchemaCatalog] = None,
    ) -> None:
        self.config = config or ResolverConfig()
        if catalog is not None:
            self.catalog = catalog
            self.config = catalog.config
        else:
            paths = list(schema_paths or [])
            logger.info(f"Loading {len(paths)} schema document(s)")
            self.catalog = SchemaCatalog.from_paths(paths, config=self.config)

    def require_type(self, namespace: str, name: str) -> SchemaNode:
        node = self.catalog.find_type_by_name(namespace, name)
        if node is None:
            raise HTTPException(status_code=404, detail=f"Type {{{namespace}}}{name} not found")
        return node


@lru_cache(maxsize=1)
def get_repository() -> CatalogRepository:
    return CatalogRepository(_get_schema_paths(), config=RESOLVER_CONFIG)


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Custom 404 handler with more helpful error messages."""
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "detail": (
                str(exc.detail)
                if hasattr(exc, "detail")
                else "The requested resource was not found"
            ),
            "path": str(request.url.path),
        },
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request, exc: CatalogError):
    """Report malformed or unsupported derivation chains."""
    return JSONResponse(
        status_code=422,
        content={
            "error": type(exc).__name__,
            "detail": str(exc),
            "chain": getattr(exc, "chain", None),
            "path": str(request.url.path),
        },
    )


@app.get("/health")
def health() -> Dict[str, Any]:
    """Health check endpoint."""
    try:
        repo = get_repository()
        return {"status": "healthy", "namespaces": len(repo.catalog.namespaces())}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


@app.get("/namespaces")
def namespaces(repo: CatalogRepository = Depends(get_repository)) -> Dict[str, Any]:
    """Registered namespaces and their documents in search order."""
    return {"namespaces": repo.catalog.summary()}


@app.get("/elements", response_model=NodeResponse)
def element(
    namespace: str = Query(..., description="Target namespace URI"),
    name: str = Query(..., description="Element name"),
    repo: CatalogRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Find a top-level element definition."""
    node = repo.catalog.find_element(namespace, name)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Element {{{namespace}}}{name} not found")
    return node.to_dict()


@app.get("/types", response_model=NodeResponse)
def type_definition(
    namespace: str = Query(..., description="Target namespace URI"),
    name: str = Query(..., description="Type name"),
    repo: CatalogRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Find a named complexType or simpleType."""
    return repo.require_type(namespace, name).to_dict()


@app.get("/types/base", response_model=BaseTypeResponse)
def base_type(
    namespace: str = Query(..., description="Target namespace URI"),
    name: str = Query(..., description="Type name"),
    repo: CatalogRepository = Depends(get_repository),
) -> BaseTypeResponse:
    """Resolve the primitive base of a simpleType.

    Example::

        curl "http://localhost:8000/types/base?namespace=urn:shop&name=Price"
    """
    node = repo.require_type(namespace, name)
    return BaseTypeResponse(
        namespace=namespace, name=name, base_type=repo.catalog.find_base_type_for(node)
    )


@app.get("/types/facets")
def facets(
    namespace: str = Query(..., description="Target namespace URI"),
    name: str = Query(..., description="Type name"),
    repo: CatalogRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Effective facets of a simpleType, one group per inheritance level."""
    node = repo.require_type(namespace, name)
    groups = repo.catalog.collect_facets(node)
    return {"type": name, "groups": [group.to_dict() for group in groups]}


@app.get("/types/elements")
def complex_type_elements(
    namespace: str = Query(..., description="Target namespace URI"),
    name: str = Query(..., description="Type name"),
    repo: CatalogRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Particles and assertions of a complexType including inherited ones."""
    node = repo.require_type(namespace, name)
    return {
        "type": name,
        "elements": [particle.to_dict() for particle in repo.catalog.get_complex_type_elements(node)],
        "asserts": [item.to_dict() for item in repo.catalog.get_complex_type_asserts(node)],
    }


@app.post("/resolve", response_model=NodeResponse)
def resolve(
    request: ResolveRequest,
    repo: CatalogRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Find the element definition governing an instance node."""
    try:
        document = parse_xml(request.document)
        matches = document.xpath(request.xpath, namespaces=request.namespaces or None)
    except (etree.XMLSyntaxError, etree.XPathError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not isinstance(matches, list):
        matches = []
    nodes = [match for match in matches if isinstance(match, etree._Element)]
    if not nodes:
        raise HTTPException(status_code=404, detail=f"No instance node matches {request.xpath}")
    node = repo.catalog.find_element_for_xml_node(nodes[0])
    if node is None:
        raise HTTPException(
            status_code=404,
            detail=f"No schema definition governs {request.xpath}",
        )
    return node.to_dict()


@app.get("/config/resolver")
def get_resolver_config(
    repo: CatalogRepository = Depends(get_repository),
) -> ResolverConfigResponse:
    """Get current resolver configuration."""
    return ResolverConfigResponse(
        max_chain_depth=repo.config.max_chain_depth,
        follow_element_refs=repo.config.follow_element_refs,
    )
