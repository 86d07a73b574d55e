"""Executable entry point for launching the XSD Catalog FastAPI application.

This module is intentionally minimal so that process managers (uvicorn / gunicorn /
ASGI workers) can import a stable `app` object from `xsd_catalog.app` OR run
`python -m xsd_catalog.run_server` directly for local development.

Environment Variables:
    PORT (int): Override listening port (default 8000).
    XSD_CATALOG_SCHEMAS: XSD files to register, separated by ``os.pathsep``.

Example:
    $ XSD_CATALOG_SCHEMAS=order.xsd python -m xsd_catalog.run_server
    $ PORT=9000 python -m xsd_catalog.run_server
"""

from __future__ import annotations

import os

import uvicorn

from .app import app


def main() -> None:
    """Launch the ASGI server with development-friendly defaults."""
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
