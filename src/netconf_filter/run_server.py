"""Executable entry point for launching the filter FastAPI application.

Process managers can import the stable ``app`` object from
``netconf_filter.app`` or run ``python -m netconf_filter.run_server``
directly for local development.

Environment Variables:
    PORT (int): Override listening port (default 8000).
    NETCONF_FILTER_REGISTRY: Module registry JSON file (see ``config``).

Example:
    $ NETCONF_FILTER_REGISTRY=modules.json python -m netconf_filter.run_server
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
