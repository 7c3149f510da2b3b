"""FastAPI application exposing NETCONF filter resolution.

A NETCONF front end (or any tool that wants to preview what a filter will
select) posts a filter and receives the XPath expressions the datastore
would evaluate.

Quick start (run the server)::

    NETCONF_FILTER_REGISTRY=modules.json uvicorn netconf_filter.app:app --reload

Core endpoints:

    GET  /health               Basic health probe + registry size
    GET  /modules              Registered schema modules
    POST /filters              Resolve a filter given as JSON
    POST /filters/xml          Resolve a raw <filter> element
    GET  /metrics/performance  Cache, endpoint and filter build metrics
    POST /metrics/reset        Reset metrics (tests)

Examples::

    # Subtree filter
    curl -X POST http://localhost:8000/filters \
         -H "Content-Type: application/json" \
         -d '{"subtree": "<interfaces xmlns=\\"urn:ietf:params:xml:ns:yang:ietf-interfaces\\"/>"}'

    # XPath filter
    curl -X POST http://localhost:8000/filters \
         -H "Content-Type: application/json" \
         -d '{"type": "xpath", "select": "/ietf-interfaces:interfaces"}'

    # Raw filter element
    curl -X POST http://localhost:8000/filters/xml \
         -H "Content-Type: application/xml" \
         --data '<filter type="subtree"><interfaces xmlns="urn:ietf:params:xml:ns:yang:ietf-interfaces"/></filter>'

Error handling:
    * Filter errors return HTTP 400 with ``{error, error_tag, detail}``; the
      ``error_tag`` is the NETCONF rpc-error tag a server would report.
    * 404 and 500 are wrapped with JSON payloads.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import load_config_from_env
from .dispatcher import FilterCarrier
from .errors import FilterError
from .monitoring import get_monitor
from .service import FilterService

logger = logging.getLogger(__name__)

app = FastAPI(
    title="NETCONF Filter API",
    version=__version__,
    description="Resolve NETCONF subtree and XPath filters into datastore XPath expressions",
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def monitor_requests(request: Request, call_next):
    """Record latency and status of every request."""
    start_time = time.time()
    response = await call_next(request)
    response_time = time.time() - start_time

    monitor = get_monitor()
    endpoint = f"{request.method} {request.url.path}"
    monitor.record_endpoint_request(endpoint, response_time, response.status_code)

    response.headers["X-Response-Time"] = f"{response_time:.3f}s"
    response.headers["X-API-Version"] = __version__
    return response


class FilterRequest(BaseModel):
    """Request model for the JSON filter endpoint."""

    type: Optional[str] = Field(
        None, description="Filter type: 'xpath' or 'subtree' (default)"
    )
    select: Optional[str] = Field(None, description="XPath expression of an xpath filter")
    subtree: Optional[str] = Field(None, description="XML content of a subtree filter")


class FilterResponse(BaseModel):
    """Response model carrying the resolved expressions."""

    type: str = Field(..., description="Filter type that was applied")
    filters: List[str] = Field(
        default_factory=list,
        description="XPath expressions; empty means select everything",
    )
    count: int = Field(..., description="Number of expressions")


class ModuleInfo(BaseModel):
    """One registered schema module."""

    name: str
    namespace: str
    revision: Optional[str] = None
    top_level_nodes: List[str] = Field(default_factory=list)


@lru_cache(maxsize=1)
def get_service() -> FilterService:
    config = load_config_from_env()
    logging.getLogger("netconf_filter").setLevel(config.log_level)
    return FilterService.from_config(config)


@app.exception_handler(FilterError)
async def filter_error_handler(request: Request, exc: FilterError):
    """Translate filter errors into 400 responses."""
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.get("/health")
def health() -> Dict[str, Any]:
    """Health check endpoint."""
    try:
        service = get_service()
        return {
            "status": "healthy",
            "modules": service.module_count,
            "registry": service.source,
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}


@app.get("/modules")
def modules(service: FilterService = Depends(get_service)) -> Dict[str, Any]:
    """List the schema modules subtree filters are resolved against."""
    entries = [
        ModuleInfo(
            name=module.name,
            namespace=module.namespace,
            revision=module.revision,
            top_level_nodes=module.top_level_nodes,
        )
        for module in getattr(service.resolver, "modules", [])
    ]
    return {"modules": [entry.model_dump() for entry in entries], "count": len(entries)}


@app.post("/filters", response_model=FilterResponse)
def resolve_filter(
    request: FilterRequest, service: FilterService = Depends(get_service)
) -> FilterResponse:
    """Resolve a filter described as JSON.

    Example::

        curl -X POST http://localhost:8000/filters \
             -H "Content-Type: application/json" \
             -d '{"subtree": "<top xmlns=\\"urn:example\\"><a>val</a></top>"}'
    """
    attributes: Dict[str, str] = {}
    if request.type is not None:
        attributes["type"] = request.type
    if request.select is not None:
        attributes["select"] = request.select
    carrier = FilterCarrier(attributes=attributes, payload=request.subtree)
    filters = service.build(carrier)
    return FilterResponse(
        type=carrier.filter_type, filters=filters.to_list(), count=len(filters)
    )


@app.post("/filters/xml", response_model=FilterResponse)
async def resolve_filter_xml(
    request: Request, service: FilterService = Depends(get_service)
) -> FilterResponse:
    """Resolve a raw ``<filter>`` element posted as the request body."""
    carrier = service.decode_carrier(await request.body())
    filters = service.build(carrier)
    return FilterResponse(
        type=carrier.filter_type, filters=filters.to_list(), count=len(filters)
    )


@app.get("/metrics/performance")
def get_performance_metrics():
    """Get cache, endpoint and filter build metrics."""
    return get_monitor().get_performance_summary()


@app.post("/metrics/reset")
def reset_metrics():
    """Reset all performance metrics (useful for testing)."""
    get_monitor().reset_metrics()
    return {
        "message": "All metrics have been reset",
        "timestamp": datetime.now().isoformat(),
    }


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


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Custom 500 handler for internal errors."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred processing your request",
        },
    )
