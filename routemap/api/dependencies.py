"""RouteMap Dependency — constructs and attaches one RouteMap per inbound request.

Invariants:
    - At most one RouteMap per request (cached on request.state.route_map)
    - The RouteMap sees a private copy of the query parameters
    - The transaction provider comes from app.state (None → untransacted)
    - Every request gets a request_id (X-Request-ID header or generated)

Design Decisions:
    - Dependency over middleware: FastAPI already caches the request body for
      dependencies, and handlers receive the context explicitly via Depends
"""

import json
import uuid
from typing import Any

from fastapi import Depends, Request

from routemap.api.auth import resolve_user
from routemap.config import get_settings
from routemap.core.request import InboundRequest
from routemap.core.route_map import RouteMap
from routemap.infrastructure.observability import request_logger

REQUEST_ID_HEADER = "X-Request-ID"


async def read_body(request: Request) -> Any:
    """Parsed JSON body, raw text for non-JSON payloads, None when empty."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


async def get_route_map(
    request: Request, user: Any = Depends(resolve_user),
) -> RouteMap:
    """FastAPI dependency for the request's execution context."""
    existing = getattr(request.state, "route_map", None)
    if existing is not None:
        return existing
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
    inbound = InboundRequest(
        method=request.method,
        path=request.url.path,
        query=dict(request.query_params),
        body=await read_body(request),
        user=user,
        logger=request_logger(request_id),
        transaction_provider=getattr(request.app.state, "transaction_provider", None),
    )
    settings = getattr(request.app.state, "settings", None) or get_settings()
    route_map = RouteMap(inbound, settings.pagination_defaults())
    request.state.route_map = route_map
    request.state.request_id = request_id
    return route_map
