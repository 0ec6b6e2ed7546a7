"""Responder — converts a terminal execution state into exactly one response.

Invariants:
    - Success status: explicit override, else 200
    - Success body: result, or {**page_response, "results": deepcopy(result)} when paged
    - Empty mode OR a None body → status-only response (no JSON)
    - Failure status/body come from describe_failure(): typed → its fields, else 500
    - Failure body is always {"Error": <public message>} — no stack, no state
    - A failure record (store, events, stack, user) is logged before responding
    - DONE is appended immediately before the sink is called, on both paths

Design Decisions:
    - Body shaping is a pure function (build_success_body) so it is testable alone
    - A None result is treated as "no body" — implicit fallback kept for handlers
      whose last step returns nothing (ADR: compatibility over strictness)
"""

import copy
import traceback
from collections.abc import Mapping
from typing import Any, TYPE_CHECKING

from routemap.core.errors import describe_failure
from routemap.core.events import EventName
from routemap.core.protocols import ResponseSink

if TYPE_CHECKING:
    from routemap.core.route_map import RouteMap

DEFAULT_STATUS = 200


def build_success_body(result: Any, page_response: Mapping[str, Any] | None) -> Any:
    """Merge a paged fetch's metadata with a detached copy of the result."""
    if page_response is None:
        return result
    body = dict(page_response)
    body["results"] = copy.deepcopy(result)
    return body


def format_stack(error: BaseException) -> str:
    return "".join(
        traceback.format_exception(type(error), error, error.__traceback__),
    )


def failure_record(route_map: "RouteMap") -> dict[str, Any]:
    """Everything needed to debug a failed request. Server-side only."""
    request = route_map.request
    error = route_map.error
    return {
        "method": request.method,
        "path": request.path,
        "query": request.query,
        "body": request.body,
        "objects": route_map.objects,
        "events": [event.as_dict() for event in route_map.events],
        "result": route_map.result,
        "error_message": str(error) if error is not None else "",
        "error": repr(error),
        "stack": format_stack(error) if error is not None else "",
        "user": request.user or "",
    }


def _category(error: BaseException) -> str | None:
    category = getattr(error, "category", None)
    return category.value if category is not None else None


def respond_success(route_map: "RouteMap", response: ResponseSink) -> Any:
    body = build_success_body(route_map.result, route_map.page_response)
    status = route_map.status_override or DEFAULT_STATUS
    route_map.add_event(EventName.DONE, {})
    route_map.request.logger.info(
        "Returning successful response. Status: %d. Body: %s", status, body,
        extra={"status": status},
    )
    if route_map.is_empty_response or body is None:
        return response.send_status(status)
    return response.send_json(status, body)


def respond_failure(
    route_map: "RouteMap", response: ResponseSink, error: BaseException,
) -> Any:
    status, public_message = describe_failure(error)
    log = route_map.request.logger
    log.error(
        "FAILURE %s %s: %s", route_map.request.method, route_map.request.path, error,
        extra={
            "status": status,
            "error_code": getattr(error, "code", None),
            "error_category": _category(error),
            "failure": failure_record(route_map),
        },
    )
    route_map.add_event(EventName.DONE, {})
    log.info("Returning standard response. Status: %d.", status, extra={"status": status})
    return response.send_json(status, {"Error": public_message})
