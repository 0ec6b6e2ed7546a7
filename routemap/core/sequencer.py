"""Sequencer — drains one request's callstack, gated by its permission predicate.

Invariants:
    - The permission gate (if any) is decided before any step runs; a denial
      ends the drain with zero steps executed
    - Steps run one at a time, last-pushed first (the callstack is a stack)
    - CALL is appended before each invocation, RETURN (with the value) after success
    - The first failure appends ERROR and propagates; remaining steps are abandoned
    - No local recovery: every failure reaches the caller (RouteMap.make_response)

Design Decisions:
    - Plain await loop over recursion: no stack growth on long callstacks,
      identical one-in-flight semantics
    - Synchronous steps are tolerated (a non-awaitable return is used as-is)
"""

import inspect
from typing import Any, TYPE_CHECKING

from routemap.core.events import EventName
from routemap.core.permissions import permission_name
from routemap.core.protocols import Permission, ResponseSink, Step

if TYPE_CHECKING:
    from routemap.core.route_map import RouteMap


def step_name(step: Step) -> str:
    """Identifying name for the event trail and logs."""
    name = getattr(step, "__name__", None)
    if name is None:
        name = getattr(getattr(step, "func", None), "__name__", None)
    return name or "<anonymous step>"


async def drain(route_map: "RouteMap", response: ResponseSink) -> None:
    """Run the gate, then every pending step. Raises the first failure."""
    gate = route_map.permission_gate
    if gate is not None:
        await _check_permission(route_map, gate)
    while route_map.pending:
        await _run_step(route_map, route_map.pop(), response)


async def _check_permission(route_map: "RouteMap", gate: Permission) -> None:
    name = permission_name(gate)
    log = route_map.request.logger
    route_map.add_event(EventName.CALL, {"name": name})
    try:
        await gate.has_permission(route_map.request)
    except Exception as e:
        route_map.add_event(EventName.ERROR, {"name": name})
        log.info("Permission %s denied: %s", name, e, extra={"step": name})
        raise
    route_map.add_event(EventName.RETURN, {"name": name, "return": None})


async def _run_step(
    route_map: "RouteMap", step: Step, response: ResponseSink,
) -> Any:
    name = step_name(step)
    log = route_map.request.logger
    route_map.add_event(EventName.CALL, {"name": name})
    log.info("Running step %s", name, extra={"step": name})
    try:
        data = step(route_map, response)
        if inspect.isawaitable(data):
            data = await data
    except Exception:
        route_map.add_event(EventName.ERROR, {"name": name})
        raise
    route_map.add_event(EventName.RETURN, {"name": name, "return": data})
    route_map.record_result(data)
    log.info("Step %s completed successfully", name, extra={"step": name})
    return data
