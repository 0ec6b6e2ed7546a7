"""API Layer — FastAPI integration: per-request RouteMap, sinks, routes, error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every route that uses a RouteMap returns the value of make_response()

Design Decisions:
    - Thin routes: handlers only push steps and set flags; the core does the rest
"""
