"""Route Modules — one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Business logic lives in steps pushed onto the RouteMap, not in the route body
"""
