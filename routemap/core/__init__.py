"""Core Layer — execution context, permission algebra, error taxonomy.

Invariants:
    - No module in core/ imports from api/, infrastructure/, models/ or db/
    - No framework imports (FastAPI, Starlette, SQLAlchemy) — collaborators
      are reached through the Protocols in core/protocols.py

Design Decisions:
    - Pure functions wherever possible (pagination, response shaping, failure
      records); only the sequencer and permissions are async because steps do IO
"""
