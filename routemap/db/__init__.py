"""Database Package — SQLAlchemy declarative base.

Invariants:
    - Base is the single source of truth for table metadata
"""
