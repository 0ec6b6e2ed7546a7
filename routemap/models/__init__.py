"""ORM Models — SQLAlchemy declarative models for the reference resources.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so metadata is complete before create_all
"""

from routemap.models.user import User  # noqa: F401
