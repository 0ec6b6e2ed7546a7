"""Permission Algebra — composable asynchronous access-control predicates.

Invariants:
    - has_permission(request) returns None to allow, raises a typed error to deny
    - AND(P, Q): P first; Q is never evaluated when P denies
    - OR(P, Q): P first; Q is never evaluated when P allows; when both deny,
      Q's error surfaces and P's is discarded
    - Composition is sequential — no predicate runs concurrently with another
    - Composed predicates satisfy the same Permission protocol (closed, recursive)

Design Decisions:
    - Independent variants, no base class: each keeps only its own configuration
    - OR surfaces the LAST failure, not the most informative one — kept as-is so
      callers relying on Q's error (e.g. Forbidden after Unauthorized) keep working
"""

from collections.abc import Iterable, Mapping
from typing import Any

from routemap.core.errors import ForbiddenError, UnauthorizedError
from routemap.core.protocols import Permission
from routemap.core.request import InboundRequest


def permission_name(permission: Permission) -> str:
    """Readable name for the event trail."""
    return getattr(permission, "name", None) or type(permission).__name__


def _user_roles(user: Any) -> set[str]:
    if isinstance(user, Mapping):
        roles = user.get("roles")
    else:
        roles = getattr(user, "roles", None)
    return set(roles or ())


class AllowAny:
    """Always allows. Useful as the neutral element of AND."""

    async def has_permission(self, request: InboundRequest) -> None:
        return None


class AuthenticatedPermission:
    """Allows iff the request carries an authenticated user."""

    def __init__(self, options: Mapping[str, Any] | None = None):
        self.options = dict(options or {})

    async def has_permission(self, request: InboundRequest) -> None:
        if not request.user:
            raise UnauthorizedError("No user found")


class RolesPermission:
    """Allows iff the authenticated user holds the required role(s).

    With require_all=False (default) any one of `roles` is enough.
    """

    def __init__(self, roles: Iterable[str], require_all: bool = False):
        self.roles = frozenset(roles)
        self.require_all = require_all
        self.name = f"RolesPermission({', '.join(sorted(self.roles))})"

    async def has_permission(self, request: InboundRequest) -> None:
        if not request.user:
            raise UnauthorizedError("No user found")
        held = _user_roles(request.user)
        granted = (
            self.roles.issubset(held) if self.require_all
            else bool(self.roles & held)
        )
        if not granted:
            missing = sorted(self.roles - held)
            raise ForbiddenError(f"Missing required role(s): {', '.join(missing)}")


class AndPermission:
    def __init__(self, first: Permission, second: Permission):
        self.first = first
        self.second = second
        self.name = f"And({permission_name(first)}, {permission_name(second)})"

    async def has_permission(self, request: InboundRequest) -> None:
        await self.first.has_permission(request)
        await self.second.has_permission(request)


class OrPermission:
    def __init__(self, first: Permission, second: Permission):
        self.first = first
        self.second = second
        self.name = f"Or({permission_name(first)}, {permission_name(second)})"

    async def has_permission(self, request: InboundRequest) -> None:
        try:
            await self.first.has_permission(request)
        except Exception:
            await self.second.has_permission(request)


def and_permission(first: Permission, second: Permission) -> AndPermission:
    return AndPermission(first, second)


def or_permission(first: Permission, second: Permission) -> OrPermission:
    return OrPermission(first, second)
