"""API Key Authentication — resolves the authenticated-user value for a request.

Invariants:
    - Keys are stored hashed (sha256), never in clear
    - An absent, unknown or revoked key yields an anonymous request (user None);
      denial is the permission gate's job, not authentication's
    - A user already placed in the ASGI scope by upstream middleware wins

Design Decisions:
    - Registry on app.state instead of module globals: one per app, test-isolated
"""

import hashlib
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    key_id: str
    roles: frozenset[str] = frozenset()


def hash_key(key: str) -> str:
    """Hash an API key for storage."""
    return hashlib.sha256(key.encode()).hexdigest()


class ApiKeyRegistry:
    """Maps API keys to the roles they grant."""

    def __init__(self, keys: Mapping[str, Iterable[str]] | None = None):
        self._keys: dict[str, frozenset[str]] = {}
        for key, roles in (keys or {}).items():
            self.register(key, roles)

    def register(self, key: str, roles: Iterable[str] = ()) -> None:
        self._keys[hash_key(key)] = frozenset(roles)

    def revoke(self, key: str) -> None:
        self._keys.pop(hash_key(key), None)

    def authenticate(self, key: str | None) -> AuthenticatedUser | None:
        if not key:
            return None
        key_hash = hash_key(key)
        roles = self._keys.get(key_hash)
        if roles is None:
            return None
        return AuthenticatedUser(key_id=key_hash[:12], roles=roles)


async def resolve_user(
    request: Request, api_key: str | None = Security(api_key_header),
):
    """FastAPI dependency: the authenticated user, or None."""
    scoped = request.scope.get("user")
    if scoped is not None and getattr(scoped, "is_authenticated", True):
        return scoped
    registry: ApiKeyRegistry | None = getattr(request.app.state, "api_keys", None)
    if registry is None or not api_key:
        return None
    user = registry.authenticate(api_key)
    if user is None:
        logger.warning("Invalid API key attempt on %s", request.url.path)
    return user
