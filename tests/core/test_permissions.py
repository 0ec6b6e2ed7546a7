"""Permission Algebra — authenticated/roles predicates and AND/OR composition.

Tests cover:
    - AuthenticatedPermission allows with a user, raises Unauthorized without
    - RolesPermission any-of / all-of semantics, dict and attribute users
    - AND short-circuits on the first denial
    - OR short-circuits on the first allow; surfaces the SECOND failure when both deny
    - Composition is recursive (composed predicates compose again)
"""

from types import SimpleNamespace

import pytest

from routemap.core.errors import ForbiddenError, UnauthorizedError
from routemap.core.permissions import (
    AllowAny,
    AuthenticatedPermission,
    RolesPermission,
    and_permission,
    or_permission,
    permission_name,
)

from tests.fakes import RecordingPermission, make_request


async def test_authenticated_allows_request_with_user():
    await AuthenticatedPermission().has_permission(make_request(user={"id": 1}))


async def test_authenticated_rejects_anonymous_request():
    with pytest.raises(UnauthorizedError, match="No user found"):
        await AuthenticatedPermission().has_permission(make_request())


async def test_authenticated_keeps_options():
    assert AuthenticatedPermission({"realm": "api"}).options == {"realm": "api"}


async def test_allow_any_allows_anonymous():
    await AllowAny().has_permission(make_request())


async def test_roles_any_of_with_attribute_user():
    user = SimpleNamespace(roles=["editor"])
    await RolesPermission(["admin", "editor"]).has_permission(make_request(user=user))


async def test_roles_all_of_requires_every_role():
    request = make_request(user={"roles": ["admin"]})
    with pytest.raises(ForbiddenError, match="reviewer"):
        await RolesPermission(["admin", "reviewer"], require_all=True).has_permission(request)


async def test_roles_rejects_user_without_roles():
    with pytest.raises(ForbiddenError):
        await RolesPermission(["admin"]).has_permission(make_request(user={"id": 1}))


async def test_roles_rejects_anonymous_as_unauthorized():
    with pytest.raises(UnauthorizedError):
        await RolesPermission(["admin"]).has_permission(make_request())


# ─── AND ─────────────────────────────────────────────────────────

async def test_and_allows_when_both_allow():
    first, second = RecordingPermission(), RecordingPermission()
    await and_permission(first, second).has_permission(make_request())
    assert (first.calls, second.calls) == (1, 1)


async def test_and_never_evaluates_second_when_first_denies():
    first = RecordingPermission(UnauthorizedError())
    second = RecordingPermission()
    with pytest.raises(UnauthorizedError):
        await and_permission(first, second).has_permission(make_request())
    assert second.calls == 0


async def test_and_propagates_second_failure():
    second = RecordingPermission(ForbiddenError("nope"))
    with pytest.raises(ForbiddenError):
        await and_permission(RecordingPermission(), second).has_permission(make_request())


# ─── OR ──────────────────────────────────────────────────────────

async def test_or_never_evaluates_second_when_first_allows():
    first, second = RecordingPermission(), RecordingPermission(ForbiddenError())
    await or_permission(first, second).has_permission(make_request())
    assert second.calls == 0


async def test_or_allows_when_only_second_allows():
    first = RecordingPermission(UnauthorizedError())
    second = RecordingPermission()
    await or_permission(first, second).has_permission(make_request())
    assert (first.calls, second.calls) == (1, 1)


async def test_or_surfaces_second_failure_when_both_deny():
    first = RecordingPermission(UnauthorizedError("first"))
    second = RecordingPermission(ForbiddenError("second"))
    with pytest.raises(ForbiddenError, match="second"):
        await or_permission(first, second).has_permission(make_request())


# ─── Composition ─────────────────────────────────────────────────

async def test_composed_predicates_compose_again():
    admin_or_editor = or_permission(
        RolesPermission(["admin"]), RolesPermission(["editor"]),
    )
    gate = and_permission(AuthenticatedPermission(), admin_or_editor)
    await gate.has_permission(make_request(user={"roles": ["editor"]}))
    with pytest.raises(ForbiddenError):
        await gate.has_permission(make_request(user={"roles": ["viewer"]}))
    with pytest.raises(UnauthorizedError):
        await gate.has_permission(make_request())


def test_permission_names_describe_composition():
    gate = or_permission(AuthenticatedPermission(), RolesPermission(["b", "a"]))
    assert permission_name(gate) == "Or(AuthenticatedPermission, RolesPermission(a, b))"
    assert permission_name(RecordingPermission(name="custom")) == "custom"
