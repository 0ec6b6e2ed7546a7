"""RouteMap — construction, shared store, response flags, factories, lifecycle.

Tests cover:
    - Construction derives pagination and logs the inbound request
    - add_or_update_object / get_object / contains_key round trip
    - get_object(required=True) on a missing key raises MissingObjectError
    - Serializer flags set mode and status
    - A second set_permission AND-composes with the first
    - make_response is single-use
"""

import logging

import pytest

from routemap.core.errors import (
    BadRequestError,
    EmailAlreadyTakenError,
    ForbiddenError,
    MissingObjectError,
    NotFoundError,
    ResponseAlreadySentError,
    UnauthorizedError,
)
from routemap.core.pagination import PaginationDefaults
from routemap.core.permissions import AndPermission, AuthenticatedPermission, OrPermission, RolesPermission
from routemap.core.route_map import ExecutionState, ResponseMode, RouteMap

from tests.fakes import RecordingPermission, RecordingSink, make_request


def test_construction_derives_page_request_and_fills_query():
    route_map = RouteMap(make_request(query={"page": "2"}))
    assert route_map.page_request.as_dict() == {"page": "2", "pageSize": 10}
    assert route_map.request.query == {"page": "2", "pageSize": 10}


def test_construction_uses_given_pagination_defaults():
    route_map = RouteMap(make_request(), PaginationDefaults(limit=3))
    assert route_map.page_request.limit == 3


def test_construction_logs_processing_request(caplog):
    with caplog.at_level(logging.INFO, logger="tests.request"):
        RouteMap(make_request(method="POST", path="/users", body={"email": "a@b.io"}))
    assert "Processing request POST /users" in caplog.text
    assert "a@b.io" in caplog.text


def test_initial_state():
    route_map = RouteMap(make_request())
    assert route_map.state is ExecutionState.PENDING
    assert route_map.result is None
    assert route_map.error is None
    assert route_map.events == ()
    assert route_map.pending == 0
    assert route_map.response_mode is ResponseMode.DEFAULT
    assert route_map.transaction is None
    assert not route_map.paginated


# ─── Shared object store ─────────────────────────────────────────

def test_store_round_trip():
    route_map = RouteMap(make_request())
    value = {"id": 1, "tags": ["a"]}
    route_map.add_or_update_object("user", value)
    assert route_map.contains_key("user")
    assert route_map.get_object("user") == {"id": 1, "tags": ["a"]}


def test_store_update_overwrites():
    route_map = RouteMap(make_request())
    route_map.add_or_update_object("n", 1)
    route_map.add_or_update_object("n", 2)
    assert route_map.get_object("n", required=True) == 2


def test_missing_optional_key_returns_none():
    route_map = RouteMap(make_request())
    assert route_map.get_object("nope") is None
    assert not route_map.contains_key("nope")


def test_missing_required_key_raises():
    with pytest.raises(MissingObjectError, match="nope not found"):
        RouteMap(make_request()).get_object("nope", required=True)


def test_stored_none_is_present():
    route_map = RouteMap(make_request())
    route_map.add_or_update_object("maybe", None)
    assert route_map.contains_key("maybe")
    assert route_map.get_object("maybe", required=True) is None


def test_objects_is_a_copy():
    route_map = RouteMap(make_request())
    route_map.objects["x"] = 1
    assert not route_map.contains_key("x")


# ─── Response flags ──────────────────────────────────────────────

@pytest.mark.parametrize(
    ("serializer", "status"),
    [
        ("empty_response_serializer", 204),
        ("successful_response_serializer", 200),
        ("created_serializer", 201),
    ],
)
def test_serializers_select_empty_mode(serializer, status):
    route_map = RouteMap(make_request())
    getattr(route_map, serializer)()
    assert route_map.response_mode is ResponseMode.EMPTY
    assert route_map.is_empty_response
    assert route_map.status_override == status


def test_set_status_selects_custom_status_mode():
    route_map = RouteMap(make_request())
    route_map.set_status(202)
    assert route_map.response_mode is ResponseMode.CUSTOM_STATUS
    assert route_map.status_override == 202


def test_set_status_after_empty_serializer_stays_empty():
    route_map = RouteMap(make_request())
    route_map.empty_response_serializer()
    route_map.set_status(202)
    assert route_map.is_empty_response
    assert route_map.status_override == 202


def test_set_page_response_object_marks_paginated():
    route_map = RouteMap(make_request())
    route_map.set_page_response_object({"total": 3})
    assert route_map.paginated
    assert route_map.page_response == {"total": 3}


# ─── Permission gate ─────────────────────────────────────────────

def test_set_permission_stores_gate():
    gate = RecordingPermission()
    route_map = RouteMap(make_request())
    route_map.set_permission(gate)
    assert route_map.permission_gate is gate


def test_second_set_permission_and_composes():
    first, second = RecordingPermission(), RecordingPermission()
    route_map = RouteMap(make_request())
    route_map.set_permission(first)
    route_map.set_permission(second)
    gate = route_map.permission_gate
    assert isinstance(gate, AndPermission)
    assert (gate.first, gate.second) == (first, second)


# ─── Factories ───────────────────────────────────────────────────

def test_error_factories():
    route_map = RouteMap(make_request())
    assert isinstance(route_map.forbidden_error("x"), ForbiddenError)
    assert isinstance(route_map.unauthorized_error(), UnauthorizedError)
    assert isinstance(route_map.not_found_error("x"), NotFoundError)
    assert route_map.bad_request_error("bad email").public_message == "bad email"
    assert isinstance(route_map.email_already_taken_error(), EmailAlreadyTakenError)


def test_permission_factories():
    route_map = RouteMap(make_request())
    auth = route_map.authenticated_permission({"scope": "x"})
    roles = route_map.roles_permission(["admin"], require_all=True)
    assert isinstance(auth, AuthenticatedPermission)
    assert isinstance(roles, RolesPermission) and roles.require_all
    assert isinstance(route_map.and_permission(auth, roles), AndPermission)
    assert isinstance(route_map.or_permission(auth, roles), OrPermission)


# ─── Lifecycle ───────────────────────────────────────────────────

async def test_make_response_is_single_use():
    route_map = RouteMap(make_request())
    await route_map.make_response(RecordingSink())
    assert route_map.state is ExecutionState.RESPONDED
    with pytest.raises(ResponseAlreadySentError):
        await route_map.make_response(RecordingSink())
