"""Users — reference resource driving every RouteMap feature end to end.

Invariants:
    - Every handler pushes steps and returns make_response(); none returns data itself
    - Steps run LAST-PUSHED-FIRST: validation steps are pushed after the steps
      they guard
    - All DB work goes through ctx.transaction (one transaction per request)

Design Decisions:
    - Steps are closures over validated input: the RouteMap is passed explicitly,
      the route parameters are captured
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from routemap.api.dependencies import get_route_map
from routemap.api.responses import JSONResponseSink
from routemap.core.errors import DatabaseError
from routemap.core.pagination import derive_page_request
from routemap.core.route_map import RouteMap
from routemap.models.user import User
from routemap.schemas.user import UserCreate, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])

ADMIN_ROLE = "admin"
DELETE_ROLE = "users:delete"


def _session(ctx: RouteMap) -> AsyncSession:
    if ctx.transaction is None:
        raise DatabaseError("No transaction provider attached", "connect")
    return ctx.transaction


def _serialize(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


async def _load_user(ctx: RouteMap, user_id: int) -> User:
    user = await _session(ctx).get(User, user_id)
    if user is None:
        raise ctx.not_found_error(f"User {user_id} not found")
    ctx.add_or_update_object("user", user)
    return user


@router.post("")
async def create_user(
    body: UserCreate, route_map: RouteMap = Depends(get_route_map),
):
    """Create a user. 201 with no body; Location header points at the new user."""

    async def ensure_email_available(ctx: RouteMap, response: JSONResponseSink):
        result = await _session(ctx).execute(
            select(User.id).where(User.email == body.email),
        )
        if result.scalar_one_or_none() is not None:
            raise ctx.email_already_taken_error(f"{body.email} is already registered")

    async def insert_user(ctx: RouteMap, response: JSONResponseSink):
        db = _session(ctx)
        user = User(email=body.email, name=body.name)
        db.add(user)
        await db.flush()
        ctx.add_or_update_object("user", user)
        response.headers["Location"] = f"{router.prefix}/{user.id}"
        return _serialize(user)

    route_map.push(insert_user)
    route_map.push(ensure_email_available)
    route_map.created_serializer()
    return await route_map.make_response(JSONResponseSink())


@router.get("")
async def list_users(route_map: RouteMap = Depends(get_route_map)):
    """Paged list: {total, offset, limit | page, pageSize, results}."""

    async def fetch_page(ctx: RouteMap, response: JSONResponseSink):
        # paging is only derived for the configured methods; this route always pages
        page_request = ctx.page_request or derive_page_request(
            "GET", dict(ctx.request.query),
        )
        offset, limit = page_request.window()
        db = _session(ctx)
        total = await db.scalar(select(func.count()).select_from(User))
        rows = await db.scalars(
            select(User).order_by(User.id).offset(offset).limit(limit),
        )
        ctx.set_page_response_object({"total": total, **page_request.as_dict()})
        return [_serialize(user) for user in rows]

    route_map.set_permission(route_map.authenticated_permission())
    route_map.push(fetch_page)
    return await route_map.make_response(JSONResponseSink())


@router.get("/{user_id}")
async def get_user(user_id: int, route_map: RouteMap = Depends(get_route_map)):

    async def fetch_user(ctx: RouteMap, response: JSONResponseSink):
        return _serialize(await _load_user(ctx, user_id))

    route_map.set_permission(route_map.authenticated_permission())
    route_map.push(fetch_user)
    return await route_map.make_response(JSONResponseSink())


@router.delete("/{user_id}")
async def delete_user(user_id: int, route_map: RouteMap = Depends(get_route_map)):
    """Admins, or keys holding users:delete, may delete. 204 on success."""

    async def remove_user(ctx: RouteMap, response: JSONResponseSink):
        user = ctx.get_object("user", required=True)
        await _session(ctx).delete(user)
        logger.info("Deleted user %s", user.id)

    async def fetch_user(ctx: RouteMap, response: JSONResponseSink):
        return await _load_user(ctx, user_id)

    route_map.set_permission(route_map.or_permission(
        route_map.roles_permission([ADMIN_ROLE]),
        route_map.roles_permission([DELETE_ROLE]),
    ))
    route_map.push(remove_user)
    route_map.push(fetch_user)
    route_map.empty_response_serializer()
    return await route_map.make_response(JSONResponseSink())
