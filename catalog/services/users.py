"""
Terminal handlers for signup, login and user profile routes.

Each handler runs after its pipeline's steps have succeeded and reads
what those steps left on the RequestContext.
"""

from __future__ import annotations

from typing import List

from fastapi.concurrency import run_in_threadpool

from catalog.core.context import RequestContext, Services
from catalog.core.exceptions import NoChangesDetected, NotFoundError
from catalog.core.logger import get_logger
from catalog.models import UserRecord
from catalog.pipeline.executor import PipelineResponse

logger = get_logger(__name__)


async def _lookup(services: Services, username: str) -> UserRecord:
    user = await run_in_threadpool(services.users.find_one, username=username)
    if user is None:
        raise NotFoundError(f"User with username {username} not found")
    return user


async def signup(ctx: RequestContext, services: Services) -> PipelineResponse:
    user = await run_in_threadpool(
        services.users.create,
        username=ctx.fields["username"],
        email=ctx.fields["email"],
        password=ctx.digest,
    )
    token = services.tokens.issue(user.id)
    return PipelineResponse(201, {"id": user.id, "username": user.username, "token": token})


async def login(ctx: RequestContext, services: Services) -> PipelineResponse:
    token = services.tokens.issue(ctx.user.id)
    logger.info("User logged in", user_id=ctx.user.id)
    return PipelineResponse(201, {"id": ctx.user.id, "username": ctx.user.username, "token": token})


async def verify_login(ctx: RequestContext, services: Services) -> PipelineResponse:
    """Session restore: the client already holds a token, so none is issued."""
    return PipelineResponse(
        200,
        {
            "message": "persistent login successful",
            "user": {"id": ctx.user.id, "username": ctx.user.username},
        },
    )


async def list_users(ctx: RequestContext, services: Services) -> PipelineResponse:
    prefix = ctx.query.get("username") or None
    users = await run_in_threadpool(services.users.find_all, prefix)
    return PipelineResponse(200, [u.public() for u in users])


async def get_user(ctx: RequestContext, services: Services) -> PipelineResponse:
    user = await _lookup(services, ctx.path_params["username"])
    return PipelineResponse(200, user.public())


async def get_account(ctx: RequestContext, services: Services) -> PipelineResponse:
    user = await _lookup(services, ctx.path_params["username"])
    book_count = await run_in_threadpool(services.books.count_for, user.id)
    body = user.public()
    body.update(
        created_at=user.created_at.isoformat(),
        updated_at=user.updated_at.isoformat(),
        book_count=book_count,
    )
    return PipelineResponse(200, body)


async def get_user_books(ctx: RequestContext, services: Services) -> PipelineResponse:
    user = await _lookup(services, ctx.path_params["username"])
    books = await run_in_threadpool(services.books.books_for, user.id)
    return PipelineResponse(200, [b.public() for b in books])


def _change_summary(ctx: RequestContext) -> List[str]:
    old = ctx.user
    changes = []
    if ctx.username_changed:
        changes.append(f"username changed from '{old.username}' to '{ctx.fields['username']}'")
    if ctx.email_changed:
        changes.append(f"email changed from '{old.email}' to '{ctx.fields['email']}'")
    if ctx.password_changed:
        changes.append("password updated")
    return changes


async def update_user(ctx: RequestContext, services: Services) -> PipelineResponse:
    """Persist only the fields whose change flag is set."""
    if not (ctx.username_changed or ctx.email_changed or ctx.password_changed):
        raise NoChangesDetected()

    updates = {}
    if ctx.username_changed:
        updates["username"] = ctx.fields["username"]
    if ctx.email_changed:
        updates["email"] = ctx.fields["email"]
    if ctx.password_changed:
        updates["password"] = ctx.digest

    updated = await run_in_threadpool(services.users.update, ctx.user.id, **updates)
    if updated is None:
        raise NotFoundError(f"User with username {ctx.user.username} not found")

    return PipelineResponse(
        200,
        {
            "message": "User updated",
            "user": updated.public(),
            "changes": _change_summary(ctx),
        },
    )


async def delete_user(ctx: RequestContext, services: Services) -> PipelineResponse:
    deleted = await run_in_threadpool(services.users.destroy, ctx.user.id)
    if not deleted:
        raise NotFoundError(f"User with username {ctx.user.username} not found")
    return PipelineResponse(200, {"message": "User deleted", "username": ctx.user.username})
