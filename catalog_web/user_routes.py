"""User lookup and profile routes. Mutations require the owner's bearer token."""

from __future__ import annotations

from fastapi import APIRouter, Request

from catalog.pipeline import chains

from .auth_middleware import run_pipeline

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(request: Request):
    """All users, optionally filtered with ``?username=<prefix>``."""
    return await run_pipeline(request, chains.LIST_USERS)


@router.get("/{username}")
async def get_user(username: str, request: Request):
    return await run_pipeline(request, chains.GET_USER)


@router.get("/{username}/account")
async def get_account(username: str, request: Request):
    return await run_pipeline(request, chains.GET_ACCOUNT)


@router.get("/{username}/books")
async def get_user_books(username: str, request: Request):
    return await run_pipeline(request, chains.GET_USER_BOOKS)


@router.put("/{username}")
async def update_user(username: str, request: Request):
    """
    Change any of username, email and password.

    Only fields that actually differ are written; a body that changes
    nothing is rejected with NoChangesDetected.
    """
    return await run_pipeline(request, chains.UPDATE_USER)


@router.delete("/{username}")
async def delete_user(username: str, request: Request):
    """Delete the account; the body must carry the current password."""
    return await run_pipeline(request, chains.DELETE_USER)
