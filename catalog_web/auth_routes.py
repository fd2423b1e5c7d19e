"""
Signup and login routes.

POST /signup         validate -> hash -> create, returns a token
POST /login          validate email -> find user -> compare password -> token
GET  /login/verify   restore a session from an existing bearer token
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from catalog.pipeline import chains

from .auth_middleware import run_pipeline

signup_router = APIRouter(prefix="/signup", tags=["auth"])
login_router = APIRouter(prefix="/login", tags=["auth"])


@signup_router.post("", status_code=status.HTTP_201_CREATED)
async def signup(request: Request):
    """
    Register a new user.

    Request (JSON):
        {"username": "...", "email": "...", "password": "..."}

    Response:
        {"id": 1, "username": "...", "token": "<jwt>"}
    """
    return await run_pipeline(request, chains.SIGNUP)


@login_router.post("", status_code=status.HTTP_201_CREATED)
async def login(request: Request):
    """Log in with {"email", "password"}; same response shape as /signup."""
    return await run_pipeline(request, chains.LOGIN)


@login_router.get("/verify")
async def verify(request: Request):
    return await run_pipeline(request, chains.VERIFY_LOGIN)
