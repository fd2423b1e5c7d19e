"""
Pipeline steps shared by the user and book routes.

Ordering rules the pipelines rely on:
- verify_token runs before anything that reads ``ctx.user``
- format validators run before change detection
- change detection runs before hash_password
- hash_password runs before the handler writes to the store

Blocking work (bcrypt, database) goes through run_in_threadpool so one
slow hash does not hold up other requests.
"""

from __future__ import annotations

from typing import Optional, Type

from email_validator import EmailNotValidError, validate_email as check_email
from fastapi.concurrency import run_in_threadpool

from catalog.core.context import RequestContext, Services
from catalog.core.exceptions import (
    AuthenticationError,
    CatalogError,
    NotFoundError,
    ValidationError,
)
from catalog.core.logger import get_logger

from .executor import Continue, Step, StepResult, step

logger = get_logger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt ignores or rejects anything longer


# --- identity ---------------------------------------------------------------

@step
async def verify_token(ctx: RequestContext, services: Services) -> StepResult:
    """Decode the bearer token and resolve its id claim to a user."""
    claims = services.tokens.verify(ctx.token)
    user = await run_in_threadpool(services.users.find_one, id=claims["id"])
    if user is None:
        raise AuthenticationError("Unauthorized")
    ctx.claims = claims
    ctx.user = user
    return Continue(ctx)


PATH_OWNER_MISMATCH = (
    "Username in the request parameters doesn't match the username associated with the token"
)


def _path_owner_step(name: str, error_cls: Type[CatalogError]) -> Step:
    async def check(ctx: RequestContext, services: Services) -> StepResult:
        if ctx.user is None or ctx.path_params.get("username") != ctx.user.username:
            raise error_cls(PATH_OWNER_MISMATCH)
        return Continue(ctx)

    return Step(name=name, run=check)


# The ``:username`` in the path must be the token's owner. Profile updates
# reject a mismatch as unauthorized; account deletion treats it like a bad
# credential and answers 400.
require_path_owner = _path_owner_step("require_path_owner", AuthenticationError)
require_path_owner_to_delete = _path_owner_step("require_path_owner_to_delete", ValidationError)


@step
async def require_token_secret(ctx: RequestContext, services: Services) -> StepResult:
    """Refuse to create anything when no token could be issued for it."""
    services.tokens.ensure_ready()
    return Continue(ctx)


@step
async def find_user_by_email(ctx: RequestContext, services: Services) -> StepResult:
    user = await run_in_threadpool(services.users.find_one, email=ctx.submitted("email"))
    if user is None:
        raise NotFoundError("User not found")
    ctx.user = user
    return Continue(ctx)


async def _password_matches(ctx: RequestContext, services: Services) -> bool:
    password = ctx.submitted("password")
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")
    return await run_in_threadpool(services.hasher.compare, password, ctx.user.password)


@step
async def check_login_password(ctx: RequestContext, services: Services) -> StepResult:
    if not await _password_matches(ctx, services):
        raise AuthenticationError("Password is incorrect")
    return Continue(ctx)


@step
async def confirm_password(ctx: RequestContext, services: Services) -> StepResult:
    """Re-enter the password before a destructive action."""
    if not await _password_matches(ctx, services):
        raise ValidationError("Password is incorrect")
    return Continue(ctx)


# --- format validation -------------------------------------------------------

def _submitted_string(ctx: RequestContext, name: str, required: bool) -> Optional[str]:
    value = ctx.body.get(name)
    if value is None:
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value


def validate_username(required: bool = True) -> Step:
    async def validate_username(ctx: RequestContext, services: Services) -> StepResult:
        value = _submitted_string(ctx, "username", required)
        if value is not None:
            value = value.strip()
            if not USERNAME_MIN_LENGTH <= len(value) <= USERNAME_MAX_LENGTH:
                raise ValidationError(
                    f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
                )
            ctx.fields["username"] = value
        return Continue(ctx)

    return step(validate_username)


def validate_email(required: bool = True) -> Step:
    async def validate_email(ctx: RequestContext, services: Services) -> StepResult:
        value = _submitted_string(ctx, "email", required)
        if value is not None:
            try:
                result = check_email(value.strip(), check_deliverability=False)
            except EmailNotValidError as e:
                raise ValidationError(f"Email is not valid: {e}") from e
            ctx.fields["email"] = result.normalized
        return Continue(ctx)

    return step(validate_email)


def validate_password(required: bool = True) -> Step:
    async def validate_password(ctx: RequestContext, services: Services) -> StepResult:
        value = _submitted_string(ctx, "password", required)
        if value is not None:
            if len(value) < PASSWORD_MIN_LENGTH:
                raise ValidationError(
                    f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
                )
            if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
                raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
            ctx.fields["password"] = value
        return Continue(ctx)

    return step(validate_password)


# --- change detection ----------------------------------------------------------

@step
async def detect_username_change(ctx: RequestContext, services: Services) -> StepResult:
    submitted = ctx.submitted("username")
    ctx.username_changed = submitted is not None and submitted != ctx.user.username
    return Continue(ctx)


@step
async def detect_email_change(ctx: RequestContext, services: Services) -> StepResult:
    submitted = ctx.submitted("email")
    ctx.email_changed = submitted is not None and submitted != ctx.user.email
    return Continue(ctx)


@step
async def detect_password_change(ctx: RequestContext, services: Services) -> StepResult:
    submitted = ctx.submitted("password")
    ctx.password_changed = False
    if submitted is not None:
        matches = await run_in_threadpool(services.hasher.compare, submitted, ctx.user.password)
        ctx.password_changed = not matches
    return Continue(ctx)


# --- hashing -------------------------------------------------------------------

@step
async def hash_password(ctx: RequestContext, services: Services) -> StepResult:
    """
    Replace the submitted password with its digest.

    For an existing user this only happens when detect_password_change
    flagged a new password; for signup there is no stored user and the
    password is always hashed.
    """
    if ctx.user is not None and not ctx.password_changed:
        return Continue(ctx)
    password = ctx.fields.pop("password", None)
    if password is None:
        return Continue(ctx)
    ctx.digest = await run_in_threadpool(services.hasher.hash, password)
    return Continue(ctx)


# --- books ---------------------------------------------------------------------

@step
async def validate_book_title(ctx: RequestContext, services: Services) -> StepResult:
    title = ctx.body.get("title", ctx.body.get("bookTitle"))
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title is required")
    ctx.fields["title"] = title.strip()
    return Continue(ctx)
