import asyncio
from datetime import datetime
from types import SimpleNamespace

import pytest

from catalog.auth.hasher import PasswordHasher
from catalog.core.context import RequestContext
from catalog.core.exceptions import ValidationError
from catalog.models import UserRecord
from catalog.pipeline import steps

hasher = PasswordHasher(rounds=4)
services = SimpleNamespace(hasher=hasher, debug=False)

STORED = UserRecord(
    id=1,
    username="ana",
    email="ana@x.com",
    password=hasher.hash("secret123"),
    created_at=datetime(2024, 1, 1),
    updated_at=datetime(2024, 1, 1),
)

DETECTORS = [steps.detect_username_change, steps.detect_email_change, steps.detect_password_change]


def run_step(s, ctx):
    return asyncio.run(s.run(ctx, services))


def detect(body):
    ctx = RequestContext(body=body, user=STORED)
    for detector in DETECTORS:
        run_step(detector, ctx)
    return ctx


def test_identical_body_sets_no_flags():
    ctx = detect({"username": "ana", "email": "ana@x.com", "password": "secret123"})
    assert (ctx.username_changed, ctx.email_changed, ctx.password_changed) == (False, False, False)


def test_absent_fields_are_not_changes():
    ctx = detect({})
    assert (ctx.username_changed, ctx.email_changed, ctx.password_changed) == (False, False, False)


def test_email_only_change():
    ctx = detect({"email": "ana@new.com"})
    assert ctx.email_changed is True
    assert ctx.username_changed is False
    assert ctx.password_changed is False


def test_new_password_is_a_change():
    ctx = detect({"password": "another-secret"})
    assert ctx.password_changed is True


def test_detection_reads_sanitized_values():
    ctx = RequestContext(body={"username": "  ana  "}, user=STORED)
    run_step(steps.validate_username(required=False), ctx)
    run_step(steps.detect_username_change, ctx)
    assert ctx.fields["username"] == "ana"
    assert ctx.username_changed is False


@pytest.mark.parametrize(
    "validator, body",
    [
        (steps.validate_username(), {"username": "an"}),
        (steps.validate_username(), {"username": "a" * 21}),
        (steps.validate_username(), {"username": 42}),
        (steps.validate_username(), {}),
        (steps.validate_email(), {"email": "not-an-email"}),
        (steps.validate_email(), {"email": "ana@"}),
        (steps.validate_password(), {"password": "short"}),
        (steps.validate_password(), {"password": "x" * 73}),
        (steps.validate_password(), {}),
    ],
)
def test_validators_reject(validator, body):
    with pytest.raises(ValidationError):
        run_step(validator, RequestContext(body=body))


def test_optional_validators_accept_missing_fields():
    ctx = RequestContext(body={})
    for validator in (
        steps.validate_username(required=False),
        steps.validate_email(required=False),
        steps.validate_password(required=False),
    ):
        run_step(validator, ctx)
    assert ctx.fields == {}


def test_username_boundaries():
    for name in ("abc", "a" * 20):
        ctx = RequestContext(body={"username": name})
        run_step(steps.validate_username(), ctx)
        assert ctx.fields["username"] == name


def test_hash_password_on_signup_replaces_plaintext():
    ctx = RequestContext(body={"password": "secret123"})
    run_step(steps.validate_password(), ctx)
    run_step(steps.hash_password, ctx)
    assert "password" not in ctx.fields
    assert hasher.compare("secret123", ctx.digest)


def test_hash_password_skips_unchanged_password():
    ctx = RequestContext(body={"password": "secret123"}, user=STORED)
    run_step(steps.validate_password(required=False), ctx)
    run_step(steps.detect_password_change, ctx)
    run_step(steps.hash_password, ctx)
    assert ctx.digest is None


def test_book_title_accepts_legacy_key():
    ctx = RequestContext(body={"bookTitle": " Dune "})
    run_step(steps.validate_book_title, ctx)
    assert ctx.fields["title"] == "Dune"
