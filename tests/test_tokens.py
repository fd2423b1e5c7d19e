from datetime import datetime, timedelta, timezone

import jwt
import pytest

from catalog.auth.tokens import TokenService
from catalog.core.exceptions import ConfigError, InvalidTokenError

SECRET = "token-secret-that-is-long-enough-for-hs256"


@pytest.fixture
def tokens():
    return TokenService(SECRET, ttl_minutes=60)


def test_issue_and_verify(tokens):
    claims = tokens.verify(tokens.issue(7))
    assert claims["id"] == 7
    assert claims["exp"] > claims["iat"]


@pytest.mark.parametrize("token", [None, "", "abc", "abc.def.ghi"])
def test_missing_or_malformed_token(tokens, token):
    with pytest.raises(InvalidTokenError):
        tokens.verify(token)


def test_payload_swapped_between_tokens_is_rejected(tokens):
    header, _, signature = tokens.issue(1).split(".")
    other_payload = tokens.issue(2).split(".")[1]
    with pytest.raises(InvalidTokenError):
        tokens.verify(".".join([header, other_payload, signature]))


def test_token_signed_with_another_secret(tokens):
    token = TokenService("another-secret-that-is-also-long-enough", 60).issue(1)
    with pytest.raises(InvalidTokenError):
        tokens.verify(token)


def test_expired_token(tokens):
    two_hours_ago = datetime.now(timezone.utc) - timedelta(hours=2)
    token = tokens.issue(1, now=two_hours_ago)
    with pytest.raises(InvalidTokenError, match="expired"):
        tokens.verify(token)


def test_claim_id_must_be_an_integer(tokens):
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"id": "1", "exp": exp}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        tokens.verify(token)


def test_token_without_expiry_is_rejected(tokens):
    token = jwt.encode({"id": 1}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        tokens.verify(token)


def test_unconfigured_secret(tokens):
    token = tokens.issue(1)
    unconfigured = TokenService("", 60)
    with pytest.raises(InvalidTokenError):
        unconfigured.verify(token)
    with pytest.raises(ConfigError):
        unconfigured.issue(1)
    with pytest.raises(ConfigError):
        unconfigured.ensure_ready()
    tokens.ensure_ready()
