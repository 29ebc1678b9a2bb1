"""Unit tests for JWT handler."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.cr_common.errors import InvalidCredentialsError
from src.cr_gateway.auth.jwt_handler import create_access_token, decode_token


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("user-123")
    # Decode without verification to inspect claims
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"


def test_decode_valid_access_token() -> None:
    token = create_access_token("user-abc")
    payload = decode_token(token)
    assert payload["sub"] == "user-abc"


def test_expired_access_token_raises_credentials_error() -> None:
    """Expired access token must raise InvalidCredentialsError."""
    with patch(
        "src.cr_gateway.auth.jwt_handler._ACCESS_EXPIRE",
        timedelta(seconds=-1),
    ):
        token = create_access_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_tampered_token_raises_error() -> None:
    """Tampered token signature must be rejected."""
    token = create_access_token("user-abc")
    tampered = token[:-4] + "xxxx"
    with pytest.raises(InvalidCredentialsError):
        decode_token(tampered)


def test_non_access_token_rejected() -> None:
    """A validly signed token of another type is not a session token."""
    now = datetime.now(UTC)
    token = jwt.encode(
        {"sub": "user-abc", "type": "refresh", "iat": now, "exp": now + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_wrong_secret_rejected() -> None:
    now = datetime.now(UTC)
    token = jwt.encode(
        {"sub": "user-abc", "type": "access", "exp": now + timedelta(minutes=5)},
        "some-other-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)
