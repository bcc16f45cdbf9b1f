"""Tests for access token encoding and verification."""

from datetime import timedelta

import jwt
import pytest

from ecotrack.auth.jwt import create_access_token, verify_token
from ecotrack.config import get_settings


def test_round_trip_subject():
    payload = verify_token(create_access_token(42))
    assert payload["sub"] == "42"
    assert payload["type"] == "access"
    assert payload["iss"] == get_settings().jwt_issuer


def test_expired_token_rejected():
    token = create_access_token(1, expires_in=timedelta(seconds=-10))
    with pytest.raises(jwt.ExpiredSignatureError):
        verify_token(token)


def test_wrong_type_rejected():
    token = create_access_token(1)
    with pytest.raises(jwt.InvalidTokenError):
        verify_token(token, expected_type="refresh")


def test_foreign_signature_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": "1", "iat": 0, "exp": 4102444800, "iss": settings.jwt_issuer, "type": "access"},
        "some-other-secret-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )
    with pytest.raises(jwt.InvalidSignatureError):
        verify_token(token)
