"""Tests for connect-time credential verification."""

import time

import pytest
from jose import jwt

from heychat.core.security import create_access_token
from heychat.core.settings import settings
from heychat.realtime import AuthenticationError, IdentityVerifier, InvalidCredentialError
from heychat.realtime.identity import extract_token


class TestIdentityVerifier:
    """Trust-on-connect token validation."""

    def test_valid_token_yields_user_id(self):
        identity = IdentityVerifier().verify(create_access_token("u-123"))
        assert identity.user_id == "u-123"
        assert identity.is_admin is False

    @pytest.mark.parametrize("token", [None, "", "   "])
    def test_missing_token_is_authentication_error(self, token):
        with pytest.raises(AuthenticationError) as excinfo:
            IdentityVerifier().verify(token)
        assert not isinstance(excinfo.value, InvalidCredentialError)

    def test_malformed_token(self):
        with pytest.raises(InvalidCredentialError):
            IdentityVerifier().verify("not.a.valid.jwt")

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "u-1", "exp": int(time.time()) + 60}, "wrong", algorithm="HS256")
        with pytest.raises(InvalidCredentialError):
            IdentityVerifier().verify(token)

    def test_expired_token(self):
        token = jwt.encode(
            {"sub": "u-1", "exp": int(time.time()) - 60},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(InvalidCredentialError):
            IdentityVerifier().verify(token)

    def test_token_without_subject(self):
        token = jwt.encode(
            {"exp": int(time.time()) + 60},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(InvalidCredentialError):
            IdentityVerifier().verify(token)

    def test_admin_subject_is_flagged(self):
        identity = IdentityVerifier(admin_user_id="root").verify(create_access_token("root"))
        assert identity.is_admin is True


def test_extract_token_prefers_query_parameter():
    assert extract_token("from-query", "Bearer from-header") == "from-query"


def test_extract_token_falls_back_to_bearer_header():
    assert extract_token(None, "Bearer abc") == "abc"
    assert extract_token(None, "Basic abc") is None
    assert extract_token(None, None) is None
