"""Tests for Firebase auth and the caller context."""

from unittest.mock import MagicMock, patch

import jwt
import pytest

from lspd import auth
from lspd.auth import (
    FirebaseTokenValidator,
    UserContext,
    authenticate,
    extract_bearer_token,
    get_current_user,
    get_validator,
    set_current_user,
)
from lspd.units.errors import Unauthenticated


@pytest.fixture(autouse=True)
def _reset_auth():
    auth._validator = None
    set_current_user(None)
    yield
    auth._validator = None
    set_current_user(None)


def _validator() -> FirebaseTokenValidator:
    validator = FirebaseTokenValidator("lspd-mdt")
    validator._jwks_client = MagicMock()
    validator._jwks_client.get_signing_key_from_jwt.return_value = MagicMock(key="public-key")
    return validator


class TestUserContext:
    def test_defaults(self):
        user = UserContext(user_id="abc-123")
        assert user.email == ""
        assert user.name == ""

    def test_frozen(self):
        user = UserContext(user_id="1")
        with pytest.raises(AttributeError):
            user.user_id = "2"


class TestCurrentUserContext:
    def test_get_without_set_raises(self):
        with pytest.raises(RuntimeError, match="No authenticated user"):
            get_current_user()

    def test_set_and_get(self):
        user = UserContext(user_id="xyz")
        set_current_user(user)
        assert get_current_user() is user


class TestExtractBearerToken:
    def test_extracts(self):
        assert extract_bearer_token({"authorization": "Bearer abc.def"}) == "abc.def"

    def test_scheme_case_insensitive(self):
        assert extract_bearer_token({"authorization": "bearer  abc "}) == "abc"

    @pytest.mark.parametrize("header", ["", "Basic abc", "Bearer", "Bearer   "])
    def test_rejects(self, header):
        with pytest.raises(Unauthenticated, match="Missing bearer token"):
            extract_bearer_token({"authorization": header})


class TestFirebaseTokenValidator:
    def test_issuer(self):
        validator = FirebaseTokenValidator("lspd-mdt")
        assert validator.issuer == "https://securetoken.google.com/lspd-mdt"

    def test_valid_token(self):
        validator = _validator()
        payload = {"user_id": "uid-1", "email": "JDoe@LSPD.example.org", "name": "John Doe"}
        with patch("lspd.auth.jwt.decode", return_value=payload) as decode:
            user = validator.validate_token("token")

        assert user == UserContext(user_id="uid-1", email="jdoe@lspd.example.org", name="John Doe")
        kwargs = decode.call_args.kwargs
        assert kwargs["audience"] == "lspd-mdt"
        assert kwargs["issuer"] == "https://securetoken.google.com/lspd-mdt"
        assert kwargs["algorithms"] == ["RS256"]

    def test_sub_fallback_and_name_from_email(self):
        validator = _validator()
        with patch("lspd.auth.jwt.decode", return_value={"sub": "uid-2", "email": "mike@x.org"}):
            user = validator.validate_token("token")
        assert user.user_id == "uid-2"
        assert user.name == "mike"

    def test_cached(self):
        validator = _validator()
        with patch("lspd.auth.jwt.decode", return_value={"sub": "uid-3"}) as decode:
            validator.validate_token("token")
            validator.validate_token("token")
        assert decode.call_count == 1

    def test_invalid_token(self):
        validator = _validator()
        with (
            patch("lspd.auth.jwt.decode", side_effect=jwt.ExpiredSignatureError("expired")),
            pytest.raises(Unauthenticated),
        ):
            validator.validate_token("token")

    def test_missing_subject(self):
        validator = _validator()
        with (
            patch("lspd.auth.jwt.decode", return_value={"email": "a@b.org"}),
            pytest.raises(Unauthenticated),
        ):
            validator.validate_token("token")


class TestAuthenticate:
    def test_dev_mode_header(self):
        user = authenticate({"x-dev-user": " uid-7 "})
        assert user.user_id == "uid-7"
        assert get_current_user() is user

    def test_dev_mode_missing_header(self):
        with pytest.raises(Unauthenticated, match="X-Dev-User"):
            authenticate({})

    def test_dev_header_refused_with_cosmos(self, monkeypatch):
        monkeypatch.setenv("COSMOS_ENDPOINT", "https://lspd.documents.azure.com:443/")
        with pytest.raises(Unauthenticated, match="not configured"):
            authenticate({"x-dev-user": "chief"})
        with pytest.raises(RuntimeError):
            get_current_user()

    def test_no_validator_in_dev_mode(self):
        assert get_validator() is None

    def test_validator_reused_per_project(self, monkeypatch):
        monkeypatch.setenv("FIREBASE_PROJECT_ID", "lspd-mdt")
        first = get_validator()
        assert first is get_validator()
        monkeypatch.setenv("FIREBASE_PROJECT_ID", "lspd-other")
        assert get_validator() is not first

    def test_token_mode(self, monkeypatch):
        monkeypatch.setenv("FIREBASE_PROJECT_ID", "lspd-mdt")
        expected = UserContext(user_id="uid-8")
        with patch.object(
            FirebaseTokenValidator, "validate_token", return_value=expected
        ) as validate:
            user = authenticate({"authorization": "Bearer tok", "x-dev-user": "ignored"})
        assert user is expected
        validate.assert_called_once_with("tok")

    def test_token_mode_requires_bearer(self, monkeypatch):
        monkeypatch.setenv("FIREBASE_PROJECT_ID", "lspd-mdt")
        with pytest.raises(Unauthenticated):
            authenticate({"x-dev-user": "uid-7"})
