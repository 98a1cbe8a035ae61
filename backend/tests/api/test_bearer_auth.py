"""Unit tests for bearer token decoding and caller resolution."""

import uuid
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import jwt as pyjwt
import pytest
from fastapi import HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials

from artmarket.core import auth
from artmarket.core.auth import decode_access_token, require_auth
from artmarket.core.config import get_settings
from artmarket.domain.models import Caller, UserRole

pytestmark = pytest.mark.unit


def _encode(payload: dict, secret: str | None = None) -> str:
    settings = get_settings()
    payload = {"exp": datetime.now(UTC) + timedelta(hours=1), **payload}
    return pyjwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


class TestDecodeAccessToken:
    def test_user_id_claim(self):
        assert decode_access_token(_encode({"userId": "u-1"})) == "u-1"

    def test_sub_claim_accepted(self):
        assert decode_access_token(_encode({"sub": "u-2"})) == "u-2"

    def test_missing_user_claim_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(_encode({"role": "user"}))
        assert exc_info.value.status_code == 401

    def test_wrong_secret_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(_encode({"userId": "u-1"}, secret="not-the-secret"))
        assert exc_info.value.status_code == 401


class StubDirectory:
    """User directory returning a fixed record for any id."""

    user = None

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def resolve_user(self, user_id):
        return self.user


def _user(is_active: bool):
    user_id = uuid.uuid4()
    return SimpleNamespace(
        id=user_id,
        is_active=is_active,
        to_caller=lambda: Caller(
            user_id=str(user_id), role=UserRole.USER, email="c@example.com", display_name="Casey"
        ),
    )


@pytest.fixture
def directory(monkeypatch):
    monkeypatch.setattr(auth, "UserDirectory", StubDirectory)
    monkeypatch.setattr(auth, "get_session_factory", lambda: None)
    yield StubDirectory
    StubDirectory.user = None


def _credentials(user_id: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=_encode({"userId": user_id}))


class TestRequireAuth:
    async def test_active_user_becomes_caller(self, directory):
        directory.user = _user(is_active=True)
        request = Request({"type": "http"})

        caller = await require_auth(request, _credentials(str(directory.user.id)))

        assert caller.user_id == str(directory.user.id)
        assert request.state.user_id == str(directory.user.id)

    async def test_deactivated_user_is_401(self, directory):
        directory.user = _user(is_active=False)

        with pytest.raises(HTTPException) as exc_info:
            await require_auth(Request({"type": "http"}), _credentials(str(directory.user.id)))

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Account is deactivated."

    async def test_unknown_user_is_401(self, directory):
        with pytest.raises(HTTPException) as exc_info:
            await require_auth(Request({"type": "http"}), _credentials(str(uuid.uuid4())))

        assert exc_info.value.status_code == 401

    async def test_missing_credentials_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_auth(Request({"type": "http"}), None)

        assert exc_info.value.status_code == 401
