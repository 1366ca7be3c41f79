"""Unit tests for dependency injection utilities."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from app.auth.dependencies import require_role, verify_internal_token
from app.dependencies import get_db_session
from tests.conftest import make_authenticated_user


def _make_mock_request():
    """Create a mock request with a session factory on app.state."""
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()

    class _ContextManager:
        async def __aenter__(self):
            return session

        async def __aexit__(self, *args):
            pass

    factory = MagicMock()
    factory.return_value = _ContextManager()

    request = MagicMock()
    request.app.state.session_factory = factory

    return request, session


@pytest.mark.asyncio
class TestGetDbSession:
    async def test_commits_on_success(self):
        """Session should be committed when the request handler succeeds."""
        request, session = _make_mock_request()

        gen = get_db_session(request)
        yielded_session = await gen.__anext__()

        assert yielded_session is session

        # Simulate successful completion
        try:
            await gen.__anext__()
        except StopAsyncIteration:
            pass

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()
        session.close.assert_awaited_once()

    async def test_rolls_back_on_exception(self):
        """Session should be rolled back when the request handler raises."""
        request, session = _make_mock_request()

        gen = get_db_session(request)
        await gen.__anext__()

        # Simulate an exception during the request
        with pytest.raises(ValueError):
            await gen.athrow(ValueError("test error"))

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
        session.close.assert_awaited_once()


@pytest.mark.asyncio
class TestRequireRole:
    async def test_allowed_role_passes(self):
        check = require_role("admin", "security_personnel")
        user = make_authenticated_user("security_personnel")
        assert await check(user) is user

    async def test_other_role_rejected(self):
        check = require_role("admin", detail="Admin access required")
        with pytest.raises(HTTPException) as exc_info:
            await check(make_authenticated_user("customer"))
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Admin access required"


@pytest.mark.asyncio
class TestVerifyInternalToken:
    @staticmethod
    def _request(token=None):
        request = MagicMock()
        request.headers = {"X-Internal-Token": token} if token is not None else {}
        return request

    async def test_blank_setting_disables_check(self):
        settings = MagicMock(internal_api_token="")
        await verify_internal_token(self._request(), settings)

    async def test_matching_token_passes(self):
        settings = MagicMock(internal_api_token="hook-secret")
        await verify_internal_token(self._request("hook-secret"), settings)

    async def test_wrong_token_rejected(self):
        settings = MagicMock(internal_api_token="hook-secret")
        with pytest.raises(HTTPException) as exc_info:
            await verify_internal_token(self._request("guess"), settings)
        assert exc_info.value.status_code == 401

    async def test_missing_token_rejected(self):
        settings = MagicMock(internal_api_token="hook-secret")
        with pytest.raises(HTTPException):
            await verify_internal_token(self._request(), settings)
