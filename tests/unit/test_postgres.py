"""Unit tests for request and background database sessions.

Tests:
  - the request session commits, then runs after-commit callbacks
  - a failing handler rolls back, runs rollback callbacks and drops the
    commit callbacks
  - SQLAlchemy errors surface as DatabaseConnectionError
  - background_session commits on success and rolls back on error
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from autogestao.core.exceptions import DatabaseConnectionError
from autogestao.db.postgres import (
    after_commit,
    after_rollback,
    background_session,
    get_async_session,
)


def _factory(session: MagicMock) -> MagicMock:
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=session)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=ctx)


class TestRequestSession:
    @pytest.mark.asyncio
    async def test_callbacks_run_after_commit(self, test_db) -> None:
        calls: list[str] = []
        test_db.commit.side_effect = lambda: calls.append("commit")

        with patch("autogestao.db.postgres.async_session_factory", _factory(test_db)):
            gen = get_async_session()
            session = await gen.__anext__()
            after_commit(session, lambda: calls.append("callback"))
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        assert calls == ["commit", "callback"]
        assert test_db.info == {}

    @pytest.mark.asyncio
    async def test_handler_error_drops_callbacks(self, test_db) -> None:
        callback = MagicMock()
        cleanup = MagicMock()

        with patch("autogestao.db.postgres.async_session_factory", _factory(test_db)):
            gen = get_async_session()
            session = await gen.__anext__()
            after_commit(session, callback)
            after_rollback(session, cleanup)
            with pytest.raises(ValueError):
                await gen.athrow(ValueError("handler failed"))

        test_db.rollback.assert_awaited_once()
        test_db.commit.assert_not_called()
        cleanup.assert_called_once_with()
        callback.assert_not_called()
        assert test_db.info == {}

    @pytest.mark.asyncio
    async def test_commit_failure_is_database_error(self, test_db) -> None:
        test_db.commit.side_effect = OperationalError("COMMIT", {}, Exception("gone"))
        callback = MagicMock()

        with patch("autogestao.db.postgres.async_session_factory", _factory(test_db)):
            gen = get_async_session()
            session = await gen.__anext__()
            after_commit(session, callback)
            with pytest.raises(DatabaseConnectionError):
                await gen.__anext__()

        test_db.rollback.assert_awaited_once()
        callback.assert_not_called()


class TestBackgroundSession:
    @pytest.mark.asyncio
    async def test_commits(self, test_db) -> None:
        with patch("autogestao.db.postgres.async_session_factory", _factory(test_db)):
            async with background_session() as db:
                await db.execute("SELECT 1")

        test_db.commit.assert_awaited_once()
        test_db.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, test_db) -> None:
        with patch("autogestao.db.postgres.async_session_factory", _factory(test_db)):
            with pytest.raises(RuntimeError):
                async with background_session():
                    raise RuntimeError("boom")

        test_db.rollback.assert_awaited_once()
        test_db.commit.assert_not_called()
