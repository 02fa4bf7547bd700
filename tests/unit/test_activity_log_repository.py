import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import psycopg

from medvault.database.repositories.activity_log_repository import ActivityLogRepository

_PATCH = "medvault.database.repositories.activity_log_repository.get_connection"


def _mock_connection(mock_get_conn: MagicMock) -> MagicMock:
    mock_conn = MagicMock()
    mock_conn.execute = AsyncMock()
    mock_conn.commit = AsyncMock()
    mock_get_conn.return_value.__aenter__.return_value = mock_conn
    return mock_conn


class TestLogAction:
    @patch(_PATCH)
    def test_inserts_action(self, mock_get_conn: MagicMock) -> None:
        mock_conn = _mock_connection(mock_get_conn)

        asyncio.run(
            ActivityLogRepository().log_action(
                "owner-1", ActivityLogRepository.UPLOAD_FILE, {"file_name": "a.pdf"}
            )
        )

        sql, params = mock_conn.execute.await_args.args
        assert "INSERT INTO logs" in sql
        assert params[0] == "owner-1"
        assert params[1] == "uploaded_file"
        assert params[2].obj == {"file_name": "a.pdf"}
        mock_conn.commit.assert_awaited_once()

    @patch(_PATCH)
    def test_skips_without_owner(self, mock_get_conn: MagicMock) -> None:
        asyncio.run(ActivityLogRepository().log_action("", ActivityLogRepository.DELETE_FILE))
        mock_get_conn.assert_not_called()

    @patch(_PATCH)
    def test_swallows_database_errors(self, mock_get_conn: MagicMock) -> None:
        mock_conn = _mock_connection(mock_get_conn)
        mock_conn.execute.side_effect = psycopg.OperationalError("down")

        asyncio.run(ActivityLogRepository().log_action("owner-1", "deleted_file"))

    @patch(_PATCH, side_effect=RuntimeError("Connection pool not initialized"))
    def test_swallows_missing_pool(self, _mock_get_conn: MagicMock) -> None:
        asyncio.run(ActivityLogRepository().log_action("owner-1", "deleted_file"))
