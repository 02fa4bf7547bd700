from typing import Any, ClassVar

import psycopg
from psycopg.types.json import Jsonb

from medvault.database.connection import get_connection
from medvault.logging.logger import Log


class ActivityLogRepository:
    """Writes user actions into the logs table.

    Audit writes are best effort: a failure is logged and never propagated
    to the operation that triggered it.
    """

    UPLOAD_FILE: ClassVar[str] = "uploaded_file"
    UPLOAD_FILE_ERROR: ClassVar[str] = "file_upload_error"
    DELETE_FILE: ClassVar[str] = "deleted_file"
    DELETE_FILE_ERROR: ClassVar[str] = "file_delete_error"
    AI_INTERPRET: ClassVar[str] = "used_ai_interpreter"
    GENERATE_SUMMARY: ClassVar[str] = "generated_summary"
    VIEW_SUMMARY: ClassVar[str] = "viewed_summary"

    async def log_action(
        self,
        owner_id: str,
        action: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if not owner_id:
            Log.debug(f"No owner for activity action {action}, skipping")
            return
        try:
            async with get_connection() as conn:
                await conn.execute(
                    "INSERT INTO logs (user_id, action, metadata) VALUES (%s, %s, %s)",
                    (owner_id, action, Jsonb(metadata or {})),
                )
                await conn.commit()
        except (psycopg.Error, RuntimeError) as exc:
            Log.error(f"Failed to log activity {action} for owner {owner_id}: {exc}")
