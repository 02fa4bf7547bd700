import psycopg
from psycopg.rows import dict_row

from medvault.database.connection import get_connection
from medvault.logging.logger import Log
from medvault.records.backend import BaseRecordBackend
from medvault.records.exceptions import RecordBackendError, RecordNotFoundError
from medvault.records.mapping import record_from_row
from medvault.records.models import Attachment, MedicalRecord, MetadataDraft

_COLUMNS = """
    id, user_id, title, type, hospital_name, visit_date, notes,
    file_url, file_name, file_size, file_type, file_path,
    created_at, updated_at
"""


class MedicalRecordsRepository(BaseRecordBackend):
    """Database operations for the medical_records table."""

    async def create(
        self,
        owner_id: str,
        draft: MetadataDraft,
        attachment: Attachment | None = None,
    ) -> MedicalRecord:
        notes = (draft.notes or "").strip() or None
        try:
            async with get_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        f"""
                        INSERT INTO medical_records (
                            user_id, title, type, hospital_name, visit_date, notes,
                            file_url, file_name, file_size, file_type, file_path
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (
                            owner_id,
                            draft.title.strip(),
                            draft.record_type.value,
                            draft.facility_name.strip(),
                            draft.visit_date,
                            notes,
                            attachment.url if attachment else None,
                            attachment.file_name if attachment else None,
                            attachment.size_bytes if attachment else None,
                            attachment.mime_type if attachment else None,
                            attachment.path if attachment else None,
                        ),
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as exc:
            raise RecordBackendError(f"Failed to create medical record: {exc}") from exc

        if row is None:
            raise RecordBackendError("Failed to create medical record: no row returned")
        record = record_from_row(row)
        Log.info(f"Created medical record {record.id} for owner {owner_id}")
        return record

    async def delete(self, record_id: str, owner_id: str) -> MedicalRecord:
        try:
            async with get_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        f"""
                        DELETE FROM medical_records
                        WHERE id = %s AND user_id = %s
                        RETURNING {_COLUMNS}
                        """,
                        (record_id, owner_id),
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as exc:
            raise RecordBackendError(f"Failed to delete medical record: {exc}") from exc

        if row is None:
            raise RecordNotFoundError(f"Medical record {record_id} not found")
        Log.info(f"Deleted medical record {record_id} for owner {owner_id}")
        return record_from_row(row)

    async def list_all(self, owner_id: str) -> list[MedicalRecord]:
        try:
            async with get_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        f"""
                        SELECT {_COLUMNS}
                        FROM medical_records
                        WHERE user_id = %s
                        ORDER BY visit_date DESC, created_at DESC
                        """,
                        (owner_id,),
                    )
                    rows = await cur.fetchall()
        except psycopg.Error as exc:
            raise RecordBackendError(f"Failed to fetch medical records: {exc}") from exc

        return [record_from_row(row) for row in rows]

    async def find_by_id(self, record_id: str, owner_id: str) -> MedicalRecord:
        try:
            async with get_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        f"""
                        SELECT {_COLUMNS}
                        FROM medical_records
                        WHERE id = %s AND user_id = %s
                        """,
                        (record_id, owner_id),
                    )
                    row = await cur.fetchone()
        except psycopg.Error as exc:
            raise RecordBackendError(f"Failed to fetch medical record: {exc}") from exc

        if row is None:
            raise RecordNotFoundError(f"Medical record {record_id} not found")
        return record_from_row(row)
