"""Conversion between backend rows and MedicalRecord."""

from datetime import date, datetime
from typing import Any

from medvault.records.models import Attachment, MedicalRecord, RecordType, Row


def record_from_row(row: Row) -> MedicalRecord:
    """Build a MedicalRecord from a medical_records row.

    Accepts native date/datetime values as well as ISO strings.
    """
    return MedicalRecord(
        id=str(row["id"]),
        owner_id=str(row["user_id"]),
        title=row["title"],
        record_type=RecordType(row["type"]),
        facility_name=row["hospital_name"],
        visit_date=_as_date(row["visit_date"]),
        notes=row.get("notes"),
        attachment=_attachment_from_row(row),
        created_at=_as_datetime(row.get("created_at")),
        updated_at=_as_datetime(row.get("updated_at")),
    )


def _attachment_from_row(row: Row) -> Attachment | None:
    url = row.get("file_url")
    if not url:
        return None
    return Attachment(
        url=url,
        file_name=row.get("file_name") or "",
        size_bytes=row.get("file_size"),
        mime_type=row.get("file_type"),
        path=row.get("file_path") or "",
    )


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _as_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
