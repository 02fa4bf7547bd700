from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


class RecordType(str, Enum):
    PRESCRIPTION = "prescription"
    LAB_RESULT = "lab_result"
    SCAN = "scan"
    OTHER = "other"


@dataclass(frozen=True)
class Attachment:
    """Reference to a stored blob. The blob itself belongs to the object store."""

    url: str
    file_name: str
    size_bytes: int | None = None
    mime_type: str | None = None
    path: str = ""  # storage key, needed to request deletion


@dataclass(frozen=True)
class MedicalRecord:
    """A persisted medical record. Replaced as a whole, never patched."""

    id: str
    owner_id: str
    title: str
    record_type: RecordType
    facility_name: str
    visit_date: date
    notes: str | None = None
    attachment: Attachment | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class MetadataDraft:
    """User-entered metadata for a record that does not exist yet."""

    title: str
    facility_name: str
    visit_date: date | None
    record_type: RecordType = RecordType.OTHER
    notes: str | None = None


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """One push notification about a record changed elsewhere."""

    kind: ChangeKind
    record_id: str
    payload: MedicalRecord | None = None


@dataclass(frozen=True)
class RecordStats:
    """Aggregate view over a user's records."""

    total_records: int
    records_by_type: dict[str, int]
    records_by_facility: dict[str, int]
    records_by_month: dict[str, int]
    total_file_size: int
    formatted_total_file_size: str
    average_file_size: str
    top_facilities: list[tuple[str, int]]
    top_types: list[tuple[str, int]]
    records_with_files: int
    records_without_files: int
    recent_records: list[MedicalRecord]


Row = dict[str, Any]
