from collections import Counter
from collections.abc import Sequence

from medvault.records.models import MedicalRecord, RecordStats

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size_bytes: float) -> str:
    """Human-readable size, e.g. ``1.5 MB``."""
    if size_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    value = float(size_bytes)
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[exponent]}"


def compute_stats(records: Sequence[MedicalRecord], recent: int = 5) -> RecordStats:
    """Aggregate counts and sizes over *records* (already ordered for display)."""
    by_type: Counter[str] = Counter()
    by_facility: Counter[str] = Counter()
    by_month: Counter[str] = Counter()
    total_size = 0
    with_files = 0

    for record in records:
        by_type[record.record_type.value] += 1
        by_facility[record.facility_name] += 1
        if record.created_at is not None:
            by_month[record.created_at.strftime("%Y-%m")] += 1
        if record.attachment is not None:
            with_files += 1
            total_size += record.attachment.size_bytes or 0

    average = total_size / len(records) if records else 0
    return RecordStats(
        total_records=len(records),
        records_by_type=dict(by_type),
        records_by_facility=dict(by_facility),
        records_by_month=dict(by_month),
        total_file_size=total_size,
        formatted_total_file_size=format_file_size(total_size),
        average_file_size=format_file_size(average),
        top_facilities=by_facility.most_common(5),
        top_types=by_type.most_common(),
        records_with_files=with_files,
        records_without_files=len(records) - with_files,
        recent_records=list(records[:recent]),
    )
