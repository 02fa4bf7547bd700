"""Keyword heuristics that pre-fill record metadata from document text."""

from medvault.records.models import RecordType

_KEYWORDS: tuple[tuple[RecordType, tuple[str, ...]], ...] = (
    (
        RecordType.PRESCRIPTION,
        ("prescription", "rx:", "sig:", "take", "dose", "tablet", "mg"),
    ),
    (
        RecordType.LAB_RESULT,
        ("laboratory", "lab report", "results:", "reference range", "test:", "specimen"),
    ),
    (
        RecordType.SCAN,
        ("scan", "x-ray", "mri", "ct", "ultrasound", "imaging", "radiolog"),
    ),
)

_TYPE_TITLES = {
    RecordType.PRESCRIPTION: "Prescription",
    RecordType.LAB_RESULT: "Laboratory Results",
    RecordType.SCAN: "Medical Scan",
}

_SKIPPED_PREFIXES = ("date", "name")


def detect_record_type(text: str) -> RecordType | None:
    """Guess the record type; None when no keyword matches.

    Rules are checked in order, so prescription keywords win over the others.
    """
    lowered = text.lower()
    for record_type, keywords in _KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return record_type
    return None


def suggest_title(text: str) -> str:
    """Pick a title from the first ten lines, else derive one from the type."""
    for line in text.splitlines()[:10]:
        candidate = line.strip()
        if len(candidate) <= 5 or len(candidate) >= 60:
            continue
        lowered = candidate.lower()
        if ":" in candidate or "=" in candidate or "patient" in lowered:
            continue
        if lowered.startswith(_SKIPPED_PREFIXES):
            continue
        return candidate

    record_type = detect_record_type(text)
    if record_type is not None:
        return _TYPE_TITLES[record_type]
    return "Medical Document"
