"""Building the multi-record summary input and reading the model's JSON reply.

The reply is expected to hold one JSON object::

    {"summary": "...", "conditions": [...], "medications": [...],
     "tests": [...], "patterns": [...], "riskFactors": [...],
     "recommendations": [...]}

Anything around the object is ignored. When no object can be read the
caller falls back to ``fallback_analysis``, a plain keyword scan.
"""

import json
import re
from collections.abc import Sequence
from typing import Any

from medvault.records.models import MedicalRecord
from medvault.summaries.exceptions import SummaryParseError
from medvault.summaries.models import SummaryAnalysis

NO_SUMMARY = "No summary available"

CONDITION_KEYWORDS = (
    "diabetes",
    "hypertension",
    "asthma",
    "arthritis",
    "cancer",
    "heart disease",
    "depression",
    "anxiety",
    "obesity",
    "high blood pressure",
    "cholesterol",
)
MEDICATION_KEYWORDS = (
    "aspirin",
    "ibuprofen",
    "acetaminophen",
    "insulin",
    "metformin",
    "lisinopril",
    "atorvastatin",
    "amoxicillin",
    "prednisone",
)
TEST_KEYWORDS = (
    "blood test",
    "x-ray",
    "mri",
    "ct scan",
    "ultrasound",
    "ecg",
    "ekg",
    "urinalysis",
    "biopsy",
    "colonoscopy",
    "mammogram",
)

FALLBACK_PATTERNS = ["Analysis patterns not available"]
FALLBACK_RISK_FACTORS = ["Risk factor analysis not available"]
FALLBACK_RECOMMENDATIONS = [
    "Please consult with your healthcare provider for personalized recommendations."
]

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def combine_records(records: Sequence[MedicalRecord], texts: Sequence[str]) -> str:
    """Lay out record metadata followed by each document's text."""
    parts = ["MEDICAL RECORDS SUMMARY\n"]
    for index, record in enumerate(records, start=1):
        lines = [
            f"RECORD {index}:",
            f"Title: {record.title}",
            f"Type: {record.record_type.value}",
            f"Hospital: {record.facility_name}",
            f"Visit Date: {record.visit_date.isoformat()}",
        ]
        if record.notes:
            lines.append(f"Notes: {record.notes}")
        parts.append("\n".join(lines) + "\n")
    for index, text in enumerate(texts, start=1):
        parts.append(f"DOCUMENT {index} CONTENT:\n{text}\n")
    return "\n".join(parts)


def parse_summary_reply(raw_text: str) -> SummaryAnalysis:
    """Read the JSON analysis out of *raw_text*.

    Missing or non-list categories become empty lists.

    Raises:
        SummaryParseError: if the reply holds no JSON object.
    """
    match = _JSON_OBJECT_RE.search(raw_text or "")
    if match is None:
        raise SummaryParseError("No JSON object found in AI response")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise SummaryParseError(f"AI response is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise SummaryParseError("AI response JSON is not an object")

    summary = parsed.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = NO_SUMMARY
    return SummaryAnalysis(
        summary_text=summary.strip(),
        conditions=_as_list(parsed.get("conditions")),
        medications=_as_list(parsed.get("medications")),
        tests=_as_list(parsed.get("tests")),
        patterns=_as_list(parsed.get("patterns")),
        risk_factors=_as_list(parsed.get("riskFactors")),
        recommendations=_as_list(parsed.get("recommendations")),
    )


def fallback_analysis(content: str) -> SummaryAnalysis:
    """Keyword scan used when the completion reply cannot be used."""
    text = content.lower()
    conditions = _keywords_in(text, CONDITION_KEYWORDS)
    medications = _keywords_in(text, MEDICATION_KEYWORDS)
    tests = _keywords_in(text, TEST_KEYWORDS)
    return SummaryAnalysis(
        summary_text=(
            f"Medical records analysis completed. Found {len(conditions)} conditions, "
            f"{len(medications)} medications, and {len(tests)} tests mentioned "
            "across your records."
        ),
        conditions=conditions,
        medications=medications,
        tests=tests,
        patterns=list(FALLBACK_PATTERNS),
        risk_factors=list(FALLBACK_RISK_FACTORS),
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        degraded=True,
    )


def _as_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _keywords_in(text: str, keywords: Sequence[str]) -> list[str]:
    return [keyword for keyword in keywords if keyword in text]
