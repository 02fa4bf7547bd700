"""Splits a marker-formatted completion reply into an Interpretation.

The reply may contain up to three sections, each introduced by a marker
symbol and running until the next marker or the end of the text::

    📘 Explanation: free text ...
    💡 What to Do:
    1. first action
    - second action
    ⚠️ When to See a Doctor:
    * warning sign

Sections may come in any order and any subset. ``parse_interpretation``
never raises: every failure ends in a complete, if generic, result.
"""

import re
from dataclasses import dataclass
from enum import Enum

from medvault.interpretation.models import Interpretation
from medvault.logging.logger import Log

EXPLANATION_MARKER = "\U0001F4D8"  # 📘
ACTIONS_MARKER = "\U0001F4A1"  # 💡
WARNINGS_MARKER = "\u26a0"  # ⚠, usually followed by U+FE0F

GENERIC_ACTION = "Consult with your healthcare provider for detailed guidance"
GENERIC_WARNING = "Seek immediate medical attention if you experience concerning symptoms"

PROCESSED_NOTICE = (
    "Your medical information has been processed. "
    "Please consult with a healthcare professional for detailed interpretation."
)
DEFAULT_ACTION = "Schedule an appointment with your healthcare provider"
DEFAULT_WARNING = "Contact your doctor if you have concerns"


class SectionKind(str, Enum):
    EXPLANATION = "explanation"
    ACTIONS = "actions"
    WARNINGS = "warnings"


_MARKER_KINDS = {
    EXPLANATION_MARKER: SectionKind.EXPLANATION,
    ACTIONS_MARKER: SectionKind.ACTIONS,
    WARNINGS_MARKER: SectionKind.WARNINGS,
}

_MARKER_RE = re.compile(f"({EXPLANATION_MARKER}|{ACTIONS_MARKER}|{WARNINGS_MARKER})\ufe0f?")
_ENUMERATION_RE = re.compile(r"^\s*(?:\d+[.)]|[-•*.·])?\s*")
_EMPHASIS_RE = re.compile(r"^[*_\s]+|[*_\s]+$")
_LEADING_EMPHASIS_RE = re.compile(r"^[*_\s]+")


@dataclass(frozen=True)
class Section:
    kind: SectionKind
    body: str


def tokenize(text: str) -> list[Section]:
    """Split *text* on marker symbols; text before the first marker is dropped."""
    matches = list(_MARKER_RE.finditer(text))
    sections: list[Section] = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        body = _strip_label(text[match.end():end])
        sections.append(Section(kind=_MARKER_KINDS[match.group(1)], body=body))
    return sections


def split_items(body: str) -> list[str]:
    """One item per non-empty line, without leading enumeration tokens."""
    items = []
    for line in body.splitlines():
        item = _EMPHASIS_RE.sub("", _ENUMERATION_RE.sub("", line, count=1))
        if item:
            items.append(item)
    return items


def parse_interpretation(raw_text: str) -> Interpretation:
    """Convert a completion reply into an Interpretation. Never raises."""
    try:
        return _parse(raw_text)
    except Exception as exc:
        Log.warning(f"Interpretation parsing failed, using generic guidance: {exc}")
        return default_interpretation()


def default_interpretation() -> Interpretation:
    return Interpretation(
        explanation=PROCESSED_NOTICE,
        recommended_actions=[DEFAULT_ACTION],
        attention_indicators=[DEFAULT_WARNING],
        degraded=True,
    )


def _parse(raw_text: str) -> Interpretation:
    stripped = raw_text.strip()
    if not stripped:
        Log.warning("Empty completion reply, using generic guidance")
        return default_interpretation()

    sections = tokenize(stripped)
    if not sections:
        Log.warning("No marked sections in completion reply, using it as explanation")
        return Interpretation(
            explanation=stripped,
            recommended_actions=[GENERIC_ACTION],
            attention_indicators=[GENERIC_WARNING],
            degraded=True,
        )

    explanation = ""
    actions: list[str] = []
    warnings: list[str] = []
    for section in sections:
        if section.kind is SectionKind.EXPLANATION:
            explanation = section.body.strip()
        elif section.kind is SectionKind.ACTIONS:
            actions = split_items(section.body)
        else:
            warnings = split_items(section.body)

    if not explanation:
        Log.warning("Completion reply has no explanation section, using notice")
        explanation = PROCESSED_NOTICE
    return Interpretation(
        explanation=explanation,
        recommended_actions=actions,
        attention_indicators=warnings,
    )


def _strip_label(section_text: str) -> str:
    """Drop an optional ``Label:`` on the marker's own line."""
    first_line, newline, rest = section_text.partition("\n")
    if ":" in first_line:
        first_line = _LEADING_EMPHASIS_RE.sub("", first_line.split(":", 1)[1])
    return (first_line + newline + rest).strip()
