from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

RECENT_HOURS = 24
STALE_HOURS = 168


class SummaryFreshness(str, Enum):
    RECENT = "recent"
    STALE = "stale"
    OLD = "old"


@dataclass(frozen=True)
class SummaryAnalysis:
    """Structured health profile drawn from several records.

    ``degraded`` is set when the completion reply was unusable and the
    keyword fallback produced the lists instead.
    """

    summary_text: str
    conditions: list[str] = field(default_factory=list)
    medications: list[str] = field(default_factory=list)
    tests: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    degraded: bool = False


@dataclass(frozen=True)
class MedicalSummary:
    """A stored summary. Newer summaries supersede older ones; none is edited."""

    id: str
    owner_id: str
    analysis: SummaryAnalysis
    record_count: int
    created_at: datetime
    last_updated: datetime

    def age_hours(self, now: datetime | None = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.last_updated).total_seconds() / 3600

    def freshness(self, now: datetime | None = None) -> SummaryFreshness:
        age = self.age_hours(now)
        if age < RECENT_HOURS:
            return SummaryFreshness.RECENT
        if age < STALE_HOURS:
            return SummaryFreshness.STALE
        return SummaryFreshness.OLD


@dataclass(frozen=True)
class SummaryResult:
    summary: MedicalSummary
    reused: bool = False
