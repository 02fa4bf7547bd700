from collections.abc import Iterable

from medvault.database.repositories.activity_log_repository import ActivityLogRepository
from medvault.logging.logger import Log
from medvault.records.cache import RecordCache
from medvault.records.models import MedicalRecord
from medvault.summaries.backend import BaseSummaryBackend
from medvault.summaries.exceptions import NoRecordsToSummarizeError
from medvault.summaries.generator import SummaryGenerator
from medvault.summaries.models import MedicalSummary, SummaryResult


class SummaryService:
    """Health profiles over one owner's cached records.

    A summary younger than ``reuse_hours`` is returned instead of
    generating a new one unless the caller forces regeneration.
    """

    def __init__(
        self,
        *,
        backend: BaseSummaryBackend,
        generator: SummaryGenerator,
        cache: RecordCache,
        owner_id: str,
        reuse_hours: float = 24.0,
        activity_log: ActivityLogRepository | None = None,
    ) -> None:
        self._backend = backend
        self._generator = generator
        self._cache = cache
        self._owner_id = owner_id
        self._reuse_hours = reuse_hours
        self._activity_log = activity_log

    async def generate(
        self, record_ids: Iterable[str] | None = None, *, force: bool = False
    ) -> SummaryResult:
        """Summarize the chosen records, or every cached record when *record_ids* is None.

        Records are taken in cache order. Their text is the record notes,
        or the title when a record has none.

        Raises:
            NoRecordsToSummarizeError: if no cached record matches.
            SummaryBackendError: if the latest summary cannot be read or the new one stored.
        """
        records = self._select(record_ids)
        if not records:
            raise NoRecordsToSummarizeError("No medical records to summarize")

        if not force:
            latest = await self._backend.latest(self._owner_id)
            if latest is not None and latest.age_hours() < self._reuse_hours:
                Log.info(
                    f"Reusing summary {latest.id} for {self._owner_id}, "
                    f"{latest.age_hours():.1f}h old"
                )
                return SummaryResult(summary=latest, reused=True)

        texts = [record.notes or record.title for record in records]
        analysis = await self._generator.analyze(records, texts)
        summary = await self._backend.create(self._owner_id, analysis, record_count=len(records))
        Log.info(
            f"Generated summary {summary.id} from {len(records)} records for {self._owner_id}"
            + (" (degraded)" if analysis.degraded else "")
        )
        await self._log_activity(
            ActivityLogRepository.GENERATE_SUMMARY,
            {"summary_id": summary.id, "record_count": len(records), "degraded": analysis.degraded},
        )
        return SummaryResult(summary=summary, reused=False)

    async def latest(self) -> MedicalSummary | None:
        summary = await self._backend.latest(self._owner_id)
        if summary is not None:
            await self._log_activity(ActivityLogRepository.VIEW_SUMMARY, {"summary_id": summary.id})
        return summary

    async def list_recent(self, limit: int = 10, offset: int = 0) -> list[MedicalSummary]:
        return await self._backend.list_recent(self._owner_id, limit=limit, offset=offset)

    async def delete_all(self) -> int:
        return await self._backend.delete_all(self._owner_id)

    def _select(self, record_ids: Iterable[str] | None) -> list[MedicalRecord]:
        records = self._cache.records
        if record_ids is None:
            return list(records)
        wanted = set(record_ids)
        return [record for record in records if record.id in wanted]

    async def _log_activity(self, action: str, metadata: dict[str, object]) -> None:
        if self._activity_log is not None:
            await self._activity_log.log_action(self._owner_id, action, metadata)
