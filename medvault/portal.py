"""UI-facing facade over the record cache, the upload pipeline and summaries."""

from collections.abc import Iterable

from medvault.config.settings import Settings
from medvault.database.change_channel import PostgresChangeChannel
from medvault.database.connection import build_conninfo
from medvault.database.repositories.activity_log_repository import ActivityLogRepository
from medvault.database.repositories.medical_records_repository import MedicalRecordsRepository
from medvault.database.repositories.medical_summaries_repository import (
    MedicalSummariesRepository,
)
from medvault.exceptions import TransportError
from medvault.extraction.factory import build_text_extractor
from medvault.interpretation.factory import InterpreterFactory
from medvault.logging.logger import Log
from medvault.records.backend import BaseRecordBackend
from medvault.records.cache import RecordCache
from medvault.records.models import MedicalRecord, MetadataDraft, RecordStats
from medvault.records.stats import compute_stats
from medvault.storage.base import BaseBlobStore
from medvault.storage.factory import BlobStoreFactory
from medvault.summaries.generator import SummaryGenerator
from medvault.summaries.models import MedicalSummary, SummaryResult
from medvault.summaries.service import SummaryService
from medvault.uploads.controller import UploadJobController
from medvault.uploads.models import ActiveUpload, UploadFile


class RecordsPortal:
    """Everything the UI layer needs for one signed-in owner."""

    def __init__(
        self,
        *,
        owner_id: str,
        cache: RecordCache,
        uploads: UploadJobController,
        backend: BaseRecordBackend,
        blob_store: BaseBlobStore,
        activity_log: ActivityLogRepository | None = None,
        summaries: SummaryService | None = None,
    ) -> None:
        self._owner_id = owner_id
        self.cache = cache
        self.uploads = uploads
        self.summaries = summaries
        self._backend = backend
        self._blob_store = blob_store
        self._activity_log = activity_log

    @property
    def records(self) -> tuple[MedicalRecord, ...]:
        return self.cache.records

    @property
    def active_uploads(self) -> tuple[ActiveUpload, ...]:
        return self.uploads.active_uploads

    async def init(self) -> None:
        await self.cache.init()

    async def dispose(self) -> None:
        await self.uploads.dispose()
        await self.cache.dispose()
        await self._blob_store.aclose()

    def submit_upload(self, file: UploadFile | None, draft: MetadataDraft) -> str:
        return self.uploads.submit_upload(file, draft)

    def cancel(self, job_id: str) -> None:
        self.uploads.cancel(job_id)

    def retry(self, job_id: str) -> str:
        return self.uploads.retry(job_id)

    async def delete_record(self, record_id: str) -> None:
        """Delete a record, then request deletion of its blob.

        The cache entry is removed as soon as the backend confirms. A
        failing blob delete is logged and recorded but not raised, since
        the record itself is already gone.

        Raises:
            RecordBackendError: if the backend delete fails; the cache is untouched.
        """
        record = await self._backend.delete(record_id, self._owner_id)
        self.cache.remove(record_id)
        Log.info(f"Deleted record {record_id} for {self._owner_id}")

        attachment = record.attachment
        if attachment is None or not attachment.path:
            await self._log_activity(ActivityLogRepository.DELETE_FILE, {"record_id": record_id})
            return
        try:
            await self._blob_store.delete(attachment.path)
        except TransportError as exc:
            Log.error(f"Blob {attachment.path} of record {record_id} was not deleted: {exc}")
            await self._log_activity(
                ActivityLogRepository.DELETE_FILE_ERROR,
                {"record_id": record_id, "file_path": attachment.path, "error": str(exc)},
            )
            return
        await self._log_activity(
            ActivityLogRepository.DELETE_FILE,
            {"record_id": record_id, "file_name": attachment.file_name},
        )

    def stats(self) -> RecordStats:
        return compute_stats(self.cache.records)

    async def generate_summary(
        self, record_ids: Iterable[str] | None = None, *, force: bool = False
    ) -> SummaryResult:
        return await self._require_summaries().generate(record_ids, force=force)

    async def latest_summary(self) -> MedicalSummary | None:
        return await self._require_summaries().latest()

    def _require_summaries(self) -> SummaryService:
        if self.summaries is None:
            raise RuntimeError("Summaries are not configured for this portal")
        return self.summaries

    async def _log_activity(self, action: str, metadata: dict[str, object]) -> None:
        if self._activity_log is not None:
            await self._activity_log.log_action(self._owner_id, action, metadata)


def build_portal(settings: Settings, owner_id: str) -> RecordsPortal:
    """Wire the PostgreSQL-backed portal. The connection pool must be open before use."""
    backend = MedicalRecordsRepository()
    blob_store = BlobStoreFactory.create(settings)
    activity_log = ActivityLogRepository()
    channel = PostgresChangeChannel(
        build_conninfo(settings), settings.change_channel_name, backend
    )
    cache = RecordCache(
        backend,
        owner_id,
        channel=channel,
        retry_seconds=settings.change_channel_retry_seconds,
        max_retry_seconds=settings.change_channel_max_retry_seconds,
    )
    summaries = SummaryService(
        backend=MedicalSummariesRepository(),
        generator=SummaryGenerator(
            client=InterpreterFactory.create_client(settings),
            model=settings.completion_model_name or "example",
            temperature=settings.completion_temperature,
            timeout_seconds=settings.completion_timeout_seconds,
            language=settings.completion_language,
        ),
        cache=cache,
        owner_id=owner_id,
        reuse_hours=settings.summary_reuse_hours,
        activity_log=activity_log,
    )
    uploads = UploadJobController(
        blob_store=blob_store,
        backend=backend,
        interpreter=InterpreterFactory.create(settings),
        text_extractor=build_text_extractor(settings),
        cache=cache,
        settings=settings,
        owner_id=owner_id,
        activity_log=activity_log,
    )
    return RecordsPortal(
        owner_id=owner_id,
        cache=cache,
        uploads=uploads,
        backend=backend,
        blob_store=blob_store,
        activity_log=activity_log,
        summaries=summaries,
    )
