"""Drives submissions through upload -> processing -> success | error.

Each submission runs as its own asyncio task. Stages of one job run in a
fixed order: blob upload, text extraction and interpretation, metadata
persistence, cache upsert. Only the last step touches the record cache,
so a failed or cancelled job never leaves a partial record behind.
"""

import asyncio
import dataclasses
import uuid
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from medvault.config.settings import Settings
from medvault.database.repositories.activity_log_repository import ActivityLogRepository
from medvault.exceptions import TransportError
from medvault.extraction.classify import detect_record_type, suggest_title
from medvault.extraction.exceptions import TextExtractionError
from medvault.extraction.text_extractor import TextExtractor
from medvault.interpretation.interpreter import InterpretationResult, Interpreter
from medvault.logging.logger import Log
from medvault.records.backend import BaseRecordBackend
from medvault.records.cache import RecordCache
from medvault.records.models import Attachment, MedicalRecord, MetadataDraft, RecordType
from medvault.storage.base import BaseBlobStore
from medvault.storage.models import StoredBlob, UploadProgress
from medvault.uploads.exceptions import InvalidTransitionError, UnknownUploadError
from medvault.uploads.models import ActiveUpload, UploadFile, UploadStatus
from medvault.uploads.progress import ProcessingTicker
from medvault.uploads.validation import validate_draft, validate_file

UploadsListener = Callable[[tuple[ActiveUpload, ...]], None]

NOTES_FALLBACK_CHARS = 2000


@dataclass
class _Job:
    upload: ActiveUpload
    file: UploadFile | None
    draft: MetadataDraft
    task: asyncio.Task[None] | None = None
    dismiss_task: asyncio.Task[None] | None = None
    stored_blob: StoredBlob | None = None
    persist_task: asyncio.Task[MedicalRecord] | None = None
    cancelled: bool = False


class UploadJobController:
    """Owns the active uploads of one owner.

    Cancelling a job removes it from the active set at once and cancels
    its pipeline task. A blob or record that was already written for a
    cancelled job is deleted again on a best-effort basis.
    """

    def __init__(
        self,
        *,
        blob_store: BaseBlobStore,
        backend: BaseRecordBackend,
        interpreter: Interpreter,
        text_extractor: TextExtractor,
        cache: RecordCache,
        settings: Settings,
        owner_id: str,
        activity_log: ActivityLogRepository | None = None,
    ) -> None:
        self._blob_store = blob_store
        self._backend = backend
        self._interpreter = interpreter
        self._text_extractor = text_extractor
        self._cache = cache
        self._settings = settings
        self._owner_id = owner_id
        self._activity_log = activity_log
        self._jobs: dict[str, _Job] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[UploadsListener] = []

    @property
    def active_uploads(self) -> tuple[ActiveUpload, ...]:
        """Snapshots of the active set, oldest submission first."""
        return tuple(dataclasses.replace(job.upload) for job in self._jobs.values())

    def get(self, job_id: str) -> ActiveUpload | None:
        job = self._jobs.get(job_id)
        return dataclasses.replace(job.upload) if job else None

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def submit_upload(self, file: UploadFile | None, draft: MetadataDraft) -> str:
        """Validate the submission and start its pipeline.

        Must be called from a running event loop.

        Raises:
            ValidationError: before any job is created.
        """
        validate_draft(draft, has_file=file is not None)
        if file is not None:
            validate_file(file, self._settings.max_upload_size_bytes)

        job_id = uuid.uuid4().hex
        upload = ActiveUpload(
            id=job_id,
            file_name=file.file_name if file is not None else draft.title,
            size_bytes=file.size_bytes if file is not None else None,
            mime_type=file.mime_type if file is not None else None,
        )
        job = _Job(upload=upload, file=file, draft=draft)
        self._jobs[job_id] = job
        job.task = self._spawn(self._run(job), name=f"upload-{job_id}")
        Log.info(f"Upload {job_id} submitted: {upload.file_name}")
        self._notify()
        return job_id

    def cancel(self, job_id: str) -> None:
        """Remove *job_id* from the active set and stop its pipeline.

        Raises:
            UnknownUploadError: if the job is not active.
        """
        job = self._jobs.pop(job_id, None)
        if job is None:
            raise UnknownUploadError(f"No active upload {job_id}")
        job.cancelled = True
        if not job.upload.is_terminal and job.task is not None and not job.task.done():
            job.task.cancel()
        if job.dismiss_task is not None:
            job.dismiss_task.cancel()
        Log.info(f"Upload {job_id} cancelled in state {job.upload.status.value}")
        self._notify()

    def retry(self, job_id: str) -> str:
        """Discard a failed job and submit its file and metadata again.

        Returns:
            The id of the new job.

        Raises:
            UnknownUploadError: if the job is not active.
            InvalidTransitionError: if the job is not in the error state.
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise UnknownUploadError(f"No active upload {job_id}")
        if job.upload.status is not UploadStatus.ERROR:
            raise InvalidTransitionError(
                f"Upload {job_id} is {job.upload.status.value}, only failed uploads can be retried"
            )
        del self._jobs[job_id]
        Log.info(f"Retrying upload {job_id}")
        return self.submit_upload(job.file, job.draft)

    async def join(self) -> None:
        """Wait until every running pipeline and dismiss timer has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def dispose(self) -> None:
        """Cancel all work and clear the active set."""
        for job_id in list(self._jobs):
            self.cancel(job_id)
        for task in list(self._tasks):
            task.cancel()
        await self.join()
        self._listeners.clear()

    def subscribe(self, listener: UploadsListener) -> Callable[[], None]:
        """Call *listener* with fresh snapshots after each change of the active set."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(self, job: _Job) -> None:
        upload = job.upload
        try:
            if job.file is not None:
                job.stored_blob = await self._store_blob(job, job.file)
            upload.upload_progress = 100
            self._move(job, UploadStatus.PROCESSING)

            async with ProcessingTicker(
                lambda progress: self._on_processing_progress(job, progress),
                interval_seconds=self._settings.processing_tick_seconds,
                step=self._settings.processing_tick_step,
                ceiling=self._settings.processing_tick_ceiling,
            ):
                text = await self._extract_text(job)
                result = await self._interpret(job, text or job.draft.notes or "")
                record = await self._persist(job, text)

            upload.processing_progress = 100
            upload.result_record = record
            upload.interpretation = result.interpretation
            self._move(job, UploadStatus.SUCCESS)
            self._cache.upsert(record)
            await self._log_activity(
                ActivityLogRepository.UPLOAD_FILE,
                {
                    "file_name": upload.file_name,
                    "file_size": upload.size_bytes,
                    "record_id": record.id,
                },
            )
            self._schedule_dismiss(job)
        except asyncio.CancelledError:
            await self._rollback(job)
            raise
        except Exception as exc:
            await self._fail(job, exc)

    async def _store_blob(self, job: _Job, file: UploadFile) -> StoredBlob:
        Log.info(f"Upload {job.upload.id}: storing {file.file_name} ({file.size_bytes} bytes)")
        return await self._blob_store.upload(
            file.data,
            file_name=file.file_name,
            mime_type=file.mime_type,
            owner_id=self._owner_id,
            on_progress=lambda progress: self._on_upload_progress(job, progress),
        )

    async def _extract_text(self, job: _Job) -> str:
        if job.file is None:
            return ""
        try:
            return await self._text_extractor.extract(job.file.data, job.file.mime_type)
        except TextExtractionError as exc:
            Log.warning(f"Upload {job.upload.id}: text extraction failed, continuing without text: {exc}")
            return ""

    async def _interpret(self, job: _Job, text: str) -> InterpretationResult:
        result = await self._interpreter.interpret(text)
        if text.strip():
            await self._log_activity(
                ActivityLogRepository.AI_INTERPRET,
                {"file_name": job.upload.file_name, "degraded": result.interpretation.degraded},
            )
        return result

    async def _persist(self, job: _Job, text: str) -> MedicalRecord:
        draft = self._complete_draft(job.draft, text)
        attachment = None
        if job.file is not None and job.stored_blob is not None:
            attachment = Attachment(
                url=job.stored_blob.url,
                file_name=job.file.file_name,
                size_bytes=job.file.size_bytes,
                mime_type=job.file.mime_type,
                path=job.stored_blob.path,
            )
        # Shielded so a cancel mid-request still lets us learn the new id and delete it.
        job.persist_task = asyncio.ensure_future(
            self._backend.create(self._owner_id, draft, attachment)
        )
        record = await asyncio.shield(job.persist_task)
        Log.info(f"Upload {job.upload.id}: persisted record {record.id}")
        return record

    @staticmethod
    def _complete_draft(draft: MetadataDraft, text: str) -> MetadataDraft:
        record_type = draft.record_type
        if record_type is RecordType.OTHER and text:
            record_type = detect_record_type(text) or RecordType.OTHER
        return dataclasses.replace(
            draft,
            title=draft.title.strip() or suggest_title(text),
            record_type=record_type,
            notes=draft.notes or (text[:NOTES_FALLBACK_CHARS] if text else None),
        )

    # ------------------------------------------------------------------
    # Failure and cancellation
    # ------------------------------------------------------------------

    async def _fail(self, job: _Job, exc: Exception) -> None:
        upload = job.upload
        Log.error(f"Upload {upload.id} failed during {upload.status.value}: {exc}")
        if job.cancelled:
            await self._discard_blob(job)
            return
        # Terminal before the first await, so cancel() no longer interrupts the cleanup.
        upload.error_message = str(exc) or exc.__class__.__name__
        self._move(job, UploadStatus.ERROR)
        await self._discard_blob(job)
        await self._log_activity(
            ActivityLogRepository.UPLOAD_FILE_ERROR,
            {"file_name": upload.file_name, "error": upload.error_message},
        )

    async def _rollback(self, job: _Job) -> None:
        if job.upload.status is UploadStatus.SUCCESS:
            return
        if job.persist_task is not None:
            try:
                record = await job.persist_task
            except TransportError:
                record = None
            if record is not None:
                try:
                    await self._backend.delete(record.id, self._owner_id)
                    Log.info(f"Upload {job.upload.id}: removed record {record.id} of cancelled job")
                except TransportError as exc:
                    Log.error(f"Upload {job.upload.id}: could not remove record {record.id}: {exc}")
        await self._discard_blob(job)

    async def _discard_blob(self, job: _Job) -> None:
        if job.stored_blob is None:
            return
        try:
            await self._blob_store.delete(job.stored_blob.path)
            Log.info(f"Upload {job.upload.id}: deleted orphan blob {job.stored_blob.path}")
        except TransportError as exc:
            Log.error(f"Upload {job.upload.id}: orphan blob {job.stored_blob.path} left behind: {exc}")
        except asyncio.CancelledError:
            Log.warning(
                f"Upload {job.upload.id}: cancelled before orphan blob "
                f"{job.stored_blob.path} was deleted"
            )
            raise
        job.stored_blob = None

    # ------------------------------------------------------------------
    # Progress, timers, notifications
    # ------------------------------------------------------------------

    def _on_upload_progress(self, job: _Job, progress: UploadProgress) -> None:
        percentage = progress.percentage
        if job.cancelled or percentage <= job.upload.upload_progress:
            return
        job.upload.upload_progress = percentage
        self._notify()

    def _on_processing_progress(self, job: _Job, progress: int) -> None:
        if job.cancelled or progress <= job.upload.processing_progress:
            return
        job.upload.processing_progress = progress
        self._notify()

    def _move(self, job: _Job, status: UploadStatus) -> None:
        previous = job.upload.status
        job.upload.transition(status)
        Log.info(f"Upload {job.upload.id}: {previous.value} -> {status.value}")
        if not job.cancelled:
            self._notify()

    def _schedule_dismiss(self, job: _Job) -> None:
        job.dismiss_task = self._spawn(
            self._dismiss_later(job), name=f"upload-dismiss-{job.upload.id}"
        )

    async def _dismiss_later(self, job: _Job) -> None:
        await asyncio.sleep(self._settings.auto_dismiss_seconds)
        if self._jobs.get(job.upload.id) is job:
            del self._jobs[job.upload.id]
            Log.debug(f"Upload {job.upload.id} dismissed")
            self._notify()

    def _spawn(self, coro: Coroutine[Any, Any, None], *, name: str) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _log_activity(self, action: str, metadata: dict[str, object]) -> None:
        if self._activity_log is not None:
            await self._activity_log.log_action(self._owner_id, action, metadata)

    def _notify(self) -> None:
        snapshot = self.active_uploads
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                Log.error(f"Upload listener failed: {exc}")
