import asyncio
from pathlib import Path

from medvault.logging.logger import Log
from medvault.storage.base import BaseBlobStore, blob_path
from medvault.storage.exceptions import BlobStoreError
from medvault.storage.models import ProgressCallback, StoredBlob, UploadProgress


class LocalBlobStore(BaseBlobStore):
    """Stores blobs on the local filesystem under ``files_root``."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None, chunk_size: int = 64 * 1024) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT
        self._chunk_size = max(1, chunk_size)

    async def upload(
        self,
        data: bytes,
        *,
        file_name: str,
        mime_type: str,
        owner_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> StoredBlob:
        path = blob_path(owner_id, file_name)
        target = self._resolve(path)
        total = len(data)
        try:
            await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
            with target.open("wb") as handle:
                for offset in range(0, total, self._chunk_size):
                    chunk = data[offset:offset + self._chunk_size]
                    await asyncio.to_thread(handle.write, chunk)
                    if on_progress is not None:
                        on_progress(UploadProgress(loaded=offset + len(chunk), total=total))
        except OSError as exc:
            self._remove_partial(target, path)
            raise BlobStoreError(f"Upload failed: {exc}") from exc
        except asyncio.CancelledError:
            self._remove_partial(target, path)
            raise

        if on_progress is not None and total == 0:
            on_progress(UploadProgress(loaded=0, total=0))
        Log.info(f"Stored {total} bytes ({mime_type}) at {path}")
        return StoredBlob(url=target.as_uri(), path=path)

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            Log.warning(f"Blob {path} already absent")
        except OSError as exc:
            raise BlobStoreError(f"Delete failed: {exc}") from exc

    def _resolve(self, path: str) -> Path:
        target = (self._files_root / path).resolve()
        if not target.is_relative_to(self._files_root.resolve()):
            raise BlobStoreError(f"Blob path escapes storage root: {path}")
        return target

    @staticmethod
    def _remove_partial(target: Path, path: str) -> None:
        """Drop a half-written file; the caller never learns its path."""
        if not target.exists():
            return
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            Log.error(f"Partial blob {path} left behind: {exc}")
            return
        Log.info(f"Removed partial blob {path}")
