import secrets
import time
from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from medvault.storage.models import ProgressCallback, StoredBlob


def blob_path(owner_id: str, file_name: str) -> str:
    """Build a collision-free storage key: ``{owner_id}/{epoch_ms}_{random}{ext}``."""
    suffix = PurePosixPath(file_name).suffix.lower()
    return f"{owner_id}/{int(time.time() * 1000)}_{secrets.token_hex(4)}{suffix}"


class BaseBlobStore(ABC):
    """Contract for all object storage adapters."""

    @abstractmethod
    async def upload(
        self,
        data: bytes,
        *,
        file_name: str,
        mime_type: str,
        owner_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> StoredBlob:
        """Store *data* under a new key owned by *owner_id*.

        *on_progress* receives non-decreasing byte counts ending at the
        full size.

        Raises:
            BlobStoreError: on any storage failure.
        """

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete the blob stored at *path*.

        Raises:
            BlobStoreError: on any storage failure.
        """

    async def aclose(self) -> None:
        """Release client resources. Adapters without any keep the default."""
