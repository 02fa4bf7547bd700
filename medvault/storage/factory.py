from pathlib import Path

from medvault.config.settings import Settings
from medvault.storage.base import BaseBlobStore
from medvault.storage.http_adapter import HttpBlobStore
from medvault.storage.local_adapter import LocalBlobStore


class BlobStoreFactory:
    """Creates the configured blob store adapter."""

    ENGINES = ("local", "http")

    @classmethod
    def create(cls, settings: Settings) -> BaseBlobStore:
        engine = settings.blob_store_engine.lower()
        if engine == "local":
            return LocalBlobStore(
                files_root=Path(settings.blob_files_root),
                chunk_size=settings.blob_chunk_size_bytes,
            )
        if engine == "http":
            base_url = settings.blob_http_base_url.strip()
            if not base_url:
                raise ValueError("blob_http_base_url is required for blob_store_engine=http")
            return HttpBlobStore(
                base_url=base_url,
                api_key=settings.blob_http_api_key,
                bucket=settings.blob_bucket,
                chunk_size=settings.blob_chunk_size_bytes,
            )
        raise ValueError(
            f"Unknown blob store engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
