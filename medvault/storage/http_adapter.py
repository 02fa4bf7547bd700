from collections.abc import AsyncIterator

import httpx

from medvault.logging.logger import Log
from medvault.storage.base import BaseBlobStore, blob_path
from medvault.storage.exceptions import BlobStoreError
from medvault.storage.models import ProgressCallback, StoredBlob, UploadProgress


class HttpBlobStore(BaseBlobStore):
    """Object storage over a bucket-style HTTP API.

    Uploads ``POST {base_url}/object/{bucket}/{path}``; the public URL is
    ``{base_url}/object/public/{bucket}/{path}``.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        bucket: str,
        chunk_size: int = 64 * 1024,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._chunk_size = max(1, chunk_size)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout_seconds,
            transport=transport,
        )

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
        try:
            response = await self._client.post(
                f"/object/{self._bucket}/{path}",
                content=self._stream(data, on_progress),
                headers={
                    "Content-Type": mime_type,
                    "Content-Length": str(len(data)),
                    "Cache-Control": "3600",
                    "x-upsert": "false",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise BlobStoreError(
                f"Upload failed: {exc.response.status_code} {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise BlobStoreError(f"Upload failed: {exc}") from exc

        Log.info(f"Uploaded {len(data)} bytes to bucket {self._bucket} at {path}")
        return StoredBlob(url=self.public_url(path), path=path)

    async def delete(self, path: str) -> None:
        try:
            response = await self._client.request(
                "DELETE",
                f"/object/{self._bucket}",
                json={"prefixes": [path]},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BlobStoreError(f"Delete failed: {exc}") from exc

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/object/public/{self._bucket}/{path}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _stream(
        self,
        data: bytes,
        on_progress: ProgressCallback | None,
    ) -> AsyncIterator[bytes]:
        total = len(data)
        for offset in range(0, total, self._chunk_size):
            chunk = data[offset:offset + self._chunk_size]
            yield chunk
            if on_progress is not None:
                on_progress(UploadProgress(loaded=offset + len(chunk), total=total))
