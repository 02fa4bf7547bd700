import asyncio
from pathlib import Path

import pytest

from medvault.storage.exceptions import BlobStoreError
from medvault.storage.local_adapter import LocalBlobStore
from medvault.storage.models import UploadProgress


class TestUpload:
    def test_writes_file_under_owner_prefix(self, tmp_path: Path) -> None:
        store = LocalBlobStore(files_root=tmp_path)
        blob = asyncio.run(
            store.upload(b"hello", file_name="Scan.PNG", mime_type="image/png", owner_id="owner-1")
        )
        assert blob.path.startswith("owner-1/")
        assert blob.path.endswith(".png")
        assert (tmp_path / blob.path).read_bytes() == b"hello"
        assert blob.url.startswith("file://")

    def test_reports_monotonic_progress(self, tmp_path: Path) -> None:
        store = LocalBlobStore(files_root=tmp_path, chunk_size=4)
        seen: list[UploadProgress] = []
        asyncio.run(
            store.upload(
                b"0123456789",
                file_name="a.txt",
                mime_type="text/plain",
                owner_id="o",
                on_progress=seen.append,
            )
        )
        assert [p.loaded for p in seen] == [4, 8, 10]
        assert seen[-1].percentage == 100

    def test_paths_are_unique(self, tmp_path: Path) -> None:
        store = LocalBlobStore(files_root=tmp_path)

        async def scenario() -> set[str]:
            blobs = [
                await store.upload(b"x", file_name="a.pdf", mime_type="application/pdf", owner_id="o")
                for _ in range(5)
            ]
            return {b.path for b in blobs}

        assert len(asyncio.run(scenario())) == 5

    def test_write_failure_raises_blob_store_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "owner-1"
        blocker.write_text("not a directory")
        store = LocalBlobStore(files_root=tmp_path)
        with pytest.raises(BlobStoreError, match="Upload failed"):
            asyncio.run(
                store.upload(b"x", file_name="a.pdf", mime_type="application/pdf", owner_id="owner-1")
            )


    def test_cancel_mid_write_removes_partial_file(self, tmp_path: Path) -> None:
        store = LocalBlobStore(files_root=tmp_path, chunk_size=1024)

        def cancel_at_40_percent(progress: UploadProgress) -> None:
            if progress.percentage >= 40:
                current = asyncio.current_task()
                assert current is not None
                current.cancel()

        async def scenario() -> None:
            await store.upload(
                b"0" * 512 * 1024,
                file_name="scan.pdf",
                mime_type="application/pdf",
                owner_id="owner-1",
                on_progress=cancel_at_40_percent,
            )

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(scenario())
        assert list((tmp_path / "owner-1").iterdir()) == []

    def test_failure_mid_write_removes_partial_file(self, tmp_path: Path) -> None:
        store = LocalBlobStore(files_root=tmp_path, chunk_size=4)

        def disk_full(progress: UploadProgress) -> None:
            if progress.loaded >= 8:
                raise OSError(28, "No space left on device")

        with pytest.raises(BlobStoreError, match="No space left"):
            asyncio.run(
                store.upload(
                    b"0123456789abcdef",
                    file_name="a.txt",
                    mime_type="text/plain",
                    owner_id="owner-1",
                    on_progress=disk_full,
                )
            )
        assert list((tmp_path / "owner-1").iterdir()) == []


class TestDelete:
    def test_removes_file(self, tmp_path: Path) -> None:
        store = LocalBlobStore(files_root=tmp_path)

        async def scenario() -> str:
            blob = await store.upload(b"x", file_name="a.pdf", mime_type="application/pdf", owner_id="o")
            await store.delete(blob.path)
            return blob.path

        path = asyncio.run(scenario())
        assert not (tmp_path / path).exists()

    def test_missing_file_is_ignored(self, tmp_path: Path) -> None:
        asyncio.run(LocalBlobStore(files_root=tmp_path).delete("o/missing.pdf"))

    def test_rejects_path_outside_root(self, tmp_path: Path) -> None:
        store = LocalBlobStore(files_root=tmp_path / "files")
        with pytest.raises(BlobStoreError, match="escapes"):
            asyncio.run(store.delete("../secret.txt"))
