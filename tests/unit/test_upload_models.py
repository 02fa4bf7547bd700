from pathlib import Path

import pytest

from medvault.uploads.exceptions import InvalidTransitionError
from medvault.uploads.models import ALLOWED_TRANSITIONS, ActiveUpload, UploadFile, UploadStatus


def _upload(status: UploadStatus = UploadStatus.UPLOADING) -> ActiveUpload:
    return ActiveUpload(id="job-1", file_name="a.pdf", status=status)


class TestTransitions:
    @pytest.mark.parametrize(
        ("source", "target"),
        [
            (UploadStatus.UPLOADING, UploadStatus.PROCESSING),
            (UploadStatus.UPLOADING, UploadStatus.ERROR),
            (UploadStatus.PROCESSING, UploadStatus.SUCCESS),
            (UploadStatus.PROCESSING, UploadStatus.ERROR),
        ],
    )
    def test_allowed(self, source: UploadStatus, target: UploadStatus) -> None:
        upload = _upload(source)
        upload.transition(target)
        assert upload.status is target

    @pytest.mark.parametrize(
        ("source", "target"),
        [
            (UploadStatus.UPLOADING, UploadStatus.SUCCESS),
            (UploadStatus.UPLOADING, UploadStatus.UPLOADING),
            (UploadStatus.PROCESSING, UploadStatus.UPLOADING),
            (UploadStatus.SUCCESS, UploadStatus.ERROR),
            (UploadStatus.ERROR, UploadStatus.UPLOADING),
            (UploadStatus.ERROR, UploadStatus.PROCESSING),
        ],
    )
    def test_rejected(self, source: UploadStatus, target: UploadStatus) -> None:
        upload = _upload(source)
        with pytest.raises(InvalidTransitionError):
            upload.transition(target)
        assert upload.status is source

    def test_terminal_states_have_no_exits(self) -> None:
        assert ALLOWED_TRANSITIONS[UploadStatus.SUCCESS] == frozenset()
        assert ALLOWED_TRANSITIONS[UploadStatus.ERROR] == frozenset()
        assert _upload(UploadStatus.SUCCESS).is_terminal
        assert not _upload(UploadStatus.PROCESSING).is_terminal


class TestUploadFile:
    def test_size(self) -> None:
        assert UploadFile("a.txt", b"abc", "text/plain").size_bytes == 3

    def test_from_path_guesses_mime_type(self, tmp_path: Path) -> None:
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF-1.4")
        file = UploadFile.from_path(path)
        assert file.file_name == "report.pdf"
        assert file.mime_type == "application/pdf"
        assert file.data == b"%PDF-1.4"

    def test_from_path_unknown_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "blob.unknownext"
        path.write_bytes(b"x")
        assert UploadFile.from_path(path).mime_type == "application/octet-stream"
