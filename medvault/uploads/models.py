import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from medvault.interpretation.models import Interpretation
from medvault.records.models import MedicalRecord
from medvault.uploads.exceptions import InvalidTransitionError


class UploadStatus(str, Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


ALLOWED_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.UPLOADING: frozenset({UploadStatus.PROCESSING, UploadStatus.ERROR}),
    UploadStatus.PROCESSING: frozenset({UploadStatus.SUCCESS, UploadStatus.ERROR}),
    UploadStatus.SUCCESS: frozenset(),
    UploadStatus.ERROR: frozenset(),
}


@dataclass(frozen=True)
class UploadFile:
    """A file the user picked, held in memory for the whole job."""

    file_name: str
    data: bytes
    mime_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> "UploadFile":
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            file_name=path.name,
            data=path.read_bytes(),
            mime_type=mime_type or guessed or "application/octet-stream",
        )


@dataclass
class ActiveUpload:
    """Local, never persisted, descriptor of one submission."""

    id: str
    file_name: str
    size_bytes: int | None = None
    mime_type: str | None = None
    status: UploadStatus = UploadStatus.UPLOADING
    upload_progress: int = 0
    processing_progress: int = 0
    result_record: MedicalRecord | None = None
    interpretation: Interpretation | None = None
    error_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def transition(self, status: UploadStatus) -> None:
        """Move to *status*.

        Raises:
            InvalidTransitionError: if the move is not allowed from the current state.
        """
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Upload {self.id} cannot go from {self.status.value} to {status.value}"
            )
        self.status = status
