from pathlib import PurePosixPath

from medvault.exceptions import ValidationError
from medvault.records.models import MetadataDraft
from medvault.uploads.models import UploadFile

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        DOCX_MIME_TYPE,
        "image/png",
        "image/jpeg",
        "image/jpg",
        "text/plain",
    }
)
ALLOWED_EXTENSIONS = frozenset({".pdf", ".docx", ".png", ".jpg", ".jpeg", ".txt"})


def validate_file(file: UploadFile, max_size_bytes: int) -> None:
    """Reject files the portal does not accept.

    Raises:
        ValidationError: on an empty, oversized, or unsupported file.
    """
    if file.size_bytes == 0:
        raise ValidationError(f"File {file.file_name} is empty")
    if file.size_bytes > max_size_bytes:
        limit_mb = max_size_bytes / (1024 * 1024)
        raise ValidationError(f"File size must be less than {limit_mb:g} MB")
    extension = PurePosixPath(file.file_name).suffix.lower()
    if file.mime_type not in ALLOWED_MIME_TYPES or extension not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            "File type not supported. Please use PDF, DOCX, JPG, PNG, or TXT."
        )


def validate_draft(draft: MetadataDraft, has_file: bool) -> None:
    """Check required metadata. A title may be omitted when a file is attached.

    Raises:
        ValidationError: naming the first missing field.
    """
    if not has_file and not draft.title.strip():
        raise ValidationError("Record title is required")
    if not draft.facility_name.strip():
        raise ValidationError("Facility name is required")
    if draft.visit_date is None:
        raise ValidationError("Visit date is required")
