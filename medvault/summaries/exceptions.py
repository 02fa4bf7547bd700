from medvault.exceptions import MedvaultError, TransportError, ValidationError


class NoRecordsToSummarizeError(ValidationError):
    """Raised when a summary is requested but no cached record matches."""


class SummaryParseError(MedvaultError):
    """Raised when a completion reply holds no usable JSON analysis."""


class SummaryBackendError(TransportError):
    """Raised when summaries cannot be stored or read."""
