from medvault.exceptions import TransportError


class RecordBackendError(TransportError):
    """Raised when the record backend rejects or fails a request."""


class RecordNotFoundError(RecordBackendError):
    """Raised when a record does not exist for the given owner."""
