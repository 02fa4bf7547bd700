class MedvaultError(Exception):
    """Base exception for all medvault errors."""


class ValidationError(MedvaultError):
    """Raised for bad input before any network call is made."""


class TransportError(MedvaultError):
    """Raised when a remote collaborator (storage, database, AI provider) fails."""


class ConsistencyWarning(MedvaultError):
    """Stored on the record cache when it could not refresh from the backend.

    Never raised: the cache keeps serving its last known contents.
    """
