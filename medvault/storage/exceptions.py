from medvault.exceptions import TransportError


class BlobStoreError(TransportError):
    """Raised when the object store rejects or fails an upload or delete."""
