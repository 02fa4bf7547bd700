from medvault.exceptions import MedvaultError


class InvalidTransitionError(MedvaultError):
    """Raised on a state change the upload state machine does not allow."""


class UnknownUploadError(MedvaultError):
    """Raised when a job id is not in the active set."""
