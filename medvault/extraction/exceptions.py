from medvault.exceptions import MedvaultError


class TextExtractionError(MedvaultError):
    """Raised when text cannot be extracted from an uploaded document."""
