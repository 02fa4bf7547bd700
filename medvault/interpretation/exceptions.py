from medvault.exceptions import MedvaultError, TransportError


class CompletionError(TransportError):
    """Raised when the completion provider fails or returns nothing usable."""


class CompletionTimeoutError(CompletionError):
    """Raised when the completion call exceeds its deadline."""


class PromptLoadError(MedvaultError):
    """Raised when the bundled prompt template cannot be read."""
