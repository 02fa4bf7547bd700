from abc import ABC, abstractmethod


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str:
        """Extract plain text from PDF bytes.

        Returns:
            Page texts joined by newlines, stripped.

        Raises:
            TextExtractionError: if extraction fails for any reason.
        """
