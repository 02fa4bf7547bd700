import asyncio

from medvault.extraction.base import BasePdfExtractor
from medvault.extraction.exceptions import TextExtractionError
from medvault.logging.logger import Log


class TextExtractor:
    """Pulls plain text out of an uploaded document, by MIME type.

    PDFs go through the configured PDF adapter and plain text is decoded.
    Images and DOCX yield empty text; the caller then falls back to the
    user's notes.
    """

    PDF_MIME_TYPES = frozenset({"application/pdf"})
    TEXT_MIME_TYPES = frozenset({"text/plain"})

    def __init__(self, pdf_extractor: BasePdfExtractor) -> None:
        self._pdf_extractor = pdf_extractor

    @property
    def pdf_extractor(self) -> BasePdfExtractor:
        return self._pdf_extractor

    async def extract(self, data: bytes, mime_type: str) -> str:
        """Return the document text, or an empty string for unsupported types.

        Raises:
            TextExtractionError: if a supported document cannot be read.
        """
        if mime_type in self.PDF_MIME_TYPES:
            text = await asyncio.to_thread(self._pdf_extractor.extract, data)
        elif mime_type in self.TEXT_MIME_TYPES:
            try:
                text = data.decode("utf-8").strip()
            except UnicodeDecodeError as exc:
                raise TextExtractionError(f"Text file is not valid UTF-8: {exc}") from exc
        else:
            Log.debug(f"No text extraction for {mime_type}")
            return ""
        Log.info(f"Extracted {len(text)} chars from {mime_type} document")
        return text
