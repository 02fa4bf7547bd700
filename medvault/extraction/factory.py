from medvault.config.settings import Settings
from medvault.extraction.base import BasePdfExtractor
from medvault.extraction.pdfplumber_adapter import PdfPlumberAdapter
from medvault.extraction.pymupdf_adapter import PyMuPdfAdapter
from medvault.extraction.text_extractor import TextExtractor


class PdfExtractorFactory:
    """Creates the PDF extractor selected by ``pdf_engine``."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()


def build_text_extractor(settings: Settings) -> TextExtractor:
    return TextExtractor(pdf_extractor=PdfExtractorFactory.create(settings))
