from unittest.mock import patch

import pytest

from medvault.extraction.base import BasePdfExtractor
from medvault.extraction.factory import PdfExtractorFactory, build_text_extractor
from medvault.extraction.pdfplumber_adapter import PdfPlumberAdapter
from medvault.extraction.pymupdf_adapter import PyMuPdfAdapter
from medvault.extraction.text_extractor import TextExtractor


def _make_settings(pdf_engine: str):  # type: ignore[no-untyped-def]
    """Settings stand-in carrying only pdf_engine."""
    with patch("medvault.config.settings.Settings") as mock_cls:
        settings = mock_cls.return_value
        settings.pdf_engine = pdf_engine
        return settings


class TestPdfExtractorFactory:
    @pytest.mark.parametrize(
        ("engine", "expected"),
        [
            ("pdfplumber", PdfPlumberAdapter),
            ("pymupdf", PyMuPdfAdapter),
            ("PyMuPDF", PyMuPdfAdapter),
        ],
    )
    def test_selects_adapter_by_engine(
        self, engine: str, expected: type[BasePdfExtractor]
    ) -> None:
        assert isinstance(PdfExtractorFactory.create(_make_settings(engine)), expected)

    def test_unknown_engine_lists_choices(self) -> None:
        with pytest.raises(ValueError, match=r"Unknown PDF engine 'tesseract'.*pdfplumber"):
            PdfExtractorFactory.create(_make_settings("tesseract"))


class TestBuildTextExtractor:
    def test_wraps_selected_adapter(self) -> None:
        extractor = build_text_extractor(_make_settings("pymupdf"))
        assert isinstance(extractor, TextExtractor)
        assert isinstance(extractor.pdf_extractor, PyMuPdfAdapter)
