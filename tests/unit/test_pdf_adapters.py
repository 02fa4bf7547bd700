import pytest

from medvault.extraction.base import BasePdfExtractor
from medvault.extraction.exceptions import TextExtractionError
from medvault.extraction.pdfplumber_adapter import PdfPlumberAdapter
from medvault.extraction.pymupdf_adapter import PyMuPdfAdapter

ADAPTERS = [PdfPlumberAdapter, PyMuPdfAdapter]


@pytest.mark.parametrize("adapter_cls", ADAPTERS)
class TestPdfAdapters:
    def test_extract_returns_text(
        self, adapter_cls: type[BasePdfExtractor], lab_report_pdf_bytes: bytes
    ) -> None:
        result = adapter_cls().extract(lab_report_pdf_bytes)
        assert "Complete Blood Count" in result

    def test_extract_multi_page(
        self, adapter_cls: type[BasePdfExtractor], multi_page_pdf_bytes: bytes
    ) -> None:
        result = adapter_cls().extract(multi_page_pdf_bytes)
        assert "Discharge summary" in result
        assert "Follow-up in two weeks" in result

    def test_extract_empty_pdf_returns_empty_string(
        self, adapter_cls: type[BasePdfExtractor], blank_pdf_bytes: bytes
    ) -> None:
        assert adapter_cls().extract(blank_pdf_bytes) == ""

    def test_extract_raises_on_invalid_bytes(self, adapter_cls: type[BasePdfExtractor]) -> None:
        with pytest.raises(TextExtractionError):
            adapter_cls().extract(b"not a pdf")

    def test_extract_result_is_stripped(
        self, adapter_cls: type[BasePdfExtractor], lab_report_pdf_bytes: bytes
    ) -> None:
        result = adapter_cls().extract(lab_report_pdf_bytes)
        assert result == result.strip()
