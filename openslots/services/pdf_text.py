"""Plain-text extraction from PDF documents."""
from io import BytesIO
from typing import List

from pypdf import PdfReader

from ..exceptions import ExtractionError
from ..utils.logger import logger


class PdfTextExtractor:
    """Turns a PDF byte buffer into its text content."""

    def extract_text(self, data: bytes) -> str:
        """Extract the text of every page.

        Falls back to layout-mode extraction page by page when the plain
        extraction yields only whitespace.

        Args:
            data: Raw PDF bytes

        Returns:
            The document text, or "" if nothing is extractable

        Raises:
            ExtractionError: if the document cannot be read
        """
        try:
            reader = PdfReader(BytesIO(data))
            text = "\n".join(page.extract_text() or "" for page in reader.pages)
            if text.strip():
                logger.info(
                    f"[PDF] Extracted {len(text)} characters from {len(reader.pages)} pages"
                )
                return text

            logger.warning("[PDF] Plain extraction returned no text, trying page layout mode")
            return self._extract_pages_in_layout_mode(reader)
        except Exception as e:
            raise ExtractionError(f"PDF parsing failed: {str(e)}") from e

    def _extract_pages_in_layout_mode(self, reader: PdfReader) -> str:
        parts: List[str] = []
        for page in reader.pages:
            page_text = page.extract_text(extraction_mode="layout")
            if page_text and page_text.strip():
                parts.append(page_text + "\n")
        text = "".join(parts)
        logger.info(f"[PDF] Layout mode extracted {len(text)} characters")
        return text


# Global text extractor instance
pdf_text_extractor = PdfTextExtractor()
