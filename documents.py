"""
PDF text extraction for document translation.

Every page is one translation credit; a document always costs at least one.
"""

from dataclasses import dataclass
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from logging_config import get_logger

logger = get_logger(__name__)

MAX_DOCUMENT_CHARS = 12000


class DocumentError(Exception):
    """Raised when an uploaded document cannot be read."""


@dataclass
class DocumentText:
    text: str
    pages: int

    @property
    def credits(self) -> int:
        return max(1, self.pages)


def extract_pdf_text(pdf_bytes: bytes) -> DocumentText:
    """
    Extract the text layer of a PDF.

    Scanned pages without a text layer contribute nothing; the page count
    still includes them.
    """
    try:
        reader = PdfReader(BytesIO(pdf_bytes))
        page_texts = [(page.extract_text() or "").strip() for page in reader.pages]
    except PdfReadError as e:
        raise DocumentError("Unreadable PDF") from e

    merged = "\n\n".join(t for t in page_texts if t).strip()
    if len(merged) > MAX_DOCUMENT_CHARS:
        logger.warning(f"PDF text truncated from {len(merged)} to {MAX_DOCUMENT_CHARS} chars")
        merged = merged[:MAX_DOCUMENT_CHARS]

    logger.info(f"Extracted {len(merged)} chars from {len(page_texts)} PDF page(s)")
    return DocumentText(text=merged, pages=len(page_texts))
