"""Document handling for uploaded receipts."""

import base64
import logging
from io import BytesIO
from typing import Literal

import pdfplumber

from fintrack.errors import DocumentExtractionError, InputValidationError

logger = logging.getLogger(__name__)

DocumentKind = Literal["pdf", "image"]


def classify_document(content_type: str | None) -> DocumentKind:
    """
    Decide which extraction path a file takes from its declared MIME type.

    Raises:
        InputValidationError: If the file is neither a PDF nor an image
    """
    content_type = (content_type or "").lower()
    if "pdf" in content_type:
        return "pdf"
    if content_type.startswith("image/"):
        return "image"
    raise InputValidationError("File must be a PDF or image", f"Unsupported file type: {content_type or 'unknown'}")


def extract_pdf_text(contents: bytes) -> str:
    """
    Extract the embedded text of every page of a PDF.

    Raises:
        DocumentExtractionError: If the PDF is corrupt, encrypted or has no text layer
    """
    pages = []
    try:
        with pdfplumber.open(BytesIO(contents)) as pdf:
            for page in pdf.pages:
                text = page.extract_text() or ""
                if text.strip():
                    pages.append(text)
    except Exception as e:
        logger.error(f"PDF extraction failed: {e}")
        raise DocumentExtractionError(f"Failed to extract text from PDF: {e}") from e

    full_text = "\n\n".join(pages)
    if not full_text.strip():
        # Scanned PDFs have no text layer; they are not sent to the vision path
        raise DocumentExtractionError("PDF contains no extractable text")

    logger.info(f"Extracted {len(full_text)} chars of text from {len(pages)} PDF page(s)")
    return full_text


def encode_image(contents: bytes) -> str:
    """Base64-encode image bytes for inline submission to the model."""
    return base64.b64encode(contents).decode("ascii")
