"""
PDF reading with pypdf
"""
import io
import logging

from pypdf import PdfReader

from learnsphere.exceptions import ExtractionFailedError, ValidationError

logger = logging.getLogger(__name__)


def count_pages(data: bytes) -> int:
    """Page count of an uploaded PDF, used to enforce the upload limit"""
    try:
        reader = PdfReader(io.BytesIO(data))
        return len(reader.pages)
    except Exception as e:
        logger.warning(f"Rejected unreadable PDF upload: {str(e)}")
        raise ValidationError("The uploaded file is not a readable PDF", error_code="INVALID_PDF")


def extract_text(file_path: str) -> str:
    """
    Extract plain text from every page

    Returns "" when the PDF has no text layer (e.g. scanned images).

    Raises:
        ExtractionFailedError: the file is missing or pypdf cannot read it
    """
    try:
        reader = PdfReader(file_path)
        text_parts = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        logger.error(f"Text extraction failed for {file_path}: {str(e)}")
        raise ExtractionFailedError(
            "Could not extract text from this PDF", context={"reason": str(e)}
        ) from e

    text = "\n".join(text_parts).strip()
    logger.info(f"Extracted {len(text)} characters from {len(text_parts)} pages")
    return text
