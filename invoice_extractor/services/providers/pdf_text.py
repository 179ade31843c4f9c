import fitz  # PyMuPDF
from loguru import logger
from ...core.errors import ExtractionError

MIN_TEXT_CHARS = 10


def extract_pdf_text(content: bytes) -> str:
    """
    Pull the text layer out of a PDF.

    Scanned PDFs usually carry no text layer; those are rejected here so no
    inference call is spent on an empty prompt.

    Raises:
        ExtractionError: unreadable PDF, or fewer than MIN_TEXT_CHARS non-whitespace characters
    """
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            text = "\n".join(page.get_text() for page in doc)
    except Exception as e:
        logger.error(f"Failed to parse PDF: {e}")
        raise ExtractionError(f"Failed to parse PDF: {e}. Try uploading as JPG/PNG instead.")

    if len("".join(text.split())) < MIN_TEXT_CHARS:
        raise ExtractionError(
            "PDF appears to be empty or contains only images. Please upload as JPG/PNG instead."
        )

    logger.debug("Extracted PDF text", chars=len(text))
    return text
