import logging

import fitz  # pymupdf

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


class CVParseError(Exception):
    pass


def looks_like_pdf(data: bytes) -> bool:
    return bool(data) and data[:4] == PDF_MAGIC


def read_pdf(data: bytes) -> tuple[str, int]:
    """Plain text of every page of a PDF held in memory, and its page count."""
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        logger.warning(f"CV could not be opened as PDF: size={len(data or b'')}, error={e}")
        raise CVParseError("CV is not a readable PDF") from e

    text = ""
    with doc:
        try:
            for page in doc:
                text += page.get_text()
        except Exception as e:
            logger.warning(f"CV text extraction failed: pages={doc.page_count}, error={e}")
            raise CVParseError("CV text could not be extracted") from e
        pages = doc.page_count

    return text.strip(), pages


def extract_cv_text(data: bytes) -> str:
    text, _ = read_pdf(data)
    return text
