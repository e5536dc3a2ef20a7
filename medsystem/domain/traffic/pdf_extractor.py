import logging

import pymupdf

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 100_000


def extract_pdf_text(data: bytes) -> str:
    """Plain text of every page, truncated to what the AI gateway accepts"""
    doc = pymupdf.open(stream=data, filetype="pdf")
    try:
        parts = [page.get_text() for page in doc]
    finally:
        doc.close()

    text = "\n".join(parts).strip()
    logger.info(f"📄 Extracted {len(text)} chars from {len(parts)} PDF page(s)")
    return text[:MAX_TEXT_LENGTH]
