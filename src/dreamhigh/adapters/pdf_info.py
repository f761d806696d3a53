import logging
from pathlib import Path

import pymupdf

logger = logging.getLogger(__name__)


def pdf_page_count(path: Path) -> int:
    """Number of pages in the PDF at ``path``; 0 if it cannot be opened."""
    try:
        with pymupdf.open(str(path)) as doc:
            return doc.page_count
    except Exception as e:  # PyMuPDF raises its own types for damaged files
        logger.warning("Could not read page count of %s: %s", path, e)
        return 0


def format_file_size(size: int) -> str:
    """Human-readable size in KB or MB, as shown next to résumé versions."""
    if size < 1000 * 1000:
        return f"{max(size, 0) / 1000:.0f} KB"
    return f"{size / (1000 * 1000):.1f} MB"
