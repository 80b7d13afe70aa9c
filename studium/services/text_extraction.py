import logging
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from .storage import resolve_path

logger = logging.getLogger(__name__)

PDF_TYPES = {"application/pdf"}
WORD_TYPES = {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
TEXT_TYPES = {"text/plain", "text/markdown"}


def _extract_pdf(path: Path) -> str:
    reader = PdfReader(str(path))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def _extract_word(path: Path) -> str:
    document = Document(str(path))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_text(file_path: str, file_type: str) -> str:
    """Return the text content of a stored source file.

    Images and unknown types yield a bracketed placeholder rather than text.
    Raises FileNotFoundError when the file is missing from disk.
    """
    path = resolve_path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if file_type in PDF_TYPES:
        return _extract_pdf(path)
    if file_type in WORD_TYPES:
        return _extract_word(path)
    if file_type in TEXT_TYPES:
        return path.read_text(encoding="utf-8")
    if file_type.startswith("image/"):
        return f"[Image file: {path.name}]"

    logger.warning("No extractor for %s (%s)", file_path, file_type)
    return f"[Unsupported file type: {file_type}]"
