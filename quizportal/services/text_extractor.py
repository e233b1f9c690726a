"""
Plain-text extraction from uploaded lecture documents (PDF, DOCX, PPTX)
"""
import html
import io
import logging
import re
import zipfile

import docx
import fitz  # PyMuPDF

from quizportal.exceptions import CorruptDocumentError, UnsupportedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("pdf", "docx", "pptx")

SLIDE_ENTRY_PATTERN = re.compile(r"^ppt/slides/slide\d+\.xml$")
TEXT_RUN_PATTERN = re.compile(r"<a:t>([^<]*)</a:t>")


def file_extension(file_name: str) -> str:
    """Lower-cased extension without the dot ('' when there is none)"""
    name = file_name.lower()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1]


def extract_text(content: bytes, file_name: str) -> str:
    """
    Extract plain text from a document, dispatching on the file name extension

    Raises:
        UnsupportedFormatError: extension is not pdf, docx or pptx
        CorruptDocumentError: bytes could not be parsed as the declared format
    """
    ext = file_extension(file_name)

    if ext == "pdf":
        return _extract_pdf(content)
    if ext == "docx":
        return _extract_docx(content)
    if ext == "pptx":
        return _extract_pptx(content)

    raise UnsupportedFormatError(ext)


def _extract_pdf(content: bytes) -> str:
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            return "".join(page.get_text("text") for page in doc)
    except Exception as e:
        raise CorruptDocumentError(f"PDF extraction failed: {str(e)}") from e


def _extract_docx(content: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(content))
    except Exception as e:
        raise CorruptDocumentError(f"DOCX extraction failed: {str(e)}") from e

    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def _extract_pptx(content: bytes) -> str:
    """
    Scan slide XML for <a:t> runs. Slides are taken in archive order,
    not re-sorted by slide number.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(content))
    except (zipfile.BadZipFile, ValueError) as e:
        raise CorruptDocumentError(f"PPTX extraction failed: {str(e)}") from e

    slides = []
    with archive:
        for entry in archive.infolist():
            if not SLIDE_ENTRY_PATTERN.match(entry.filename):
                continue
            try:
                xml = archive.read(entry).decode("utf-8", errors="replace")
            except Exception as e:
                raise CorruptDocumentError(f"PPTX entry {entry.filename} unreadable: {str(e)}") from e

            runs = [html.unescape(run) for run in TEXT_RUN_PATTERN.findall(xml)]
            if runs:
                slides.append(" ".join(runs))

    logger.debug(f"Extracted text from {len(slides)} slides")
    return "\n\n".join(slides)
