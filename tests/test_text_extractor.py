import io
import zipfile

import pytest

from conftest import LECTURE_PARAGRAPHS, make_docx, make_pdf, make_pptx
from quizportal.exceptions import CorruptDocumentError, UnsupportedFormatError
from quizportal.services.text_extractor import extract_text, file_extension


def test_pdf_text_is_extracted():
    text = extract_text(make_pdf(LECTURE_PARAGRAPHS), "lecture.pdf")

    assert "Photosynthesis" in text
    assert "Calvin cycle" in text


def test_docx_paragraphs_are_joined_with_newlines():
    text = extract_text(make_docx(LECTURE_PARAGRAPHS), "lecture.docx")

    assert text == "\n".join(LECTURE_PARAGRAPHS)


def test_pptx_slides_are_separated_by_blank_line():
    text = extract_text(make_pptx([["Hello"], ["World"]]), "slides.pptx")

    assert text == "Hello\n\nWorld"


def test_pptx_runs_within_a_slide_are_space_joined_and_empty_slides_skipped():
    text = extract_text(make_pptx([["Cell", "biology"], [], ["Mitosis"]]), "slides.pptx")

    assert text == "Cell biology\n\nMitosis"


def test_pptx_xml_entities_are_decoded():
    text = extract_text(make_pptx([["R&amp;D &lt;core&gt;", "O&apos;Neil &quot;quoted&quot; &#8211; ok"]]), "slides.pptx")

    assert text == "R&D <core> O'Neil \"quoted\" \u2013 ok"


def test_pptx_keeps_archive_order():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("ppt/slides/slide10.xml", "<p:sld><a:t>Ten</a:t></p:sld>")
        archive.writestr("ppt/slides/slide2.xml", "<p:sld><a:t>Two</a:t></p:sld>")
        archive.writestr("ppt/slides/_rels/slide2.xml.rels", "<a:t>ignored</a:t>")

    assert extract_text(buffer.getvalue(), "deck.pptx") == "Ten\n\nTwo"


def test_extension_match_is_case_insensitive():
    assert file_extension("LECTURE.PDF") == "pdf"
    assert file_extension("notes") == ""
    assert "Hello" in extract_text(make_pptx([["Hello"]]), "Deck.PPTX")


@pytest.mark.parametrize("file_name", ["notes.txt", "image.png", "README"])
def test_unsupported_extensions_are_rejected(file_name):
    with pytest.raises(UnsupportedFormatError):
        extract_text(b"plain text", file_name)


@pytest.mark.parametrize("file_name", ["broken.pdf", "broken.docx", "broken.pptx"])
def test_corrupt_documents_raise(file_name):
    with pytest.raises(CorruptDocumentError):
        extract_text(b"this is not a document", file_name)
