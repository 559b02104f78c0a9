# backend/tests/test_resume_text.py
import io

import pytest
from docx import Document

from core.errors import InvalidRequest
from services import resume_text


def test_clean_text_normalises_whitespace():
    raw = "Name\r\n\r\n\r\n\r\nExperience   at\t\tAcme\r  "
    assert resume_text.clean_text(raw) == "Name\n\nExperience at Acme"


def test_quality_excellent_for_structured_text():
    text = (
        "Jordan Example. Email: jordan at example dot com. Phone: 555 123 4567.\n"
        "Experience: Backend Engineer at Acme building payment systems.\n"
        "Education: BSc Computer Science. Skills: Python, SQL."
    )
    q = resume_text.estimate_quality(text)
    assert q.quality == "excellent"
    assert q.score == 100
    assert q.issues == []


def test_quality_penalties():
    q = resume_text.estimate_quality("short")
    assert q.score == 50
    assert q.quality == "fair"
    assert set(q.issues) == {"Very short text extracted", "Limited structured content detected"}

    q = resume_text.estimate_quality("@@@@@@ ###### $$$$$$ %%%%%%")
    assert q.quality == "poor"
    assert "Multiple Special characters detected" in q.issues
    assert "Multiple Repeated characters detected" in q.issues


def test_extract_docx():
    doc = Document()
    doc.add_paragraph("Jordan Example")
    doc.add_paragraph("Experience")
    buf = io.BytesIO()
    doc.save(buf)
    assert resume_text.extract_text(buf.getvalue(), ".docx") == "Jordan Example\nExperience"


def test_extract_plain_text():
    assert resume_text.extract_text("Résumé".encode("utf-8"), ".txt") == "Résumé"


def test_unreadable_pdf_is_invalid_request():
    with pytest.raises(InvalidRequest):
        resume_text.extract_text(b"definitely not a pdf", ".pdf")
