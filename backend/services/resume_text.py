# backend/services/resume_text.py
from __future__ import annotations

import io
import logging
import re
from typing import List

import pdfplumber
from docx import Document

from core.errors import InvalidRequest
from schemas.resume import QualityEstimate

log = logging.getLogger(__name__)

# legacy binary .doc is not readable by python-docx
SUPPORTED_EXTENSIONS = [".pdf", ".docx", ".txt"]

_ARTIFACTS = [
    ("Special characters", re.compile(r"[^\w\s.,!?;:()\-'\"]", re.ASCII)),
    ("Repeated characters", re.compile(r"(.)\1{5,}")),
    ("Excessive whitespace", re.compile(r"\s{5,}")),
]
_STRUCTURE = [re.compile(p, re.I) for p in (r"email", r"phone", r"experience", r"education", r"skills")]


def extract_text(data: bytes, extension: str) -> str:
    """Raw text from an uploaded resume. Unreadable documents are InvalidRequest."""
    ext = extension.lower()
    try:
        if ext == ".pdf":
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                return "\n".join((page.extract_text() or "") for page in pdf.pages)
        if ext == ".docx":
            doc = Document(io.BytesIO(data))
            return "\n".join(p.text for p in doc.paragraphs)
    except Exception as e:
        # pdfplumber / python-docx raise a wide range of parser errors
        log.warning("Text extraction failed for %s document: %s", ext, e)
        raise InvalidRequest(f"Failed to extract text from {ext} file")
    return data.decode("utf-8", errors="ignore")


def clean_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]{2,}", " ", text)
    return text.strip()


def estimate_quality(text: str) -> QualityEstimate:
    issues: List[str] = []
    score = 100

    if len(text) < 100:
        issues.append("Very short text extracted")
        score -= 30

    for label, pattern in _ARTIFACTS:
        if len(pattern.findall(text)) > 3:
            issues.append(f"Multiple {label} detected")
            score -= 15

    if sum(1 for p in _STRUCTURE if p.search(text)) < 2:
        issues.append("Limited structured content detected")
        score -= 20

    if score >= 85:
        quality = "excellent"
    elif score >= 70:
        quality = "good"
    elif score >= 50:
        quality = "fair"
    else:
        quality = "poor"
    return QualityEstimate(quality=quality, score=max(0, score), issues=issues)
