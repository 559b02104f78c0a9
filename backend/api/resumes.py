# backend/api/resumes.py
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from ai.text_service import AITextService
from api.deps import get_db, get_optional_user_id, get_text_service
from core.config import settings
from core.errors import InvalidRequest, NotFound, UpstreamFailure
from db import models as db_models
from schemas.common import envelope
from schemas.resume import FileMetadata, ResumeDetail, ResumeOut, ResumeUploadResult
from services import resume_store, resume_text
from utils.audio_storage import remove_file_quietly, save_file

log = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["resumes"])


def _require_user(db: Session, user_id: Optional[str]) -> str:
    if not user_id:
        raise InvalidRequest("User ID is required")
    if db.get(db_models.User, user_id) is None:
        raise NotFound("User not found")
    return user_id


def _parse(ai: AITextService, text: str, **ctx) -> dict:
    result = ai.parse_resume(text)
    if not result.ok:
        log.error("Resume parsing failed", extra={"ai_status": result.status, "error": result.error, **ctx})
        raise UpstreamFailure(f"resume parse {result.status}: {result.error}")
    return result.value


def _detail(resume: db_models.Resume) -> ResumeDetail:
    return ResumeDetail(
        **ResumeOut.model_validate(resume).model_dump(),
        original_text=resume.raw_text,
    )


# ---------- Upload ----------
@router.post("/upload", status_code=201)
def upload_resume(
    resume: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    ai: AITextService = Depends(get_text_service),
):
    if resume is None or not resume.filename:
        raise InvalidRequest("No file uploaded")
    owner = _require_user(db, token_user_id or user_id)

    filename = os.path.basename(resume.filename)
    ext = os.path.splitext(filename)[1].lower()
    if ext not in resume_text.SUPPORTED_EXTENSIONS:
        raise InvalidRequest(
            f"Unsupported file format: {ext or 'none'}",
            details={"supportedFormats": resume_text.SUPPORTED_EXTENSIONS},
        )
    data = resume.file.read()
    if not data:
        raise InvalidRequest("Uploaded file is empty")
    if len(data) > settings.max_resume_bytes:
        raise InvalidRequest(
            f"File too large. Maximum size is {settings.max_resume_bytes // (1024 * 1024)}MB",
            details={"fileSize": len(data)},
        )

    path = save_file(data, settings.resume_dir, suffix=ext)
    try:
        text = resume_text.clean_text(resume_text.extract_text(data, ext))
        quality = resume_text.estimate_quality(text)
        if quality.quality == "poor":
            raise InvalidRequest(
                "Poor text extraction quality. Please try a different file format or check the file.",
                details=quality.to_json(),
            )
        parsed = _parse(ai, text, user_id=owner, filename=filename)
        row = resume_store.create(
            db,
            user_id=owner,
            filename=filename,
            file_path=path,
            raw_text=text,
            parsed_data=parsed,
        )
    except Exception:
        remove_file_quietly(path)
        raise

    result = ResumeUploadResult(
        resume_id=row.id,
        parsed_data=row.parsed_data,
        quality_estimate=quality,
        metadata=FileMetadata(name=filename, extension=ext, size=len(data)),
    )
    return envelope(result, message="Resume uploaded and parsed successfully")


# ---------- Reads ----------
def _list(db: Session, user_id: str):
    return envelope([ResumeOut.model_validate(r).to_json() for r in resume_store.list_by_user(db, user_id)])


@router.get("")
def list_my_resumes(
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return _list(db, _require_user(db, token_user_id))


@router.get("/stats")
def my_resume_stats(
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return envelope(resume_store.stats(db, _require_user(db, token_user_id)))


@router.get("/user/{user_id}")
def list_user_resumes(
    user_id: str,
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    if token_user_id and token_user_id != user_id:
        raise NotFound("User not found")
    return _list(db, user_id)


@router.get("/user/{user_id}/stats")
def user_resume_stats(
    user_id: str,
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    if token_user_id and token_user_id != user_id:
        raise NotFound("User not found")
    return envelope(resume_store.stats(db, user_id))


@router.get("/{resume_id}")
def get_resume(
    resume_id: str,
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return envelope(_detail(resume_store.get_by_id(db, resume_id, token_user_id)))


# ---------- Mutations ----------
@router.delete("/{resume_id}")
def delete_resume(
    resume_id: str,
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    resume = resume_store.get_by_id(db, resume_id, token_user_id)
    for path in resume_store.delete_resume(db, resume):
        remove_file_quietly(path)
    return envelope(message="Resume deleted successfully")


@router.post("/{resume_id}/reparse")
def reparse_resume(
    resume_id: str,
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    ai: AITextService = Depends(get_text_service),
):
    resume = resume_store.get_by_id(db, resume_id, token_user_id)
    parsed = _parse(ai, resume.raw_text, resume_id=resume.id)
    resume = resume_store.update_parsed_data(db, resume, parsed)
    return envelope(_detail(resume), message="Resume reparsed successfully")
