# backend/services/resume_store.py
"""
Resume persistence. raw_text is written once at upload; parsed_data can be
regenerated from it (reparse) but never from anything else.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import NotFound, StorageFailure
from db.models import InterviewQuestion, InterviewResponse, InterviewSession, Resume
from schemas.resume import ResumeStats

log = logging.getLogger(__name__)


def _commit(db: Session, operation: str, **ctx) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error("%s: commit failed", operation, exc_info=True, extra=ctx)
        raise StorageFailure(f"{operation} failed: {e.__class__.__name__}")


def create(
    db: Session,
    *,
    user_id: str,
    filename: str,
    file_path: str,
    raw_text: str,
    parsed_data: Dict[str, Any],
) -> Resume:
    resume = Resume(
        user_id=user_id,
        filename=filename,
        file_path=file_path,
        raw_text=raw_text,
        parsed_data=parsed_data,
    )
    db.add(resume)
    _commit(db, "create_resume", user_id=user_id)
    db.refresh(resume)
    log.info("Resume stored", extra={"resume_id": resume.id, "user_id": user_id})
    return resume


def get_by_id(db: Session, resume_id: str, user_id: Optional[str] = None) -> Resume:
    resume = db.get(Resume, resume_id) if resume_id else None
    if resume is None or (user_id and resume.user_id != user_id):
        raise NotFound("Resume not found", details={"resumeId": resume_id})
    return resume


def list_by_user(db: Session, user_id: str) -> List[Resume]:
    stmt = (
        select(Resume)
        .where(Resume.user_id == user_id)
        .order_by(Resume.uploaded_at.desc(), Resume.id)
    )
    return list(db.execute(stmt).scalars().all())


def update_parsed_data(db: Session, resume: Resume, parsed_data: Dict[str, Any]) -> Resume:
    resume.parsed_data = parsed_data
    resume.updated_at = datetime.now(timezone.utc)
    _commit(db, "update_parsed_data", resume_id=resume.id)
    db.refresh(resume)
    return resume


def delete_resume(db: Session, resume: Resume) -> List[str]:
    """
    Delete the row (sessions, questions and responses cascade in the database).
    Returns the files left behind: the stored résumé plus any answer audio.
    """
    rid = resume.id
    audio_files = db.execute(
        select(InterviewResponse.audio_file_path)
        .join(InterviewQuestion, InterviewQuestion.id == InterviewResponse.question_id)
        .join(InterviewSession, InterviewSession.id == InterviewQuestion.session_id)
        .where(
            InterviewSession.resume_id == rid,
            InterviewResponse.audio_file_path.is_not(None),
        )
    ).scalars().all()
    files = [resume.file_path, *audio_files]

    db.execute(delete(Resume).where(Resume.id == rid))
    _commit(db, "delete_resume", resume_id=rid)
    log.info("Resume deleted", extra={"resume_id": rid, "audio_files": len(audio_files)})
    return files


def stats(db: Session, user_id: str) -> ResumeStats:
    total, avg_len, latest = db.execute(
        select(
            func.count(Resume.id),
            func.avg(func.length(Resume.raw_text)),
            func.max(Resume.uploaded_at),
        ).where(Resume.user_id == user_id)
    ).one()
    return ResumeStats(
        total_resumes=total or 0,
        average_text_length=round(avg_len or 0),
        latest_upload=latest,
    )
