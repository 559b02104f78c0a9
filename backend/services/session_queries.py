# services/session_queries.py
"""
Read-side projections over interview sessions.

Completion and "next question" are derived by joining questions against
responses at read time. Nothing here caches them on the session row.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from core.errors import InvalidRequest, NotFound
from db.models import InterviewQuestion, InterviewResponse, InterviewSession, Resume, SessionStatus
from schemas.interview import (
    Progress,
    QuestionWithResponse,
    ResponseOut,
    SessionDetail,
    SessionOut,
    SessionSummary,
)

Row = Tuple[InterviewQuestion, Optional[InterviewResponse]]


def make_progress(total: int, answered: int, next_question_id: Optional[str] = None) -> Progress:
    return Progress(
        total_questions=total,
        answered_questions=answered,
        completion_percentage=round(answered * 100 / total) if total else 0,
        is_complete=total > 0 and answered == total,
        next_question_id=next_question_id,
    )


def get_session(db: Session, session_id: str, user_id: Optional[str] = None) -> InterviewSession:
    """Load a session, treating one owned by another user as missing."""
    session = db.get(InterviewSession, session_id) if session_id else None
    if session is None or (user_id and session.user_id != user_id):
        raise NotFound("Interview session not found", details={"sessionId": session_id})
    return session


def questions_with_responses(db: Session, session_id: str) -> List[Row]:
    stmt = (
        select(InterviewQuestion, InterviewResponse)
        .outerjoin(InterviewResponse, InterviewResponse.question_id == InterviewQuestion.id)
        .where(InterviewQuestion.session_id == session_id)
        .order_by(InterviewQuestion.order_index)
    )
    return [(q, r) for q, r in db.execute(stmt).all()]


def next_question(db: Session, session_id: str) -> Optional[InterviewQuestion]:
    """Lowest-orderIndex question of the session that has no response."""
    stmt = (
        select(InterviewQuestion)
        .outerjoin(InterviewResponse, InterviewResponse.question_id == InterviewQuestion.id)
        .where(InterviewQuestion.session_id == session_id, InterviewResponse.id.is_(None))
        .order_by(InterviewQuestion.order_index)
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def progress(db: Session, session_id: str) -> Progress:
    total, answered = db.execute(
        select(
            func.count(distinct(InterviewQuestion.id)),
            func.count(distinct(InterviewResponse.question_id)),
        )
        .select_from(InterviewQuestion)
        .outerjoin(InterviewResponse, InterviewResponse.question_id == InterviewQuestion.id)
        .where(InterviewQuestion.session_id == session_id)
    ).one()
    nxt = next_question(db, session_id)
    return make_progress(total or 0, answered or 0, nxt.id if nxt else None)


def progress_from_rows(rows: List[Row]) -> Progress:
    unanswered = [q for q, r in rows if r is None]
    return make_progress(
        len(rows),
        len(rows) - len(unanswered),
        unanswered[0].id if unanswered else None,
    )


def hydrate(db: Session, session: InterviewSession) -> SessionDetail:
    """Session + ordered questions, each with its response or None, + progress."""
    rows = questions_with_responses(db, session.id)
    questions = [
        QuestionWithResponse.model_validate(q).model_copy(
            update={"response": ResponseOut.model_validate(r) if r is not None else None}
        )
        for q, r in rows
    ]
    return SessionDetail(
        session=SessionOut.model_validate(session),
        questions=questions,
        progress=progress_from_rows(rows),
    )


def _parse_status(status: Optional[str]) -> Optional[SessionStatus]:
    if not status:
        return None
    try:
        return SessionStatus(status)
    except ValueError:
        raise InvalidRequest(
            f"Unknown status '{status}'",
            details={"allowed": [s.value for s in SessionStatus]},
        )


def _first_unanswered(db: Session, session_ids: List[str]) -> Dict[str, str]:
    if not session_ids:
        return {}
    stmt = (
        select(InterviewQuestion.session_id, InterviewQuestion.id)
        .outerjoin(InterviewResponse, InterviewResponse.question_id == InterviewQuestion.id)
        .where(InterviewQuestion.session_id.in_(session_ids), InterviewResponse.id.is_(None))
        .order_by(InterviewQuestion.session_id, InterviewQuestion.order_index)
    )
    first: Dict[str, str] = {}
    for sid, qid in db.execute(stmt).all():
        first.setdefault(sid, qid)
    return first


def list_user_sessions(
    db: Session,
    user_id: str,
    status: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> List[SessionSummary]:
    """
    A page of the user's sessions, newest first, each with its progress
    projection. Counts come from one grouped query over the whole page.
    """
    wanted = _parse_status(status)
    total = func.count(distinct(InterviewQuestion.id)).label("total")
    answered = func.count(distinct(InterviewResponse.question_id)).label("answered")

    stmt = (
        select(InterviewSession, Resume.filename, total, answered)
        .outerjoin(Resume, Resume.id == InterviewSession.resume_id)
        .outerjoin(InterviewQuestion, InterviewQuestion.session_id == InterviewSession.id)
        .outerjoin(InterviewResponse, InterviewResponse.question_id == InterviewQuestion.id)
        .where(InterviewSession.user_id == user_id)
        .group_by(InterviewSession.id, Resume.filename)
        .order_by(InterviewSession.started_at.desc(), InterviewSession.id)
        .limit(limit)
        .offset(offset)
    )
    if wanted is not None:
        stmt = stmt.where(InterviewSession.status == wanted)

    rows = db.execute(stmt).all()
    next_ids = _first_unanswered(db, [s.id for s, *_ in rows])

    return [
        SessionSummary(
            id=s.id,
            resume_id=s.resume_id,
            status=s.status,
            started_at=s.started_at,
            completed_at=s.completed_at,
            overall_score=s.overall_score,
            resume_filename=filename,
            progress=make_progress(t or 0, a or 0, next_ids.get(s.id)),
        )
        for s, filename, t, a in rows
    ]
