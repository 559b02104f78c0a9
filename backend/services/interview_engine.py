# services/interview_engine.py
"""
Interview session state machine.

    pending -> in_progress -> completed
          \\          \\
           +-----------+--> cancelled

Creation goes straight to in_progress. Every transition out of a state is a
conditional UPDATE on the current status, so two racing requests cannot both
move the same session. AI calls happen before any write; a failed call
leaves the database untouched.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ai.text_service import AITextService
from core.errors import Conflict, InvalidRequest, InvalidState, NotFound, StorageFailure, UpstreamFailure
from db.models import (
    ACTIVE_STATUSES,
    InterviewQuestion,
    InterviewResponse,
    InterviewSession,
    Resume,
    SessionStatus,
)
from schemas.interview import (
    CompleteResult,
    CompletionSummary,
    NextQuestionOut,
    QuestionOut,
    SessionDetail,
    SessionOut,
    SessionSummary,
    StartResult,
    SubmitResult,
)
from services import evaluation, session_queries
from utils.audio_storage import remove_file_quietly

log = logging.getLogger(__name__)

QUESTION_COUNT = 5


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InterviewEngine:
    def __init__(self, db: Session, ai: AITextService, stt=None, tts=None):
        self.db = db
        self.ai = ai
        self.stt = stt
        self.tts = tts

    # ---------------------------
    # helpers
    # ---------------------------
    def _commit(self, operation: str, **ctx) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error("%s: commit failed", operation, exc_info=True, extra=ctx)
            raise StorageFailure(f"{operation} failed: {e.__class__.__name__}")

    def _transition(self, session: InterviewSession, allowed, **values) -> bool:
        """UPDATE ... SET values WHERE id = :id AND status IN allowed. True if it applied."""
        res = self.db.execute(
            update(InterviewSession)
            .where(InterviewSession.id == session.id, InterviewSession.status.in_(list(allowed)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def _question_audio(self, questions: List[InterviewQuestion]) -> Dict[str, str]:
        if self.tts is None or not self.tts.enabled:
            return {}
        return self.tts.generate_question_audio([(q.id, q.question_text) for q in questions])

    # ---------------------------
    # operations
    # ---------------------------
    def start(self, user_id: Optional[str], resume_id: Optional[str]) -> StartResult:
        if not user_id or not resume_id:
            raise InvalidRequest("User ID and Resume ID are required")

        resume = self.db.get(Resume, resume_id)
        if resume is None or resume.user_id != user_id:
            raise NotFound("Resume not found", details={"resumeId": resume_id})

        work = (resume.parsed_data or {}).get("workExperience") if isinstance(resume.parsed_data, dict) else None
        if not isinstance(work, list) or not work:
            raise InvalidState("Resume not properly parsed")

        generated = self.ai.generate_questions(work, QUESTION_COUNT)
        if not generated.ok:
            log.error(
                "Question generation failed",
                extra={"resume_id": resume_id, "ai_status": generated.status, "error": generated.error},
            )
            raise UpstreamFailure(f"question generation {generated.status}: {generated.error}")

        session = InterviewSession(
            user_id=user_id,
            resume_id=resume.id,
            status=SessionStatus.in_progress,
            started_at=_now(),
        )
        try:
            self.db.add(session)
            self.db.flush()
            questions = [
                InterviewQuestion(
                    session_id=session.id,
                    question_text=q.question_text,
                    question_type=q.question_type,
                    order_index=i,
                    is_required=q.is_required,
                )
                for i, q in enumerate(generated.value)
            ]
            self.db.add_all(questions)
            self._commit("start_interview", resume_id=resume_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error("start_interview: insert failed", exc_info=True, extra={"resume_id": resume_id})
            raise StorageFailure(f"start_interview failed: {e.__class__.__name__}")

        log.info(
            "Interview started",
            extra={"session_id": session.id, "resume_id": resume_id, "questions": len(questions)},
        )

        audio = self._question_audio(questions)
        out = [
            QuestionOut.model_validate(q).model_copy(update={"audio_path": audio.get(q.id)})
            for q in questions
        ]
        return StartResult(
            session_id=session.id,
            status=SessionStatus.in_progress,
            questions=out,
            total_questions=len(out),
        )

    def submit_response(
        self,
        session_id: Optional[str],
        question_id: Optional[str],
        response_text: Optional[str] = None,
        audio_path: Optional[str] = None,
        response_time_ms: int = 0,
        user_id: Optional[str] = None,
    ) -> SubmitResult:
        if not session_id or not question_id:
            raise InvalidRequest("Session ID and Question ID are required")

        question = self.db.get(InterviewQuestion, question_id)
        if question is None or question.session_id != session_id:
            raise NotFound("Question not found", details={"questionId": question_id})

        session = session_queries.get_session(self.db, session_id, user_id)
        if session.status != SessionStatus.in_progress:
            raise InvalidState(f"Session is {session.status.value}, not in_progress")

        already = self.db.execute(
            select(InterviewResponse.id).where(InterviewResponse.question_id == question.id)
        ).first()
        if already is not None:
            raise Conflict("Question has already been answered", details={"questionId": question.id})

        text = evaluation.resolve_response_text(
            self.stt, response_text, audio_path, question_id=question.id
        )
        skills, work = evaluation.resume_context(self.db.get(Resume, session.resume_id))
        scored = evaluation.evaluate(self.ai, question, text, skills, work)

        row = evaluation.build_response(
            question,
            text,
            scored,
            audio_path=audio_path,
            response_time_ms=response_time_ms,
        )
        self.db.add(row)
        try:
            self._commit("submit_response", session_id=session_id, question_id=question.id)
        except IntegrityError:
            log.info("Duplicate response rejected", extra={"question_id": question_id})
            raise Conflict("Question has already been answered", details={"questionId": question_id})

        nxt = session_queries.next_question(self.db, session_id)
        progress = session_queries.progress(self.db, session_id)
        return SubmitResult(
            response_id=row.id,
            evaluation=scored.to_json(),
            next_question=NextQuestionOut.model_validate(nxt) if nxt else None,
            is_last_question=nxt is None,
            is_complete=progress.is_complete,
        )

    def complete(self, session_id: Optional[str], user_id: Optional[str] = None) -> CompleteResult:
        if not session_id:
            raise InvalidRequest("Session ID is required")
        session = session_queries.get_session(self.db, session_id, user_id)
        if session.status != SessionStatus.in_progress:
            raise InvalidState(f"Session is already {session.status.value}")

        rows = session_queries.questions_with_responses(self.db, session.id)
        answered = [(q, r) for q, r in rows if r is not None]
        if not answered:
            raise InvalidState("No responses found for this session")
        missing = len(rows) - len(answered)
        if missing:
            raise InvalidState(
                f"{missing} questions remain unanswered",
                details={"unanswered": [q.id for q, r in rows if r is None]},
            )

        scores = [r.score for _, r in answered if r.score is not None]
        if len(scores) != len(answered):
            raise InvalidState("Some responses have no score")
        overall = round(sum(scores) / len(scores), 2)

        resume = self.db.get(Resume, session.resume_id)
        profile = resume.parsed_data if resume is not None and isinstance(resume.parsed_data, dict) else {}
        items = [
            {
                "question": q.question_text,
                "questionType": q.question_type.value,
                "response": r.response_text,
                "evaluation": r.ai_evaluation or {},
            }
            for q, r in answered
        ]
        aggregate = self.ai.generate_overall_feedback(items, profile)
        if not aggregate.ok:
            log.error(
                "Aggregate feedback failed",
                extra={"session_id": session.id, "ai_status": aggregate.status, "error": aggregate.error},
            )
            raise UpstreamFailure(f"aggregate feedback {aggregate.status}: {aggregate.error}")
        fb = aggregate.value

        applied = self._transition(
            session,
            (SessionStatus.in_progress,),
            status=SessionStatus.completed,
            completed_at=_now(),
            overall_score=overall,
            feedback=fb.feedback,
            aggregate_feedback={
                "strengths": fb.strengths,
                "improvements": fb.improvements,
                "aiOverallScore": fb.overall_score,
            },
        )
        if not applied:
            self.db.rollback()
            raise InvalidState("Session is no longer in progress")
        self._commit("complete_interview", session_id=session.id)
        self.db.refresh(session)

        log.info("Interview completed", extra={"session_id": session.id, "overall_score": overall})
        detail = session_queries.hydrate(self.db, session)
        return CompleteResult(
            session=detail.session,
            questions=detail.questions,
            progress=detail.progress,
            summary=CompletionSummary(strengths=fb.strengths, improvements=fb.improvements),
        )

    def cancel(self, session_id: Optional[str], user_id: Optional[str] = None) -> SessionOut:
        if not session_id:
            raise InvalidRequest("Session ID is required")
        session = session_queries.get_session(self.db, session_id, user_id)
        if not self._transition(session, ACTIVE_STATUSES, status=SessionStatus.cancelled):
            self.db.rollback()
            self.db.refresh(session)
            raise InvalidState(f"Cannot cancel a {session.status.value} session")
        self._commit("cancel_interview", session_id=session.id)
        self.db.refresh(session)
        log.info("Interview cancelled", extra={"session_id": session.id})
        return SessionOut.model_validate(session)

    def delete(self, session_id: Optional[str], user_id: Optional[str] = None) -> None:
        """Delete a session in any state; questions and responses go with it."""
        session = session_queries.get_session(self.db, session_id, user_id)
        sid = session.id
        audio_files = self.db.execute(
            select(InterviewResponse.audio_file_path)
            .join(InterviewQuestion, InterviewQuestion.id == InterviewResponse.question_id)
            .where(
                InterviewQuestion.session_id == sid,
                InterviewResponse.audio_file_path.is_not(None),
            )
        ).scalars().all()

        self.db.execute(delete(InterviewSession).where(InterviewSession.id == sid))
        self._commit("delete_interview", session_id=sid)
        log.info("Interview deleted", extra={"session_id": sid})

        for path in audio_files:
            remove_file_quietly(path)

    # ---------------------------
    # reads
    # ---------------------------
    def get(self, session_id: str, user_id: Optional[str] = None) -> SessionDetail:
        session = session_queries.get_session(self.db, session_id, user_id)
        return session_queries.hydrate(self.db, session)

    def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[SessionSummary]:
        return session_queries.list_user_sessions(self.db, user_id, status=status, limit=limit, offset=offset)
