from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from db.models import QuestionType, SessionStatus
from schemas.common import CamelModel


# ---------- Requests ----------
class StartInterviewIn(CamelModel):
    # both optional so a missing field is reported as InvalidRequest, not a 422
    user_id: Optional[str] = None
    resume_id: Optional[str] = None


# ---------- Views ----------
class QuestionOut(CamelModel):
    id: str
    session_id: str
    question_text: str
    question_type: QuestionType
    order_index: int
    is_required: bool = True
    audio_path: Optional[str] = None


class NextQuestionOut(CamelModel):
    id: str
    question_text: str
    question_type: QuestionType
    order_index: int


class ResponseOut(CamelModel):
    id: str
    question_id: str
    response_text: str
    audio_file_path: Optional[str] = None
    response_time_ms: int = 0
    score: Optional[float] = None
    feedback: Optional[str] = None
    ai_evaluation: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class QuestionWithResponse(QuestionOut):
    response: Optional[ResponseOut] = None


class Progress(CamelModel):
    total_questions: int
    answered_questions: int
    completion_percentage: int
    is_complete: bool
    next_question_id: Optional[str] = None


class SessionOut(CamelModel):
    id: str
    user_id: str
    resume_id: str
    status: SessionStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    overall_score: Optional[float] = None
    feedback: Optional[str] = None
    aggregate_feedback: Optional[Dict[str, Any]] = None


class SessionDetail(CamelModel):
    session: SessionOut
    questions: List[QuestionWithResponse]
    progress: Progress


class SessionSummary(CamelModel):
    id: str
    resume_id: str
    status: SessionStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    overall_score: Optional[float] = None
    resume_filename: Optional[str] = None
    progress: Progress


# ---------- Operation results ----------
class StartResult(CamelModel):
    session_id: str
    status: SessionStatus
    questions: List[QuestionOut]
    total_questions: int


class SubmitResult(CamelModel):
    response_id: str
    evaluation: Dict[str, Any]
    next_question: Optional[NextQuestionOut] = None
    is_last_question: bool
    is_complete: bool


class CompletionSummary(CamelModel):
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


class CompleteResult(SessionDetail):
    summary: CompletionSummary
