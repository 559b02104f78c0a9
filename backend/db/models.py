# db/models.py
"""
ORM entities. Children point at their parent by id only; there are no
back-references, so "all sessions for a resume" is always an indexed query.
"""
import enum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.types import Enum as SAEnum

from .session import Base


def _uuid() -> str:
    return str(uuid4())


class SessionStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


ACTIVE_STATUSES = (SessionStatus.pending, SessionStatus.in_progress)


class QuestionType(str, enum.Enum):
    experience = "experience"
    technical = "technical"
    behavioral = "behavioral"
    situational = "situational"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(512), nullable=False)
    file_path = Column(String(1024), nullable=False)
    raw_text = Column(Text, nullable=False)
    # opaque blob owned by the AI text service (camelCase keys)
    parsed_data = Column(JSON, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class InterviewSession(Base):
    __tablename__ = "interview_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        SAEnum(SessionStatus, native_enum=False, length=20),
        nullable=False,
        default=SessionStatus.pending,
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    overall_score = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    # strengths / improvements / the model's own score from the aggregate call
    aggregate_feedback = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class InterviewQuestion(Base):
    __tablename__ = "interview_questions"
    __table_args__ = (UniqueConstraint("session_id", "order_index", name="uq_question_session_order"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    session_id = Column(
        String(36),
        ForeignKey("interview_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_text = Column(Text, nullable=False)
    question_type = Column(
        SAEnum(QuestionType, native_enum=False, length=20),
        nullable=False,
        default=QuestionType.experience,
    )
    order_index = Column(Integer, nullable=False)
    is_required = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class InterviewResponse(Base):
    __tablename__ = "interview_responses"

    id = Column(String(36), primary_key=True, default=_uuid)
    # unique: one response per question, enforced by the database
    question_id = Column(
        String(36),
        ForeignKey("interview_questions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    response_text = Column(Text, nullable=False)
    audio_file_path = Column(String(1024), nullable=True)
    response_time_ms = Column(Integer, nullable=False, default=0)
    score = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    ai_evaluation = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
