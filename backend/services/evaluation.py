# services/evaluation.py
"""
Turns one answer into a persisted, scored response row.

Transcription is best-effort: a speech failure falls back to the typed
text. Evaluation is not: without a score there is nothing to persist.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ai.text_service import AITextService
from core.errors import InvalidRequest, InvalidState, SpeechError, UpstreamFailure
from db.models import InterviewQuestion, InterviewResponse, Resume
from schemas.ai import Evaluation

log = logging.getLogger(__name__)


def resume_context(resume: Optional[Resume]) -> Tuple[List[str], List[Dict[str, Any]]]:
    """(skills, workExperience) from a resume's parse, or InvalidState."""
    parsed = resume.parsed_data if resume is not None else None
    if not isinstance(parsed, dict):
        raise InvalidState("Resume data not found for evaluation context")
    skills = [s for s in parsed.get("skills") or [] if isinstance(s, str)]
    work = [w for w in parsed.get("workExperience") or [] if isinstance(w, dict)]
    return skills, work


def transcribe_best_effort(stt, audio_path: Optional[str], *, question_id: str) -> Optional[str]:
    """Transcript text, or None when there is no audio or STT failed / heard nothing."""
    if not audio_path or stt is None:
        return None
    try:
        text = stt.transcribe(audio_path)
    except SpeechError as e:
        log.warning(
            "Transcription failed, falling back to typed text",
            extra={"question_id": question_id, "error": e.message},
        )
        return None
    text = (text or "").strip()
    if not text:
        log.info("Transcription was empty", extra={"question_id": question_id})
        return None
    return text


def resolve_response_text(
    stt,
    response_text: Optional[str],
    audio_path: Optional[str],
    *,
    question_id: str,
) -> str:
    """Audio wins when it transcribes to something; typed text is the fallback."""
    transcript = transcribe_best_effort(stt, audio_path, question_id=question_id)
    final = transcript or (response_text or "").strip()
    if not final:
        raise InvalidRequest("Response text is required")
    return final


def evaluate(
    ai: AITextService,
    question: InterviewQuestion,
    response_text: str,
    skills: List[str],
    work_experience: List[Dict[str, Any]],
) -> Evaluation:
    result = ai.evaluate_response(question.question_text, response_text, skills, work_experience)
    if not result.ok:
        log.error(
            "Response evaluation failed",
            extra={
                "session_id": question.session_id,
                "question_id": question.id,
                "ai_status": result.status,
                "error": result.error,
            },
        )
        raise UpstreamFailure(f"evaluation {result.status}: {result.error}")
    return result.value


def build_response(
    question: InterviewQuestion,
    response_text: str,
    evaluation: Evaluation,
    *,
    audio_path: Optional[str] = None,
    response_time_ms: int = 0,
) -> InterviewResponse:
    return InterviewResponse(
        question_id=question.id,
        response_text=response_text,
        audio_file_path=audio_path,
        response_time_ms=max(0, int(response_time_ms or 0)),
        score=evaluation.overall_score,
        feedback=evaluation.detailed_feedback,
        ai_evaluation=evaluation.to_json(),
    )
