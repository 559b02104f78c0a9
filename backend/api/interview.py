# api/interview.py
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from api.deps import get_interview_engine, get_optional_user_id
from core.config import settings
from core.errors import InvalidRequest, NotFound
from schemas.common import envelope
from schemas.interview import StartInterviewIn
from services.asr_service import SUPPORTED_FORMATS
from services.interview_engine import InterviewEngine
from utils.audio_storage import remove_file_quietly, save_file

router = APIRouter(prefix="/interview", tags=["interview"])


def _save_answer_audio(audio: Optional[UploadFile]) -> Optional[str]:
    if audio is None or not audio.filename:
        return None
    ext = os.path.splitext(audio.filename)[1].lower()
    if not ext and (audio.content_type or "").startswith("audio/"):
        ext = ".webm"
    if ext.lstrip(".") not in SUPPORTED_FORMATS:
        raise InvalidRequest(
            "Only audio files are allowed",
            details={"supportedFormats": list(SUPPORTED_FORMATS)},
        )
    # one byte past the limit is enough to tell it is too large
    data = audio.file.read(settings.max_audio_bytes + 1)
    if not data:
        return None
    if len(data) > settings.max_audio_bytes:
        raise InvalidRequest(
            f"File too large. Maximum size is {settings.max_audio_bytes // (1024 * 1024)}MB",
            details={"maxFileSize": settings.max_audio_bytes},
        )
    return save_file(data, os.path.join(settings.audio_dir, "responses"), suffix=ext)


# ---------------------------
# Lifecycle
# ---------------------------

@router.post("/start", status_code=201)
def start_interview(
    payload: StartInterviewIn,
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    result = engine.start(token_user_id or payload.user_id, payload.resume_id)
    return envelope(result, message="Interview session started successfully")


@router.post("/response")
def submit_response(
    session_id: Optional[str] = Form(None, alias="sessionId"),
    question_id: Optional[str] = Form(None, alias="questionId"),
    response_text: Optional[str] = Form(None, alias="responseText"),
    response_time_ms: int = Form(0, alias="responseTimeMs"),
    audio: Optional[UploadFile] = File(None),
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    if not session_id or not question_id:
        raise InvalidRequest("Session ID and Question ID are required")

    audio_path = _save_answer_audio(audio)
    try:
        result = engine.submit_response(
            session_id,
            question_id,
            response_text=response_text,
            audio_path=audio_path,
            response_time_ms=response_time_ms,
            user_id=token_user_id,
        )
    except Exception:
        remove_file_quietly(audio_path)
        raise
    return envelope(result, message="Response submitted and evaluated successfully")


@router.post("/{session_id}/complete")
def complete_interview(
    session_id: str,
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    result = engine.complete(session_id, user_id=token_user_id)
    return envelope(result, message="Interview completed successfully")


@router.post("/{session_id}/cancel")
def cancel_interview(
    session_id: str,
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    return envelope(engine.cancel(session_id, user_id=token_user_id), message="Interview cancelled")


@router.delete("/{session_id}")
def delete_interview(
    session_id: str,
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    engine.delete(session_id, user_id=token_user_id)
    return envelope(message="Interview session deleted successfully")


# ---------------------------
# Reads
# ---------------------------

def _list(engine: InterviewEngine, user_id: str, status: Optional[str], limit: int, offset: int):
    sessions = engine.list_for_user(user_id, status=status, limit=limit, offset=offset)
    return envelope([s.to_json() for s in sessions])


@router.get("")
def list_my_interviews(
    status: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    if not token_user_id:
        raise InvalidRequest("User ID is required")
    return _list(engine, token_user_id, status, limit, offset)


@router.get("/user/{user_id}")
def list_user_interviews(
    user_id: str,
    status: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    if token_user_id and token_user_id != user_id:
        raise NotFound("User not found")
    return _list(engine, user_id, status, limit, offset)


@router.get("/{session_id}")
def get_interview(
    session_id: str,
    engine: InterviewEngine = Depends(get_interview_engine),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
):
    return envelope(engine.get(session_id, user_id=token_user_id))
