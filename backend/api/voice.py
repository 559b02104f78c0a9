# backend/api/voice.py
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse, Response

from api.deps import get_speech_to_text, get_text_to_speech
from core.config import settings
from core.errors import InvalidRequest, InvalidState, NotFound
from schemas.common import envelope
from schemas.voice import TranscriptionResult, TTSFileRequest, TTSFileResult, TTSRequest
from services.asr_service import SpeechToText, audio_requirements, validate_audio_file
from services.tts_service import MAX_TTS_CHARS, TextToSpeech
from utils.audio_storage import remove_file_quietly, resolve_audio_path, save_file

router = APIRouter(prefix="/voice", tags=["voice"])


def _checked_text(text: Optional[str]) -> str:
    if not text or not text.strip():
        raise InvalidRequest("Text is required")
    if len(text) > MAX_TTS_CHARS:
        raise InvalidRequest(f"Text too long. Maximum {MAX_TTS_CHARS} characters allowed")
    return text


def _require_tts(tts: TextToSpeech) -> None:
    if not tts.enabled:
        raise InvalidState("Text-to-speech is disabled")


@router.post("/tts")
def text_to_speech(payload: TTSRequest, tts: TextToSpeech = Depends(get_text_to_speech)):
    text = _checked_text(payload.text)
    _require_tts(tts)
    audio = tts.synthesize(text, payload.voice_id)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Disposition": 'inline; filename="speech.mp3"'},
    )


@router.post("/tts/file")
def text_to_speech_file(payload: TTSFileRequest, tts: TextToSpeech = Depends(get_text_to_speech)):
    text = _checked_text(payload.text)
    _require_tts(tts)
    rel = tts.synthesize_to_file(text, filename=payload.filename, voice_id=payload.voice_id)
    return envelope(
        TTSFileResult(audio_path=rel, filename=os.path.basename(rel)),
        message="Audio file generated successfully",
    )


@router.post("/stt")
def speech_to_text(
    audio: Optional[UploadFile] = File(None),
    stt: SpeechToText = Depends(get_speech_to_text),
):
    if audio is None or not audio.filename:
        raise InvalidRequest("No audio file uploaded")
    data = audio.file.read()
    if len(data) > settings.max_audio_bytes:
        raise InvalidRequest(
            f"File too large. Maximum size is {settings.max_audio_bytes // (1024 * 1024)}MB",
            details={"fileSize": len(data)},
        )
    ext = os.path.splitext(audio.filename)[1].lower()
    path = save_file(data, os.path.join(settings.audio_dir, "stt"), suffix=ext)
    try:
        check = validate_audio_file(path)
        if not check.is_valid:
            raise InvalidRequest(check.error, details={"fileSize": check.file_size})
        text = stt.transcribe(path)
    finally:
        remove_file_quietly(path)
    return envelope(
        TranscriptionResult(transcription=text, file_size=len(data)),
        message="Audio transcribed successfully",
    )


@router.get("/requirements")
def requirements():
    return envelope(audio_requirements())


@router.get("/audio/{path:path}")
def get_audio(path: str):
    full = resolve_audio_path(path)
    if full is None:
        raise NotFound("Audio file not found")
    return FileResponse(full, media_type="audio/mpeg")
