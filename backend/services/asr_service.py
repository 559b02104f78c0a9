# backend/services/asr_service.py
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import httpx
from faster_whisper import WhisperModel

from core.config import settings
from core.errors import SpeechError
from utils.timeouts import CallTimedOut, run_with_timeout

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ["mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm"]
MAX_DURATION_SECONDS = 25 * 60


@dataclass
class AudioCheck:
    is_valid: bool
    file_size: int = 0
    error: Optional[str] = None


def audio_requirements() -> dict:
    return {
        "maxFileSize": settings.max_audio_bytes,
        "supportedFormats": list(SUPPORTED_FORMATS),
        "maxDuration": MAX_DURATION_SECONDS,
    }


def validate_audio_file(path: str) -> AudioCheck:
    """Size and extension check only; the decoder is the final judge of the container."""
    try:
        size = os.path.getsize(path)
    except OSError:
        return AudioCheck(False, error="Audio file not found")
    if size == 0:
        return AudioCheck(False, size, "Audio file is empty")
    if size > settings.max_audio_bytes:
        return AudioCheck(
            False, size, f"File too large. Maximum size is {settings.max_audio_bytes // (1024 * 1024)}MB"
        )
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    if ext not in SUPPORTED_FORMATS:
        return AudioCheck(
            False, size, f"Unsupported format. Supported formats: {', '.join(SUPPORTED_FORMATS)}"
        )
    return AudioCheck(True, size)


@lru_cache(maxsize=2)
def _whisper(model_name: str) -> WhisperModel:
    logger.info("Loading whisper model %s", model_name)
    return WhisperModel(model_name, device="cpu", compute_type="float32")


def _transcribe_local(path: str) -> str:
    segments, _ = _whisper(settings.whisper_model).transcribe(
        path,
        language="en",
        beam_size=5,
        vad_filter=True,
        condition_on_previous_text=False,
        temperature=0.0,
    )
    return " ".join(seg.text.strip() for seg in segments).strip()


class SpeechToText:
    """
    Audio file -> text. `local` runs faster-whisper on a worker thread,
    `openai` posts to the Whisper transcription endpoint. Every failure,
    including a timeout, surfaces as SpeechError.
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.provider = (provider or settings.stt_provider).lower()
        self.timeout = timeout or settings.stt_timeout_seconds
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return self.provider != "none"

    def transcribe(self, path: str) -> str:
        if not self.enabled:
            raise SpeechError("Speech-to-text is disabled")
        check = validate_audio_file(path)
        if not check.is_valid:
            raise SpeechError(check.error, details={"fileSize": check.file_size})

        if self.provider == "local":
            try:
                return run_with_timeout(_transcribe_local, self.timeout, path)
            except CallTimedOut as e:
                raise SpeechError(f"transcription timed out: {e}")
            except Exception as e:
                logger.error("Local transcription failed for %s", path, exc_info=True)
                raise SpeechError(f"transcription failed: {e.__class__.__name__}")
        if self.provider == "openai":
            return self._transcribe_openai(path)
        raise SpeechError(f"Unknown STT provider '{self.provider}'")

    def _transcribe_openai(self, path: str) -> str:
        if not settings.openai_api_key:
            raise SpeechError("OPENAI_API_KEY is not set")
        url = settings.openai_base_url.rstrip("/") + "/audio/transcriptions"
        try:
            with open(path, "rb") as fh, httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.post(
                    url,
                    headers={"Authorization": f"Bearer {settings.openai_api_key}"},
                    files={"file": (os.path.basename(path), fh, "application/octet-stream")},
                    data={"model": settings.openai_stt_model, "language": "en", "response_format": "text"},
                )
                r.raise_for_status()
        except httpx.TimeoutException as e:
            raise SpeechError(f"transcription timed out: {e}")
        except (httpx.HTTPError, OSError) as e:
            logger.warning("OpenAI transcription request failed: %s", e)
            raise SpeechError(f"transcription request failed: {e.__class__.__name__}")
        return r.text.strip()
