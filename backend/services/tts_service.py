# backend/services/tts_service.py
import logging
import os
import tempfile
from typing import Dict, Iterable, Optional, Tuple

import httpx
import pyttsx3
from pydub import AudioSegment

from core.config import settings
from core.errors import SpeechError
from utils.audio_storage import save_agent_audio_file
from utils.timeouts import CallTimedOut, run_with_timeout

logger = logging.getLogger(__name__)

MAX_TTS_CHARS = 5000
ELEVENLABS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"


def _init_engine() -> pyttsx3.Engine:
    """
    Create and return a new pyttsx3 engine instance.
    Creating engine per-call avoids sharing one global engine across threads.
    """
    engine = pyttsx3.init()
    try:
        voices = engine.getProperty("voices")
        if voices:
            engine.setProperty("voice", voices[0].id)
        engine.setProperty("rate", 150)
        engine.setProperty("volume", 1.0)
    except RuntimeError:
        # some drivers do not expose voice properties
        logger.warning("Unable to configure pyttsx3 properties", exc_info=True)
    return engine


def _synthesize_local(text: str) -> bytes:
    """
    pyttsx3 -> WAV -> MP3 (pydub). Blocking; requires ffmpeg for the MP3 export.
    """
    tmp_dir = tempfile.mkdtemp(prefix="tts_")
    wav_path = os.path.join(tmp_dir, "speech.wav")
    mp3_path = os.path.join(tmp_dir, "speech.mp3")
    try:
        engine = _init_engine()
        engine.save_to_file(text, wav_path)
        engine.runAndWait()

        AudioSegment.from_wav(wav_path).export(mp3_path, format="mp3")
        with open(mp3_path, "rb") as f:
            return f.read()
    finally:
        for p in (wav_path, mp3_path):
            try:
                if os.path.exists(p):
                    os.remove(p)
            except OSError:
                logger.warning("Failed to remove temp file: %s", p)
        try:
            os.rmdir(tmp_dir)
        except OSError:
            pass


class TextToSpeech:
    """
    Text -> MP3 bytes. `local` uses pyttsx3, `elevenlabs` the ElevenLabs HTTP
    API, `none` disables synthesis. Failures surface as SpeechError.
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.provider = (provider or settings.tts_provider).lower()
        self.timeout = timeout or settings.tts_timeout_seconds
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return self.provider != "none"

    def synthesize(self, text: str, voice_id: Optional[str] = None) -> bytes:
        if not self.enabled:
            raise SpeechError("Text-to-speech is disabled")
        if not text or not text.strip():
            raise SpeechError("Text is required")

        if self.provider == "local":
            try:
                return run_with_timeout(_synthesize_local, self.timeout, text)
            except CallTimedOut as e:
                raise SpeechError(f"speech synthesis timed out: {e}")
            except Exception as e:
                logger.error("Local speech synthesis failed", exc_info=True)
                raise SpeechError(f"speech synthesis failed: {e.__class__.__name__}")
        if self.provider == "elevenlabs":
            return self._synthesize_elevenlabs(text, voice_id)
        raise SpeechError(f"Unknown TTS provider '{self.provider}'")

    def _synthesize_elevenlabs(self, text: str, voice_id: Optional[str]) -> bytes:
        if not settings.elevenlabs_api_key:
            raise SpeechError("ELEVENLABS_API_KEY is not set")
        url = ELEVENLABS_URL.format(voice_id=voice_id or settings.elevenlabs_voice_id)
        payload = {
            "text": text,
            "model_id": settings.elevenlabs_model_id,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.8,
                "style": 0.0,
                "use_speaker_boost": True,
            },
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.post(
                    url,
                    json=payload,
                    headers={"xi-api-key": settings.elevenlabs_api_key, "Accept": "audio/mpeg"},
                )
                r.raise_for_status()
        except httpx.TimeoutException as e:
            raise SpeechError(f"speech synthesis timed out: {e}")
        except httpx.HTTPError as e:
            logger.warning("ElevenLabs request failed: %s", e)
            raise SpeechError(f"speech synthesis request failed: {e.__class__.__name__}")
        if not r.content:
            raise SpeechError("speech synthesis returned no audio")
        return r.content

    def synthesize_to_file(
        self,
        text: str,
        filename: Optional[str] = None,
        voice_id: Optional[str] = None,
    ) -> str:
        """Synthesize and store under the audio dir; returns the path relative to it."""
        audio = self.synthesize(text, voice_id)
        if filename and not filename.lower().endswith(".mp3"):
            filename = f"{filename}.mp3"
        try:
            path = save_agent_audio_file(audio, subdir="tts", filename=filename)
        except FileExistsError:
            raise SpeechError(f"Audio file '{filename}' already exists")
        return os.path.relpath(path, settings.audio_dir).replace(os.sep, "/")

    def generate_question_audio(self, questions: Iterable[Tuple[str, str]]) -> Dict[str, str]:
        """
        {question_id: relative audio path} for the questions that could be
        voiced. One failure never stops the rest.
        """
        out: Dict[str, str] = {}
        for qid, text in questions:
            try:
                out[qid] = self.synthesize_to_file(text, filename=f"question_{qid}.mp3")
            except SpeechError as e:
                logger.warning("Question audio failed", extra={"question_id": qid, "error": e.message})
            except OSError:
                logger.warning("Question audio could not be stored", exc_info=True, extra={"question_id": qid})
        return out
