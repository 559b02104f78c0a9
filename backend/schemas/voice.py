from typing import Optional

from schemas.common import CamelModel


class TTSRequest(CamelModel):
    text: Optional[str] = None
    voice_id: Optional[str] = None


class TTSFileRequest(TTSRequest):
    filename: Optional[str] = None


class TTSFileResult(CamelModel):
    audio_path: str
    filename: str


class TranscriptionResult(CamelModel):
    transcription: str
    file_size: int
