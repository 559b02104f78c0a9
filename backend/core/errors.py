# backend/core/errors.py
"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; the exception handlers in main.py turn them into the
`{success: false, error}` envelope with the matching status code.
"""
from typing import Any, Optional


class InterviewError(Exception):
    status_code = 500
    public_message: Optional[str] = None

    def __init__(self, message: str, *, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def client_message(self) -> str:
        return self.public_message or self.message


class InvalidRequest(InterviewError):
    """Missing or malformed caller input."""
    status_code = 400


class NotFound(InterviewError):
    """Entity missing, or not owned by the caller."""
    status_code = 404


class InvalidState(InterviewError):
    """Operation not valid for the current data state."""
    status_code = 400


class Conflict(InvalidState):
    status_code = 409


class UpstreamFailure(InterviewError):
    """An AI or speech service failed or returned unusable output."""
    status_code = 500
    public_message = "An upstream AI service failed to process the request"


class SpeechError(UpstreamFailure):
    """Speech-to-text or text-to-speech failed. Non-fatal during response submission."""
    public_message = "The speech service failed to process the audio"


class StorageFailure(InterviewError):
    status_code = 500
    public_message = "A storage error occurred"
