# api/deps.py
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from ai.text_service import AITextService
from core import security
from db import models as db_models
from db.session import SessionLocal
from services.asr_service import SpeechToText
from services.interview_engine import InterviewEngine
from services.tts_service import TextToSpeech


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = security.decode_token(token)
    except JWTError:
        raise credentials_exception

    sub = payload.get("sub")
    if sub is None:
        raise credentials_exception

    user = db.get(db_models.User, str(sub))
    if not user:
        raise credentials_exception
    return user


def get_optional_user_id(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[str]:
    """User id from a bearer token if one was sent; None for anonymous calls or bad tokens."""
    return security.verify(token)


# ---------- collaborators (overridden in tests) ----------
@lru_cache
def get_text_service() -> AITextService:
    return AITextService()


@lru_cache
def get_speech_to_text() -> SpeechToText:
    return SpeechToText()


@lru_cache
def get_text_to_speech() -> TextToSpeech:
    return TextToSpeech()


def get_interview_engine(
    db: Session = Depends(get_db),
    ai: AITextService = Depends(get_text_service),
    stt: SpeechToText = Depends(get_speech_to_text),
    tts: TextToSpeech = Depends(get_text_to_speech),
) -> InterviewEngine:
    return InterviewEngine(db, ai, stt=stt, tts=tts)
