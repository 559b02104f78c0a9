# api/auth.py
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from api import deps
from core import security
from core.config import settings
from core.errors import Conflict
from db import models as db_models
from schemas.common import envelope
from schemas.user import LoginJSON, Token, UserCreate, UserOut


router = APIRouter(prefix="/auth", tags=["auth"])


# ---------- Helpers ----------
def _issue_access_token(user: db_models.User) -> Token:
    access_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = security.create_access_token(
        subject=user.id, email=user.email, expires_delta=access_expires
    )
    return Token(
        access_token=access_token,
        token_type="bearer",
        expires_in=int(access_expires.total_seconds()),
    )


def _authenticate(db: Session, email: str, password: str) -> db_models.User:
    user = db.query(db_models.User).filter(db_models.User.email == email.lower()).first()
    if not user or not security.verify_password(password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect email or password",
        )
    return user


# ---------- Endpoints ----------
@router.post("/signup", status_code=201)
def signup(payload: UserCreate, db: Session = Depends(deps.get_db)):
    email = payload.email.lower()
    if db.query(db_models.User).filter(db_models.User.email == email).first():
        raise Conflict("Email already registered")
    user = db_models.User(
        email=email,
        full_name=payload.full_name,
        hashed_password=security.get_password_hash(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return envelope(UserOut.model_validate(user), message="Account created")


@router.post("/login", response_model=Token)
def login_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(deps.get_db),
) -> Any:
    """
    OAuth2 Password flow for Swagger **Authorize** dialog.

    - username = email
    - password = user's password

    Returns: {access_token, token_type, expires_in}
    """
    user = _authenticate(db, email=form_data.username, password=form_data.password)
    return _issue_access_token(user)


@router.post("/login_json", response_model=Token)
def login_json(payload: LoginJSON, db: Session = Depends(deps.get_db)) -> Any:
    """
    JSON login helper (useful with curl/Postman):
      POST /auth/login_json
      { "email": "...", "password": "..." }
    """
    user = _authenticate(db, email=payload.email, password=payload.password)
    return _issue_access_token(user)


@router.get("/me")
def read_myself(current_user: db_models.User = Depends(deps.get_current_user)):
    return envelope(UserOut.model_validate(current_user))


@router.post("/refresh", response_model=Token)
def refresh_access(current_user: db_models.User = Depends(deps.get_current_user)):
    """Fresh access token for an already-authenticated user."""
    return _issue_access_token(current_user)
