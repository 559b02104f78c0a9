# backend/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from core.config import settings


JWT_SECRET = settings.secret_key
JWT_ALGORITHM = settings.jwt_algorithm

# ---- TEST MODE (plaintext passwords) ----
# If set, we avoid crypto backends entirely in tests to keep them deterministic.
TEST_PLAINTEXT = settings.test_plaintext_passwords

if TEST_PLAINTEXT:
    def get_password_hash(password: str) -> str:
        return f"plain::{password}"

    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return hashed_password == f"plain::{plain_password}"
else:
    pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

    def get_password_hash(password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(plain_password: str, hashed_password: str) -> bool:
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False


ACCESS_EXPIRE_MINUTES = int(settings.access_token_expire_minutes)


def create_access_token(
    subject: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    exp = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_EXPIRE_MINUTES))
    to_encode = {"sub": str(subject), "exp": exp}
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT. Raises JWTError on invalid/expired tokens.
    """
    return jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
        options={"verify_aud": False},  # we don't use 'aud'
    )


def verify(token: Optional[str]) -> Optional[str]:
    """Return the user id carried by `token`, or None if it is missing or invalid."""
    if not token:
        return None
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None
