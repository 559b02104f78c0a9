# schemas/user.py
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from schemas.common import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None


class LoginJSON(CamelModel):
    email: EmailStr
    password: str


class UserOut(CamelModel):
    id: str
    email: EmailStr
    full_name: Optional[str] = None


class Token(BaseModel):
    # OAuth2 field names, not camelCase
    access_token: str
    token_type: str = "bearer"
    expires_in: int
