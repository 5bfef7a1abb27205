from datetime import datetime

from pydantic import EmailStr, Field

from schemas.shared import InputModel, ORMModel


class RegisterIn(InputModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=100)
    name: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=3, max_length=30)


class LoginIn(InputModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ResendVerificationIn(InputModel):
    email: EmailStr


class UserOut(ORMModel):
    id: str
    email: EmailStr
    name: str
    phone: str | None = None
    email_verified: bool
    login_count: int = 0
    last_login: datetime | None = None
    created_at: datetime


class LoginOut(ORMModel):
    token: str
    token_type: str = "bearer"
    user: UserOut
    requires_email_verification: bool
