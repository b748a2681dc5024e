"""Account schemas for signup and login."""

from __future__ import annotations

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

_PASSWORD_CLASSES = (re.compile(r"[a-z]"), re.compile(r"[A-Z]"), re.compile(r"\d"))


class SignupRequest(BaseModel):
    email: EmailStr = Field(max_length=255)
    name: str = Field(min_length=2, max_length=100)
    password: str = Field(min_length=8, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not all(p.search(v) for p in _PASSWORD_CLASSES):
            raise ValueError("Password must contain uppercase, lowercase, and number")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class AuthResponse(BaseModel):
    user_id: str
    email: str
    message: str
