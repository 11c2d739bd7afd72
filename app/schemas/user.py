"""Pydantic schemas for user payloads."""

from typing import Literal

from pydantic import Field

from app.schemas.base import ResourceSchema

Role = Literal["user", "guide", "lead-guide", "admin"]

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreate(ResourceSchema):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=_EMAIL_PATTERN)
    role: Role = "user"
    photo: str = "default.jpg"


class UserUpdate(ResourceSchema):
    name: str | None = Field(None, min_length=1, max_length=100)
    email: str | None = Field(None, pattern=_EMAIL_PATTERN)
    role: Role | None = None
    photo: str | None = None
