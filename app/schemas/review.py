"""Pydantic schemas for review payloads."""

from pydantic import Field

from app.schemas.base import ResourceSchema


class ReviewCreate(ResourceSchema):
    review: str = Field(..., min_length=1, description="Review text.")
    rating: int = Field(..., ge=1, le=5)
    tour: str = Field(..., min_length=1, description="Id of the reviewed tour.")
    user: str = Field(..., min_length=1, description="Id of the author.")


class ReviewUpdate(ResourceSchema):
    review: str | None = Field(None, min_length=1)
    rating: int | None = Field(None, ge=1, le=5)
