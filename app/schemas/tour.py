"""Pydantic schemas for tour payloads."""

from typing import Literal

from pydantic import Field, model_validator

from app.schemas.base import ResourceSchema

Difficulty = Literal["easy", "medium", "difficult"]


class TourCreate(ResourceSchema):
    """Payload for creating a tour."""

    name: str = Field(..., min_length=10, max_length=40, description="Unique tour name.")
    duration: int = Field(..., gt=0, description="Length of the tour in days.")
    max_group_size: int = Field(..., gt=0, description="Maximum number of participants.")
    difficulty: Difficulty = Field(..., description="One of easy, medium, difficult.")
    ratings_average: float = Field(4.5, ge=1, le=5)
    ratings_quantity: int = Field(0, ge=0)
    price: float = Field(..., gt=0)
    price_discount: float | None = Field(None, ge=0)
    summary: str = Field(..., min_length=1)
    description: str | None = None
    image_cover: str | None = None
    images: list[str] = Field(default_factory=list)
    start_dates: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _discount_below_price(self) -> "TourCreate":
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError("Discount price should be below regular price")
        return self


class TourUpdate(ResourceSchema):
    """Partial update for a tour; only provided fields change."""

    name: str | None = Field(None, min_length=10, max_length=40)
    duration: int | None = Field(None, gt=0)
    max_group_size: int | None = Field(None, gt=0)
    difficulty: Difficulty | None = None
    ratings_average: float | None = Field(None, ge=1, le=5)
    ratings_quantity: int | None = Field(None, ge=0)
    price: float | None = Field(None, gt=0)
    price_discount: float | None = Field(None, ge=0)
    summary: str | None = None
    description: str | None = None
    image_cover: str | None = None
    images: list[str] | None = None
    start_dates: list[str] | None = None
