"""Pydantic schemas for booking payloads."""

from pydantic import Field

from app.schemas.base import ResourceSchema


class BookingCreate(ResourceSchema):
    tour: str = Field(..., min_length=1, description="Id of the booked tour.")
    user: str = Field(..., min_length=1, description="Id of the customer.")
    price: float = Field(..., gt=0)
    paid: bool = True


class BookingUpdate(ResourceSchema):
    price: float | None = Field(None, gt=0)
    paid: bool | None = None
