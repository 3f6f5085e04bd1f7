from __future__ import annotations

from pydantic import Field

from .base import CamelModel


class BookingCreateDTO(CamelModel):
    tour: str = Field(min_length=1)
    user: str = Field(min_length=1)
    price: float = Field(gt=0)
    paid: bool = True


class BookingUpdateDTO(CamelModel):
    tour: str | None = Field(default=None, min_length=1)
    user: str | None = Field(default=None, min_length=1)
    price: float | None = Field(default=None, gt=0)
    paid: bool | None = None
