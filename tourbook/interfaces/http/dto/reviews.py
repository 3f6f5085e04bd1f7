from __future__ import annotations

from pydantic import Field

from .base import CamelModel


class ReviewCreateDTO(CamelModel):
    review: str = Field(min_length=1, max_length=2000)
    rating: float = Field(ge=1, le=5)
    tour: str | None = None
    user: str | None = None


class ReviewUpdateDTO(CamelModel):
    review: str | None = Field(default=None, min_length=1, max_length=2000)
    rating: float | None = Field(default=None, ge=1, le=5)
