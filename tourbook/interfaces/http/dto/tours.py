from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, model_validator

from .base import CamelModel

Difficulty = Literal["easy", "medium", "difficult"]


class LocationDTO(CamelModel):
    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(min_length=2, max_length=2)
    address: str | None = None
    description: str | None = None
    day: int | None = Field(default=None, ge=0)


class TourCreateDTO(CamelModel):
    name: str = Field(min_length=10, max_length=40)
    duration: int = Field(gt=0)
    max_group_size: int = Field(gt=0)
    difficulty: Difficulty
    ratings_average: float = Field(default=4.5, ge=1, le=5)
    ratings_quantity: int = Field(default=0, ge=0)
    price: float = Field(gt=0)
    price_discount: float | None = Field(default=None, ge=0)
    summary: str = Field(min_length=1)
    description: str | None = None
    image_cover: str = Field(min_length=1)
    images: list[str] = Field(default_factory=list)
    start_dates: list[datetime] = Field(default_factory=list)
    secret_tour: bool = False
    start_location: LocationDTO | None = None
    locations: list[LocationDTO] = Field(default_factory=list)
    guides: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _discount_below_price(self) -> "TourCreateDTO":
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError("Discount price should be below regular price")
        return self


class TourUpdateDTO(CamelModel):
    name: str | None = Field(default=None, min_length=10, max_length=40)
    duration: int | None = Field(default=None, gt=0)
    max_group_size: int | None = Field(default=None, gt=0)
    difficulty: Difficulty | None = None
    ratings_average: float | None = Field(default=None, ge=1, le=5)
    ratings_quantity: int | None = Field(default=None, ge=0)
    price: float | None = Field(default=None, gt=0)
    price_discount: float | None = Field(default=None, ge=0)
    summary: str | None = Field(default=None, min_length=1)
    description: str | None = None
    image_cover: str | None = Field(default=None, min_length=1)
    images: list[str] | None = None
    start_dates: list[datetime] | None = None
    secret_tour: bool | None = None
    start_location: LocationDTO | None = None
    locations: list[LocationDTO] | None = None
    guides: list[str] | None = None

    @model_validator(mode="after")
    def _discount_below_price(self) -> "TourUpdateDTO":
        if (
            self.price_discount is not None
            and self.price is not None
            and self.price_discount >= self.price
        ):
            raise ValueError("Discount price should be below regular price")
        return self
