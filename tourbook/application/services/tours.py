# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from tourbook.application.interfaces import TourRepository
from tourbook.shared.errors import NotFoundError, ValidationError

DISTANCE_UNITS = ("mi", "km")


class InvalidCoordinatesError(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            code="invalid_coordinates",
            message="Please provide latitude and longitude in the format lat,lng.",
        )


class InvalidUnitError(ValidationError):
    def __init__(self, unit: str) -> None:
        super().__init__(
            code="invalid_unit",
            message="Unit must be either 'mi' or 'km'.",
            context={"unit": unit, "allowed": list(DISTANCE_UNITS)},
        )


def parse_latlng(latlng: str) -> tuple[float, float]:
    parts = [part.strip() for part in latlng.split(",")]
    if len(parts) != 2:
        raise InvalidCoordinatesError()
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise InvalidCoordinatesError() from exc
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise InvalidCoordinatesError()
    return lat, lng


def parse_unit(unit: str) -> str:
    if unit not in DISTANCE_UNITS:
        raise InvalidUnitError(unit)
    return unit


class TourService:
    def __init__(self, *, tours: TourRepository) -> None:
        self._tours = tours

    def stats(self) -> list[dict[str, Any]]:
        return self._tours.stats()

    def monthly_plan(self, year: int) -> list[dict[str, Any]]:
        return self._tours.monthly_plan(year)

    def within(self, distance: float, latlng: str, unit: str) -> list[dict[str, Any]]:
        lat, lng = parse_latlng(latlng)
        unit = parse_unit(unit)
        if distance <= 0:
            raise ValidationError(
                code="invalid_distance",
                message="Distance must be a positive number.",
                context={"distance": distance},
            )
        return self._tours.within(distance, lat, lng, unit)

    def distances(self, latlng: str, unit: str) -> list[dict[str, Any]]:
        lat, lng = parse_latlng(latlng)
        return self._tours.distances(lat, lng, parse_unit(unit))

    def by_slug(self, slug: str) -> dict[str, Any]:
        tour = self._tours.find_by_slug(slug)
        if tour is None:
            raise NotFoundError("tour")
        return tour

    def overview(self) -> list[dict[str, Any]]:
        return self._tours.find_many({})


__all__ = ["DISTANCE_UNITS", "TourService", "parse_latlng", "parse_unit"]
