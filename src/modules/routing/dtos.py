"""Routing DTOs.

Framework-agnostic value objects using Pydantic v2.  All DTOs are
immutable (``frozen=True``).

- ``Coordinate``: a (lat, lng) pair in decimal degrees.
- ``RoadRoute``: normalized answer of a road-routing provider.
- ``RouteEstimate``: what the ``DistanceEstimator`` returns to callers.
- ``GeocodedAddress``: a free-text address resolved to a coordinate.
- ``PostalAddress``: a Brazilian CEP resolved by ViaCEP.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from modules.routing.constants import GeocodingProvider, RouteSource


class Coordinate(BaseModel):
    """Immutable latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    def as_lng_lat(self) -> str:
        """Format as ``lng,lat`` (the order OSRM and GeoJSON expect)."""
        return f"{self.lng},{self.lat}"


class RoadRoute(BaseModel):
    """Route reported by a road-routing provider, already in km / minutes."""

    model_config = ConfigDict(frozen=True)

    distance_km: float = Field(ge=0)
    duration_minutes: float = Field(ge=0)
    path: List[Coordinate]
    endpoint: str


class RouteEstimate(BaseModel):
    """Distance, duration and drawable path between two coordinates.

    ``source`` tells whether the numbers come from a real road route or
    from the Haversine fallback.
    """

    model_config = ConfigDict(frozen=True)

    distance_km: float = Field(ge=0)
    duration_minutes: float = Field(ge=0)
    path: List[Coordinate]
    source: RouteSource

    @property
    def is_approximate(self) -> bool:
        return self.source == RouteSource.STRAIGHT_LINE


class GeocodedAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    formatted_address: str
    provider: GeocodingProvider


class PostalAddress(BaseModel):
    """Address returned by ViaCEP for a Brazilian postal code."""

    model_config = ConfigDict(frozen=True)

    cep: str
    street: str = ""
    complement: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    ibge_code: str = ""

    def one_line(self) -> str:
        """Render as a single line suitable for geocoding."""
        parts = [self.street, self.neighborhood, self.city, self.state]
        return ", ".join(part for part in parts if part)
