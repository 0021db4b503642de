"""Routing service layer.

``DistanceEstimator`` turns two coordinates into distance, duration and
a drawable path.  It prefers a real road route and degrades to a
Haversine straight line; it never raises for provider failures.

``GeocodingService`` resolves addresses and CEPs through an injected
``IGeocodingClient``.
"""

from __future__ import annotations

import re
from threading import Event
from typing import TYPE_CHECKING, Optional

import structlog

from modules.routing.constants import (
    DEFAULT_PATH_SEGMENTS,
    POSTAL_CODE_LENGTH,
    RouteSource,
)
from modules.routing.dtos import RouteEstimate
from modules.routing.exceptions import (
    InvalidPostalCode,
    RoutingCancelled,
    RoutingUnavailable,
)
from modules.routing.geometry import (
    estimate_duration_minutes,
    haversine_km,
    interpolate_path,
)

if TYPE_CHECKING:
    from modules.routing.clients.interfaces import IGeocodingClient, IRoutingClient
    from modules.routing.dtos import Coordinate, GeocodedAddress, PostalAddress

logger = structlog.get_logger(__name__)

_NON_DIGITS = re.compile(r"\D")


class DistanceEstimator:
    """Estimate a route between two points.

    Receives the routing client via constructor injection.  With no
    client (``None``) every estimate is a straight line.
    """

    def __init__(
        self,
        routing_client: Optional[IRoutingClient] = None,
        path_segments: int = DEFAULT_PATH_SEGMENTS,
    ) -> None:
        self._client = routing_client
        self._path_segments = path_segments

    def estimate(
        self,
        origin: Coordinate,
        destination: Coordinate,
        cancel_event: Optional[Event] = None,
    ) -> RouteEstimate:
        """Return a road estimate, or a straight-line one if routing fails.

        Identical points short-circuit to a zero-length estimate without
        any network call.
        """
        log = logger.bind(
            origin=origin.as_lng_lat(), destination=destination.as_lng_lat()
        )

        if origin == destination:
            return RouteEstimate(
                distance_km=0.0,
                duration_minutes=0.0,
                path=[origin] * (self._path_segments + 1),
                source=RouteSource.STRAIGHT_LINE,
            )

        if self._client is not None:
            try:
                route = self._client.route(origin, destination, cancel_event)
            except RoutingCancelled:
                log.info("routing.cancelled")
            except RoutingUnavailable as exc:
                log.warning("routing.fallback_used", reason=str(exc))
            else:
                log.info(
                    "routing.road_route",
                    endpoint=route.endpoint,
                    distance_km=round(route.distance_km, 2),
                )
                return RouteEstimate(
                    distance_km=route.distance_km,
                    duration_minutes=route.duration_minutes,
                    path=route.path or [origin, destination],
                    source=RouteSource.ROAD,
                )

        return self.straight_line(origin, destination)

    def straight_line(
        self, origin: Coordinate, destination: Coordinate
    ) -> RouteEstimate:
        """Haversine distance with an average-speed duration."""
        distance = haversine_km(origin, destination)
        return RouteEstimate(
            distance_km=distance,
            duration_minutes=estimate_duration_minutes(distance),
            path=interpolate_path(origin, destination, self._path_segments),
            source=RouteSource.STRAIGHT_LINE,
        )


class GeocodingService:
    """Application service for address and CEP resolution."""

    def __init__(self, geocoding_client: IGeocodingClient) -> None:
        self._client = geocoding_client

    def geocode(self, address: str) -> Optional[GeocodedAddress]:
        """Resolve an address; ``None`` means "no coordinates found"."""
        cleaned = (address or "").strip()
        if not cleaned:
            return None

        result = self._client.geocode(cleaned)
        if result is None:
            logger.info("geocoding.not_found")
        else:
            logger.info("geocoding.resolved", provider=result.provider)
        return result

    def lookup_postal_code(self, cep: str) -> PostalAddress:
        """Resolve a CEP (punctuation is ignored).

        Raises:
            InvalidPostalCode: not exactly eight digits.
            PostalCodeNotFound: the CEP does not exist.
            RoutingUnavailable: ViaCEP could not be reached.
        """
        digits = _NON_DIGITS.sub("", cep or "")
        if len(digits) != POSTAL_CODE_LENGTH:
            raise InvalidPostalCode(f"CEP must have {POSTAL_CODE_LENGTH} digits.")
        return self._client.lookup_postal_code(digits)
