"""OSRM road-routing client.

Sole responsibility: talk to OSRM over HTTP and return a normalized
``RoadRoute``.  Encapsulates the OSRM specifics:

- coordinate formatting (``lng,lat``)
- URL construction (``/route/v1/{profile}/...``)
- per-endpoint timeout and fail-over to the next configured endpoint
- parsing the GeoJSON geometry into ``Coordinate`` objects

It contains no pricing or delivery rules.
"""

from __future__ import annotations

from threading import Event
from typing import Any, List, Optional, Sequence

import requests
import structlog
from django.conf import settings

from modules.routing.clients.interfaces import IRoutingClient
from modules.routing.constants import (
    DEFAULT_ROUTING_ENDPOINTS,
    DEFAULT_ROUTING_TIMEOUT_SECONDS,
)
from modules.routing.dtos import Coordinate, RoadRoute
from modules.routing.exceptions import RoutingCancelled, RoutingUnavailable

logger = structlog.get_logger(__name__)


class OSRMClient(IRoutingClient):
    """HTTP adapter for one or more OSRM servers.

    Endpoints are tried in order; the first one returning a route wins.
    The client owns a ``requests.Session`` and should be closed (or used
    as a context manager) once the caller is done with it.
    """

    def __init__(
        self,
        endpoints: Sequence[str] = DEFAULT_ROUTING_ENDPOINTS,
        profile: str = "driving",
        timeout: float = DEFAULT_ROUTING_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not endpoints:
            raise ValueError("At least one OSRM endpoint must be configured.")
        self.endpoints = [url.rstrip("/") for url in endpoints]
        self.profile = profile
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> OSRMClient:
        return cls(
            endpoints=settings.ROUTING_ENDPOINTS,
            profile=settings.ROUTING_PROFILE,
            timeout=settings.ROUTING_TIMEOUT_SECONDS,
        )

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> OSRMClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Route service
    # ------------------------------------------------------------------

    def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        cancel_event: Optional[Event] = None,
    ) -> RoadRoute:
        """Fetch the driving route between two coordinates.

        Cancellation is checked before each endpoint is tried; a request
        already in flight runs until it answers or hits ``timeout``.

        Raises:
            RoutingCancelled: ``cancel_event`` was set before an endpoint was tried.
            RoutingUnavailable: every endpoint failed, timed out or found no route.
        """
        errors: List[str] = []
        for base_url in self.endpoints:
            if cancel_event is not None and cancel_event.is_set():
                raise RoutingCancelled("Route request cancelled by caller.")
            try:
                return self._route_from(base_url, origin, destination)
            except RoutingUnavailable as exc:
                logger.warning(
                    "routing.endpoint_failed", endpoint=base_url, error=str(exc)
                )
                errors.append(f"{base_url}: {exc}")
        raise RoutingUnavailable("; ".join(errors))

    def _route_from(
        self, base_url: str, origin: Coordinate, destination: Coordinate
    ) -> RoadRoute:
        coordinates = f"{origin.as_lng_lat()};{destination.as_lng_lat()}"
        url = f"{base_url}/route/v1/{self.profile}/{coordinates}"
        try:
            response = self._session.get(
                url,
                params={"overview": "full", "geometries": "geojson"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise RoutingUnavailable(f"request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise RoutingUnavailable("malformed route payload: expected a JSON object")
        if data.get("code") != "Ok" or not data.get("routes"):
            raise RoutingUnavailable(
                f"no route found: {data.get('message', data.get('code', 'unknown'))}"
            )

        return _parse_route(data["routes"], base_url)


def _parse_route(routes: Any, endpoint: str) -> RoadRoute:
    """Normalize the first OSRM route object (meters, seconds, GeoJSON)."""
    try:
        route = routes[0]
        # GeoJSON positions are [lng, lat]
        path = [
            Coordinate(lat=position[1], lng=position[0])
            for position in route["geometry"]["coordinates"]
        ]
        return RoadRoute(
            distance_km=route["distance"] / 1000,
            duration_minutes=route["duration"] / 60,
            path=path,
            endpoint=endpoint,
        )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise RoutingUnavailable(f"malformed route payload: {exc}") from exc
