"""Contracts for external routing and geocoding providers.

Services depend on these abstractions; the HTTP implementations live in
``osrm.py`` and ``geocoding.py`` and tests substitute stubs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from threading import Event
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from modules.routing.dtos import (
        Coordinate,
        GeocodedAddress,
        PostalAddress,
        RoadRoute,
    )


class IRoutingClient(ABC):
    @abstractmethod
    def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        cancel_event: Optional[Event] = None,
    ) -> RoadRoute:
        """Return a road route or raise ``RoutingUnavailable``."""


class IGeocodingClient(ABC):
    @abstractmethod
    def geocode(self, address: str) -> Optional[GeocodedAddress]:
        """Resolve a free-text address; ``None`` when nothing matches."""

    @abstractmethod
    def lookup_postal_code(self, cep: str) -> PostalAddress:
        """Resolve an 8-digit CEP.

        Raises:
            PostalCodeNotFound: the CEP does not exist.
            RoutingUnavailable: the provider could not be reached.
        """
