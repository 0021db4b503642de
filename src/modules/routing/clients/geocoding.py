"""Geocoding and postal-code clients.

Free-text addresses are resolved with OpenCage (when an API key is
configured) and then Nominatim; both are restricted to Brazil.  CEPs are
resolved with ViaCEP.
"""

from __future__ import annotations

from typing import Any, Optional

import requests
import structlog
from django.conf import settings

from modules.routing.clients.interfaces import IGeocodingClient
from modules.routing.constants import (
    GEOCODING_COUNTRY_CODE,
    GEOCODING_COUNTRY_SUFFIX,
    NOMINATIM_URL,
    OPENCAGE_URL,
    VIACEP_URL,
    GeocodingProvider,
)
from modules.routing.dtos import Coordinate, GeocodedAddress, PostalAddress
from modules.routing.exceptions import PostalCodeNotFound, RoutingUnavailable

logger = structlog.get_logger(__name__)


class GeocodingClient(IGeocodingClient):
    def __init__(
        self,
        opencage_api_key: str = "",
        user_agent: str = "EcoChain/1.0",
        timeout: float = 6.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.opencage_api_key = opencage_api_key
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    @classmethod
    def from_settings(cls) -> GeocodingClient:
        return cls(
            opencage_api_key=settings.OPENCAGE_API_KEY,
            user_agent=settings.GEOCODING_USER_AGENT,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> GeocodingClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Address -> coordinate
    # ------------------------------------------------------------------

    def geocode(self, address: str) -> Optional[GeocodedAddress]:
        if self.opencage_api_key:
            result = self._opencage(address)
            if result is not None:
                return result
        return self._nominatim(address)

    def _opencage(self, address: str) -> Optional[GeocodedAddress]:
        data = self._get_json(
            OPENCAGE_URL,
            {
                "q": address,
                "key": self.opencage_api_key,
                "countrycode": GEOCODING_COUNTRY_CODE,
                "limit": 1,
            },
            provider=GeocodingProvider.OPENCAGE,
        )
        if not isinstance(data, dict) or not data.get("results"):
            return None
        try:
            result = data["results"][0]
            return GeocodedAddress(
                coordinate=Coordinate(
                    lat=result["geometry"]["lat"], lng=result["geometry"]["lng"]
                ),
                formatted_address=result.get("formatted", address),
                provider=GeocodingProvider.OPENCAGE,
            )
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("geocoding.malformed_response", provider="opencage")
            return None

    def _nominatim(self, address: str) -> Optional[GeocodedAddress]:
        data = self._get_json(
            NOMINATIM_URL,
            {
                "q": f"{address}{GEOCODING_COUNTRY_SUFFIX}",
                "format": "json",
                "limit": 1,
                "countrycodes": GEOCODING_COUNTRY_CODE,
            },
            provider=GeocodingProvider.NOMINATIM,
        )
        if not isinstance(data, list) or not data:
            return None
        try:
            first = data[0]
            return GeocodedAddress(
                coordinate=Coordinate(lat=float(first["lat"]), lng=float(first["lon"])),
                formatted_address=first.get("display_name", address),
                provider=GeocodingProvider.NOMINATIM,
            )
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("geocoding.malformed_response", provider="nominatim")
            return None

    def _get_json(self, url: str, params: dict, provider: str) -> Any:
        """GET and decode JSON; provider failures are logged and yield ``None``."""
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("geocoding.provider_failed", provider=provider, error=str(exc))
            return None

    # ------------------------------------------------------------------
    # CEP -> address
    # ------------------------------------------------------------------

    def lookup_postal_code(self, cep: str) -> PostalAddress:
        try:
            response = self._session.get(
                VIACEP_URL.format(cep=cep), timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise RoutingUnavailable(f"ViaCEP request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise RoutingUnavailable("ViaCEP returned an unexpected payload.")
        if data.get("erro"):
            raise PostalCodeNotFound(f"CEP {cep} not found.")

        return PostalAddress(
            cep=data.get("cep", cep),
            street=data.get("logradouro", ""),
            complement=data.get("complemento", ""),
            neighborhood=data.get("bairro", ""),
            city=data.get("localidade", ""),
            state=data.get("uf", ""),
            ibge_code=data.get("ibge", ""),
        )
