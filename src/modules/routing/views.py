"""Routing API views.

Exposes ``DistanceEstimator`` and ``GeocodingService`` over HTTP.
Provider clients are opened per request and closed before the
response is returned.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from django.conf import settings

from modules.routing.clients.geocoding import GeocodingClient
from modules.routing.clients.osrm import OSRMClient
from modules.routing.dtos import Coordinate
from modules.routing.exceptions import (
    InvalidPostalCode,
    PostalCodeNotFound,
    RoutingUnavailable,
)
from modules.routing.serializers import (
    EstimateRequestSerializer,
    GeocodeRequestSerializer,
)
from modules.routing.services import DistanceEstimator, GeocodingService


class RoutingViewSet(ViewSet):
    throttle_scope = "routing"

    @action(detail=False, methods=["post"])
    def estimate(self, request: Request) -> Response:
        """POST /api/v1/routing/estimate/

        Always answers 200: when no road route is available the body
        carries a straight-line estimate with ``source="straight_line"``.
        """
        serializer = EstimateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with OSRMClient.from_settings() as client:
            estimator = DistanceEstimator(
                client, path_segments=settings.ROUTING_FALLBACK_PATH_POINTS
            )
            estimate = estimator.estimate(
                Coordinate(**data["origin"]), Coordinate(**data["destination"])
            )
        return Response(estimate.model_dump(mode="json"))

    @action(detail=False, methods=["post"])
    def geocode(self, request: Request) -> Response:
        """POST /api/v1/routing/geocode/"""
        serializer = GeocodeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with GeocodingClient.from_settings() as client:
            result = GeocodingService(client).geocode(
                serializer.validated_data["address"]
            )
        if result is None:
            return Response(
                {"detail": "No coordinates found for address."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(result.model_dump(mode="json"))

    @action(
        detail=False,
        methods=["get"],
        url_path=r"postal-codes/(?P<cep>[^/]+)",
        url_name="postal-code",
    )
    def postal_code(self, request: Request, cep: str | None = None) -> Response:
        """GET /api/v1/routing/postal-codes/{cep}/"""
        try:
            with GeocodingClient.from_settings() as client:
                address = GeocodingService(client).lookup_postal_code(cep or "")
        except InvalidPostalCode as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PostalCodeNotFound:
            return Response(
                {"detail": "CEP not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except RoutingUnavailable:
            return Response(
                {"detail": "Postal code service unavailable."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(address.model_dump(mode="json"))
