"""Delivery API views.

Exposes delivery planning, the transaction lifecycle, tracking and the
notification inbox via DRF ViewSets.  Provider clients (OSRM, geocoders)
are opened per request and closed before the response is returned.
Domain exceptions are caught and translated into HTTP status codes; the
view never swallows generic exceptions.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from django.conf import settings
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet, ViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.delivery.dtos import CreateTransactionDTO, DeliveryPlan
from modules.delivery.exceptions import (
    InvalidTransactionStatus,
    NotificationNotFound,
    TransactionNotFound,
)
from modules.delivery.filters import TransactionFilter
from modules.delivery.models import Notification, Transaction
from modules.delivery.planning import DeliveryPlanner
from modules.delivery.repositories import (
    NotificationDjangoRepository,
    TransactionDjangoRepository,
)
from modules.delivery.serializers import (
    CancelTransactionSerializer,
    CreateTransactionSerializer,
    MarkAllReadSerializer,
    NotificationQuerySerializer,
    NotificationSerializer,
    PlanRequestSerializer,
    TransactionSerializer,
    UpdateAddressSerializer,
)
from modules.delivery.services import NotificationService, TransactionService
from modules.delivery.tasks import build_status_advancer
from modules.routing.clients.geocoding import GeocodingClient
from modules.routing.clients.osrm import OSRMClient
from modules.routing.dtos import Coordinate
from modules.routing.services import DistanceEstimator, GeocodingService


def _hub_origin() -> Coordinate:
    return Coordinate(lat=settings.DELIVERY_ORIGIN_LAT, lng=settings.DELIVERY_ORIGIN_LNG)


def _plan_payload(plan: DeliveryPlan) -> dict:
    return plan.model_dump(mode="json")


@contextmanager
def _geocoding_service() -> Iterator[GeocodingService]:
    with GeocodingClient.from_settings() as client:
        yield GeocodingService(client)


class DeliveryPlanViewSet(ViewSet):
    throttle_scope = "routing"

    @action(detail=False, methods=["post"])
    def plan(self, request: Request) -> Response:
        """POST /api/v1/delivery/plan/

        Distance comes from the road router when available; otherwise
        the plan is built on the straight-line fallback and flagged
        ``approximate``.
        """
        serializer = PlanRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        origin = (
            Coordinate(**data["origin"]) if data.get("origin") else _hub_origin()
        )
        with OSRMClient.from_settings() as client:
            planner = DeliveryPlanner(
                DistanceEstimator(
                    client, path_segments=settings.ROUTING_FALLBACK_PATH_POINTS
                )
            )
            plan = planner.plan(
                origin, Coordinate(**data["destination"]), data["method"]
            )
        return Response(_plan_payload(plan))


class TransactionViewSet(GenericViewSet):
    """ViewSet for Transaction operations.

    Uses ``TransactionService`` with an injected repository (DIP).
    Does **not** extend ``ModelViewSet``: writes go through the
    service/repository layer.
    """

    queryset = Transaction.objects.all()
    filterset_class = TransactionFilter
    ordering_fields = ["created_at", "total_price", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = TransactionDjangoRepository()
        self._service = TransactionService(transaction_repository=self._repository)

    def _service_with(self, geocoder: GeocodingService) -> TransactionService:
        return TransactionService(
            transaction_repository=self._repository, geocoding_service=geocoder
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Define escopos de throttling por ação."""
        self.throttle_scope = (
            "transaction_creation" if self.action == "create" else None
        )
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/transactions/"""
        serializer = CreateTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        destination = data.get("destination") or {}

        try:
            dto = CreateTransactionDTO(
                buyer_id=data["buyer_id"],
                seller_id=data["seller_id"],
                item_id=data["item_id"],
                item_title=data["item_title"],
                quantity=data["quantity"],
                total_price=data["total_price"],
                delivery_method=data["delivery_method"],
                delivery_address=data["delivery_address"],
                destination_lat=destination.get("lat"),
                destination_lng=destination.get("lng"),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        with _geocoding_service() as geocoder:
            created = self._service_with(geocoder).create_transaction(dto)
        return Response(
            TransactionSerializer(created).data, status=status.HTTP_201_CREATED
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/transactions/

        Filtering (status, method, buyer, seller, date range) is handled
        by ``TransactionFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = TransactionSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/transactions/{pk}/"""
        try:
            entity = self._service.get_transaction(pk or "")
        except TransactionNotFound:
            return Response(
                {"detail": "Transaction not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(TransactionSerializer(entity).data)

    # ------------------------------------------------------------------
    # Lifecycle actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/transactions/{pk}/confirm/"""
        try:
            entity = self._service.confirm_transaction(UUID(pk or ""))
        except ValueError:
            return Response(
                {"detail": "Invalid transaction ID format."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except TransactionNotFound:
            return Response(
                {"detail": "Transaction not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidTransactionStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(TransactionSerializer(entity).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/transactions/{pk}/cancel/"""
        serializer = CancelTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            entity = self._service.cancel_transaction(
                UUID(pk or ""),
                reason=serializer.validated_data["reason"],
            )
        except ValueError:
            return Response(
                {"detail": "Invalid transaction ID format."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except TransactionNotFound:
            return Response(
                {"detail": "Transaction not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidTransactionStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(TransactionSerializer(entity).data)

    @action(detail=True, methods=["post"])
    def address(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/transactions/{pk}/address/

        Allowed while the transaction is ``pending`` or ``confirmed``.
        """
        serializer = UpdateAddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        destination = data.get("destination")

        try:
            transaction_id = UUID(pk or "")
        except ValueError:
            return Response(
                {"detail": "Invalid transaction ID format."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            with _geocoding_service() as geocoder:
                entity = self._service_with(geocoder).update_delivery_address(
                    transaction_id,
                    data["delivery_address"],
                    Coordinate(**destination) if destination else None,
                )
        except TransactionNotFound:
            return Response(
                {"detail": "Transaction not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidTransactionStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(TransactionSerializer(entity).data)

    @action(detail=True, methods=["get"])
    def tracking(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/transactions/{pk}/tracking/

        Delivery plan of the transaction with milestones reflecting its
        current status.
        """
        try:
            entity = self._service.get_transaction(pk or "")
        except TransactionNotFound:
            return Response(
                {"detail": "Transaction not found."},
                status=status.HTTP_404_NOT_FOUND,
            )

        with _geocoding_service() as geocoder:
            self._service_with(geocoder).resolve_destination(entity)

        with OSRMClient.from_settings() as client:
            planner = DeliveryPlanner(
                DistanceEstimator(
                    client, path_segments=settings.ROUTING_FALLBACK_PATH_POINTS
                )
            )
            plan = planner.track(entity, _hub_origin())

        return Response(
            {
                "transaction_id": str(entity.id),
                "status": entity.status,
                **_plan_payload(plan),
            }
        )

    @action(detail=False, methods=["post"], permission_classes=[IsAdminUser])
    def advance(self, request: Request) -> Response:
        """POST /api/v1/transactions/advance/

        Runs one status-advancement pass immediately (staff only).
        """
        advanced = build_status_advancer().advance_pending_transactions()
        return Response(
            {"advanced": [str(pk) for pk in advanced], "count": len(advanced)}
        )


class NotificationViewSet(GenericViewSet):
    """Inbox of a marketplace user (``user_id`` is the profile UUID)."""

    queryset = Notification.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = NotificationService(
            notification_repository=NotificationDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/notifications/?user_id=<uuid>&unread=true"""
        query = NotificationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        notifications = self._service.list_for_user(
            query.validated_data["user_id"],
            unread_only=query.validated_data["unread"],
        )
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(notifications, request)
        return paginator.get_paginated_response(
            NotificationSerializer(page, many=True).data
        )

    @action(detail=True, methods=["post"])
    def read(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/notifications/{pk}/read/"""
        try:
            notification = self._service.mark_read(pk or "")
        except NotificationNotFound:
            return Response(
                {"detail": "Notification not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(NotificationSerializer(notification).data)

    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request: Request) -> Response:
        """POST /api/v1/notifications/read-all/"""
        serializer = MarkAllReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        count = self._service.mark_all_read(serializer.validated_data["user_id"])
        return Response({"marked": count})
