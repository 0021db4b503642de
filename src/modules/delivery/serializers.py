"""Delivery DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.delivery.constants import DeliveryMethod
from modules.delivery.models import Notification, Transaction
from modules.routing.serializers import CoordinateSerializer

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class PlanRequestSerializer(serializers.Serializer):
    """Validates ``POST /delivery/plan/``; ``origin`` defaults to the hub."""

    origin = CoordinateSerializer(required=False)
    destination = CoordinateSerializer()
    method = serializers.ChoiceField(choices=DeliveryMethod.choices)


class CreateTransactionSerializer(serializers.Serializer):
    """Validates the transaction creation request payload."""

    buyer_id = serializers.UUIDField()
    seller_id = serializers.UUIDField()
    item_id = serializers.UUIDField()
    item_title = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    quantity = serializers.IntegerField(min_value=1, default=1)
    total_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, default=Decimal("0.00")
    )
    delivery_method = serializers.ChoiceField(choices=DeliveryMethod.choices)
    delivery_address = serializers.CharField(
        max_length=500, required=False, default="", allow_blank=True
    )
    destination = CoordinateSerializer(required=False)


class CancelTransactionSerializer(serializers.Serializer):
    reason = serializers.CharField(
        max_length=500, required=False, default="", allow_blank=True
    )


class UpdateAddressSerializer(serializers.Serializer):
    """``destination`` is geocoded from the address when omitted."""

    delivery_address = serializers.CharField(max_length=500)
    destination = CoordinateSerializer(required=False)


class NotificationQuerySerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    unread = serializers.BooleanField(required=False, default=False)


class MarkAllReadSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = [
            "id",
            "buyer_id",
            "seller_id",
            "item_id",
            "item_title",
            "quantity",
            "total_price",
            "status",
            "delivery_method",
            "delivery_address",
            "destination_lat",
            "destination_lng",
            "created_at",
            "updated_at",
            "completed_at",
            "cancellation_reason",
        ]
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "user_id",
            "transaction",
            "type",
            "title",
            "message",
            "read",
            "created_at",
        ]
        read_only_fields = fields
