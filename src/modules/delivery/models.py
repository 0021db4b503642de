"""Transaction and Notification models.

Business rules implemented:
- A transaction is created ``pending`` and moves forward through
  ``confirmed -> in_transit -> delivered``; ``cancelled`` is reachable
  from any non-terminal status (validated at the service layer).
- ``delivered`` and ``cancelled`` are terminal.
- ``completed_at`` is stamped when the transaction is delivered.
- The delivery address can be changed while ``pending`` or ``confirmed``.
- ``delivery_method`` never changes after creation.
- Buyer, seller and item identifiers belong to the marketplace
  (profiles and listings live outside this service), so they are plain
  UUIDs rather than foreign keys.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.delivery.constants import (
    ADDRESS_EDITABLE_STATES,
    VALID_TRANSITIONS,
    DeliveryMethod,
    NotificationType,
    TransactionStatus,
)
from modules.routing.dtos import Coordinate


class Transaction(BaseModel):
    """A purchase of a listed material and its delivery lifecycle."""

    buyer_id: models.UUIDField = models.UUIDField(db_index=True)
    seller_id: models.UUIDField = models.UUIDField(db_index=True)
    item_id: models.UUIDField = models.UUIDField()
    item_title: models.CharField = models.CharField(max_length=255, blank=True)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    total_price: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING,
    )
    delivery_method: models.CharField = models.CharField(
        max_length=20,
        choices=DeliveryMethod.choices,
    )
    delivery_address: models.CharField = models.CharField(max_length=500, blank=True)
    destination_lat: models.FloatField = models.FloatField(null=True, blank=True)
    destination_lng: models.FloatField = models.FloatField(null=True, blank=True)
    completed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    cancellation_reason: models.CharField = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = "transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "created_at"],
                name="transactions_status_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="transactions_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def can_change_address(self) -> bool:
        """The delivery address may change until the package is collected."""
        return self.status in ADDRESS_EDITABLE_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    @property
    def destination(self) -> Optional[Coordinate]:
        """Geocoded delivery destination, if one was stored."""
        if self.destination_lat is None or self.destination_lng is None:
            return None
        return Coordinate(lat=self.destination_lat, lng=self.destination_lng)

    def __str__(self) -> str:
        return f"{self.id} {self.delivery_method} ({self.status})"


class Notification(BaseModel):
    """In-app notification for a buyer or seller.

    Rows are inserted by this service; pushing them to the user's device
    is handled by the marketplace's real-time layer.
    """

    user_id: models.UUIDField = models.UUIDField(db_index=True)
    transaction: models.ForeignKey = models.ForeignKey(
        "delivery.Transaction",
        on_delete=models.CASCADE,
        related_name="notifications",
        null=True,
        blank=True,
    )
    type: models.CharField = models.CharField(
        max_length=30,
        choices=NotificationType.choices,
    )
    title: models.CharField = models.CharField(max_length=255)
    message: models.TextField = models.TextField()
    read: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["user_id", "-created_at"],
                name="notifications_user_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.title}"
