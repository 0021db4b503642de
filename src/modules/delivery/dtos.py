"""Delivery DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``); tracking produces new step objects instead
of mutating a plan.

- ``DeliveryStep``: one milestone of a delivery timeline.
- ``DeliveryPlan``: distance, cost, ETA and milestones for a method.
- ``CreateTransactionDTO``: input for transaction creation.
- ``NotificationDTO``: a notification to be inserted for a user.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.delivery.constants import DeliveryMethod, NotificationType, StepStatus


class DeliveryStep(BaseModel):
    """Immutable milestone.  Only ``status`` differs between copies."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    estimated_time: str
    status: StepStatus = StepStatus.PENDING
    icon: str

    def with_status(self, status: StepStatus) -> DeliveryStep:
        return self.model_copy(update={"status": status})


class DeliveryPlan(BaseModel):
    """Computed delivery plan.  Derived on demand, never persisted."""

    model_config = ConfigDict(frozen=True)

    method: DeliveryMethod
    distance_km: float = Field(ge=0)
    estimated_time: str
    cost: Decimal
    steps: List[DeliveryStep]
    approximate: bool = False


class CreateTransactionDTO(BaseModel):
    """Immutable DTO for transaction creation requests.

    Validates:
    - ``quantity`` must be positive.
    - destination latitude and longitude come together or not at all.
    """

    model_config = ConfigDict(frozen=True)

    buyer_id: UUID
    seller_id: UUID
    item_id: UUID
    item_title: str = ""
    quantity: int = 1
    total_price: Decimal = Decimal("0.00")
    delivery_method: DeliveryMethod
    delivery_address: str = ""
    destination_lat: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    destination_lng: Optional[float] = Field(default=None, ge=-180.0, le=180.0)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @model_validator(mode="after")
    def destination_is_complete(self):
        if (self.destination_lat is None) != (self.destination_lng is None):
            raise ValueError(
                "destination_lat and destination_lng must be provided together."
            )
        return self

    @model_validator(mode="after")
    def buyer_is_not_seller(self):
        if self.buyer_id == self.seller_id:
            raise ValueError("Buyer and seller must be different users.")
        return self


class NotificationDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    transaction_id: Optional[UUID] = None
    type: NotificationType
    title: str
    message: str
