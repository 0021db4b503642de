"""Unit tests for delivery DTOs."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.delivery.constants import DeliveryMethod, StepStatus
from modules.delivery.dtos import CreateTransactionDTO, DeliveryStep

pytestmark = pytest.mark.unit


def _payload(**overrides):
    data = {
        "buyer_id": uuid4(),
        "seller_id": uuid4(),
        "item_id": uuid4(),
        "item_title": "Madeira de Demolição",
        "quantity": 3,
        "total_price": Decimal("450.00"),
        "delivery_method": DeliveryMethod.CARRIER_SHIPPING,
    }
    data.update(overrides)
    return data


class TestCreateTransactionDTO:
    def test_valid_payload(self):
        dto = CreateTransactionDTO(**_payload())

        assert dto.quantity == 3
        assert dto.destination_lat is None

    def test_is_immutable(self):
        dto = CreateTransactionDTO(**_payload())

        with pytest.raises(ValidationError):
            dto.quantity = 10

    def test_zero_quantity_is_rejected(self):
        with pytest.raises(ValidationError, match="Quantity"):
            CreateTransactionDTO(**_payload(quantity=0))

    def test_unknown_method_is_rejected(self):
        with pytest.raises(ValidationError):
            CreateTransactionDTO(**_payload(delivery_method="drone"))

    def test_half_a_destination_is_rejected(self):
        with pytest.raises(ValidationError, match="together"):
            CreateTransactionDTO(**_payload(destination_lat=-23.5))

    def test_buyer_cannot_be_seller(self):
        same = uuid4()
        with pytest.raises(ValidationError, match="different"):
            CreateTransactionDTO(**_payload(buyer_id=same, seller_id=same))

    def test_latitude_out_of_range_is_rejected(self):
        with pytest.raises(ValidationError):
            CreateTransactionDTO(**_payload(destination_lat=95.0, destination_lng=0.0))


class TestDeliveryStep:
    def test_with_status_returns_a_copy(self):
        step = DeliveryStep(
            id="pickup",
            title="Coleta Realizada",
            description="Entregador coletou o produto",
            estimated_time="2-4 horas",
            icon="truck",
        )

        done = step.with_status(StepStatus.COMPLETED)

        assert done.status == StepStatus.COMPLETED
        assert step.status == StepStatus.PENDING
        assert done.id == step.id
