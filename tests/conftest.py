from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
import requests
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from modules.delivery.constants import DeliveryMethod, TransactionStatus
from modules.delivery.models import Transaction

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _offline():
    """No test reaches a real provider; tests stub ``Session.get`` as needed."""
    with patch.object(
        requests.Session, "get", side_effect=requests.ConnectionError("offline")
    ):
        yield


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def auth_client():
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    user = User.objects.create_user(username="apiuser", password="testpass123")
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def staff_client():
    """APIClient authenticated as a staff user."""
    client = APIClient()
    user = User.objects.create_user(
        username="staffuser", password="testpass123", is_staff=True
    )
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def make_transaction():
    """Factory persisting a transaction, optionally created ``age`` ago."""

    def _make(
        method=DeliveryMethod.EXPRESS_DELIVERY,
        status=TransactionStatus.PENDING,
        age=None,
        **fields,
    ):
        data = {
            "buyer_id": uuid4(),
            "seller_id": uuid4(),
            "item_id": uuid4(),
            "item_title": "Alumínio Recuperado",
            "quantity": 10,
            "total_price": Decimal("42.00"),
            "delivery_method": method,
            "status": status,
            "delivery_address": "Av. Paulista, 1000, São Paulo",
        }
        if age is not None:
            data["created_at"] = timezone.now() - age
        data.update(fields)
        return Transaction.objects.create(**data)

    return _make
