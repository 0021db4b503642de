"""Unit tests for ``BaseModel`` bookkeeping, exercised through Notification."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from uuid import uuid4

import pytest
from freezegun import freeze_time
from django.utils import timezone

from modules.delivery.constants import NotificationType
from modules.delivery.models import Notification

pytestmark = pytest.mark.unit


def _notification(**fields):
    data = {
        "user_id": uuid4(),
        "type": NotificationType.SALE_UPDATE,
        "title": "Nova venda",
        "message": "Você vendeu um item.",
    }
    data.update(fields)
    return Notification.objects.create(**data)


class TestBaseModel:
    def test_primary_key_is_uuid7(self):
        assert _notification().id.version == 7

    def test_primary_keys_are_time_ordered(self):
        first = _notification()
        second = _notification()
        assert first.id < second.id

    @freeze_time("2026-03-10 12:00:00")
    def test_created_at_defaults_to_now(self):
        assert _notification().created_at == timezone.now()

    def test_created_at_can_be_backdated(self):
        past = datetime(2025, 1, 1, 8, 30, tzinfo=dt_timezone.utc)
        obj = _notification(created_at=past)
        obj.refresh_from_db()
        assert obj.created_at == past

    def test_update_fields_also_refreshes_updated_at(self):
        with freeze_time("2026-03-10 12:00:00"):
            obj = _notification()
        with freeze_time("2026-03-10 12:05:00"):
            obj.read = True
            obj.save(update_fields=["read"])
        obj.refresh_from_db()
        assert obj.read is True
        assert obj.updated_at - obj.created_at == timedelta(minutes=5)
