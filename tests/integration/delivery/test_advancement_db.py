"""Integration tests for StatusAdvancer against the real repositories."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from modules.delivery.advancement import StatusAdvancer
from modules.delivery.constants import (
    DeliveryMethod,
    NotificationType,
    TransactionStatus,
)
from modules.delivery.models import Notification
from modules.delivery.repositories import (
    NotificationDjangoRepository,
    TransactionDjangoRepository,
)

pytestmark = pytest.mark.integration


@pytest.fixture()
def clock():
    """Mutable clock: tests move ``clock.now`` forward."""

    class _Clock:
        now = timezone.now()

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture()
def advancer(clock):
    return StatusAdvancer(
        transaction_repository=TransactionDjangoRepository(),
        notification_repository=NotificationDjangoRepository(),
        clock=clock,
    )


class TestExpressLifecycle:
    def test_express_transaction_walks_to_delivered(
        self, advancer, clock, make_transaction
    ):
        tx = make_transaction(
            method=DeliveryMethod.EXPRESS_DELIVERY,
            status=TransactionStatus.CONFIRMED,
            created_at=clock.now - timedelta(minutes=91),
        )

        assert advancer.advance_pending_transactions() == [tx.id]
        tx.refresh_from_db()
        assert tx.status == TransactionStatus.IN_TRANSIT

        # immediate second run: 91 min is below the delivery threshold
        assert advancer.advance_pending_transactions() == []
        tx.refresh_from_db()
        assert tx.status == TransactionStatus.IN_TRANSIT
        assert tx.completed_at is None

        clock.now = clock.now + timedelta(minutes=90)
        assert advancer.advance_pending_transactions() == [tx.id]
        tx.refresh_from_db()
        assert tx.status == TransactionStatus.DELIVERED
        assert tx.completed_at == clock.now

        assert advancer.advance_pending_transactions() == []

    def test_notifications_are_stored_for_both_parties(
        self, advancer, clock, make_transaction
    ):
        tx = make_transaction(
            method=DeliveryMethod.EXPRESS_DELIVERY,
            status=TransactionStatus.CONFIRMED,
            created_at=clock.now - timedelta(minutes=100),
        )

        advancer.advance_pending_transactions()

        buyer_notes = Notification.objects.filter(user_id=tx.buyer_id)
        seller_notes = Notification.objects.filter(user_id=tx.seller_id)
        assert buyer_notes.count() == 1
        assert seller_notes.count() == 1
        assert buyer_notes.get().type == NotificationType.DELIVERY_UPDATE
        assert buyer_notes.get().transaction_id == tx.id


class TestUntouchedRows:
    def test_terminal_and_local_pickup_rows_are_not_modified(
        self, advancer, clock, make_transaction
    ):
        old = timedelta(days=10)
        delivered = make_transaction(
            status=TransactionStatus.DELIVERED, created_at=clock.now - old
        )
        cancelled = make_transaction(
            status=TransactionStatus.CANCELLED, created_at=clock.now - old
        )
        pickup = make_transaction(
            method=DeliveryMethod.LOCAL_PICKUP,
            status=TransactionStatus.CONFIRMED,
            created_at=clock.now - old,
        )
        before = {
            t.id: t.updated_at for t in (delivered, cancelled, pickup)
        }

        assert advancer.advance_pending_transactions() == []

        for t in (delivered, cancelled, pickup):
            status = t.status
            t.refresh_from_db()
            assert t.status == status
            assert t.updated_at == before[t.id]
        assert Notification.objects.count() == 0


class TestDefaultClock:
    def test_uses_wall_clock_when_none_is_injected(self, make_transaction):
        from freezegun import freeze_time

        with freeze_time("2026-03-10 12:00:00"):
            tx = make_transaction(
                method=DeliveryMethod.EXPRESS_DELIVERY,
                status=TransactionStatus.CONFIRMED,
            )
        advancer = StatusAdvancer(
            transaction_repository=TransactionDjangoRepository(),
            notification_repository=NotificationDjangoRepository(),
        )

        with freeze_time("2026-03-10 13:00:00"):
            assert advancer.advance_pending_transactions() == []
        with freeze_time("2026-03-10 13:31:00"):
            assert advancer.advance_pending_transactions() == [tx.id]
