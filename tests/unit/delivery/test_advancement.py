"""Unit tests for StatusAdvancer.

Repositories are ``MagicMock`` stubs and the clock is fixed, so every
scenario is evaluated at a known instant.

Covers:
- Express / carrier thresholds and one-step-per-run promotion.
- Idempotence: a second run right after the first does nothing.
- Terminal and local-pickup transactions are never touched.
- Per-transaction failure isolation.
- Buyer and seller notifications.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.delivery.advancement import StatusAdvancer
from modules.delivery.constants import (
    DeliveryMethod,
    NotificationType,
    TransactionStatus,
)
from modules.delivery.exceptions import (
    NotificationDeliveryFailed,
    TransactionUpdateFailed,
)
from modules.delivery.models import Transaction
from modules.delivery.repositories.interfaces import (
    INotificationRepository,
    ITransactionRepository,
)
from modules.delivery.rules import build_rules

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)

RULES = build_rules(
    express_pickup_after=timedelta(minutes=90),
    express_delivered_after=timedelta(minutes=180),
    carrier_pickup_after=timedelta(hours=8),
    carrier_delivered_after=timedelta(hours=48),
)


def _transaction(method, status, age):
    return Transaction(
        buyer_id=uuid4(),
        seller_id=uuid4(),
        item_id=uuid4(),
        item_title="Sobras de Plástico PET",
        delivery_method=method,
        status=status,
        created_at=NOW - age,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def transaction_repo():
    repo = MagicMock(spec=ITransactionRepository)
    repo.update_status.return_value = True
    return repo


@pytest.fixture()
def notification_repo():
    return MagicMock(spec=INotificationRepository)


@pytest.fixture()
def advancer(transaction_repo, notification_repo):
    return StatusAdvancer(
        transaction_repository=transaction_repo,
        notification_repository=notification_repo,
        rules=RULES,
        clock=lambda: NOW,
    )


# ---------------------------------------------------------------------------
# Express delivery
# ---------------------------------------------------------------------------


class TestExpressDelivery:
    def test_confirmed_after_91_minutes_moves_to_in_transit(
        self, advancer, transaction_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=91),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        advanced = advancer.advance_pending_transactions()

        assert advanced == [tx.id]
        transaction_repo.update_status.assert_called_once_with(
            tx.id,
            expected_status=TransactionStatus.CONFIRMED,
            new_status=TransactionStatus.IN_TRANSIT,
            completed_at=None,
        )
        assert tx.status == TransactionStatus.IN_TRANSIT

    def test_confirmed_before_90_minutes_is_left_alone(
        self, advancer, transaction_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=89),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == []
        transaction_repo.update_status.assert_not_called()

    def test_threshold_is_inclusive(self, advancer, transaction_repo):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=90),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == [tx.id]

    def test_in_transit_before_180_minutes_is_not_delivered(
        self, advancer, transaction_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.IN_TRANSIT,
            timedelta(minutes=120),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == []

    def test_in_transit_after_180_minutes_is_delivered_with_completed_at(
        self, advancer, transaction_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.IN_TRANSIT,
            timedelta(minutes=181),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == [tx.id]
        transaction_repo.update_status.assert_called_once_with(
            tx.id,
            expected_status=TransactionStatus.IN_TRANSIT,
            new_status=TransactionStatus.DELIVERED,
            completed_at=NOW,
        )
        assert tx.completed_at == NOW

    def test_old_confirmed_moves_only_one_step_per_run(
        self, advancer, transaction_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(hours=10),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        advancer.advance_pending_transactions()

        transaction_repo.update_status.assert_called_once()
        assert tx.status == TransactionStatus.IN_TRANSIT


# ---------------------------------------------------------------------------
# Carrier shipping
# ---------------------------------------------------------------------------


class TestCarrierShipping:
    def test_confirmed_after_8_hours_moves_to_in_transit(
        self, advancer, transaction_repo
    ):
        tx = _transaction(
            DeliveryMethod.CARRIER_SHIPPING,
            TransactionStatus.CONFIRMED,
            timedelta(hours=8, minutes=1),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == [tx.id]

    def test_confirmed_after_3_hours_is_left_alone(self, advancer, transaction_repo):
        tx = _transaction(
            DeliveryMethod.CARRIER_SHIPPING,
            TransactionStatus.CONFIRMED,
            timedelta(hours=3),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == []

    def test_in_transit_after_48_hours_is_delivered(self, advancer, transaction_repo):
        tx = _transaction(
            DeliveryMethod.CARRIER_SHIPPING,
            TransactionStatus.IN_TRANSIT,
            timedelta(hours=49),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == [tx.id]
        assert tx.status == TransactionStatus.DELIVERED


# ---------------------------------------------------------------------------
# Untouched transactions
# ---------------------------------------------------------------------------


class TestUntouched:
    def test_local_pickup_never_auto_advances(self, advancer, transaction_repo):
        tx = _transaction(
            DeliveryMethod.LOCAL_PICKUP,
            TransactionStatus.CONFIRMED,
            timedelta(days=30),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == []
        transaction_repo.update_status.assert_not_called()

    @pytest.mark.parametrize(
        "status",
        [
            TransactionStatus.PENDING,
            TransactionStatus.DELIVERED,
            TransactionStatus.CANCELLED,
        ],
    )
    def test_non_advanceable_statuses_are_ignored(
        self, advancer, transaction_repo, notification_repo, status
    ):
        tx = _transaction(DeliveryMethod.EXPRESS_DELIVERY, status, timedelta(days=5))
        transaction_repo.list_advanceable.return_value = [tx]

        assert advancer.advance_pending_transactions() == []
        transaction_repo.update_status.assert_not_called()
        notification_repo.create.assert_not_called()

    def test_nothing_to_do(self, advancer, transaction_repo):
        transaction_repo.list_advanceable.return_value = []

        assert advancer.advance_pending_transactions() == []


# ---------------------------------------------------------------------------
# Idempotence and failure isolation
# ---------------------------------------------------------------------------


class TestIdempotenceAndFailures:
    def test_lost_compare_and_set_is_not_reported(
        self, advancer, transaction_repo, notification_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=100),
        )
        transaction_repo.list_advanceable.return_value = [tx]
        transaction_repo.update_status.return_value = False

        assert advancer.advance_pending_transactions() == []
        notification_repo.create.assert_not_called()
        assert tx.status == TransactionStatus.CONFIRMED

    def test_failed_update_does_not_stop_the_run(
        self, advancer, transaction_repo, notification_repo
    ):
        broken = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=100),
        )
        healthy = _transaction(
            DeliveryMethod.CARRIER_SHIPPING,
            TransactionStatus.CONFIRMED,
            timedelta(hours=9),
        )
        transaction_repo.list_advanceable.return_value = [broken, healthy]
        transaction_repo.update_status.side_effect = [
            TransactionUpdateFailed("database is locked"),
            True,
        ]

        assert advancer.advance_pending_transactions() == [healthy.id]
        assert notification_repo.create.call_count == 2

    def test_notification_failure_keeps_the_advancement(
        self, advancer, transaction_repo, notification_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=100),
        )
        transaction_repo.list_advanceable.return_value = [tx]
        notification_repo.create.side_effect = NotificationDeliveryFailed("boom")

        assert advancer.advance_pending_transactions() == [tx.id]
        assert notification_repo.create.call_count == 2

    def test_clock_is_read_once_per_run(self, transaction_repo, notification_repo):
        clock = MagicMock(return_value=NOW)
        transaction_repo.list_advanceable.return_value = [
            _transaction(
                DeliveryMethod.EXPRESS_DELIVERY,
                TransactionStatus.CONFIRMED,
                timedelta(minutes=100),
            )
            for _ in range(3)
        ]
        advancer = StatusAdvancer(
            transaction_repo, notification_repo, rules=RULES, clock=clock
        )

        advancer.advance_pending_transactions()

        clock.assert_called_once()


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class TestNotifications:
    def test_pickup_notifies_buyer_and_seller(
        self, advancer, transaction_repo, notification_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=100),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        advancer.advance_pending_transactions()

        buyer, seller = [c.args[0] for c in notification_repo.create.call_args_list]
        assert buyer.user_id == tx.buyer_id
        assert buyer.transaction_id == tx.id
        assert buyer.type == NotificationType.DELIVERY_UPDATE
        assert buyer.title == "Produto Coletado!"
        assert "Sobras de Plástico PET" in buyer.message
        assert seller.user_id == tx.seller_id
        assert seller.type == NotificationType.SALE_UPDATE

    def test_delivery_notifies_completion(
        self, advancer, transaction_repo, notification_repo
    ):
        tx = _transaction(
            DeliveryMethod.CARRIER_SHIPPING,
            TransactionStatus.IN_TRANSIT,
            timedelta(hours=50),
        )
        transaction_repo.list_advanceable.return_value = [tx]

        advancer.advance_pending_transactions()

        buyer, seller = [c.args[0] for c in notification_repo.create.call_args_list]
        assert buyer.type == NotificationType.DELIVERY_COMPLETE
        assert buyer.title == "Produto Entregue!"
        assert seller.title == "Venda Concluída!"

    def test_missing_item_title_uses_generic_name(
        self, advancer, transaction_repo, notification_repo
    ):
        tx = _transaction(
            DeliveryMethod.EXPRESS_DELIVERY,
            TransactionStatus.CONFIRMED,
            timedelta(minutes=100),
        )
        tx.item_title = ""
        transaction_repo.list_advanceable.return_value = [tx]

        advancer.advance_pending_transactions()

        buyer = notification_repo.create.call_args_list[0].args[0]
        assert '"Produto"' in buyer.message
