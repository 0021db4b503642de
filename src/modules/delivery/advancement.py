"""Status advancer: simulated delivery progress.

Scans in-flight transactions and promotes each one at most one step
per run once its method's elapsed-time threshold is crossed, then
notifies buyer and seller.  Failures are isolated per transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional
from uuid import UUID

import structlog
from django.utils import timezone

from modules.delivery.constants import TransactionStatus
from modules.delivery.dtos import NotificationDTO
from modules.delivery.exceptions import (
    NotificationDeliveryFailed,
    TransactionUpdateFailed,
)
from modules.delivery.rules import AdvancementRule, RuleBook, rules_from_settings

if TYPE_CHECKING:
    from modules.delivery.models import Transaction
    from modules.delivery.repositories.interfaces import (
        INotificationRepository,
        ITransactionRepository,
    )

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class StatusAdvancer:
    """Receives its stores and clock via constructor injection."""

    def __init__(
        self,
        transaction_repository: ITransactionRepository,
        notification_repository: INotificationRepository,
        rules: Optional[Iterable[AdvancementRule]] = None,
        clock: Clock = timezone.now,
    ) -> None:
        self._transaction_repo = transaction_repository
        self._notification_repo = notification_repository
        self._rules = RuleBook(rules if rules is not None else rules_from_settings())
        self._clock = clock

    def advance_pending_transactions(self) -> List[UUID]:
        """Run one pass and return the ids of the transactions advanced.

        A transaction whose update fails (or that another writer moved
        first) is logged and left out of the result; the pass continues.
        """
        now = self._clock()
        candidates = self._transaction_repo.list_advanceable()
        log = logger.bind(run_at=now.isoformat(), candidates=len(candidates))
        log.info("delivery.advance_started")

        advanced: List[UUID] = []
        for transaction in candidates:
            if self._advance(transaction, now):
                advanced.append(transaction.id)

        log.info("delivery.advance_finished", advanced=len(advanced))
        return advanced

    def _advance(self, transaction: Transaction, now: datetime) -> bool:
        # decided from the status read at the start of the run
        current_status = transaction.status
        rule = self._rules.rule_for(transaction.delivery_method, current_status)
        if rule is None:
            return False

        elapsed = now - transaction.created_at
        if elapsed < rule.after:
            return False

        log = logger.bind(
            transaction_id=str(transaction.id),
            delivery_method=transaction.delivery_method,
            old_status=current_status,
            new_status=rule.to_status,
            elapsed_minutes=round(elapsed.total_seconds() / 60, 1),
        )

        completed_at = now if rule.to_status == TransactionStatus.DELIVERED else None
        try:
            updated = self._transaction_repo.update_status(
                transaction.id,
                expected_status=current_status,
                new_status=rule.to_status,
                completed_at=completed_at,
            )
        except TransactionUpdateFailed as exc:
            log.error("delivery.advance_failed", error=str(exc))
            return False

        if not updated:
            log.warning("delivery.advance_skipped_concurrent_update")
            return False

        transaction.status = rule.to_status
        if completed_at is not None:
            transaction.completed_at = completed_at
        log.info("delivery.transaction_advanced")

        self._notify(transaction, rule)
        return True

    def _notify(self, transaction: Transaction, rule: AdvancementRule) -> None:
        item = transaction.item_title or "Produto"
        recipients = (
            (transaction.buyer_id, rule.buyer_notification),
            (transaction.seller_id, rule.seller_notification),
        )
        for user_id, template in recipients:
            title, message = template.render(item)
            try:
                self._notification_repo.create(
                    NotificationDTO(
                        user_id=user_id,
                        transaction_id=transaction.id,
                        type=template.type,
                        title=title,
                        message=message,
                    )
                )
            except NotificationDeliveryFailed as exc:
                logger.error(
                    "delivery.notification_failed",
                    transaction_id=str(transaction.id),
                    user_id=str(user_id),
                    error=str(exc),
                )
