"""Celery tasks do módulo de entregas."""

import structlog
from celery import shared_task

from modules.delivery.advancement import StatusAdvancer
from modules.delivery.repositories import (
    NotificationDjangoRepository,
    TransactionDjangoRepository,
)

logger = structlog.get_logger(__name__)


def build_status_advancer() -> StatusAdvancer:
    return StatusAdvancer(
        transaction_repository=TransactionDjangoRepository(),
        notification_repository=NotificationDjangoRepository(),
    )


@shared_task(name="delivery.advance_pending_transactions")
def advance_pending_transactions():
    """Executa uma rodada do avanço simulado de status (agendada pelo beat)."""
    advanced = build_status_advancer().advance_pending_transactions()
    logger.info("delivery.advance_task_executed", count=len(advanced))
    return {"advanced": [str(pk) for pk in advanced], "count": len(advanced)}
