"""Delivery repositories package."""

from modules.delivery.repositories.django_repository import (
    NotificationDjangoRepository,
    TransactionDjangoRepository,
)
from modules.delivery.repositories.interfaces import (
    INotificationRepository,
    ITransactionRepository,
)

__all__ = [
    "INotificationRepository",
    "ITransactionRepository",
    "NotificationDjangoRepository",
    "TransactionDjangoRepository",
]
