"""Delivery repository interfaces.

Extend ``IRepository[T]`` with what the delivery services need: the
advancer's scan of in-flight transactions, a compare-and-set status
update, geocoded destinations, and the notification inbox.

The Service Layer depends exclusively on these contracts (DIP); the
Django ORM implementations live in ``django_repository.py``.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.delivery.dtos import NotificationDTO
    from modules.delivery.models import Notification, Transaction
    from modules.routing.dtos import Coordinate


class ITransactionRepository(IRepository["Transaction"]):
    """Repository contract for transactions."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Transaction:
        """Insert a new transaction in ``pending`` status."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Transaction]:
        """Retrieve a transaction; ``None`` for unknown or malformed ids."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Transaction]:
        """Retrieve a transaction holding a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Transaction]:
        """List transactions with optional ORM-style filters."""

    @abstractmethod
    def list_advanceable(self) -> List[Transaction]:
        """Transactions in ``confirmed`` / ``in_transit``, oldest first."""

    @abstractmethod
    def update_status(
        self,
        id: UUID,
        expected_status: str,
        new_status: str,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        """Move a transaction from *expected_status* to *new_status*.

        Returns ``False`` when the row is no longer in *expected_status*
        (another writer got there first).

        Raises:
            TransactionUpdateFailed: the store rejected the write.
        """

    @abstractmethod
    def store_destination(self, id: UUID, address: str, coordinate: Coordinate) -> bool:
        """Save coordinates geocoded from *address*.

        Returns ``False`` when the row has coordinates already or its
        address changed since it was read.
        """


class INotificationRepository(IRepository["Notification"]):
    """Repository contract for notifications."""

    @abstractmethod
    def create(self, notification: NotificationDTO) -> Notification:
        """Insert a notification row.

        Raises:
            NotificationDeliveryFailed: the store rejected the insert.
        """

    @abstractmethod
    def list_for_user(
        self, user_id: UUID, unread_only: bool = False
    ) -> List[Notification]:
        """Notifications addressed to *user_id*, newest first."""

    @abstractmethod
    def mark_read(self, id: str) -> bool:
        """Flag one notification as read; ``False`` if it does not exist."""

    @abstractmethod
    def mark_all_read(self, user_id: UUID) -> int:
        """Flag every unread notification of *user_id*; returns the count."""
