"""Transaction service layer (Use Cases).

Creates transactions and drives the buyer/seller side of the lifecycle:
confirmation, cancellation and address changes.  Forward movement after
confirmation is the job of ``StatusAdvancer``.  ``NotificationService``
serves the notification inbox the advancer fills.

Business rules enforced:
- A transaction is created ``pending``.
- Only ``pending`` transactions can be confirmed.
- Any non-terminal transaction can be cancelled; the reason is kept.
- The delivery address can change while ``pending`` or ``confirmed``.
- Addresses without coordinates are geocoded when a geocoder is wired in;
  network lookups happen before any row lock is taken.
- Transitions lock the row (``SELECT FOR UPDATE``) before validating.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.delivery.constants import TransactionStatus
from modules.delivery.exceptions import (
    InvalidTransactionStatus,
    NotificationNotFound,
    TransactionNotFound,
)

if TYPE_CHECKING:
    from modules.delivery.dtos import CreateTransactionDTO
    from modules.delivery.models import Notification, Transaction
    from modules.delivery.repositories.interfaces import (
        INotificationRepository,
        ITransactionRepository,
    )
    from modules.routing.dtos import Coordinate
    from modules.routing.services import GeocodingService

logger = structlog.get_logger(__name__)


class TransactionService:
    """Application service for Transaction use-cases.

    Receives its repository via constructor injection (DIP).  The
    geocoder is optional: without one, addresses are stored as typed and
    tracking falls back to a zero-distance plan.
    """

    def __init__(
        self,
        transaction_repository: ITransactionRepository,
        geocoding_service: Optional[GeocodingService] = None,
    ) -> None:
        self._transaction_repo = transaction_repository
        self._geocoding = geocoding_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_transaction(self, dto: CreateTransactionDTO) -> Transaction:
        log = logger.bind(
            buyer_id=str(dto.buyer_id),
            seller_id=str(dto.seller_id),
            delivery_method=dto.delivery_method,
        )
        log.info("transaction.creation_started")

        lat, lng = dto.destination_lat, dto.destination_lng
        if lat is None:
            coordinate = self._geocode(dto.delivery_address)
            if coordinate is not None:
                lat, lng = coordinate.lat, coordinate.lng

        created = self._transaction_repo.create(
            {
                "buyer_id": dto.buyer_id,
                "seller_id": dto.seller_id,
                "item_id": dto.item_id,
                "item_title": dto.item_title,
                "quantity": dto.quantity,
                "total_price": dto.total_price,
                "delivery_method": dto.delivery_method,
                "delivery_address": dto.delivery_address,
                "destination_lat": lat,
                "destination_lng": lng,
                "status": TransactionStatus.PENDING,
            }
        )
        log.info("transaction.created", transaction_id=str(created.id))
        return created

    @transaction.atomic
    def confirm_transaction(self, transaction_id: UUID) -> Transaction:
        """Seller confirms a pending transaction.

        Raises:
            TransactionNotFound: transaction does not exist.
            InvalidTransactionStatus: transaction is not ``pending``.
        """
        return self._transition(transaction_id, TransactionStatus.CONFIRMED)

    @transaction.atomic
    def cancel_transaction(self, transaction_id: UUID, reason: str = "") -> Transaction:
        """Cancel a transaction that has not been delivered yet.

        Raises:
            TransactionNotFound: transaction does not exist.
            InvalidTransactionStatus: transaction is already terminal.
        """
        return self._transition(
            transaction_id, TransactionStatus.CANCELLED, reason=reason
        )

    def update_delivery_address(
        self,
        transaction_id: UUID,
        address: str,
        coordinate: Optional[Coordinate] = None,
    ) -> Transaction:
        """Point a transaction at a new delivery address.

        When *coordinate* is not given the address is geocoded; an
        unresolvable address is stored without coordinates.

        Raises:
            TransactionNotFound: transaction does not exist.
            InvalidTransactionStatus: the package was already collected.
        """
        if coordinate is None:
            coordinate = self._geocode(address)
        return self._change_address(transaction_id, address, coordinate)

    @transaction.atomic
    def _change_address(
        self,
        transaction_id: UUID,
        address: str,
        coordinate: Optional[Coordinate],
    ) -> Transaction:
        entity = self._transaction_repo.get_for_update(str(transaction_id))
        if not entity:
            raise TransactionNotFound(f"Transaction {transaction_id} not found.")

        log = logger.bind(transaction_id=str(transaction_id), status=entity.status)
        if not entity.can_change_address:
            log.warning("transaction.address_change_rejected")
            raise InvalidTransactionStatus(
                f"Cannot change the delivery address of a {entity.status} transaction."
            )

        entity.delivery_address = address
        entity.destination_lat = coordinate.lat if coordinate else None
        entity.destination_lng = coordinate.lng if coordinate else None
        self._transaction_repo.save(entity)
        log.info("transaction.address_updated", geocoded=coordinate is not None)
        return entity

    def _transition(
        self, transaction_id: UUID, new_status: str, reason: str = ""
    ) -> Transaction:
        entity = self._transaction_repo.get_for_update(str(transaction_id))
        if not entity:
            raise TransactionNotFound(f"Transaction {transaction_id} not found.")

        log = logger.bind(
            transaction_id=str(transaction_id),
            current_status=entity.status,
            new_status=new_status,
        )
        if not entity.can_transition_to(new_status):
            log.warning("transaction.invalid_transition")
            raise InvalidTransactionStatus(
                f"Cannot transition from {entity.status} to {new_status}."
            )

        entity.status = new_status
        if new_status == TransactionStatus.CANCELLED:
            entity.cancellation_reason = reason
        self._transaction_repo.save(entity)
        log.info("transaction.status_updated", reason=reason or None)
        return entity

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_transaction(self, transaction_id: str) -> Transaction:
        """Raises ``TransactionNotFound`` if the transaction does not exist."""
        entity = self._transaction_repo.get_by_id(transaction_id)
        if not entity:
            raise TransactionNotFound(f"Transaction {transaction_id} not found.")
        return entity

    def list_transactions(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> List[Transaction]:
        return self._transaction_repo.list(filters)

    def resolve_destination(self, entity: Transaction) -> Optional[Coordinate]:
        """Stored destination, or the geocoded delivery address.

        Coordinates found here are saved so the next lookup is local.
        """
        if entity.destination is not None:
            return entity.destination

        coordinate = self._geocode(entity.delivery_address)
        if coordinate is None:
            return None

        self._transaction_repo.store_destination(
            entity.id, entity.delivery_address, coordinate
        )
        entity.destination_lat, entity.destination_lng = coordinate.lat, coordinate.lng
        return coordinate

    def _geocode(self, address: str) -> Optional[Coordinate]:
        if self._geocoding is None or not (address or "").strip():
            return None
        result = self._geocoding.geocode(address)
        return result.coordinate if result is not None else None


class NotificationService:
    """Inbox use-cases over the notifications written by the advancer."""

    def __init__(self, notification_repository: INotificationRepository) -> None:
        self._notification_repo = notification_repository

    def list_for_user(
        self, user_id: UUID, unread_only: bool = False
    ) -> List[Notification]:
        return self._notification_repo.list_for_user(user_id, unread_only=unread_only)

    def mark_read(self, notification_id: str) -> Notification:
        """Raises ``NotificationNotFound`` for unknown ids."""
        if not self._notification_repo.mark_read(notification_id):
            raise NotificationNotFound(f"Notification {notification_id} not found.")
        return self._notification_repo.get_by_id(notification_id)

    def mark_all_read(self, user_id: UUID) -> int:
        return self._notification_repo.mark_all_read(user_id)
