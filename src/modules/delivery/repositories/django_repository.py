"""Django ORM implementations of the delivery repositories.

Status updates issued by the advancer are a single conditional
``UPDATE ... WHERE id = %s AND status = %s``: the database applies it
atomically, and a second run racing on the same row matches zero rows
instead of advancing it twice.

``DatabaseError`` is converted into the delivery domain exceptions so
services never depend on Django's exception hierarchy.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from modules.delivery.constants import ADVANCEABLE_STATES
from modules.delivery.dtos import NotificationDTO
from modules.delivery.exceptions import (
    NotificationDeliveryFailed,
    TransactionUpdateFailed,
)
from modules.delivery.models import Notification, Transaction
from modules.delivery.repositories.interfaces import (
    INotificationRepository,
    ITransactionRepository,
)
from modules.routing.dtos import Coordinate

logger = structlog.get_logger(__name__)


class TransactionDjangoRepository(ITransactionRepository):
    """Concrete Transaction repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Transaction:
        entity = Transaction(**data)
        entity.full_clean()
        entity.save()
        logger.info(
            "transaction.created",
            transaction_id=str(entity.id),
            delivery_method=entity.delivery_method,
        )
        return entity

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Transaction]:
        try:
            return Transaction.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Transaction]:
        """Must be called inside ``transaction.atomic()``."""
        try:
            return Transaction.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Transaction]:
        """Supported filter keys: ``status``, ``delivery_method``,
        ``buyer_id``, ``seller_id``, ``created_at__range``."""
        queryset = Transaction.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_advanceable(self) -> List[Transaction]:
        return list(
            Transaction.objects.filter(status__in=ADVANCEABLE_STATES).order_by(
                "created_at"
            )
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Transaction) -> Transaction:
        entity.save()
        logger.info("transaction.saved", transaction_id=str(entity.id))
        return entity

    def update_status(
        self,
        id: UUID,
        expected_status: str,
        new_status: str,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        fields: Dict[str, Any] = {"status": new_status, "updated_at": timezone.now()}
        if completed_at is not None:
            fields["completed_at"] = completed_at
        try:
            updated = Transaction.objects.filter(
                id=id, status=expected_status
            ).update(**fields)
        except DatabaseError as exc:
            raise TransactionUpdateFailed(
                f"Could not update transaction {id}: {exc}"
            ) from exc

        logger.info(
            "transaction.status_written",
            transaction_id=str(id),
            old_status=expected_status,
            new_status=new_status,
            rows=updated,
        )
        return updated == 1

    def store_destination(self, id: UUID, address: str, coordinate: Coordinate) -> bool:
        updated = Transaction.objects.filter(
            id=id,
            delivery_address=address,
            destination_lat__isnull=True,
        ).update(
            destination_lat=coordinate.lat,
            destination_lng=coordinate.lng,
            updated_at=timezone.now(),
        )
        logger.info(
            "transaction.destination_stored", transaction_id=str(id), rows=updated
        )
        return updated == 1


class NotificationDjangoRepository(INotificationRepository):
    """Concrete Notification repository backed by Django ORM."""

    def create(self, notification: NotificationDTO) -> Notification:
        try:
            entity = Notification.objects.create(
                user_id=notification.user_id,
                transaction_id=notification.transaction_id,
                type=notification.type,
                title=notification.title,
                message=notification.message,
            )
        except DatabaseError as exc:
            raise NotificationDeliveryFailed(
                f"Could not notify user {notification.user_id}: {exc}"
            ) from exc
        logger.info(
            "notification.created",
            notification_id=str(entity.id),
            user_id=str(notification.user_id),
            type=notification.type,
        )
        return entity

    def get_by_id(self, id: str) -> Optional[Notification]:
        try:
            return Notification.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Notification]:
        queryset = Notification.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_user(
        self, user_id: UUID, unread_only: bool = False
    ) -> List[Notification]:
        queryset = Notification.objects.filter(user_id=user_id)
        if unread_only:
            queryset = queryset.filter(read=False)
        return list(queryset)

    def mark_read(self, id: str) -> bool:
        try:
            updated = Notification.objects.filter(id=id).update(
                read=True, updated_at=timezone.now()
            )
        except (ValueError, ValidationError):
            return False
        return updated == 1

    def mark_all_read(self, user_id: UUID) -> int:
        updated = Notification.objects.filter(user_id=user_id, read=False).update(
            read=True, updated_at=timezone.now()
        )
        logger.info("notification.marked_read", user_id=str(user_id), rows=updated)
        return updated

    def save(self, entity: Notification) -> Notification:
        entity.save()
        return entity
