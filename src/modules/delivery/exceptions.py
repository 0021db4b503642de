"""Delivery domain exceptions.

Raised by the Service Layer and the repositories.  The API layer
(Views) catches the lifecycle errors and translates them into HTTP
responses; the status advancer catches the persistence errors per
transaction and keeps going.
"""

from __future__ import annotations


class TransactionNotFound(Exception):
    """The requested transaction does not exist."""


class InvalidTransactionStatus(Exception):
    """An invalid status transition was attempted."""


class TransactionUpdateFailed(Exception):
    """The store rejected a transaction status update."""


class NotificationDeliveryFailed(Exception):
    """A notification row could not be inserted."""


class NotificationNotFound(Exception):
    """The requested notification does not exist."""
