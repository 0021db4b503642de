"""Time-based advancement rules for the delivery simulation.

Each rule says: a transaction of ``method`` sitting in ``from_status``
moves to ``to_status`` once ``after`` has elapsed since it was created,
and which notifications the buyer and seller receive.

Local pickup has no rules; pickup completion is confirmed by the
buyer and seller themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Iterable, Optional, Tuple

from django.conf import settings

from modules.delivery.constants import (
    DeliveryMethod,
    NotificationType,
    TransactionStatus,
)


@dataclass(frozen=True)
class NotificationTemplate:
    type: NotificationType
    title: str
    message: str  # formatted with ``item``

    def render(self, item: str) -> Tuple[str, str]:
        return self.title, self.message.format(item=item)


@dataclass(frozen=True)
class AdvancementRule:
    method: DeliveryMethod
    from_status: TransactionStatus
    to_status: TransactionStatus
    after: timedelta
    buyer_notification: NotificationTemplate
    seller_notification: NotificationTemplate


_SELLER_COLLECTED = NotificationTemplate(
    NotificationType.SALE_UPDATE,
    "Produto Coletado!",
    'Seu produto "{item}" foi coletado e está sendo entregue!',
)
_SELLER_COMPLETED = NotificationTemplate(
    NotificationType.SALE_UPDATE,
    "Venda Concluída!",
    'Sua venda do produto "{item}" foi concluída com sucesso!',
)


def build_rules(
    express_pickup_after: timedelta,
    express_delivered_after: timedelta,
    carrier_pickup_after: timedelta,
    carrier_delivered_after: timedelta,
) -> Tuple[AdvancementRule, ...]:
    return (
        AdvancementRule(
            method=DeliveryMethod.EXPRESS_DELIVERY,
            from_status=TransactionStatus.CONFIRMED,
            to_status=TransactionStatus.IN_TRANSIT,
            after=express_pickup_after,
            buyer_notification=NotificationTemplate(
                NotificationType.DELIVERY_UPDATE,
                "Produto Coletado!",
                'Seu produto "{item}" foi coletado pelo entregador e está a caminho!',
            ),
            seller_notification=_SELLER_COLLECTED,
        ),
        AdvancementRule(
            method=DeliveryMethod.EXPRESS_DELIVERY,
            from_status=TransactionStatus.IN_TRANSIT,
            to_status=TransactionStatus.DELIVERED,
            after=express_delivered_after,
            buyer_notification=NotificationTemplate(
                NotificationType.DELIVERY_COMPLETE,
                "Produto Entregue!",
                'Seu produto "{item}" foi entregue com sucesso! '
                "Que tal avaliar sua experiência?",
            ),
            seller_notification=_SELLER_COMPLETED,
        ),
        AdvancementRule(
            method=DeliveryMethod.CARRIER_SHIPPING,
            from_status=TransactionStatus.CONFIRMED,
            to_status=TransactionStatus.IN_TRANSIT,
            after=carrier_pickup_after,
            buyer_notification=NotificationTemplate(
                NotificationType.DELIVERY_UPDATE,
                "Produto Coletado pela Transportadora!",
                'Seu produto "{item}" foi coletado pela transportadora e está em trânsito!',
            ),
            seller_notification=_SELLER_COLLECTED,
        ),
        AdvancementRule(
            method=DeliveryMethod.CARRIER_SHIPPING,
            from_status=TransactionStatus.IN_TRANSIT,
            to_status=TransactionStatus.DELIVERED,
            after=carrier_delivered_after,
            buyer_notification=NotificationTemplate(
                NotificationType.DELIVERY_COMPLETE,
                "Produto Entregue!",
                'Seu produto "{item}" foi entregue pela transportadora! '
                "Que tal avaliar sua experiência?",
            ),
            seller_notification=_SELLER_COMPLETED,
        ),
    )


def rules_from_settings() -> Tuple[AdvancementRule, ...]:
    """Rules using the ``DELIVERY_*_AFTER_MINUTES`` thresholds."""
    return build_rules(
        express_pickup_after=timedelta(
            minutes=settings.DELIVERY_EXPRESS_PICKUP_AFTER_MINUTES
        ),
        express_delivered_after=timedelta(
            minutes=settings.DELIVERY_EXPRESS_DELIVERED_AFTER_MINUTES
        ),
        carrier_pickup_after=timedelta(
            minutes=settings.DELIVERY_CARRIER_PICKUP_AFTER_MINUTES
        ),
        carrier_delivered_after=timedelta(
            minutes=settings.DELIVERY_CARRIER_DELIVERED_AFTER_MINUTES
        ),
    )


class RuleBook:
    """Index of rules by (method, from_status); at most one rule per key."""

    def __init__(self, rules: Iterable[AdvancementRule]) -> None:
        self._rules: Dict[Tuple[str, str], AdvancementRule] = {}
        for rule in rules:
            key = (rule.method, rule.from_status)
            if key in self._rules:
                raise ValueError(
                    f"Duplicate advancement rule for {rule.method}/{rule.from_status}."
                )
            self._rules[key] = rule

    def rule_for(self, method: str, status: str) -> Optional[AdvancementRule]:
        return self._rules.get((method, status))
