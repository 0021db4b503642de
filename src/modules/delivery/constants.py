"""Delivery domain constants.

Delivery methods, transaction lifecycle (state machine), pricing and
duration models, and the fixed milestone templates shown to buyers.
"""

from decimal import Decimal
from typing import Dict, List, Tuple

from django.db import models


class DeliveryMethod(models.TextChoices):
    LOCAL_PICKUP = "local_pickup", "Retirada Local"
    EXPRESS_DELIVERY = "express_delivery", "Entrega Expressa"
    CARRIER_SHIPPING = "carrier_shipping", "Transportadora"


class TransactionStatus(models.TextChoices):
    PENDING = "pending", "Aguardando Confirmação"
    CONFIRMED = "confirmed", "Pedido Confirmado"
    IN_TRANSIT = "in_transit", "Em Transporte"
    DELIVERED = "delivered", "Entregue"
    CANCELLED = "cancelled", "Cancelado"


class StepStatus(models.TextChoices):
    PENDING = "pending", "Pendente"
    ACTIVE = "active", "Em andamento"
    COMPLETED = "completed", "Concluído"


class NotificationType(models.TextChoices):
    DELIVERY_UPDATE = "delivery_update", "Atualização de entrega"
    DELIVERY_COMPLETE = "delivery_complete", "Entrega concluída"
    SALE_UPDATE = "sale_update", "Atualização de venda"


VALID_TRANSITIONS: dict[str, set[str]] = {
    TransactionStatus.PENDING: {
        TransactionStatus.CONFIRMED,
        TransactionStatus.CANCELLED,
    },
    TransactionStatus.CONFIRMED: {
        TransactionStatus.IN_TRANSIT,
        TransactionStatus.CANCELLED,
    },
    TransactionStatus.IN_TRANSIT: {
        TransactionStatus.DELIVERED,
        TransactionStatus.CANCELLED,
    },
    TransactionStatus.DELIVERED: set(),
    TransactionStatus.CANCELLED: set(),
}

# Once the package leaves the seller the destination is fixed
ADDRESS_EDITABLE_STATES: set[str] = {
    TransactionStatus.PENDING,
    TransactionStatus.CONFIRMED,
}

# Statuses the status advancer scans on every run
ADVANCEABLE_STATES: Tuple[str, ...] = (
    TransactionStatus.CONFIRMED,
    TransactionStatus.IN_TRANSIT,
)

# ---------------------------------------------------------------------------
# Pricing and duration models
# ---------------------------------------------------------------------------

# (base fee, price per km) in BRL
PRICING: Dict[str, Tuple[Decimal, Decimal]] = {
    DeliveryMethod.LOCAL_PICKUP: (Decimal("0"), Decimal("0")),
    DeliveryMethod.EXPRESS_DELIVERY: (Decimal("15"), Decimal("0.8")),
    DeliveryMethod.CARRIER_SHIPPING: (Decimal("25"), Decimal("0.5")),
}

# (minimum hours, average km per hour)
DURATION_MODEL: Dict[str, Tuple[float, float]] = {
    DeliveryMethod.EXPRESS_DELIVERY: (2.0, 25.0),
    DeliveryMethod.CARRIER_SHIPPING: (24.0, 15.0),
}

HOURS_PER_DAY = 24
IMMEDIATE_AVAILABILITY = "Disponível imediatamente"

# ---------------------------------------------------------------------------
# Milestone templates: (id, title, description, estimated_time, icon)
# ---------------------------------------------------------------------------

StepTemplate = Tuple[str, str, str, str, str]

STEP_TEMPLATES: Dict[str, List[StepTemplate]] = {
    DeliveryMethod.LOCAL_PICKUP: [
        (
            "preparation",
            "Preparação do Produto",
            "Produto sendo preparado para retirada",
            "1-2 horas",
            "package",
        ),
        (
            "ready_for_pickup",
            "Pronto para Retirada",
            "Produto disponível no local do vendedor",
            "Imediato",
            "check-circle",
        ),
    ],
    DeliveryMethod.EXPRESS_DELIVERY: [
        (
            "preparation",
            "Preparação do Produto",
            "Produto sendo preparado para envio",
            "1-2 horas",
            "package",
        ),
        (
            "pickup",
            "Coleta Realizada",
            "Entregador coletou o produto",
            "2-4 horas",
            "truck",
        ),
        (
            "in_transit",
            "Em Transporte",
            "Produto a caminho do destino",
            "Calculando...",
            "map-pin",
        ),
        (
            "delivered",
            "Entregue",
            "Produto entregue no destino",
            "Concluído",
            "check-circle",
        ),
    ],
    DeliveryMethod.CARRIER_SHIPPING: [
        (
            "preparation",
            "Preparação para Envio",
            "Produto sendo embalado e etiquetado",
            "4-8 horas",
            "package",
        ),
        (
            "collection",
            "Coleta da Transportadora",
            "Transportadora coletou o produto",
            "8-24 horas",
            "truck",
        ),
        (
            "sorting_center",
            "Centro de Distribuição",
            "Produto em centro de triagem",
            "1-2 dias",
            "building-2",
        ),
        (
            "in_transit",
            "Em Transporte",
            "Produto a caminho do destino final",
            "Calculando...",
            "map-pin",
        ),
        (
            "out_for_delivery",
            "Saiu para Entrega",
            "Produto saiu para entrega final",
            "4-8 horas",
            "truck",
        ),
        (
            "delivered",
            "Entregue",
            "Produto entregue no destino",
            "Concluído",
            "check-circle",
        ),
    ],
}

# Number of leading milestones already completed for each transaction status.
# ``None`` means every milestone is completed.
COMPLETED_STEPS_BY_STATUS: Dict[str, int | None] = {
    TransactionStatus.PENDING: 0,
    TransactionStatus.CONFIRMED: 1,
    TransactionStatus.IN_TRANSIT: 2,
    TransactionStatus.DELIVERED: None,
}
