"""Delivery planning.

``DeliveryPlanner.plan`` turns (origin, destination, method) into a
``DeliveryPlan``: rounded distance, cost, a human readable ETA and the
ordered milestone list of the method.  Once the distance is known
everything here is a pure function.

``apply_transaction_status`` projects a transaction status onto the
milestones for the tracking screen.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from math import ceil
from typing import TYPE_CHECKING, List, Optional

import structlog

from modules.delivery.constants import (
    COMPLETED_STEPS_BY_STATUS,
    DURATION_MODEL,
    HOURS_PER_DAY,
    IMMEDIATE_AVAILABILITY,
    PRICING,
    STEP_TEMPLATES,
    DeliveryMethod,
    StepStatus,
)
from modules.delivery.dtos import DeliveryPlan, DeliveryStep

if TYPE_CHECKING:
    from modules.delivery.models import Transaction
    from modules.routing.dtos import Coordinate
    from modules.routing.services import DistanceEstimator

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


# ---------------------------------------------------------------------------
# Pure calculations
# ---------------------------------------------------------------------------


def calculate_cost(method: DeliveryMethod, distance_km: float) -> Decimal:
    """Base fee plus a per-km rate, rounded to cents."""
    base_fee, per_km = PRICING[method]
    cost = base_fee + per_km * Decimal(str(distance_km))
    return cost.quantize(CENT, rounding=ROUND_HALF_UP)


def estimate_hours(method: DeliveryMethod, distance_km: float) -> float:
    """Total delivery hours; 0 for local pickup, floored for the others."""
    if method == DeliveryMethod.LOCAL_PICKUP:
        return 0.0
    minimum_hours, km_per_hour = DURATION_MODEL[method]
    return max(minimum_hours, distance_km / km_per_hour)


def format_estimated_time(method: DeliveryMethod, hours: float) -> str:
    """Render hours as ``"N horas"`` below a day, else ``"N dias"``."""
    if method == DeliveryMethod.LOCAL_PICKUP:
        return IMMEDIATE_AVAILABILITY
    if hours < HOURS_PER_DAY:
        count = max(1, ceil(hours))
        return f"{count} hora" if count == 1 else f"{count} horas"
    count = ceil(hours / HOURS_PER_DAY)
    return f"{count} dia" if count == 1 else f"{count} dias"


def build_steps(method: DeliveryMethod) -> List[DeliveryStep]:
    """Fresh milestone list for *method*, every step ``pending``."""
    return [
        DeliveryStep(
            id=step_id,
            title=title,
            description=description,
            estimated_time=estimated_time,
            icon=icon,
        )
        for step_id, title, description, estimated_time, icon in STEP_TEMPLATES[
            method
        ]
    ]


def apply_transaction_status(
    steps: List[DeliveryStep], status: str
) -> List[DeliveryStep]:
    """Mark milestones completed / active / pending for a transaction status.

    The first ``k`` steps are completed and step ``k`` is active, where
    ``k`` comes from ``COMPLETED_STEPS_BY_STATUS``.  Delivered
    transactions have every step completed; cancelled ones have none.
    """
    if status not in COMPLETED_STEPS_BY_STATUS:
        return [step.with_status(StepStatus.PENDING) for step in steps]

    completed = COMPLETED_STEPS_BY_STATUS[status]
    if completed is None:
        completed = len(steps)
    completed = min(completed, len(steps))

    projected = []
    for index, step in enumerate(steps):
        if index < completed:
            projected.append(step.with_status(StepStatus.COMPLETED))
        elif index == completed:
            projected.append(step.with_status(StepStatus.ACTIVE))
        else:
            projected.append(step.with_status(StepStatus.PENDING))
    return projected


# ---------------------------------------------------------------------------
# Planner service
# ---------------------------------------------------------------------------


class DeliveryPlanner:
    """Builds delivery plans on top of an injected ``DistanceEstimator``."""

    def __init__(self, distance_estimator: DistanceEstimator) -> None:
        self._estimator = distance_estimator

    def plan(
        self,
        origin: Coordinate,
        destination: Coordinate,
        method: DeliveryMethod,
    ) -> DeliveryPlan:
        estimate = self._estimator.estimate(origin, destination)
        plan = self.plan_for_distance(
            estimate.distance_km, method, approximate=estimate.is_approximate
        )
        logger.info(
            "delivery.plan_computed",
            method=method,
            distance_km=plan.distance_km,
            cost=str(plan.cost),
            source=estimate.source,
        )
        return plan

    def plan_for_distance(
        self,
        distance_km: float,
        method: DeliveryMethod,
        approximate: bool = False,
    ) -> DeliveryPlan:
        """Plan for an already known distance (no routing call)."""
        method = DeliveryMethod(method)
        return DeliveryPlan(
            method=method,
            distance_km=round(distance_km, 2),
            estimated_time=format_estimated_time(
                method, estimate_hours(method, distance_km)
            ),
            cost=calculate_cost(method, distance_km),
            steps=build_steps(method),
            approximate=approximate,
        )

    def track(
        self, transaction: Transaction, origin: Coordinate
    ) -> DeliveryPlan:
        """Plan for a stored transaction with milestones reflecting its status.

        Callers resolve the destination first (see
        ``TransactionService.resolve_destination``); a transaction whose
        address could not be geocoded gets a zero-distance plan.
        """
        destination: Optional[Coordinate] = transaction.destination
        method = DeliveryMethod(transaction.delivery_method)
        if destination is None:
            plan = self.plan_for_distance(0.0, method, approximate=True)
        else:
            plan = self.plan(origin, destination, method)
        return plan.model_copy(
            update={"steps": apply_transaction_status(plan.steps, transaction.status)}
        )
