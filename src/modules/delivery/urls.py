"""Delivery URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.delivery.views import (
    DeliveryPlanViewSet,
    NotificationViewSet,
    TransactionViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.register("delivery", DeliveryPlanViewSet, basename="delivery")
router.register("transactions", TransactionViewSet, basename="transaction")
router.register("notifications", NotificationViewSet, basename="notification")

urlpatterns = router.urls
