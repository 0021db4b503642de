"""Routing URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.routing.views import RoutingViewSet

router = DefaultRouter(trailing_slash=True)
router.register("routing", RoutingViewSet, basename="routing")

urlpatterns = router.urls
