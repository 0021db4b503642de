"""Unit tests for DistanceEstimator.

Covers:
- Road routes are passed through with ``source="road"``.
- Any routing failure degrades to a Haversine straight line.
- Identical points short-circuit without calling the router.
- A cancelled request uses the straight line too.
"""

from __future__ import annotations

from threading import Event
from unittest.mock import MagicMock

import pytest

from modules.routing.clients.interfaces import IRoutingClient
from modules.routing.constants import RouteSource
from modules.routing.dtos import Coordinate, RoadRoute
from modules.routing.exceptions import RoutingCancelled, RoutingUnavailable
from modules.routing.geometry import haversine_km
from modules.routing.services import DistanceEstimator

pytestmark = pytest.mark.unit

SAO_PAULO = Coordinate(lat=-23.5505, lng=-46.6333)
CAMPINAS = Coordinate(lat=-22.9099, lng=-47.0626)
RIO = Coordinate(lat=-22.9068, lng=-43.1729)


@pytest.fixture()
def routing_client():
    return MagicMock(spec=IRoutingClient)


class TestRoadRoute:
    def test_road_route_is_returned_as_is(self, routing_client):
        path = [SAO_PAULO, CAMPINAS]
        routing_client.route.return_value = RoadRoute(
            distance_km=95.4, duration_minutes=80.0, path=path, endpoint="http://osrm.test"
        )

        estimate = DistanceEstimator(routing_client).estimate(SAO_PAULO, CAMPINAS)

        assert estimate.source == RouteSource.ROAD
        assert estimate.distance_km == 95.4
        assert estimate.duration_minutes == 80.0
        assert estimate.path == path
        assert estimate.is_approximate is False

    def test_cancel_event_is_forwarded(self, routing_client):
        routing_client.route.return_value = RoadRoute(
            distance_km=1, duration_minutes=1, path=[SAO_PAULO], endpoint="e"
        )
        event = Event()

        DistanceEstimator(routing_client).estimate(SAO_PAULO, CAMPINAS, event)

        routing_client.route.assert_called_once_with(SAO_PAULO, CAMPINAS, event)


class TestFallback:
    def test_routing_failure_yields_positive_straight_line(self, routing_client):
        routing_client.route.side_effect = RoutingUnavailable("all endpoints down")

        estimate = DistanceEstimator(routing_client).estimate(SAO_PAULO, RIO)

        assert estimate.source == RouteSource.STRAIGHT_LINE
        assert estimate.is_approximate is True
        assert estimate.distance_km > 0
        assert estimate.distance_km == pytest.approx(haversine_km(SAO_PAULO, RIO))

    def test_fallback_over_100_km_uses_60_kmh(self, routing_client):
        routing_client.route.side_effect = RoutingUnavailable("down")

        estimate = DistanceEstimator(routing_client).estimate(SAO_PAULO, RIO)

        assert estimate.duration_minutes == pytest.approx(estimate.distance_km / 60 * 60)

    def test_fallback_under_100_km_uses_40_kmh(self, routing_client):
        routing_client.route.side_effect = RoutingUnavailable("down")

        estimate = DistanceEstimator(routing_client).estimate(SAO_PAULO, CAMPINAS)

        assert estimate.distance_km < 100
        assert estimate.duration_minutes == pytest.approx(estimate.distance_km / 40 * 60)

    def test_fallback_path_has_21_points(self, routing_client):
        routing_client.route.side_effect = RoutingUnavailable("down")

        estimate = DistanceEstimator(routing_client).estimate(SAO_PAULO, RIO)

        assert len(estimate.path) == 21
        assert estimate.path[0] == SAO_PAULO

    def test_path_segments_are_configurable(self, routing_client):
        routing_client.route.side_effect = RoutingUnavailable("down")

        estimate = DistanceEstimator(routing_client, path_segments=5).estimate(
            SAO_PAULO, RIO
        )

        assert len(estimate.path) == 6

    def test_cancelled_request_uses_straight_line(self, routing_client):
        routing_client.route.side_effect = RoutingCancelled("cancelled")
        event = Event()
        event.set()

        estimate = DistanceEstimator(routing_client).estimate(SAO_PAULO, RIO, event)

        assert estimate.source == RouteSource.STRAIGHT_LINE
        assert estimate.distance_km > 0

    def test_without_client_every_estimate_is_straight_line(self):
        estimate = DistanceEstimator().estimate(SAO_PAULO, RIO)

        assert estimate.source == RouteSource.STRAIGHT_LINE


class TestIdenticalPoints:
    def test_same_point_is_zero_without_routing_call(self, routing_client):
        estimate = DistanceEstimator(routing_client).estimate(SAO_PAULO, SAO_PAULO)

        assert estimate.distance_km == 0
        assert estimate.duration_minutes == 0
        assert len(estimate.path) == 21
        assert all(point == SAO_PAULO for point in estimate.path)
        routing_client.route.assert_not_called()
