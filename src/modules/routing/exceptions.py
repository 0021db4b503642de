"""Routing domain exceptions.

Raised by the routing clients and the geocoding service.  The
``DistanceEstimator`` recovers from ``RoutingUnavailable`` locally;
the API layer translates the postal-code errors into HTTP responses.
"""

from __future__ import annotations


class RoutingUnavailable(Exception):
    """No routing/geocoding provider produced a usable answer."""


class RoutingCancelled(RoutingUnavailable):
    """The caller cancelled the request before a provider answered."""


class InvalidPostalCode(Exception):
    """The CEP does not have exactly eight digits."""


class PostalCodeNotFound(Exception):
    """ViaCEP has no address for the CEP."""
