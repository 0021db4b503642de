"""Routing domain constants.

Geodesy constants for the straight-line fallback, default provider
endpoints and the enumerations used in route estimates.
"""

from django.db import models

EARTH_RADIUS_KM = 6371.0

# Straight-line fallback: number of interpolated segments (points = segments + 1)
DEFAULT_PATH_SEGMENTS = 20

# Average speeds assumed when no road route is available
URBAN_SPEED_KMH = 40.0
HIGHWAY_SPEED_KMH = 60.0
HIGHWAY_DISTANCE_THRESHOLD_KM = 100.0

DEFAULT_ROUTING_TIMEOUT_SECONDS = 6.0
DEFAULT_ROUTING_ENDPOINTS = (
    "https://router.project-osrm.org",
    "https://routing.openstreetmap.de/routed-car",
)

OPENCAGE_URL = "https://api.opencagedata.com/geocode/v1/json"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
VIACEP_URL = "https://viacep.com.br/ws/{cep}/json/"

GEOCODING_COUNTRY_CODE = "br"
GEOCODING_COUNTRY_SUFFIX = ", Brasil"

POSTAL_CODE_LENGTH = 8


class RouteSource(models.TextChoices):
    ROAD = "road", "Rota rodoviária"
    STRAIGHT_LINE = "straight_line", "Linha reta (estimativa)"


class GeocodingProvider(models.TextChoices):
    OPENCAGE = "opencage", "OpenCage"
    NOMINATIM = "nominatim", "Nominatim"
