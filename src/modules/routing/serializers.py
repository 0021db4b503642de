"""Routing DRF serializers (input validation at the API layer)."""

from __future__ import annotations

from rest_framework import serializers


class CoordinateSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90.0, max_value=90.0)
    lng = serializers.FloatField(min_value=-180.0, max_value=180.0)


class EstimateRequestSerializer(serializers.Serializer):
    """Validates ``POST /routing/estimate/``."""

    origin = CoordinateSerializer()
    destination = CoordinateSerializer()


class GeocodeRequestSerializer(serializers.Serializer):
    """Validates ``POST /routing/geocode/``."""

    address = serializers.CharField(max_length=500, trim_whitespace=True)
