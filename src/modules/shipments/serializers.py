"""Input serializers for the carrier query endpoints.

Docket numbers and pin codes are validated by the gateway, which names
every offending value; these serializers only check the payload shape.
"""

from __future__ import annotations

from rest_framework import serializers


class TrackDocketSerializer(serializers.Serializer):
    docket_number = serializers.CharField(max_length=64, trim_whitespace=False)


class TrackMultipleSerializer(serializers.Serializer):
    docket_numbers = serializers.ListField(
        child=serializers.CharField(max_length=64, trim_whitespace=False),
        allow_empty=True,
        max_length=100,
    )


class ServiceabilitySerializer(serializers.Serializer):
    pin_code = serializers.CharField(max_length=16, trim_whitespace=False)


class EstimatedDeliverySerializer(serializers.Serializer):
    destination_pincode = serializers.CharField(max_length=16, trim_whitespace=False)
    pickup_date = serializers.CharField(max_length=32)
    origin_pincode = serializers.CharField(
        max_length=16, required=False, allow_blank=True, trim_whitespace=False
    )
