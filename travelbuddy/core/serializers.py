from __future__ import annotations

from typing import Any

from rest_framework import serializers


class StrictFieldsMixin:
    """Reject payload keys the serializer does not declare as writable.

    DRF silently drops unknown keys; request bodies here are validated once at
    the boundary, so a typo'd or unexpected field is an error instead.
    """

    def to_internal_value(self, data: Any) -> Any:
        if isinstance(data, dict) or hasattr(data, "keys"):
            writable = {
                name for name, field in self.fields.items() if not field.read_only
            }
            unknown = sorted(set(data.keys()) - writable)
            if unknown:
                raise serializers.ValidationError(
                    {key: ["Unknown field."] for key in unknown},
                )
        return super().to_internal_value(data)


class CoordinatesField(serializers.Field):
    """``[longitude, latitude]`` pair mapped onto two model float fields."""

    default_error_messages = {
        "invalid": "Expected a [longitude, latitude] pair.",
        "range": "Longitude must be within [-180, 180] and latitude within [-90, 90].",
    }

    def __init__(self, **kwargs):
        kwargs.setdefault("source", "*")
        super().__init__(**kwargs)

    def to_representation(self, value) -> list[float]:
        return [value.longitude, value.latitude]

    def to_internal_value(self, data) -> dict[str, float]:
        if not isinstance(data, (list, tuple)) or len(data) != 2:  # noqa: PLR2004
            self.fail("invalid")
        try:
            longitude, latitude = (float(v) for v in data)
        except (TypeError, ValueError):
            self.fail("invalid")
        if not (-180 <= longitude <= 180 and -90 <= latitude <= 90):  # noqa: PLR2004
            self.fail("range")
        return {"longitude": longitude, "latitude": latitude}


class StringListField(serializers.ListField):
    """List of trimmed, non-empty, de-duplicated strings (interests, tags)."""

    child = serializers.CharField(max_length=50, allow_blank=True)

    def to_internal_value(self, data):
        values = super().to_internal_value(data)
        seen: dict[str, None] = {}
        for value in values:
            cleaned = value.strip()
            if cleaned:
                seen.setdefault(cleaned, None)
        return list(seen)
