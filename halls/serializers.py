from rest_framework import serializers

from .models import Hall


class HallSerializer(serializers.ModelSerializer):
    class Meta:
        model = Hall
        fields = [
            "id",
            "name",
            "location",
            "seating_capacity",
            "description",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_seating_capacity(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Seating capacity must be greater than zero")
        return value


class HallCorrectionSerializer(serializers.ModelSerializer):
    """Post-creation edits: identity and location are fixed."""

    class Meta:
        model = Hall
        fields = ["seating_capacity", "description", "is_active"]

    def validate_seating_capacity(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Seating capacity must be greater than zero")
        return value


class SuggestionQuerySerializer(serializers.Serializer):
    capacity = serializers.IntegerField(min_value=1)
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    exclude_event_id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if attrs["start"] >= attrs["end"]:
            raise serializers.ValidationError({"end": "End time must be after start time"})
        return attrs


class BookingWindowSerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()

    def validate(self, attrs):
        if attrs["start"] >= attrs["end"]:
            raise serializers.ValidationError({"end": "End time must be after start time"})
        return attrs


def serialize_allocation(result) -> dict:
    """Render an AllocationResult for the API."""
    data = {
        "desired_capacity": result.desired_capacity,
        "start": result.start.isoformat(),
        "end": result.end.isoformat(),
        "found": result.found,
        "suggestion": HallSerializer(result.suggestion).data if result.suggestion else None,
        "candidates": HallSerializer(result.candidates, many=True).data,
        "excess": result.excess,
        "fit": result.fit,
        "no_hall": result.no_hall.as_dict() if result.no_hall else None,
    }
    if result.suggestion is not None:
        data["message"] = (
            f"Suggested {result.suggestion.name} "
            f"({result.suggestion.seating_capacity} seats, {result.fit})"
        )
    else:
        data["message"] = result.no_hall.message
    return data
