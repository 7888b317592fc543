from rest_framework import serializers

from bookings.models import Booking
from .models import Review

MAX_COMMENT_LEN = 1000


class ReviewSerializer(serializers.ModelSerializer):
    booking = serializers.PrimaryKeyRelatedField(queryset=Booking.objects.select_related("property"))
    property_id = serializers.IntegerField(source="property.id", read_only=True)
    author_id = serializers.IntegerField(source="author.id", read_only=True)
    author_name = serializers.CharField(source="author.display_name", read_only=True)
    subject_id = serializers.IntegerField(source="subject.id", read_only=True)

    class Meta:
        model = Review
        fields = [
            "id", "booking", "property_id", "author_id", "author_name", "subject_id",
            "rating", "comment", "response", "responded_at", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "response", "responded_at", "created_at", "updated_at"]

    def validate_rating(self, value):
        if not 1 <= value <= 5:
            raise serializers.ValidationError("Rating must be from 1 to 5.")
        return value

    def validate_comment(self, value: str):
        value = (value or "").strip()
        if len(value) > MAX_COMMENT_LEN:
            raise serializers.ValidationError(f"The comment is too long (maximum {MAX_COMMENT_LEN} characters).")
        for ch in value:
            if ord(ch) < 32 and ch not in ("\n", "\r", "\t"):
                raise serializers.ValidationError("The comment contains invalid control characters.")
        return value

    def validate(self, attrs):
        if self.instance is not None:
            # the reviewed booking never changes
            attrs.pop("booking", None)
            return attrs

        user = self.context["request"].user
        booking = attrs["booking"]
        if booking.guest_id != user.id:
            raise serializers.ValidationError("You can only review your own bookings.")
        if booking.status != Booking.Status.COMPLETED:
            raise serializers.ValidationError("You can only review a completed stay.")
        if Review.objects.filter(booking=booking).exists():
            raise serializers.ValidationError("This booking has already been reviewed.")
        return attrs

    def create(self, validated_data):
        booking = validated_data["booking"]
        validated_data["author"] = self.context["request"].user
        validated_data["property"] = booking.property
        validated_data["subject"] = booking.property.owner
        return super().create(validated_data)


class ReviewResponseSerializer(serializers.Serializer):
    response = serializers.CharField(max_length=MAX_COMMENT_LEN)
