from django.utils import timezone
from rest_framework import serializers

from payments.models import Payment
from .models import Booking, Message


class BookingPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ["id", "amount", "currency", "provider", "status", "refunded_amount", "created_at"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    guest_id = serializers.IntegerField(source="guest.id", read_only=True)
    guest_name = serializers.CharField(source="guest.display_name", read_only=True)
    property_title = serializers.CharField(source="property.title", read_only=True)
    property_owner_id = serializers.IntegerField(source="property.owner_id", read_only=True)
    nights = serializers.IntegerField(read_only=True)
    payments = BookingPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id", "property", "property_title", "property_owner_id",
            "guest_id", "guest_name", "status",
            "check_in", "check_out", "nights", "number_of_guests",
            "total_price", "special_requests", "payments",
            "created_at", "confirmed_at", "cancelled_at", "completed_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """
    Input of POST /api/bookings/. Only shape and dates are checked here;
    property lookup (404), capacity and conflicts (409) follow in the view.
    """
    property = serializers.IntegerField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    number_of_guests = serializers.IntegerField()
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_number_of_guests(self, value):
        if value <= 0:
            raise serializers.ValidationError("Number of guests must be at least 1.")
        return value

    def validate(self, attrs):
        check_in = attrs["check_in"]
        check_out = attrs["check_out"]
        if check_in >= check_out:
            raise serializers.ValidationError("check_out must be after check_in.")
        if check_in < timezone.now().date():
            raise serializers.ValidationError("You cannot book past dates.")
        return attrs


class BookingUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)
    special_requests = serializers.CharField(required=False, allow_blank=True)


class MessageSerializer(serializers.ModelSerializer):
    sender_id = serializers.IntegerField(source="sender.id", read_only=True)
    receiver_id = serializers.IntegerField(source="receiver.id", read_only=True)

    class Meta:
        model = Message
        fields = ["id", "booking", "sender_id", "receiver_id", "text", "is_read", "created_at"]
        read_only_fields = ["id", "booking", "sender_id", "receiver_id", "is_read", "created_at"]
