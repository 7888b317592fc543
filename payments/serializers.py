from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.IntegerField(source="booking.id", read_only=True)
    guest_id = serializers.IntegerField(source="booking.guest_id", read_only=True)
    property_id = serializers.IntegerField(source="booking.property_id", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id", "booking_id", "guest_id", "property_id", "amount", "currency",
            "provider", "transaction_id", "status", "refunded_amount",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class PaymentCheckoutSerializer(serializers.ModelSerializer):
    """What the client needs to finish paying with the provider."""
    paymentId = serializers.IntegerField(source="id", read_only=True)
    transactionId = serializers.CharField(source="transaction_id", read_only=True)
    clientSecret = serializers.CharField(source="client_token", read_only=True)
    redirectUrl = serializers.CharField(source="redirect_url", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "paymentId", "amount", "currency", "status", "provider",
            "transactionId", "clientSecret", "redirectUrl",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField(min_value=1)
    provider = serializers.CharField(required=False, allow_blank=True)


class PaymentUpdateSerializer(serializers.Serializer):
    OPERATIONS = ("complete", "refund")

    operation = serializers.CharField(required=False, allow_blank=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    transactionDetails = serializers.DictField(required=False)

    def validate_operation(self, value):
        if value not in self.OPERATIONS:
            raise serializers.ValidationError("Supported operations: complete, refund")
        return value

    def validate(self, attrs):
        if not attrs.get("operation"):
            raise serializers.ValidationError("Supported operations: complete, refund")
        return attrs
