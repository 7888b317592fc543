from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source="user.id", read_only=True)

    class Meta:
        model = Notification
        fields = ["id", "user_id", "type", "title", "message", "data", "is_read", "created_at"]
        read_only_fields = fields


class NotificationCreateSerializer(serializers.Serializer):
    REQUIRED = ("userId", "type", "title", "message")

    userId = serializers.IntegerField(required=False)
    type = serializers.ChoiceField(choices=Notification.Types.choices, required=False)
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    message = serializers.CharField(required=False, allow_blank=True)
    data = serializers.DictField(required=False)

    def validate(self, attrs):
        missing = [name for name in self.REQUIRED if attrs.get(name) in (None, "")]
        if missing:
            raise serializers.ValidationError(f"Missing required fields: {', '.join(missing)}")
        return attrs
