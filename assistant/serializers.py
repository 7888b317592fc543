from rest_framework import serializers


class AssistantMessageSerializer(serializers.Serializer):
    message = serializers.CharField(
        trim_whitespace=True,
        max_length=2000,
        error_messages={
            "required": "Message is required and must be a string",
            "blank": "Message is required and must be a string",
        },
    )
    conversationId = serializers.CharField(required=False, allow_blank=True, max_length=64)
    context = serializers.DictField(required=False)

    def validate_message(self, value):
        if not isinstance(self.initial_data.get("message"), str):
            raise serializers.ValidationError("Message is required and must be a string")
        return value
