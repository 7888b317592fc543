from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import PasswordResetToken

User = get_user_model()

# admin accounts are created through the admin site / createsuperuser only
SELF_SERVICE_ROLES = [
    User.Role.GUEST,
    User.Role.HOST,
    User.Role.PROPERTY_MANAGER,
    User.Role.INVESTOR,
]


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id", "first_name", "last_name",
            "email", "role", "phone_number",
            "bio", "address", "city", "country",
            "profile_picture", "is_investor", "date_joined",
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=True, style={"input_type": "password"})
    password_confirm = serializers.CharField(write_only=True, required=True, style={"input_type": "password"})
    role = serializers.ChoiceField(choices=SELF_SERVICE_ROLES, required=False, default=User.Role.GUEST)

    class Meta:
        model = User
        fields = [
            "id", "first_name", "last_name",
            "email", "password", "password_confirm",
            "role", "phone_number",
        ]
        read_only_fields = ["id"]

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate(self, attrs):
        pw = attrs.get("password")
        pw2 = attrs.pop("password_confirm", None)
        if pw != pw2:
            raise serializers.ValidationError({"password_confirm": "The passwords do not match."})
        validate_password(pw)
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        if validated_data.get("role") == User.Role.INVESTOR:
            validated_data["is_investor"] = True
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "first_name", "last_name", "email",
            "phone_number", "bio", "address", "city", "country",
            "profile_picture",
        ]

    def validate_email(self, value):
        user = self.instance
        if user and user.email.lower() == value.lower():
            return value
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email is already taken.")
        return value


class PasswordChangeSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True, style={"input_type": "password"})
    new_password = serializers.CharField(write_only=True, style={"input_type": "password"})
    new_password_confirm = serializers.CharField(write_only=True, style={"input_type": "password"})

    def validate(self, attrs):
        user = self.context["request"].user
        if not user.check_password(attrs.get("old_password")):
            raise serializers.ValidationError({"old_password": "Incorrect current password."})
        new = attrs.get("new_password")
        if new != attrs.pop("new_password_confirm", None):
            raise serializers.ValidationError({"new_password_confirm": "Confirmation does not match."})
        validate_password(new, user=user)
        return attrs

    def save(self, **kwargs):
        user = self.context["request"].user
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordResetConfirmSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    password_confirm = serializers.CharField(write_only=True, style={"input_type": "password"})

    def validate(self, attrs):
        reset = (
            PasswordResetToken.objects.select_related("user")
            .filter(token=attrs["token"])
            .first()
        )
        if reset is None or not reset.is_usable:
            raise serializers.ValidationError({"token": "Invalid or expired reset token."})
        if attrs["password"] != attrs.pop("password_confirm"):
            raise serializers.ValidationError({"password_confirm": "The passwords do not match."})
        validate_password(attrs["password"], user=reset.user)
        attrs["reset"] = reset
        return attrs

    def save(self, **kwargs):
        reset = self.validated_data["reset"]
        user = reset.user
        user.set_password(self.validated_data["password"])
        user.save(update_fields=["password"])
        reset.mark_used()
        return user
