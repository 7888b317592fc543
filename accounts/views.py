import logging

from django.contrib.auth import get_user_model
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from notifications.emails import send_password_reset_email
from .models import PasswordResetToken
from .serializers import (
    RegisterSerializer,
    UserSerializer,
    ProfileUpdateSerializer,
    PasswordChangeSerializer,
    PasswordResetRequestSerializer,
    PasswordResetConfirmSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


class RegisterView(generics.CreateAPIView):
    """User registration endpoint"""

    queryset = User.objects.all()
    serializer_class = RegisterSerializer
    permission_classes = [permissions.AllowAny]

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info("User registered user_id=%s role=%s", user.id, user.role)


class MeView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET    /api/accounts/me/  current profile
    PATCH  /api/accounts/me/  profile fields
    DELETE /api/accounts/me/  delete the account and revoke its refresh tokens
    """
    permission_classes = [permissions.IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method in ("PUT", "PATCH"):
            return ProfileUpdateSerializer
        return UserSerializer

    def get_object(self):
        return self.request.user

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        super().update(request, *args, **kwargs)
        return Response(UserSerializer(request.user, context={"request": request}).data)

    def destroy(self, request, *args, **kwargs):
        user = request.user
        # logout everywhere
        for token in OutstandingToken.objects.filter(user=user):
            BlacklistedToken.objects.get_or_create(token=token)
        user_id = user.id
        user.delete()
        logger.info("Account deleted user_id=%s", user_id)
        return Response({"message": "Account deleted, tokens revoked."}, status=status.HTTP_200_OK)


class PasswordChangeView(APIView):
    """
    POST /api/accounts/change-password/
    {"old_password": "...", "new_password": "...", "new_password_confirm": "..."}
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = PasswordChangeSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"message": "Password successfully changed."}, status=status.HTTP_200_OK)


class PasswordResetRequestView(APIView):
    """Always answers 200 so the endpoint cannot be used to probe for accounts."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = User.objects.filter(email__iexact=serializer.validated_data["email"], is_active=True).first()
        if user is not None:
            reset = PasswordResetToken.objects.create(user=user)
            send_password_reset_email(user, reset)
            logger.info("Password reset requested user_id=%s", user.id)
        return Response({"message": "If the email is registered, a reset link has been sent."})


class PasswordResetConfirmView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Password reset completed user_id=%s", user.id)
        return Response({"message": "Password has been reset."})
