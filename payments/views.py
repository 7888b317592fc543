import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, permissions, mixins, response, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.filters import OrderingFilter

from bookings.models import Booking
from habibistay.permissions import IsAdmin
from . import services
from .filters import PaymentFilter
from .models import Payment
from .serializers import (
    PaymentSerializer,
    PaymentCheckoutSerializer,
    PaymentCreateSerializer,
    PaymentUpdateSerializer,
)

logger = logging.getLogger(__name__)


class CanViewPayment(permissions.BasePermission):
    message = "No access to this payment."

    def has_object_permission(self, request, view, obj):
        booking = obj.booking
        return booking.guest_id == request.user.id or booking.property.is_managed_by(request.user)


class PaymentViewSet(mixins.CreateModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     mixins.ListModelMixin,
                     viewsets.GenericViewSet):
    """
    Payments of bookings.

    - create: guest of the booking (or admin) opens a checkout with a provider.
    - list: admin only, filters status / bookingId / provider.
    - retrieve: guest, property owner/manager or admin.
    - update {operation}: `complete` by the guest/admin, `refund` by property staff.
    """
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated, CanViewPayment]
    queryset = Payment.objects.select_related("booking", "booking__property", "booking__guest")
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = PaymentFilter
    ordering_fields = ["created_at", "amount", "status"]
    ordering = ["-created_at"]

    def get_permissions(self):
        if self.action == "list":
            return [permissions.IsAuthenticated(), IsAdmin()]
        if self.action == "create":
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    @extend_schema(request=PaymentCreateSerializer, responses=PaymentCheckoutSerializer)
    def create(self, request, *args, **kwargs):
        data = PaymentCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        booking = get_object_or_404(
            Booking.objects.select_related("property", "guest"), pk=data.validated_data["bookingId"]
        )
        if booking.guest_id != request.user.id and not request.user.is_admin:
            logger.warning(
                "Payment create forbidden booking_id=%s by user_id=%s", booking.id, request.user.id
            )
            raise PermissionDenied("Only the guest of this booking can pay for it.")

        provider = data.validated_data.get("provider") or settings.PAYMENT_DEFAULT_PROVIDER
        payment, created = services.open_payment(booking, provider)
        return response.Response(
            PaymentCheckoutSerializer(payment).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(request=PaymentUpdateSerializer, responses=PaymentSerializer)
    def update(self, request, *args, **kwargs):
        payment = self.get_object()
        data = PaymentUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        params = data.validated_data
        booking = payment.booking
        user = request.user

        if params["operation"] == "complete":
            if booking.guest_id != user.id and not user.is_admin:
                raise PermissionDenied("Only the guest can complete this payment.")
            services.complete_payment(payment, params.get("transactionDetails"))
        else:
            if not booking.property.is_managed_by(user):
                raise PermissionDenied("Only the property owner or its managers can refund payments.")
            services.refund_payment(payment, params.get("amount"), actor=user)

        payment.refresh_from_db()
        return response.Response(PaymentSerializer(payment).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)
