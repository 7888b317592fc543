import logging

from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, permissions, decorators, response, status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.filters import OrderingFilter, SearchFilter

from habibistay.permissions import IsAdmin
from notifications.services import notification_service, notify_safely
from properties.models import Property
from . import services
from .filters import BookingFilter
from .models import Booking, Message
from .serializers import (
    BookingSerializer,
    BookingCreateSerializer,
    BookingUpdateSerializer,
    MessageSerializer,
)

logger = logging.getLogger(__name__)


class IsBookingParticipant(permissions.BasePermission):
    """Guest of the booking, owner/manager of its property, or an admin."""
    message = "No access to this booking."

    def has_object_permission(self, request, view, obj):
        return services.can_view(request.user, obj)


class BookingViewSet(viewsets.ModelViewSet):
    """
    Booking API.

    Access rules:
    - create (POST /api/bookings/): any authenticated user, not on their own listing.
    - list (GET /api/bookings/): admin sees everything; others see their trips
      plus bookings of the properties they own or manage.
    - retrieve / update: guest, property owner/manager or admin, 403 otherwise.
    - PATCH {status}: see services.check_status_permission for who may move what.
    - confirm / reject / cancel / complete: shortcuts for PATCH {status}.
    - destroy: admin only.
    - messages (GET/POST): guest and property staff.

    Filtering / searching / sorting:
    - Filters: see BookingFilter (status, property, date ranges, role).
    - Search (search=): by property title / city.
    - Ordering (ordering=): check_in, check_out, created_at, status, total_price.
    """
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsBookingParticipant]
    queryset = Booking.objects.select_related("property", "property__owner", "guest").prefetch_related("payments")
    lookup_value_regex = r"\d+"
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    filter_backends = [DjangoFilterBackend, OrderingFilter, SearchFilter]
    filterset_class = BookingFilter
    search_fields = ["property__title", "property__city"]
    ordering_fields = ["check_in", "check_out", "created_at", "status", "total_price"]
    ordering = ["-created_at"]

    def get_permissions(self):
        if self.action == "create":
            return [permissions.IsAuthenticated()]
        if self.action == "destroy":
            return [permissions.IsAuthenticated(), IsAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        if self.action == "list" and not getattr(user, "is_admin", False):
            return self.queryset.filter(
                Q(guest=user)
                | Q(property__owner=user)
                | Q(property__manager_assignments__manager=user)
            ).distinct()
        # detail actions: the object permission decides between 403 and success
        return self.queryset

    @extend_schema(request=BookingCreateSerializer, responses=BookingSerializer)
    def create(self, request, *args, **kwargs):
        data = BookingCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        params = data.validated_data

        prop = get_object_or_404(Property.objects.select_related("owner"), pk=params["property"])
        booking = services.create_booking(
            guest=request.user,
            prop=prop,
            check_in=params["check_in"],
            check_out=params["check_out"],
            number_of_guests=params["number_of_guests"],
            special_requests=params.get("special_requests", ""),
        )
        booking = self.queryset.get(pk=booking.pk)
        return response.Response(self.get_serializer(booking).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=BookingUpdateSerializer, responses=BookingSerializer)
    def update(self, request, *args, **kwargs):
        booking = self.get_object()
        data = BookingUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        changes = data.validated_data
        user = request.user

        if not changes:
            raise ValidationError("No valid updates provided.")

        # a refused status change also discards the special requests
        with transaction.atomic():
            if "special_requests" in changes:
                if booking.guest_id != user.id and not user.is_admin:
                    raise PermissionDenied("Only the guest can change special requests.")
                booking.special_requests = changes["special_requests"]
                booking.save(update_fields=["special_requests", "updated_at"])

            new_status = changes.get("status")
            if new_status:
                self._apply_status(request, booking, new_status)

        booking = self.queryset.get(pk=booking.pk)
        return response.Response(self.get_serializer(booking).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def perform_destroy(self, instance):
        logger.info("Booking deleted booking_id=%s by admin_id=%s", instance.id, self.request.user.id)
        instance.delete()

    def _apply_status(self, request, booking, new_status):
        new_status = Booking.Status(new_status)
        action_name = {
            Booking.Status.CONFIRMED: "Confirm",
            Booking.Status.REJECTED: "Reject",
            Booking.Status.CANCELLED: "Cancel",
            Booking.Status.COMPLETED: "Complete",
        }.get(new_status, "Status change")
        try:
            services.check_status_permission(request.user, booking, new_status)
        except PermissionDenied:
            logger.warning(
                "%s forbidden booking_id=%s by user_id=%s status=%s",
                action_name,
                booking.id,
                request.user.id,
                booking.status,
            )
            raise
        return services.change_status(booking, new_status, actor=request.user)

    def _transition(self, request, new_status):
        booking = self.get_object()
        self._apply_status(request, booking, new_status)
        booking = self.queryset.get(pk=booking.pk)
        return response.Response(self.get_serializer(booking).data)

    @extend_schema(request=None, responses=BookingSerializer)
    @decorators.action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        return self._transition(request, Booking.Status.CONFIRMED)

    @extend_schema(request=None, responses=BookingSerializer)
    @decorators.action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        return self._transition(request, Booking.Status.REJECTED)

    @extend_schema(request=None, responses=BookingSerializer)
    @decorators.action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        return self._transition(request, Booking.Status.CANCELLED)

    @extend_schema(request=None, responses=BookingSerializer)
    @decorators.action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        return self._transition(request, Booking.Status.COMPLETED)

    @decorators.action(detail=True, methods=["get", "post"], serializer_class=MessageSerializer)
    def messages(self, request, pk=None):
        booking = self.get_object()
        user = request.user

        if request.method == "GET":
            msgs = booking.messages.select_related("sender", "receiver").all()
            # reading the thread marks what was sent to the reader as read
            msgs.filter(receiver=user, is_read=False).update(is_read=True)
            return response.Response(MessageSerializer(msgs, many=True).data)

        if booking.status not in Booking.ACTIVE_STATUSES:
            raise ValidationError("Messages can only be sent while the booking is pending or confirmed.")

        text = str(request.data.get("text", "")).strip()
        if not text:
            raise ValidationError("text is required.")

        receiver = booking.property.owner if user.id == booking.guest_id else booking.guest
        msg = Message.objects.create(booking=booking, sender=user, receiver=receiver, text=text)
        logger.info(
            "Message created message_id=%s booking_id=%s sender_id=%s receiver_id=%s text_len=%s",
            msg.id,
            booking.id,
            user.id,
            receiver.id,
            len(text),
        )
        notify_safely(notification_service.message_received, msg)
        return response.Response(MessageSerializer(msg).data, status=status.HTTP_201_CREATED)
