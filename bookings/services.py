"""
Booking lifecycle: creation with conflict checks and the status state machine.

    PENDING   -> CONFIRMED | REJECTED | CANCELLED
    CONFIRMED -> COMPLETED | CANCELLED

Every status change (API, payment completion, management commands) goes
through change_status() so timestamps, payment settlement and the
notification signals behave the same everywhere.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from habibistay.exceptions import Conflict, InvalidTransition
from payments.gateways import get_gateway
from payments.models import Payment
from properties.models import Property
from properties.pricing import quote_stay
from .models import Booking

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = {
    Booking.Status.CONFIRMED: "confirmed_at",
    Booking.Status.CANCELLED: "cancelled_at",
    Booking.Status.COMPLETED: "completed_at",
}


def overlapping(prop, check_in, check_out, statuses=Booking.ACTIVE_STATUSES, exclude=None):
    """Bookings of prop whose stay intersects [check_in, check_out)."""
    qs = Booking.objects.filter(
        property=prop,
        status__in=statuses,
        check_in__lt=check_out,
        check_out__gt=check_in,
    )
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)
    return qs


def can_view(user, booking) -> bool:
    return booking.guest_id == getattr(user, "id", None) or booking.property.is_managed_by(user)


def create_booking(*, guest, prop, check_in, check_out, number_of_guests, special_requests="", provider=None):
    """
    Validates the stay against the property and its calendar, prices it and
    stores the booking together with its pending payment.
    """
    if not prop.is_published:
        raise ValidationError("This property is not available for booking.")
    if number_of_guests > prop.max_guests:
        raise ValidationError(f"This property allows at most {prop.max_guests} guests.")
    if prop.owner_id == guest.id:
        raise ValidationError("You cannot book your own property.")

    with transaction.atomic():
        # lock the property row so concurrent requests check overlap one at a time
        list(Property.objects.select_for_update().filter(pk=prop.pk))

        if overlapping(prop, check_in, check_out).exists():
            raise Conflict("The property is already booked for the selected dates.")

        quote = quote_stay(prop, check_in, check_out)
        if quote.blocked_dates:
            raise Conflict(
                "Some of the selected dates are not available: "
                + ", ".join(d.isoformat() for d in quote.blocked_dates)
            )

        booking = Booking.objects.create(
            property=prop,
            guest=guest,
            check_in=check_in,
            check_out=check_out,
            number_of_guests=number_of_guests,
            special_requests=special_requests,
            total_price=quote.total,
            status=Booking.Status.PENDING,
        )
        Payment.objects.create(
            booking=booking,
            amount=booking.total_price,
            provider=provider or settings.PAYMENT_DEFAULT_PROVIDER,
            status=Payment.Status.PENDING,
        )

    logger.info(
        "Booking created id=%s property=%s guest=%s check_in=%s check_out=%s total=%s",
        booking.id,
        prop.id,
        guest.id,
        check_in,
        check_out,
        booking.total_price,
    )
    return booking


def check_status_permission(user, booking, new_status):
    """
    Who may move a booking where:
    - CANCELLED: the guest from PENDING/CONFIRMED, owner/manager from PENDING, admin always
    - CONFIRMED/REJECTED/COMPLETED: owner, manager or admin
    Raises PermissionDenied; whether the move itself is legal is change_status()'s job.
    """
    is_guest = booking.guest_id == getattr(user, "id", None)
    is_staff = booking.property.is_managed_by(user)

    if new_status == Booking.Status.CANCELLED:
        if getattr(user, "is_admin", False):
            return
        if is_guest and booking.status in (Booking.Status.PENDING, Booking.Status.CONFIRMED):
            return
        if is_staff and booking.status == Booking.Status.PENDING:
            return
        raise PermissionDenied("You are not allowed to cancel this booking.")

    if new_status in (Booking.Status.CONFIRMED, Booking.Status.REJECTED, Booking.Status.COMPLETED):
        if not is_staff:
            raise PermissionDenied("Only the property owner or its managers can change this booking.")
        return

    raise InvalidTransition(f"A booking cannot be moved to '{new_status}'.")


def change_status(booking, new_status, actor=None, today=None):
    try:
        new_status = Booking.Status(new_status)
    except ValueError:
        raise InvalidTransition(f"Unknown booking status '{new_status}'.")

    if not booking.can_transition_to(new_status):
        raise InvalidTransition(
            f"Cannot change booking status from {booking.status} to {new_status.value}."
        )
    if new_status == Booking.Status.COMPLETED and not booking.can_complete(today):
        raise InvalidTransition("A booking can only be completed after check-out.")

    previous = booking.status
    with transaction.atomic():
        if new_status == Booking.Status.CONFIRMED:
            list(Property.objects.select_for_update().filter(pk=booking.property_id))
            clash = overlapping(
                booking.property,
                booking.check_in,
                booking.check_out,
                statuses=[Booking.Status.CONFIRMED],
                exclude=booking,
            ).exists()
            if clash:
                raise Conflict("The dates are already taken by a confirmed booking.")

        booking.status = new_status
        update_fields = ["status", "updated_at"]
        stamp = TIMESTAMP_FIELDS.get(new_status)
        if stamp:
            setattr(booking, stamp, timezone.now())
            update_fields.append(stamp)
        booking.save(update_fields=update_fields)

        if new_status in (Booking.Status.CANCELLED, Booking.Status.REJECTED):
            settle_closed_payments(booking)

    logger.info(
        "Booking %s booking_id=%s from=%s actor_id=%s",
        new_status.label.lower(),
        booking.id,
        previous,
        getattr(actor, "id", None),
    )
    return booking


def settle_closed_payments(booking):
    """Completed payments are refunded in full; pending ones can no longer succeed."""
    for payment in booking.payments.select_for_update().filter(
        status__in=[Payment.Status.PENDING, Payment.Status.COMPLETED]
    ):
        if payment.status == Payment.Status.COMPLETED:
            get_gateway(payment.provider).refund(payment, payment.amount - payment.refunded_amount)
            payment.status = Payment.Status.REFUNDED
            payment.refunded_amount = payment.amount
        else:
            payment.status = Payment.Status.FAILED
        payment.save(update_fields=["status", "refunded_amount", "updated_at"])
        logger.info(
            "Payment settled after booking closed payment_id=%s booking_id=%s status=%s",
            payment.id,
            booking.id,
            payment.status,
        )
