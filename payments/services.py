"""
Payment lifecycle.

    PENDING   -> COMPLETED | FAILED
    COMPLETED -> REFUNDED | PARTIAL_REFUND
"""
import logging
from decimal import Decimal

from django.db import transaction

from bookings import services as booking_services
from bookings.models import Booking
from habibistay.exceptions import InvalidTransition, PaymentError
from .gateways import GatewayError, get_gateway
from .models import Payment

logger = logging.getLogger(__name__)

PAYABLE_BOOKING_STATUSES = (Booking.Status.PENDING, Booking.Status.CONFIRMED)


def _move(payment, new_status, extra_fields=()):
    if not payment.can_transition_to(new_status):
        raise InvalidTransition(
            f"Cannot change payment status from {payment.status} to {new_status}."
        )
    payment.status = new_status
    payment.save(update_fields=["status", "updated_at", *extra_fields])


def open_payment(booking, provider):
    """
    Returns (payment, created). A booking has at most one pending payment;
    asking again hands back the existing one, switching provider if needed.
    """
    if booking.status not in PAYABLE_BOOKING_STATUSES:
        raise PaymentError(f"A {booking.status} booking cannot be paid.")
    if booking.payments.filter(status=Payment.Status.COMPLETED).exists():
        raise PaymentError("This booking has already been paid.")
    try:
        gateway = get_gateway(provider)
    except GatewayError as exc:
        raise PaymentError(str(exc))

    with transaction.atomic():
        payment = (
            booking.payments.select_for_update()
            .filter(status=Payment.Status.PENDING)
            .order_by("-created_at")
            .first()
        )
        created = payment is None
        if created:
            payment = Payment(booking=booking, amount=booking.total_price, status=Payment.Status.PENDING)

        if created or not payment.transaction_id or payment.provider != gateway.name:
            intent = gateway.create_intent(payment)
            payment.provider = gateway.name
            payment.transaction_id = intent.transaction_id
            payment.client_token = intent.client_secret
            payment.redirect_url = intent.redirect_url
            payment.save()

    logger.info(
        "Payment %s payment_id=%s booking_id=%s provider=%s amount=%s",
        "created" if created else "reused",
        payment.id,
        booking.id,
        payment.provider,
        payment.amount,
    )
    return payment, created


def complete_payment(payment, details=None):
    """
    Verifies the provider confirmation. Failure marks the payment FAILED and
    raises PaymentError; success confirms a still pending booking.
    """
    if payment.status != Payment.Status.PENDING:
        raise InvalidTransition(f"Only pending payments can be completed (status: {payment.status}).")
    if payment.booking.status not in PAYABLE_BOOKING_STATUSES:
        raise PaymentError(f"A {payment.booking.status} booking cannot be paid.")

    gateway = get_gateway(payment.provider)
    if not gateway.verify(payment, details or {}):
        _move(payment, Payment.Status.FAILED)
        logger.warning("Payment verification failed payment_id=%s provider=%s", payment.id, payment.provider)
        raise PaymentError("Payment verification failed.")

    with transaction.atomic():
        _move(payment, Payment.Status.COMPLETED)
        booking = payment.booking
        if booking.status == Booking.Status.PENDING:
            booking_services.change_status(booking, Booking.Status.CONFIRMED)

    logger.info("Payment completed payment_id=%s booking_id=%s", payment.id, payment.booking_id)
    return payment


def refund_payment(payment, amount=None, actor=None):
    """
    Full refund (no amount, or the whole remaining amount) -> REFUNDED and the
    booking is cancelled when still possible; anything less -> PARTIAL_REFUND.
    """
    if payment.status != Payment.Status.COMPLETED:
        raise InvalidTransition("Only completed payments can be refunded.")

    refundable = payment.amount - payment.refunded_amount
    amount = refundable if amount is None else Decimal(amount)
    if amount <= 0 or amount > refundable:
        raise PaymentError(f"Refund amount must be between 0 and {refundable}.")

    get_gateway(payment.provider).refund(payment, amount)
    full = amount == refundable

    with transaction.atomic():
        payment.refunded_amount = payment.refunded_amount + amount
        _move(
            payment,
            Payment.Status.REFUNDED if full else Payment.Status.PARTIAL_REFUND,
            extra_fields=["refunded_amount"],
        )
        booking = payment.booking
        if full and booking.can_transition_to(Booking.Status.CANCELLED):
            booking_services.change_status(booking, Booking.Status.CANCELLED, actor=actor)

    logger.info(
        "Payment refunded payment_id=%s amount=%s full=%s",
        payment.id,
        amount,
        full,
    )
    return payment
