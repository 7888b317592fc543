"""
The single place that turns domain events into in-app notifications and
emails. Signal handlers and views call into `notification_service`; they
wrap the calls in notify_safely() so a failing notification never breaks
the operation that triggered it.
"""
import logging
from functools import partial

from django.db import transaction

from .emails import send_templated_email
from .models import Notification

logger = logging.getLogger(__name__)


def notify_safely(callback, *args, **kwargs):
    """Runs callback in its own savepoint; errors are logged, not raised."""
    try:
        with transaction.atomic():
            return callback(*args, **kwargs)
    except Exception:
        logger.exception("Notification dispatch failed: %s", getattr(callback, "__name__", callback))
        return None


class NotificationService:
    GUEST_STATUS_MESSAGES = {
        "confirmed": "Your booking at {title} has been confirmed. We look forward to hosting you!",
        "rejected": "Unfortunately your booking request for {title} was declined by the host.",
        "cancelled": "Your booking at {title} has been cancelled.",
        "completed": "We hope you enjoyed your stay at {title}. Don't forget to leave a review!",
    }

    def notify(self, user, type, title, message, data=None):
        notification = Notification.objects.create(
            user=user,
            type=type,
            title=title,
            message=message,
            data=data or {},
        )
        logger.info("Notification created id=%s user_id=%s type=%s", notification.id, user.id, type)
        return notification

    @staticmethod
    def email(recipient, subject, template, context):
        """Queues the email until the surrounding transaction commits; dropped on rollback."""
        transaction.on_commit(partial(send_templated_email, recipient, subject, template, context))

    @staticmethod
    def _booking_data(booking, **extra):
        data = {
            "booking_id": booking.id,
            "property_id": booking.property_id,
            "property_title": booking.property.title,
            "status": booking.status,
        }
        data.update(extra)
        return data

    def booking_requested(self, booking):
        host = booking.property.owner
        notification = self.notify(
            host,
            Notification.Types.BOOKING_REQUEST,
            "New booking request",
            f"{booking.guest.display_name} requested {booking.property.title} "
            f"from {booking.check_in} to {booking.check_out}.",
            self._booking_data(booking, guest_id=booking.guest_id),
        )
        self.email(
            host.email,
            f"New booking request for {booking.property.title}",
            "booking_request",
            {"recipient": host, "booking": booking},
        )
        return [notification]

    def booking_status_changed(self, booking):
        status = str(booking.status)
        title = f"Booking {booking.get_status_display()}"
        generic = f"Booking #{booking.id} status updated to {status.upper()}"
        guest_message = self.GUEST_STATUS_MESSAGES.get(status, generic).format(title=booking.property.title)

        created = []
        recipients = [(booking.guest, guest_message), (booking.property.owner, generic)]
        for recipient, message in recipients:
            created.append(self.notify(
                recipient,
                Notification.Types.BOOKING_UPDATE,
                title,
                message,
                self._booking_data(booking),
            ))
            self.email(
                recipient.email,
                f"{title}: {booking.property.title}",
                "booking_status",
                {"recipient": recipient, "booking": booking, "message": message},
            )
        return created

    def payment_status_changed(self, payment):
        booking = payment.booking
        status_label = payment.get_status_display().lower()
        shown_amount = payment.refunded_amount if payment.refunded_amount else payment.amount
        guest_message = (
            f"Your payment of ${shown_amount} for booking #{booking.id} has been {status_label}."
        )
        host_message = (
            f"Payment of ${shown_amount} for booking #{booking.id} at {booking.property.title} "
            f"has been {status_label}."
        )
        data = self._booking_data(booking, payment_id=payment.id, payment_status=payment.status)

        created = []
        for recipient, message in ((booking.guest, guest_message), (booking.property.owner, host_message)):
            created.append(self.notify(
                recipient,
                Notification.Types.PAYMENT_UPDATE,
                f"Payment {payment.get_status_display()}",
                message,
                data,
            ))
            self.email(
                recipient.email,
                f"Payment {status_label} for booking #{booking.id}",
                "payment_status",
                {"recipient": recipient, "payment": payment, "message": message},
            )
        return created

    def booking_reminder(self, booking, days_ahead):
        when = "tomorrow" if days_ahead == 1 else f"in {days_ahead} days"
        guest_message = f"Your stay at {booking.property.title} starts {when} ({booking.check_in})."
        host_message = (
            f"{booking.guest.display_name} checks in at {booking.property.title} {when} ({booking.check_in})."
        )
        created = []
        for recipient, message in ((booking.guest, guest_message), (booking.property.owner, host_message)):
            created.append(self.notify(
                recipient,
                Notification.Types.BOOKING_REMINDER,
                "Upcoming stay",
                message,
                self._booking_data(booking, days_ahead=days_ahead),
            ))
            self.email(
                recipient.email,
                f"Reminder: {booking.property.title} {when}",
                "booking_reminder",
                {"recipient": recipient, "booking": booking, "message": message},
            )
        return created

    def message_received(self, message):
        booking = message.booking
        return [self.notify(
            message.receiver,
            Notification.Types.MESSAGE,
            "New message",
            f"New message on booking #{booking.id} from {message.sender.display_name}",
            self._booking_data(
                booking,
                message_id=message.id,
                sender_id=message.sender_id,
                receiver_id=message.receiver_id,
            ),
        )]

    def review_received(self, review):
        prop = review.property
        if review.subject_id == review.author_id:
            return []
        return [self.notify(
            review.subject,
            Notification.Types.REVIEW,
            "New review",
            f"{review.author.display_name} rated {prop.title} {review.rating}/5.",
            {
                "property_id": prop.id,
                "property_title": prop.title,
                "review_id": review.id,
                "booking_id": review.booking_id,
                "rating": review.rating,
            },
        )]


notification_service = NotificationService()
