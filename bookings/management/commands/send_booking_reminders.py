import logging
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from bookings.models import Booking
from notifications.services import notification_service, notify_safely

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Reminds guests and hosts about confirmed stays that start in N days."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=settings.BOOKING_REMINDER_DAYS,
            help="Remind about check-ins exactly this many days ahead.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the bookings without sending anything.",
        )

    def handle(self, *args, **options):
        days = options["days"]
        target = timezone.now().date() + timedelta(days=days)
        qs = (
            Booking.objects.filter(status=Booking.Status.CONFIRMED, check_in=target)
            .select_related("property", "property__owner", "guest")
            .order_by("id")
        )

        if options["dry_run"]:
            ids = list(qs.values_list("id", flat=True))
            self.stdout.write(f"[DRY RUN] {len(ids)} bookings check in on {target}: {ids}")
            return

        sent = 0
        for booking in qs:
            if notify_safely(notification_service.booking_reminder, booking, days):
                sent += 1

        logger.info("Booking reminders sent count=%s check_in=%s", sent, target)
        self.stdout.write(self.style.SUCCESS(f"Sent reminders for {sent} bookings."))
