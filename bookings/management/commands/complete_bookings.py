import logging
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from bookings import services
from bookings.models import Booking
from habibistay.exceptions import InvalidTransition

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Marks CONFIRMED bookings whose check-out date has passed as COMPLETED."

    def add_arguments(self, parser):
        parser.add_argument(
            "--batch-size",
            type=int,
            default=500,
            help="How many bookings to lock and update per transaction (default 500).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be completed without updating anything.",
        )
        parser.add_argument(
            "--days-back",
            type=int,
            default=90,
            help="Only look at bookings that checked out within the last N days. 0 = no limit.",
        )

    def handle(self, *args, **options):
        batch_size = max(1, options["batch_size"])
        dry_run = options["dry_run"]
        days_back = options["days_back"]

        today = timezone.now().date()
        qs = Booking.objects.filter(
            status=Booking.Status.CONFIRMED,
            check_out__lte=today,
        )
        if days_back > 0:
            qs = qs.filter(check_out__gte=today - timedelta(days=days_back))

        ids = list(qs.order_by("check_out").values_list("id", flat=True))
        total = len(ids)
        if total == 0:
            self.stdout.write(self.style.SUCCESS("No bookings to complete."))
            return

        self.stdout.write(f"Found {total} bookings past check-out.")

        if dry_run:
            sample = list(qs.order_by("check_out").values_list("id", "check_out")[:10])
            self.stdout.write(f"[DRY RUN] First 10: {sample}")
            self.stdout.write(self.style.WARNING("Dry run: no updates performed."))
            return

        completed = 0
        for start in range(0, total, batch_size):
            chunk = ids[start:start + batch_size]
            with transaction.atomic():
                batch = Booking.objects.select_for_update().select_related("property").filter(id__in=chunk)
                for booking in batch:
                    if booking.status != Booking.Status.CONFIRMED:
                        continue
                    try:
                        services.change_status(booking, Booking.Status.COMPLETED, today=today)
                    except InvalidTransition:
                        logger.warning("Booking could not be completed booking_id=%s", booking.id)
                        continue
                    completed += 1
            self.stdout.write(f"Processed {min(start + batch_size, total)}/{total} ...")

        logger.info("complete_bookings finished completed=%s", completed)
        self.stdout.write(self.style.SUCCESS(f"Done. Completed {completed} bookings."))
