from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command

from bookings.models import Booking
from notifications.models import Notification


def run(name, *args):
    out = StringIO()
    call_command(name, *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestCompleteBookings:
    def test_completes_past_stays(self, prop, guest, other_guest, booking_factory, today):
        finished = booking_factory(
            prop, guest, check_in=today - timedelta(days=5), nights=3, status=Booking.Status.CONFIRMED
        )
        checking_out = booking_factory(
            prop, other_guest, check_in=today - timedelta(days=2), nights=2, status=Booking.Status.CONFIRMED
        )
        ongoing = booking_factory(
            prop, guest, check_in=today, nights=2, status=Booking.Status.CONFIRMED
        )
        pending = booking_factory(prop, other_guest, check_in=today - timedelta(days=9), nights=2)

        output = run("complete_bookings")

        assert "Done. Completed 2 bookings." in output
        for booking in (finished, checking_out, ongoing, pending):
            booking.refresh_from_db()
        assert finished.status == Booking.Status.COMPLETED
        assert finished.completed_at is not None
        assert checking_out.status == Booking.Status.COMPLETED
        assert ongoing.status == Booking.Status.CONFIRMED
        assert pending.status == Booking.Status.PENDING

    def test_dry_run(self, prop, guest, booking_factory, today):
        booking = booking_factory(
            prop, guest, check_in=today - timedelta(days=5), nights=3, status=Booking.Status.CONFIRMED
        )
        output = run("complete_bookings", "--dry-run")
        assert "Dry run" in output
        booking.refresh_from_db()
        assert booking.status == Booking.Status.CONFIRMED

    def test_days_back_window(self, prop, guest, booking_factory, today):
        old = booking_factory(
            prop, guest, check_in=today - timedelta(days=200), nights=3, status=Booking.Status.CONFIRMED
        )
        assert "No bookings to complete." in run("complete_bookings", "--days-back", "30")
        run("complete_bookings", "--days-back", "0")
        old.refresh_from_db()
        assert old.status == Booking.Status.COMPLETED

    def test_nothing_to_do(self, db):
        assert "No bookings to complete." in run("complete_bookings")


@pytest.mark.django_db
class TestSendBookingReminders:
    def test_reminds_confirmed_stays(self, prop, guest, host, other_guest, booking_factory):
        booking_factory(prop, guest, start_in=2, nights=2, status=Booking.Status.CONFIRMED)
        booking_factory(prop, other_guest, start_in=2, nights=1, status=Booking.Status.CANCELLED)
        booking_factory(prop, other_guest, start_in=7, nights=1, status=Booking.Status.CONFIRMED)

        output = run("send_booking_reminders", "--days", "2")

        assert "Sent reminders for 1 bookings." in output
        reminders = Notification.objects.filter(type=Notification.Types.BOOKING_REMINDER)
        assert {n.user_id for n in reminders} == {guest.id, host.id}

    def test_dry_run_sends_nothing(self, prop, guest, booking_factory):
        booking_factory(prop, guest, start_in=2, status=Booking.Status.CONFIRMED)
        output = run("send_booking_reminders", "--days", "2", "--dry-run")
        assert "[DRY RUN] 1 bookings" in output
        assert not Notification.objects.filter(type=Notification.Types.BOOKING_REMINDER).exists()
