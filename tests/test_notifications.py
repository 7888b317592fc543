import pytest
from django.db import transaction

from bookings import services as booking_services
from bookings.models import Booking
from notifications.models import Notification
from notifications.services import notification_service, notify_safely


@pytest.mark.django_db
class TestBookingEvents:
    def test_new_booking_notifies_host(self, mailoutbox, django_capture_on_commit_callbacks, guest, host, prop,
                                       booking_factory):
        with django_capture_on_commit_callbacks(execute=True):
            booking = booking_factory(prop, guest)

        notification = Notification.objects.get(user=host)
        assert notification.type == Notification.Types.BOOKING_REQUEST
        assert notification.data["booking_id"] == booking.id
        assert [m.to for m in mailoutbox] == [[host.email]]
        assert prop.title in mailoutbox[0].subject

    def test_status_change_notifies_both_sides(self, mailoutbox, django_capture_on_commit_callbacks, guest, host,
                                               prop, booking_factory):
        booking = booking_factory(prop, guest)
        Notification.objects.all().delete()
        mailoutbox.clear()

        with django_capture_on_commit_callbacks(execute=True):
            booking_services.change_status(booking, Booking.Status.CONFIRMED, actor=host)

        updates = Notification.objects.filter(type=Notification.Types.BOOKING_UPDATE)
        assert {n.user_id for n in updates} == {guest.id, host.id}
        guest_note = updates.get(user=guest)
        assert "has been confirmed" in guest_note.message
        assert sorted(m.to[0] for m in mailoutbox) == sorted([guest.email, host.email])

    def test_rolled_back_change_sends_no_email(self, mailoutbox, django_capture_on_commit_callbacks, guest,
                                               prop, booking_factory):
        booking = booking_factory(prop, guest)
        mailoutbox.clear()

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RuntimeError):
                with transaction.atomic():
                    booking_services.change_status(booking, Booking.Status.CONFIRMED)
                    raise RuntimeError("payment provider unreachable")

        assert callbacks == []
        assert mailoutbox == []
        assert not Notification.objects.filter(type=Notification.Types.BOOKING_UPDATE).exists()

    def test_unchanged_status_is_silent(self, guest, prop, booking_factory):
        booking = booking_factory(prop, guest)
        Notification.objects.all().delete()
        booking.special_requests = "Baby cot"
        booking.save()
        assert not Notification.objects.exists()

    def test_reminder(self, guest, host, prop, booking_factory):
        booking = booking_factory(prop, guest, start_in=1, status=Booking.Status.CONFIRMED)
        created = notification_service.booking_reminder(booking, 1)
        assert len(created) == 2
        assert "tomorrow" in created[0].message


@pytest.mark.django_db
def test_notify_safely_swallows_failures(caplog, guest):
    def broken(user):
        Notification.objects.create(user=user, type="system", title="half", message="written")
        raise RuntimeError("smtp down")

    assert notify_safely(broken, guest) is None
    assert not Notification.objects.filter(user=guest).exists()
    assert "Notification dispatch failed" in caplog.text


@pytest.mark.django_db
class TestNotificationApi:
    def make(self, user, **kwargs):
        kwargs.setdefault("type", Notification.Types.SYSTEM)
        kwargs.setdefault("title", "Hello")
        kwargs.setdefault("message", "Welcome to HabibiStay")
        return Notification.objects.create(user=user, **kwargs)

    def test_list_own_with_unread_count(self, client_for, guest, other_guest):
        self.make(guest)
        self.make(guest, is_read=True)
        self.make(other_guest)

        resp = client_for(guest).get("/api/notifications/")
        assert resp.status_code == 200
        assert resp.data["pagination"]["total"] == 2
        assert resp.data["unreadCount"] == 1

    def test_filters(self, client_for, guest):
        self.make(guest)
        self.make(guest, is_read=True, type=Notification.Types.MESSAGE)
        client = client_for(guest)

        assert client.get("/api/notifications/", {"unreadOnly": "true"}).data["pagination"]["total"] == 1
        assert client.get("/api/notifications/", {"is_read": "true"}).data["pagination"]["total"] == 1
        by_type = client.get("/api/notifications/", {"type": "message"}).data["results"]
        assert [n["type"] for n in by_type] == ["message"]

    def test_mark_read(self, client_for, guest):
        note = self.make(guest)
        resp = client_for(guest).post(f"/api/notifications/{note.id}/read/")
        assert resp.status_code == 200
        assert resp.data["is_read"] is True

    def test_patch_defaults_to_read(self, client_for, guest):
        note = self.make(guest)
        resp = client_for(guest).patch(f"/api/notifications/{note.id}/", {}, format="json")
        assert resp.data["is_read"] is True

        resp = client_for(guest).patch(f"/api/notifications/{note.id}/", {"isRead": False}, format="json")
        assert resp.data["is_read"] is False

    def test_read_all(self, client_for, guest):
        self.make(guest)
        self.make(guest)
        resp = client_for(guest).post("/api/notifications/read-all/")
        assert resp.data["count"] == 2
        assert not Notification.objects.filter(user=guest, is_read=False).exists()

    def test_other_users_notification(self, client_for, guest, other_guest, admin):
        note = self.make(other_guest)
        assert client_for(guest).get(f"/api/notifications/{note.id}/").status_code == 403
        assert client_for(admin).get(f"/api/notifications/{note.id}/").status_code == 200
        assert client_for(admin).post(f"/api/notifications/{note.id}/read/").status_code == 403

    def test_delete(self, client_for, guest):
        note = self.make(guest)
        resp = client_for(guest).delete(f"/api/notifications/{note.id}/")
        assert resp.status_code == 200
        assert resp.data["message"] == "Notification deleted successfully."
        assert not Notification.objects.filter(pk=note.pk).exists()

    def test_admin_creates(self, client_for, admin, guest):
        resp = client_for(admin).post(
            "/api/notifications/",
            {"userId": guest.id, "type": "system", "title": "Maintenance", "message": "Tonight 2am"},
            format="json",
        )
        assert resp.status_code == 201
        assert Notification.objects.get(user=guest).title == "Maintenance"

    def test_create_validation(self, client_for, admin, guest):
        resp = client_for(admin).post("/api/notifications/", {"userId": guest.id}, format="json")
        assert resp.status_code == 400
        assert resp.data["error"] == "Missing required fields: type, title, message"

    def test_create_unknown_user(self, client_for, admin):
        resp = client_for(admin).post(
            "/api/notifications/",
            {"userId": 98765, "type": "system", "title": "x", "message": "y"},
            format="json",
        )
        assert resp.status_code == 404

    def test_non_admin_cannot_create(self, client_for, guest):
        resp = client_for(guest).post(
            "/api/notifications/",
            {"userId": guest.id, "type": "system", "title": "x", "message": "y"},
            format="json",
        )
        assert resp.status_code == 403
