from datetime import date

import pytest

from accounts.models import User
from analytics import reports
from analytics.models import SearchHistory
from bookings.models import Booking
from payments.models import Payment


@pytest.fixture
def host_bookings(prop, guest, other_guest, booking_factory, payment_factory):
    paid = booking_factory(prop, guest, start_in=5, nights=3, status=Booking.Status.CONFIRMED)
    payment_factory(paid, status=Payment.Status.COMPLETED)
    unpaid = booking_factory(prop, other_guest, start_in=20, nights=2, status=Booking.Status.CONFIRMED)
    booking_factory(prop, guest, start_in=40, nights=2, status=Booking.Status.CANCELLED)
    booking_factory(prop, other_guest, start_in=50, nights=1)
    return paid, unpaid


class TestPeriod:
    def test_last_six_months(self):
        period = reports.Period.for_timeframe("last6Months", today=date(2024, 3, 15))
        assert period.start == date(2023, 10, 1)
        assert period.end == date(2024, 3, 31)
        assert len(list(period.months())) == 6

    def test_this_month(self):
        period = reports.Period.for_timeframe("thisMonth", today=date(2024, 2, 10))
        assert (period.start, period.end) == (date(2024, 2, 1), date(2024, 2, 29))
        assert period.days == 29

    def test_unknown_timeframe_falls_back(self):
        period = reports.Period.for_timeframe("forever", today=date(2024, 3, 15))
        assert period.start == date(2023, 10, 1)


@pytest.mark.django_db
class TestHostAnalytics:
    def test_summary(self, client_for, host, prop, host_bookings):
        resp = client_for(host).get("/api/host/analytics/")

        assert resp.status_code == 200
        summary = resp.data["summary"]
        assert summary["totalBookings"] == 4
        assert summary["confirmedBookings"] == 2
        assert summary["cancelledBookings"] == 1
        assert summary["totalRevenue"] == 300.0
        assert summary["averageBookingValue"] == 150.0
        assert summary["occupancyRate"] > 0

        assert resp.data["bookingStatusBreakdown"]["pending"] == 1
        assert len(resp.data["monthlyData"]) == 6
        assert resp.data["propertyPerformance"][0]["id"] == prop.id
        assert resp.data["propertyPerformance"][0]["revenue"] == 300.0

    def test_this_month_window(self, client_for, host, host_bookings, today):
        resp = client_for(host).get("/api/host/analytics/", {"timeframe": "thisMonth"})
        assert len(resp.data["monthlyData"]) == 1
        assert resp.data["dateRange"]["startDate"] == today.replace(day=1).isoformat()

    def test_empty_host(self, client_for, user_factory):
        fresh = user_factory(role=User.Role.HOST)
        summary = client_for(fresh).get("/api/host/analytics/").data["summary"]
        assert summary["totalBookings"] == 0
        assert summary["averageBookingValue"] == 0.0
        assert summary["occupancyRate"] == 0.0

    def test_other_hosts_property_is_empty(self, client_for, host, user_factory, property_factory, host_bookings):
        other = property_factory(user_factory(role=User.Role.HOST), title="Not mine")
        data = client_for(host).get("/api/host/analytics/", {"propertyId": other.id}).data
        assert data["summary"]["totalBookings"] == 0
        assert data["propertyPerformance"] == []

    def test_bad_property_id(self, client_for, host):
        resp = client_for(host).get("/api/host/analytics/", {"propertyId": "abc"})
        assert resp.status_code == 400

    def test_guests_are_refused(self, client_for, guest):
        assert client_for(guest).get("/api/host/analytics/").status_code == 403


@pytest.mark.django_db
class TestDashboardStats:
    def test_admin_stats(self, client_for, admin, host_bookings):
        resp = client_for(admin).get("/api/admin/dashboard-stats/")

        assert resp.status_code == 200
        assert resp.data["totalUsers"] == User.objects.count()
        assert resp.data["totalProperties"] == 1
        assert resp.data["totalBookings"] == 4
        assert resp.data["pendingBookings"] == 1
        assert resp.data["upcomingBookings"] == 2
        assert resp.data["totalRevenue"] == 300.0

    def test_not_for_hosts(self, client_for, host):
        assert client_for(host).get("/api/admin/dashboard-stats/").status_code == 403


@pytest.mark.django_db
class TestPublicRankings:
    def test_top_properties_by_views(self, api_client, host, property_factory):
        quiet = property_factory(host, title="Quiet", views_count=1)
        busy = property_factory(host, title="Busy", views_count=50)
        property_factory(host, title="Hidden", views_count=999, is_published=False)

        data = api_client.get("/api/analytics/top-properties/", {"limit": 5}).data
        assert [row["id"] for row in data] == [busy.id, quiet.id]

    def test_bad_limit(self, api_client, db):
        assert api_client.get("/api/analytics/top-properties/", {"limit": "many"}).status_code == 400

    def test_popular_searches(self, api_client, db):
        for query in ("dubai", "dubai", "abu dhabi"):
            SearchHistory.objects.create(search_query=query)

        data = api_client.get("/api/analytics/popular-searches/").data
        assert data[0] == {"query": "dubai", "count": 2}
        assert len(data) == 2


@pytest.mark.django_db
def test_occupancy_is_capped(prop, guest, booking_factory, today):
    booking_factory(prop, guest, start_in=1, nights=400, status=Booking.Status.CONFIRMED)
    data = reports.host_analytics(prop.owner, "thisMonth", today=today)
    assert data["summary"]["occupancyRate"] == 100.0


@pytest.mark.django_db
def test_search_history_outlives_account(user_factory):
    user = user_factory()
    SearchHistory.objects.create(user=user, search_query="marina")
    user.delete()
    assert SearchHistory.objects.get().user is None
