"""
Host and admin dashboard figures.

Periods are whole calendar months ending with the current one. Bookings
belong to a period by their creation date. Revenue only counts CONFIRMED or
COMPLETED bookings that have at least one COMPLETED payment.
"""
import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Sum
from django.utils import timezone

from bookings.models import Booking
from payments.models import Payment
from properties.models import Property

TIMEFRAMES = {
    "thisMonth": 0,
    "last3Months": 2,
    "last6Months": 5,
    "lastYear": 11,
}
DEFAULT_TIMEFRAME = "last6Months"

EARNING_STATUSES = (Booking.Status.CONFIRMED, Booking.Status.COMPLETED)


def _shift_months(day: date, months: int) -> date:
    """First day of the month `months` away from day's month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


@dataclass
class Period:
    start: date
    end: date

    @classmethod
    def for_timeframe(cls, timeframe, today=None):
        today = today or timezone.localdate()
        back = TIMEFRAMES.get(timeframe, TIMEFRAMES[DEFAULT_TIMEFRAME])
        return cls(start=_shift_months(today, -back), end=_month_end(today))

    @property
    def days(self):
        return (self.end - self.start).days + 1

    def months(self):
        current = self.start
        while current <= self.end:
            yield current
            current = _shift_months(current, 1)


def _month_key(day) -> str:
    return day.strftime("%b %Y")


def _earns(booking) -> bool:
    if booking.status not in EARNING_STATUSES:
        return False
    return any(p.status == Payment.Status.COMPLETED for p in booking.payments.all())


def _occupancy(bookings, period: Period) -> float:
    nights = sum(b.nights for b in bookings if b.status in EARNING_STATUSES)
    if not nights:
        return 0.0
    return min(100.0, nights / period.days * 100)


def _num(value) -> float:
    return round(float(value), 2)


def host_analytics(host, timeframe=DEFAULT_TIMEFRAME, property_id=None, today=None):
    period = Period.for_timeframe(timeframe, today)

    properties = Property.objects.filter(owner=host)
    if property_id is not None:
        properties = properties.filter(pk=property_id)
    properties = list(properties.only("id", "title"))
    property_ids = [p.id for p in properties]

    bookings = list(
        Booking.objects.filter(
            property_id__in=property_ids,
            created_at__date__gte=period.start,
            created_at__date__lte=period.end,
        ).prefetch_related("payments")
    )

    monthly = {_month_key(month): {"revenue": Decimal("0"), "bookings": 0} for month in period.months()}
    breakdown = {str(s): 0 for s in Booking.Status.values}
    for booking in bookings:
        bucket = monthly.setdefault(
            _month_key(timezone.localtime(booking.created_at)), {"revenue": Decimal("0"), "bookings": 0}
        )
        bucket["bookings"] += 1
        if _earns(booking):
            bucket["revenue"] += booking.total_price
        breakdown[str(booking.status)] += 1

    performance = []
    for prop in properties:
        own = [b for b in bookings if b.property_id == prop.id]
        performance.append({
            "id": prop.id,
            "title": prop.title,
            "bookings": len(own),
            "revenue": _num(sum((b.total_price for b in own if _earns(b)), Decimal("0"))),
            "occupancyRate": _num(_occupancy(own, period)),
        })
    performance.sort(key=lambda row: row["revenue"], reverse=True)

    total_revenue = sum((b.total_price for b in bookings if _earns(b)), Decimal("0"))
    confirmed = sum(1 for b in bookings if b.status in EARNING_STATUSES)
    occupancy = _occupancy(bookings, period) / len(property_ids) if property_ids else 0.0

    return {
        "summary": {
            "totalBookings": len(bookings),
            "totalRevenue": _num(total_revenue),
            "confirmedBookings": confirmed,
            "cancelledBookings": breakdown[Booking.Status.CANCELLED.value],
            "averageBookingValue": _num(total_revenue / confirmed) if confirmed else 0.0,
            "occupancyRate": _num(occupancy),
        },
        "monthlyData": [
            {"month": month, "revenue": _num(data["revenue"]), "bookings": data["bookings"]}
            for month, data in monthly.items()
        ],
        "bookingStatusBreakdown": breakdown,
        "propertyPerformance": performance,
        "dateRange": {
            "startDate": period.start.isoformat(),
            "endDate": period.end.isoformat(),
        },
    }


def dashboard_stats(today=None):
    today = today or timezone.localdate()
    revenue = (
        Payment.objects.filter(status=Payment.Status.COMPLETED).aggregate(total=Sum("amount"))["total"]
        or Decimal("0")
    )
    return {
        "totalUsers": get_user_model().objects.count(),
        "totalProperties": Property.objects.count(),
        "totalBookings": Booking.objects.count(),
        "pendingBookings": Booking.objects.filter(status=Booking.Status.PENDING).count(),
        "upcomingBookings": Booking.objects.filter(
            status=Booking.Status.CONFIRMED, check_in__gte=today
        ).count(),
        "totalRevenue": _num(revenue),
    }
