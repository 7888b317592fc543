"""
Availability calendar and stay pricing.

A stay covers the nights [check_in, check_out). Each night costs its
Availability.price override when one is set, the property's base price
otherwise; the cleaning and service fees are added once per stay.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from bookings.models import Booking
from .models import Availability, Property

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP)


def nights_between(check_in: date, check_out: date):
    """Every night of the stay, check-out day excluded."""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)


@dataclass
class Night:
    date: date
    price: Decimal
    is_available: bool = True
    is_booked: bool = False
    booking_id: int | None = None

    def as_dict(self):
        return {
            "date": self.date.isoformat(),
            "isAvailable": self.is_available,
            "price": str(self.price),
            "isBooked": self.is_booked,
            "bookingId": self.booking_id,
        }


@dataclass
class StayQuote:
    check_in: date
    check_out: date
    nights: list = field(default_factory=list)
    cleaning_fee: Decimal = Decimal("0.00")
    service_fee: Decimal = Decimal("0.00")

    @property
    def nights_count(self):
        return len(self.nights)

    @property
    def subtotal(self):
        return money(sum((n.price for n in self.nights), Decimal("0")))

    @property
    def total(self):
        return money(self.subtotal + self.cleaning_fee + self.service_fee)

    @property
    def blocked_dates(self):
        return [n.date for n in self.nights if not n.is_available]

    def as_dict(self):
        return {
            "checkIn": self.check_in.isoformat(),
            "checkOut": self.check_out.isoformat(),
            "nights": self.nights_count,
            "nightly": [{"date": n.date.isoformat(), "price": str(n.price)} for n in self.nights],
            "subtotal": str(self.subtotal),
            "cleaningFee": str(self.cleaning_fee),
            "serviceFee": str(self.service_fee),
            "total": str(self.total),
            "available": not self.blocked_dates,
            "blockedDates": [d.isoformat() for d in self.blocked_dates],
        }


def booked_nights(prop: Property, start: date, end: date) -> dict:
    """{night: booking_id} for PENDING/CONFIRMED bookings touching [start, end)."""
    qs = Booking.objects.filter(
        property=prop,
        status__in=Booking.ACTIVE_STATUSES,
        check_in__lt=end,
        check_out__gt=start,
    ).order_by("check_in")

    taken = {}
    for booking_id, check_in, check_out in qs.values_list("id", "check_in", "check_out"):
        for night in nights_between(max(check_in, start), min(check_out, end)):
            taken.setdefault(night, booking_id)
    return taken


def _calendar_entries(prop: Property, start: date, end: date) -> dict:
    return {
        a.date: a
        for a in Availability.objects.filter(property=prop, date__gte=start, date__lt=end)
    }


def build_calendar(prop: Property, start: date, end: date) -> list:
    entries = _calendar_entries(prop, start, end)
    taken = booked_nights(prop, start, end)
    calendar = []
    for night in nights_between(start, end):
        entry = entries.get(night)
        override = entry.price if entry is not None else None
        calendar.append(Night(
            date=night,
            price=money(override if override is not None else prop.price),
            is_available=entry.is_available if entry is not None else True,
            is_booked=night in taken,
            booking_id=taken.get(night),
        ))
    return calendar


def quote_stay(prop: Property, check_in: date, check_out: date) -> StayQuote:
    entries = _calendar_entries(prop, check_in, check_out)
    nights = []
    for night in nights_between(check_in, check_out):
        entry = entries.get(night)
        override = entry.price if entry is not None else None
        nights.append(Night(
            date=night,
            price=money(override if override is not None else prop.price),
            is_available=entry.is_available if entry is not None else True,
        ))
    return StayQuote(
        check_in=check_in,
        check_out=check_out,
        nights=nights,
        cleaning_fee=money(prop.cleaning_fee),
        service_fee=money(prop.service_fee),
    )
