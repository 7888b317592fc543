from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from bookings.models import Booking
from payments.models import Payment
from properties.models import Property

PASSWORD = "Str0ng-Passw0rd!"


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def today():
    return timezone.now().date()


@pytest.fixture
def user_factory(db):
    counter = {"n": 0}

    def create_user(email=None, role=User.Role.GUEST, password=PASSWORD, **extra):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        extra.setdefault("first_name", "Test")
        extra.setdefault("last_name", f"User{counter['n']}")
        return User.objects.create_user(email=email, password=password, role=role, **extra)
    return create_user


@pytest.fixture
def guest(user_factory):
    return user_factory("guest@example.com", role=User.Role.GUEST, first_name="Gina")


@pytest.fixture
def other_guest(user_factory):
    return user_factory("guest2@example.com", role=User.Role.GUEST)


@pytest.fixture
def host(user_factory):
    return user_factory("host@example.com", role=User.Role.HOST, first_name="Hamid")


@pytest.fixture
def manager(user_factory):
    return user_factory("manager@example.com", role=User.Role.PROPERTY_MANAGER)


@pytest.fixture
def admin(user_factory):
    return user_factory("admin@example.com", role=User.Role.ADMIN)


@pytest.fixture
def property_factory(db):
    def create_property(owner, **overrides):
        data = dict(
            title="Marina View Apartment",
            description="Two bedrooms by the water",
            property_type=Property.PropertyType.APARTMENT,
            price=Decimal("100.00"),
            cleaning_fee=Decimal("0.00"),
            service_fee=Decimal("0.00"),
            address="1 Marina Walk",
            city="Dubai",
            country="UAE",
            bedrooms=2,
            beds=2,
            max_guests=4,
            amenities=["wifi", "pool"],
            is_published=True,
        )
        data.update(overrides)
        return Property.objects.create(owner=owner, **data)
    return create_property


@pytest.fixture
def prop(property_factory, host):
    return property_factory(host)


@pytest.fixture
def booking_factory(db, today):
    def create_booking(prop, guest, start_in=10, nights=3, status=Booking.Status.PENDING, **extra):
        check_in = extra.pop("check_in", today + timedelta(days=start_in))
        check_out = extra.pop("check_out", check_in + timedelta(days=nights))
        total = extra.pop("total_price", prop.price * (check_out - check_in).days)
        return Booking.objects.create(
            property=prop,
            guest=guest,
            check_in=check_in,
            check_out=check_out,
            number_of_guests=extra.pop("number_of_guests", 2),
            total_price=total,
            status=status,
            **extra,
        )
    return create_booking


@pytest.fixture
def payment_factory(db):
    def create_payment(booking, status=Payment.Status.PENDING, **extra):
        extra.setdefault("amount", booking.total_price)
        extra.setdefault("provider", Payment.Provider.STRIPE)
        return Payment.objects.create(booking=booking, status=status, **extra)
    return create_payment


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return make
