import django_filters
from .models import Booking


class BookingFilter(django_filters.FilterSet):
    """
    Filters for the booking list:
    - status: exact match
    - property: by listing id
    - check_in_from / check_in_to: range by check_in
    - role=guest|host: only trips the caller booked, or only bookings of their listings
    """
    status = django_filters.ChoiceFilter(choices=Booking.Status.choices)
    property = django_filters.NumberFilter(field_name="property__id")
    check_in_from = django_filters.DateFilter(field_name="check_in", lookup_expr="gte")
    check_in_to = django_filters.DateFilter(field_name="check_in", lookup_expr="lte")
    check_out_from = django_filters.DateFilter(field_name="check_out", lookup_expr="gte")
    check_out_to = django_filters.DateFilter(field_name="check_out", lookup_expr="lte")
    role = django_filters.ChoiceFilter(
        choices=[("guest", "guest"), ("host", "host")],
        method="filter_role",
    )

    class Meta:
        model = Booking
        fields = [
            "status", "property",
            "check_in_from", "check_in_to",
            "check_out_from", "check_out_to",
        ]

    def filter_role(self, queryset, name, value):
        user = getattr(self.request, "user", None)
        if user is None or not user.is_authenticated:
            return queryset.none()
        if value == "guest":
            return queryset.filter(guest=user)
        return queryset.exclude(guest=user)
