import django_filters
from .models import Payment


class PaymentFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Payment.Status.choices)
    bookingId = django_filters.NumberFilter(field_name="booking_id")
    provider = django_filters.ChoiceFilter(choices=Payment.Provider.choices)

    class Meta:
        model = Payment
        fields = ["status", "bookingId", "provider"]
