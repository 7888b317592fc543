import django_filters
from django.db.models import Q

from .models import Property


class PropertyFilter(django_filters.FilterSet):
    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    country = django_filters.CharFilter(field_name="country", lookup_expr="icontains")
    location = django_filters.CharFilter(method="filter_location")
    property_type = django_filters.ChoiceFilter(choices=Property.PropertyType.choices)
    price_min = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    bedrooms = django_filters.NumberFilter(field_name="bedrooms", lookup_expr="gte")
    guests = django_filters.NumberFilter(field_name="max_guests", lookup_expr="gte")
    amenities = django_filters.CharFilter(method="filter_amenities")
    is_featured = django_filters.BooleanFilter(field_name="is_featured")
    owner = django_filters.NumberFilter(field_name="owner_id")

    class Meta:
        model = Property
        fields = [
            "city", "country", "location", "property_type",
            "price_min", "price_max", "bedrooms", "guests",
            "amenities", "is_featured", "owner",
        ]

    def filter_location(self, queryset, name, value):
        return queryset.filter(
            Q(address__icontains=value) | Q(city__icontains=value) | Q(country__icontains=value)
        )

    def filter_amenities(self, queryset, name, value):
        wanted = {item.strip().lower() for item in value.split(",") if item.strip()}
        if not wanted:
            return queryset
        # JSON containment is not portable across backends, so match in Python
        ids = [
            pk
            for pk, amenities in queryset.values_list("pk", "amenities")
            if wanted <= {str(a).lower() for a in (amenities or [])}
        ]
        return queryset.filter(pk__in=ids)
