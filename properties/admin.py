from django.contrib import admin
from .models import Property, PropertyImage, PropertyManagerAssignment, Availability


class PropertyPriceRangeFilter(admin.SimpleListFilter):
    title = "Nightly price"
    parameter_name = "price_range"

    def lookups(self, request, model_admin):
        return (
            ("<100", "< 100"),
            ("100-250", "100-250"),
            ("250-500", "250-500"),
            (">500", "> 500"),
        )

    def queryset(self, request, queryset):
        val = self.value()
        if val == "<100":
            return queryset.filter(price__lt=100)
        if val == "100-250":
            return queryset.filter(price__gte=100, price__lte=250)
        if val == "250-500":
            return queryset.filter(price__gte=250, price__lte=500)
        if val == ">500":
            return queryset.filter(price__gt=500)
        return queryset


class BedroomsFilter(admin.SimpleListFilter):
    title = "Bedrooms"
    parameter_name = "bedrooms_bucket"

    def lookups(self, request, model_admin):
        return (("1", "1"), ("2", "2"), ("3", "3"), ("4+", "4+"))

    def queryset(self, request, queryset):
        val = self.value()
        if val in {"1", "2", "3"}:
            return queryset.filter(bedrooms=int(val))
        if val == "4+":
            return queryset.filter(bedrooms__gte=4)
        return queryset


class PropertyImageInline(admin.TabularInline):
    model = PropertyImage
    extra = 0


class ManagerAssignmentInline(admin.TabularInline):
    model = PropertyManagerAssignment
    extra = 0
    raw_id_fields = ("manager",)


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = (
        "id", "title", "owner", "city", "country", "price",
        "bedrooms", "property_type", "is_published", "is_featured", "views_count", "created_at",
    )
    list_select_related = ("owner",)
    search_fields = ("title", "description", "city", "address", "owner__email")
    list_filter = (
        PropertyPriceRangeFilter,
        BedroomsFilter,
        "property_type",
        "is_published",
        "is_featured",
        ("created_at", admin.DateFieldListFilter),
        "country",
    )
    inlines = [PropertyImageInline, ManagerAssignmentInline]
    ordering = ("-created_at",)
    date_hierarchy = "created_at"


@admin.register(Availability)
class AvailabilityAdmin(admin.ModelAdmin):
    list_display = ("id", "property", "date", "is_available", "price")
    list_select_related = ("property",)
    list_filter = ("is_available", ("date", admin.DateFieldListFilter))
    search_fields = ("property__title",)
    ordering = ("property", "date")
