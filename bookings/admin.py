from django.contrib import admin
from .models import Booking, Message


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "property", "owner_email", "guest", "status", "check_in", "check_out", "total_price")
    list_select_related = ("property", "property__owner", "guest")
    search_fields = ("property__title", "property__city", "guest__email", "property__owner__email")
    list_filter = (
        "status",
        ("check_in", admin.DateFieldListFilter),
        ("check_out", admin.DateFieldListFilter),
        ("property", admin.RelatedOnlyFieldListFilter),
        ("guest", admin.RelatedOnlyFieldListFilter),
    )
    readonly_fields = ("created_at", "updated_at", "confirmed_at", "cancelled_at", "completed_at")
    ordering = ("-check_in",)

    @admin.display(description="Host email")
    def owner_email(self, obj):
        return getattr(getattr(obj.property, "owner", None), "email", None)


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "sender", "receiver", "is_read", "created_at")
    list_select_related = ("booking", "sender", "receiver")
    search_fields = ("sender__email", "receiver__email", "booking__id")
    list_filter = (
        "is_read",
        ("sender", admin.RelatedOnlyFieldListFilter),
        ("receiver", admin.RelatedOnlyFieldListFilter),
    )
    ordering = ("-id",)
