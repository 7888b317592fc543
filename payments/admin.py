from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "amount", "currency", "provider", "status", "refunded_amount", "created_at")
    list_select_related = ("booking",)
    search_fields = ("transaction_id", "booking__id", "booking__guest__email")
    list_filter = ("status", "provider", ("created_at", admin.DateFieldListFilter))
    readonly_fields = ("transaction_id", "client_token", "redirect_url", "created_at", "updated_at")
    ordering = ("-created_at",)
