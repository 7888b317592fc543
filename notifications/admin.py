from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "type", "title", "is_read", "created_at")
    list_select_related = ("user",)
    search_fields = ("title", "message", "user__email")
    list_filter = ("is_read", "type", ("created_at", admin.DateFieldListFilter))
    ordering = ("-created_at",)
