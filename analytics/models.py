from django.conf import settings
from django.db import models

from properties.models import Property


class ViewHistory(models.Model):
    """One row per property page opened by a signed-in user."""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, blank=True, null=True, related_name="view_history"
    )
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="view_history")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "view history"
        indexes = [
            models.Index(fields=["property", "created_at"]),
            models.Index(fields=["user", "created_at"]),
        ]

    def __str__(self):
        return f"Property #{self.property_id} viewed by {self.user_id or 'anonymous'}"


class SearchHistory(models.Model):
    """
    Free-text catalogue searches. Rows outlive their user so the
    popular-searches ranking keeps its counts after an account is deleted.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, blank=True, null=True, related_name="search_history"
    )
    search_query = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "search history"
        indexes = [
            models.Index(fields=["search_query"]),  # popular searches
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        return f'"{self.search_query}" by {self.user_id or "anonymous"}'
