from django.contrib import admin
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "property", "author", "subject", "rating", "created_at")
    list_select_related = ("property", "author", "subject")
    search_fields = ("property__title", "author__email", "comment")
    list_filter = ("rating", ("property", admin.RelatedOnlyFieldListFilter))
    ordering = ("-id",)
