import logging

from django.db.models import Count
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import views, permissions
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from habibistay.permissions import IsAdmin, IsHostOrManager
from properties.models import Property
from . import reports
from .models import SearchHistory

logger = logging.getLogger(__name__)


def _limit(request, default=10, maximum=100):
    try:
        return max(1, min(int(request.query_params.get("limit", default)), maximum))
    except (TypeError, ValueError):
        raise ValidationError("limit must be an integer.")


class HostAnalyticsView(views.APIView):
    """Bookings, revenue and occupancy of the caller's properties."""
    permission_classes = [permissions.IsAuthenticated, IsHostOrManager]

    @extend_schema(parameters=[
        OpenApiParameter("timeframe", str, enum=list(reports.TIMEFRAMES)),
        OpenApiParameter("propertyId", int),
    ])
    def get(self, request):
        timeframe = request.query_params.get("timeframe") or reports.DEFAULT_TIMEFRAME
        property_id = request.query_params.get("propertyId")
        if property_id:
            try:
                property_id = int(property_id)
            except ValueError:
                raise ValidationError("propertyId must be an integer.")
        else:
            property_id = None

        data = reports.host_analytics(request.user, timeframe, property_id)
        logger.info(
            "Host analytics user_id=%s timeframe=%s bookings=%s",
            request.user.id,
            timeframe,
            data["summary"]["totalBookings"],
        )
        return Response(data)


class DashboardStatsView(views.APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        return Response(reports.dashboard_stats())


class TopPropertiesView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        by = request.query_params.get("by", "views")
        limit = _limit(request)
        published = Property.objects.filter(is_published=True)
        if by == "reviews":
            qs = published.annotate(reviews_count=Count("reviews")).order_by("-reviews_count", "-id")[:limit]
            data = [{"id": p.id, "title": p.title, "reviews_count": p.reviews_count} for p in qs]
        else:
            qs = published.order_by("-views_count", "-id")[:limit]
            data = [{"id": p.id, "title": p.title, "views_count": p.views_count} for p in qs]
        return Response(data)


class PopularSearchesView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        limit = _limit(request)
        qs = SearchHistory.objects.values("search_query").annotate(cnt=Count("id")).order_by("-cnt")[:limit]
        data = [{"query": r["search_query"], "count": r["cnt"]} for r in qs]
        return Response(data)
