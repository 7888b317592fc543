from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView

from analytics.views import DashboardStatsView, HostAnalyticsView
from properties.views import FeaturedPropertyAdminView
from .views import api_root

urlpatterns = [
    path("", api_root, name="api-root"),
    path("api/", api_root),

    path("admin/", admin.site.urls),

    # Auth (JWT)
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),

    # DRF browsable API login/logout
    path("api-auth/", include("rest_framework.urls")),

    # Apps
    path("api/accounts/", include("accounts.urls")),
    path("api/properties/", include("properties.urls")),
    path("api/bookings/", include("bookings.urls")),
    path("api/payments/", include("payments.urls")),
    path("api/reviews/", include("reviews.urls")),
    path("api/analytics/", include("analytics.urls")),
    path("api/notifications/", include("notifications.urls")),
    path("api/assistant/", include("assistant.urls")),

    # Host / admin dashboards
    path("api/host/analytics/", HostAnalyticsView.as_view(), name="host-analytics"),
    path("api/admin/dashboard-stats/", DashboardStatsView.as_view(), name="admin-dashboard-stats"),
    path("api/admin/properties/featured/", FeaturedPropertyAdminView.as_view(), name="admin-featured-property"),

    # OpenAPI schema + Swagger UI + Redoc
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
