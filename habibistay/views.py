from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse


@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request, format=None):
    return Response({
        "token_obtain_pair": reverse("token_obtain_pair", request=request, format=format),
        "token_refresh": reverse("token_refresh", request=request, format=format),
        "register": reverse("register", request=request, format=format),
        "me": reverse("me", request=request, format=format),
        "properties": reverse("property-list", request=request, format=format),
        "featured_properties": reverse("property-featured", request=request, format=format),
        "bookings": reverse("booking-list", request=request, format=format),
        "payments": reverse("payment-list", request=request, format=format),
        "notifications": reverse("notification-list", request=request, format=format),
        "reviews": reverse("review-list", request=request, format=format),
        "host_analytics": reverse("host-analytics", request=request, format=format),
        "assistant": reverse("assistant", request=request, format=format),
        "docs": reverse("swagger-ui", request=request, format=format),
        "schema": reverse("schema", request=request, format=format),
    })
