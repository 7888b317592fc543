import logging

from django.db import IntegrityError
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, permissions, filters, decorators, response
from rest_framework.exceptions import ValidationError

from habibistay.permissions import is_admin
from .models import Review
from .serializers import ReviewSerializer, ReviewResponseSerializer

logger = logging.getLogger(__name__)


class IsReviewAuthorOrReadOnly(permissions.BasePermission):
    message = "Only the author of a review can change or delete it."

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.author_id == getattr(request.user, "id", None)


class IsReviewSubject(permissions.BasePermission):
    message = "Only the reviewed host can respond."

    def has_object_permission(self, request, view, obj):
        return obj.subject_id == request.user.id or is_admin(request.user)


def _int_param(params, name):
    value = params.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class ReviewViewSet(viewsets.ModelViewSet):
    """
    Reviews of completed stays. Reading is public; filters: property,
    rating, rating_min, rating_max, author, subject.
    """
    serializer_class = ReviewSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsReviewAuthorOrReadOnly]
    filter_backends = [filters.OrderingFilter]
    ordering_fields = ["created_at", "rating"]
    ordering = ["-created_at"]

    def get_permissions(self):
        if self.action == "respond":
            return [permissions.IsAuthenticated(), IsReviewSubject()]
        return super().get_permissions()

    def get_queryset(self):
        qs = Review.objects.select_related("property", "author", "subject")
        params = self.request.query_params
        for param, lookup in (
            ("property", "property_id"),
            ("author", "author_id"),
            ("subject", "subject_id"),
            ("rating", "rating"),
            ("rating_min", "rating__gte"),
            ("rating_max", "rating__lte"),
        ):
            value = _int_param(params, param)
            if value is not None:
                qs = qs.filter(**{lookup: value})
        return qs

    def perform_create(self, serializer):
        try:
            review = serializer.save()
        except IntegrityError:
            # two requests for the same booking raced past validation
            raise ValidationError("This booking has already been reviewed.")
        logger.info(
            "Review created review_id=%s booking_id=%s rating=%s", review.id, review.booking_id, review.rating
        )

    @extend_schema(request=ReviewResponseSerializer, responses=ReviewSerializer)
    @decorators.action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        review = self.get_object()
        serializer = ReviewResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review.response = serializer.validated_data["response"].strip()
        review.responded_at = timezone.now()
        review.save(update_fields=["response", "responded_at", "updated_at"])
        return response.Response(ReviewSerializer(review, context={"request": request}).data)
