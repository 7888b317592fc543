import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import F, Max, Q
from django.http import Http404
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import viewsets, permissions, decorators, response, status, parsers, views
from rest_framework.exceptions import ValidationError
from rest_framework.filters import SearchFilter, OrderingFilter

from analytics.models import ViewHistory, SearchHistory
from habibistay.permissions import IsAdmin, IsHostOrManager, IsPropertyStaff, is_admin
from .filters import PropertyFilter
from .models import Property, PropertyImage, PropertyManagerAssignment, Availability, MAX_IMAGES_PER_PROPERTY
from .pricing import build_calendar, booked_nights, quote_stay
from .serializers import (
    PropertySerializer,
    PropertyImageSerializer,
    PropertyImageUploadSerializer,
    AvailabilitySerializer,
    ManagerAssignmentSerializer,
    ManagerAssignSerializer,
)

logger = logging.getLogger(__name__)


class IsListingOwner(permissions.BasePermission):
    """Owner of the property or an admin, for reads as well as writes."""
    message = "Only the owner can manage this property."

    def has_object_permission(self, request, view, obj):
        return is_admin(request.user) or obj.owner_id == getattr(request.user, "id", None)


def _parse_range(start_raw, end_raw, start_name, end_name):
    if not start_raw or not end_raw:
        raise ValidationError(f"{start_name} and {end_name} are required.")
    try:
        start, end = parse_date(start_raw), parse_date(end_raw)
    except ValueError:
        start = end = None
    if start is None or end is None:
        raise ValidationError("Dates must be in YYYY-MM-DD format.")
    if start >= end:
        raise ValidationError(f"{start_name} must be before {end_name}.")
    return start, end


class PropertyViewSet(viewsets.ModelViewSet):
    """
    Property catalogue and host tools.

    - list / featured: published properties, anyone.
    - retrieve / availability (GET) / quote: published ones for everyone,
      unpublished ones only for the owner, its managers and admins.
    - mine: properties the caller owns or manages.
    - create: hosts, property managers and admins.
    - update / destroy / toggle_publish / images / managers: owner or admin.
    - availability (POST): owner, manager or admin.
    """
    queryset = Property.objects.select_related("owner").prefetch_related("images")
    serializer_class = PropertySerializer
    filterset_class = PropertyFilter
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ["title", "description", "city"]
    ordering_fields = ["price", "created_at", "views_count"]
    ordering = ["-created_at"]
    parser_classes = [parsers.JSONParser, parsers.MultiPartParser, parsers.FormParser]
    lookup_value_regex = r"\d+"

    OWNER_ACTIONS = {
        "update", "partial_update", "destroy", "toggle_publish",
        "images", "delete_image", "set_primary_image", "update_image_caption",
        "managers", "remove_manager",
    }

    def get_permissions(self):
        if self.action == "create" or self.action == "mine":
            return [permissions.IsAuthenticated(), IsHostOrManager()]
        if self.action in self.OWNER_ACTIONS:
            return [permissions.IsAuthenticated(), IsListingOwner()]
        if self.action == "availability" and self.request.method == "POST":
            return [permissions.IsAuthenticated(), IsPropertyStaff()]
        return [permissions.AllowAny()]

    def get_queryset(self):
        if self.action in ("list", "featured"):
            return self.queryset.filter(is_published=True)
        if self.action == "mine":
            user = self.request.user
            return self.queryset.filter(
                Q(owner=user) | Q(manager_assignments__manager=user)
            ).distinct()
        return self.queryset

    def _visible_object(self):
        prop = self.get_object()
        if not prop.is_published and not prop.is_managed_by(self.request.user):
            raise Http404
        return prop

    def list(self, request, *args, **kwargs):
        search_q = request.query_params.get("search")
        if search_q and request.user.is_authenticated:
            SearchHistory.objects.create(user=request.user, search_query=search_q[:255])
        return super().list(request, *args, **kwargs)

    def retrieve(self, request, *args, **kwargs):
        prop = self._visible_object()
        Property.objects.filter(pk=prop.pk).update(views_count=F("views_count") + 1)
        if request.user.is_authenticated:
            ViewHistory.objects.create(user=request.user, property=prop)
        prop.refresh_from_db(fields=["views_count"])
        return response.Response(self.get_serializer(prop).data)

    def perform_create(self, serializer):
        prop = serializer.save()
        logger.info("Property created property_id=%s owner_id=%s", prop.id, prop.owner_id)

    def perform_update(self, serializer):
        prop = serializer.save()
        logger.info("Property updated property_id=%s by user_id=%s", prop.id, self.request.user.id)

    def perform_destroy(self, instance):
        logger.info("Property deleted property_id=%s by user_id=%s", instance.id, self.request.user.id)
        instance.delete()

    @decorators.action(detail=False, methods=["get"])
    def mine(self, request):
        return super().list(request)

    @decorators.action(detail=False, methods=["get"])
    def featured(self, request):
        try:
            limit = max(1, min(int(request.query_params.get("limit", 5)), 50))
        except (TypeError, ValueError):
            limit = 5
        qs = self.get_queryset().filter(is_featured=True)[:limit]
        return response.Response(self.get_serializer(qs, many=True).data)

    @extend_schema(request=None)
    @decorators.action(detail=True, methods=["post"], url_path="toggle-publish")
    def toggle_publish(self, request, pk=None):
        prop = self.get_object()
        prop.is_published = not prop.is_published
        prop.save(update_fields=["is_published", "updated_at"])
        logger.info("Property publish toggled property_id=%s published=%s", prop.id, prop.is_published)
        return response.Response({"id": prop.id, "is_published": prop.is_published})

    # images

    @extend_schema(request=PropertyImageUploadSerializer, responses=PropertyImageSerializer(many=True))
    @decorators.action(detail=True, methods=["post"])
    def images(self, request, pk=None):
        """
        Upload additional images (multipart):
        images: one or more files, captions: optional, by position.
        """
        prop = self.get_object()
        serializer = PropertyImageUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        files = serializer.validated_data["images"]
        captions = serializer.validated_data.get("captions", [])

        if prop.images.count() + len(files) > MAX_IMAGES_PER_PROPERTY:
            raise ValidationError(f"A property can have at most {MAX_IMAGES_PER_PROPERTY} images.")

        created = []
        with transaction.atomic():
            current_max = prop.images.aggregate(m=Max("order")).get("m") or 0
            needs_primary = not prop.images.filter(is_primary=True).exists()
            for idx, upload in enumerate(files, start=1):
                created.append(PropertyImage.objects.create(
                    property=prop,
                    image=upload,
                    caption=captions[idx - 1] if idx - 1 < len(captions) else "",
                    order=current_max + idx,
                    is_primary=needs_primary and idx == 1,
                ))
        logger.info("Property images uploaded property_id=%s count=%s", prop.id, len(created))
        return response.Response(
            PropertyImageSerializer(created, many=True, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )

    @decorators.action(detail=True, methods=["delete"], url_path=r"images/(?P<image_id>\d+)")
    def delete_image(self, request, pk=None, image_id=None):
        prop = self.get_object()
        img = get_object_or_404(PropertyImage, property=prop, pk=image_id)
        was_primary = img.is_primary
        img.delete()
        if was_primary:
            # the next image in order takes over
            successor = prop.images.order_by("order", "created_at").first()
            if successor is not None:
                successor.is_primary = True
                successor.save(update_fields=["is_primary"])
        return response.Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses=PropertyImageSerializer)
    @decorators.action(detail=True, methods=["post"], url_path=r"images/(?P<image_id>\d+)/set-primary")
    def set_primary_image(self, request, pk=None, image_id=None):
        prop = self.get_object()
        img = get_object_or_404(PropertyImage, property=prop, pk=image_id)
        with transaction.atomic():
            prop.images.exclude(pk=img.pk).update(is_primary=False)
            img.is_primary = True
            img.save(update_fields=["is_primary"])
        return response.Response(PropertyImageSerializer(img, context={"request": request}).data)

    @decorators.action(detail=True, methods=["patch"], url_path=r"images/(?P<image_id>\d+)/caption")
    def update_image_caption(self, request, pk=None, image_id=None):
        prop = self.get_object()
        img = get_object_or_404(PropertyImage, property=prop, pk=image_id)
        img.caption = str(request.data.get("caption", ""))[:200]
        img.save(update_fields=["caption"])
        return response.Response(PropertyImageSerializer(img, context={"request": request}).data)

    # managers

    @extend_schema(request=ManagerAssignSerializer, responses=ManagerAssignmentSerializer(many=True))
    @decorators.action(detail=True, methods=["get", "post"])
    def managers(self, request, pk=None):
        prop = self.get_object()
        if request.method == "POST":
            serializer = ManagerAssignSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            manager = serializer.validated_data["manager_id"]
            assignment, created = PropertyManagerAssignment.objects.get_or_create(property=prop, manager=manager)
            if created:
                logger.info("Manager assigned property_id=%s manager_id=%s", prop.id, manager.id)
            return response.Response(
                ManagerAssignmentSerializer(assignment).data,
                status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
            )
        qs = prop.manager_assignments.select_related("manager").order_by("assigned_at")
        return response.Response(ManagerAssignmentSerializer(qs, many=True).data)

    @decorators.action(detail=True, methods=["delete"], url_path=r"managers/(?P<user_id>\d+)")
    def remove_manager(self, request, pk=None, user_id=None):
        prop = self.get_object()
        assignment = get_object_or_404(PropertyManagerAssignment, property=prop, manager_id=user_id)
        assignment.delete()
        logger.info("Manager removed property_id=%s manager_id=%s", prop.id, user_id)
        return response.Response(status=status.HTTP_204_NO_CONTENT)

    # calendar

    @extend_schema(parameters=[
        OpenApiParameter("startDate", str, required=True),
        OpenApiParameter("endDate", str, required=True),
    ])
    @decorators.action(detail=True, methods=["get", "post"])
    def availability(self, request, pk=None):
        if request.method == "POST":
            return self._update_availability(request, self.get_object())

        prop = self._visible_object()
        start, end = _parse_range(
            request.query_params.get("startDate"), request.query_params.get("endDate"),
            "startDate", "endDate",
        )
        return response.Response({
            "propertyId": prop.id,
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "basePrice": str(prop.price),
            "availability": [night.as_dict() for night in build_calendar(prop, start, end)],
        })

    def _update_availability(self, request, prop):
        entries = request.data.get("dates") if hasattr(request.data, "get") else None
        if not isinstance(entries, list) or not entries:
            raise ValidationError("dates must be a non-empty list.")

        results = []
        for entry in entries:
            results.append(self._apply_availability_entry(prop, entry))
        logger.info(
            "Availability updated property_id=%s by user_id=%s entries=%s errors=%s",
            prop.id,
            request.user.id,
            len(results),
            sum(1 for r in results if r["status"] == "error"),
        )
        return response.Response({"propertyId": prop.id, "results": results})

    @staticmethod
    def _apply_availability_entry(prop, entry):
        raw_date = entry.get("date") if isinstance(entry, dict) else None
        try:
            night = parse_date(raw_date) if isinstance(raw_date, str) else None
        except ValueError:
            night = None
        if night is None:
            return {"date": raw_date, "status": "error", "message": "Invalid date."}

        is_available = entry.get("isAvailable", True)
        if not isinstance(is_available, bool):
            return {"date": raw_date, "status": "error", "message": "isAvailable must be a boolean."}

        data = {"date": night, "isAvailable": is_available}
        if entry.get("price") is not None:
            data["price"] = entry["price"]
        serializer = AvailabilitySerializer(data=data)
        if not serializer.is_valid():
            return {"date": raw_date, "status": "error", "message": "Invalid price."}
        price = serializer.validated_data.get("price")
        if price is not None and price <= 0:
            return {"date": raw_date, "status": "error", "message": "Price must be greater than 0."}

        if not is_available and booked_nights(prop, night, night + timedelta(days=1)):
            return {"date": raw_date, "status": "error", "message": "This date is already booked."}

        defaults = {"is_available": is_available}
        if "price" in data:
            defaults["price"] = price
        availability, _ = Availability.objects.update_or_create(property=prop, date=night, defaults=defaults)
        return {
            "date": night.isoformat(),
            "status": "success",
            "availability": AvailabilitySerializer(availability).data,
        }

    @extend_schema(parameters=[
        OpenApiParameter("checkIn", str, required=True),
        OpenApiParameter("checkOut", str, required=True),
    ])
    @decorators.action(detail=True, methods=["get"])
    def quote(self, request, pk=None):
        prop = self._visible_object()
        check_in, check_out = _parse_range(
            request.query_params.get("checkIn"), request.query_params.get("checkOut"),
            "checkIn", "checkOut",
        )
        data = quote_stay(prop, check_in, check_out).as_dict()
        data["propertyId"] = prop.id
        return response.Response(data)


class FeaturedPropertyAdminView(views.APIView):
    """PATCH {propertyId, isFeatured}: admins curate the featured list."""
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    @extend_schema(request=None, responses=PropertySerializer)
    def patch(self, request):
        property_id = request.data.get("propertyId")
        is_featured = request.data.get("isFeatured")
        if property_id in (None, "") or not isinstance(is_featured, bool):
            raise ValidationError("propertyId and a boolean isFeatured are required.")
        try:
            property_id = int(property_id)
        except (TypeError, ValueError):
            raise ValidationError("propertyId must be an integer.")

        prop = get_object_or_404(Property, pk=property_id)
        prop.is_featured = is_featured
        prop.save(update_fields=["is_featured", "updated_at"])
        logger.info("Property featured=%s property_id=%s by admin_id=%s", is_featured, prop.id, request.user.id)
        return response.Response(PropertySerializer(prop, context={"request": request}).data)
