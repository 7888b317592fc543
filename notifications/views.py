import logging

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, viewsets, permissions, decorators, response, status

from accounts.models import User
from habibistay.permissions import IsAdmin, is_admin
from .models import Notification
from .serializers import NotificationSerializer, NotificationCreateSerializer
from .services import notification_service

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "t", "yes", "y")
FALSE_VALUES = ("0", "false", "f", "no", "n")


class IsRecipient(permissions.BasePermission):
    message = "No access to this notification."

    def has_object_permission(self, request, view, obj):
        if obj.user_id == request.user.id:
            return True
        # admins may read and delete, but never mark someone else's as read
        return is_admin(request.user) and view.action in ("retrieve", "destroy")


class NotificationViewSet(mixins.CreateModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.UpdateModelMixin,
                          mixins.DestroyModelMixin,
                          mixins.ListModelMixin,
                          viewsets.GenericViewSet):
    """
    In-app notifications of the current user.

    Query params on list: unreadOnly=true (or is_read=true/false), type=<type>.
    The list carries `unreadCount` next to the page.
    """
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated, IsRecipient]
    queryset = Notification.objects.select_related("user")

    def get_permissions(self):
        if self.action == "create":
            return [permissions.IsAuthenticated(), IsAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        if self.action != "list":
            return self.queryset
        qs = self.queryset.filter(user=self.request.user).order_by("-created_at")
        params = self.request.query_params

        if str(params.get("unreadOnly", "")).lower() in TRUE_VALUES:
            qs = qs.filter(is_read=False)
        is_read = params.get("is_read")
        if is_read is not None:
            val = str(is_read).lower()
            if val in TRUE_VALUES:
                qs = qs.filter(is_read=True)
            elif val in FALSE_VALUES:
                qs = qs.filter(is_read=False)
        notif_type = params.get("type")
        if notif_type:
            qs = qs.filter(type=notif_type)
        return qs

    def list(self, request, *args, **kwargs):
        resp = super().list(request, *args, **kwargs)
        unread = Notification.objects.filter(user=request.user, is_read=False).count()
        if isinstance(resp.data, dict):
            resp.data["unreadCount"] = unread
        else:
            resp.data = {"results": resp.data, "unreadCount": unread}
        return resp

    @extend_schema(request=NotificationCreateSerializer, responses=NotificationSerializer)
    def create(self, request, *args, **kwargs):
        data = NotificationCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        params = data.validated_data
        target = get_object_or_404(User, pk=params["userId"])
        notification = notification_service.notify(
            target, params["type"], params["title"], params["message"], params.get("data"),
        )
        return response.Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        notification = self.get_object()
        is_read = request.data.get("isRead", True)
        if not isinstance(is_read, bool):
            is_read = str(is_read).lower() in TRUE_VALUES
        notification.is_read = is_read
        notification.save(update_fields=["is_read"])
        return response.Response(NotificationSerializer(notification).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        notification = self.get_object()
        notification.delete()
        return response.Response({"message": "Notification deleted successfully."})

    @extend_schema(request=None, responses=NotificationSerializer)
    @decorators.action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        notification = self.get_object()
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return response.Response(NotificationSerializer(notification).data)

    @extend_schema(request=None)
    @decorators.action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
        logger.info("Notifications marked read user_id=%s count=%s", request.user.id, updated)
        return response.Response({"message": "All notifications marked as read.", "count": updated})
