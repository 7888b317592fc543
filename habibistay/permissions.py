from rest_framework import permissions


def is_admin(user) -> bool:
    return bool(user and user.is_authenticated and getattr(user, "is_admin", False))


class IsAdmin(permissions.BasePermission):
    message = "Access is restricted to administrators."

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsHostOrManager(permissions.BasePermission):
    """Roles that may publish and manage listings (admins included)."""
    message = "Access is restricted to hosts and property managers."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "can_host", False))


class IsPropertyStaff(permissions.BasePermission):
    """
    Object-level: owner, assigned manager or admin of the property the object
    belongs to. Works for Property instances and anything with a .property.
    """
    message = "Only the property owner or its managers can do this."

    def has_object_permission(self, request, view, obj):
        prop = obj if hasattr(obj, "is_managed_by") else getattr(obj, "property", None)
        return bool(prop is not None and prop.is_managed_by(request.user))
