from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import authentication, exceptions


class UpstreamIdentityAuthentication(authentication.BaseAuthentication):
    """
    Authenticates requests carrying an X-User-Id header injected by a trusted
    gateway. Disabled unless TRUST_UPSTREAM_IDENTITY is set; the role always
    comes from the database, never from a header.
    """
    header = "HTTP_X_USER_ID"

    def authenticate(self, request):
        if not getattr(settings, "TRUST_UPSTREAM_IDENTITY", False):
            return None
        raw = request.META.get(self.header)
        if not raw:
            return None
        User = get_user_model()
        try:
            user = User.objects.get(pk=int(raw), is_active=True)
        except (ValueError, User.DoesNotExist):
            raise exceptions.AuthenticationFailed("Unknown user in X-User-Id header.")
        return (user, None)
