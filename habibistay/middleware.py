import logging
import json
import time
from django.utils.deprecation import MiddlewareMixin

requests_logger = logging.getLogger("requests")
fallback_logger = logging.getLogger(__name__)

# Credential endpoints: no query string in the log line
SENSITIVE_PATHS = (
    "/api/token/",
    "/api/token/refresh/",
    "/api/accounts/register/",
    "/api/accounts/password-reset/",
)

SKIPPED_PREFIXES = ("/static/", "/media/", "/admin/")


class RequestLogMiddleware(MiddlewareMixin):
    """
    Logs every request/response pair on the "requests" logger:
    - method, path, status, user, duration, query string
    - never the body or tokens; credential endpoints get a short line
    """

    def process_request(self, request):
        request._start_time = time.monotonic()

    def process_response(self, request, response):
        try:
            path = request.path
            if path.startswith(SKIPPED_PREFIXES):
                return response

            start = getattr(request, "_start_time", None)
            duration_ms = int((time.monotonic() - start) * 1000) if start else None

            # DRF copies the user it authenticated back onto the Django request
            user = getattr(request, "user", None)
            user_id = getattr(user, "id", None) if getattr(user, "is_authenticated", False) else None
            user_repr = f"user_id={user_id}" if user_id else "anon"
            status = getattr(response, "status_code", "-")

            if path.startswith(SENSITIVE_PATHS):
                requests_logger.info(
                    "HTTP %s %s -> %s [%s] %sms",
                    request.method,
                    path,
                    status,
                    user_repr,
                    duration_ms if duration_ms is not None else "-",
                )
            else:
                payload = {
                    "method": request.method,
                    "path": path,
                    "status": status,
                    "user": user_repr,
                    "duration_ms": duration_ms,
                    "query": request.META.get("QUERY_STRING", ""),
                }
                requests_logger.info(json.dumps(payload, ensure_ascii=False))
        except Exception as e:
            # a logging failure must not replace the response
            fallback_logger.warning("Failed to log request/response: %s", e)
        return response
