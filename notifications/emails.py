import logging

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def send_templated_email(recipient, subject, template, context) -> bool:
    """
    Renders notifications/email/<template>.txt and sends it to one address.
    Returns False instead of raising when the backend fails.
    """
    if not recipient:
        return False
    body = render_to_string(f"notifications/email/{template}.txt", context)
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient])
    except Exception:
        logger.exception("Email sending failed template=%s to=%s", template, recipient)
        return False
    logger.info("Email sent template=%s to=%s", template, recipient)
    return True


def send_password_reset_email(user, reset) -> bool:
    reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={reset.token}"
    return send_templated_email(
        user.email,
        "Reset your HabibiStay password",
        "password_reset",
        {"user": user, "reset_url": reset_url, "expires_at": reset.expires_at},
    )
