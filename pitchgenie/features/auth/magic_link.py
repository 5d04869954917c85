"""
Passwordless email sign-in.

Sends a signed, time-limited link over SMTP. Without EMAIL_SERVER_HOST the
link is logged instead, which is how local development signs in.
"""
import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from pitchgenie.core.config import settings
from pitchgenie.core.logging import log_event
from pitchgenie.core.security import create_magic_link_token


def build_magic_link(email: str) -> str:
    token, _ = create_magic_link_token(email)
    return f"{settings.APP_URL}/api/auth/email/verify?{urlencode({'token': token})}"


def _compose(email: str, link: str) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = "Sign in to PitchGenie"
    message["From"] = settings.EMAIL_FROM
    message["To"] = email
    message.set_content(
        f"Sign in to PitchGenie by opening this link:\n\n{link}\n\n"
        "If you did not request this email you can safely ignore it."
    )
    return message


def send_magic_link(email: str, *, request_id=None) -> str:
    """Send (or log) the sign-in link. Returns the link."""
    link = build_magic_link(email)

    if not settings.EMAIL_SERVER_HOST:
        log_event(
            "info",
            "auth.magic_link.logged",
            request_id=request_id,
            event_type="auth.magic_link",
            extra={"email": email, "link": link},
        )
        return link

    with smtplib.SMTP(settings.EMAIL_SERVER_HOST, settings.EMAIL_SERVER_PORT) as smtp:
        smtp.starttls()
        if settings.EMAIL_SERVER_USER:
            smtp.login(settings.EMAIL_SERVER_USER, settings.EMAIL_SERVER_PASSWORD or "")
        smtp.send_message(_compose(email, link))

    log_event("info", "auth.magic_link.sent", request_id=request_id, event_type="auth.magic_link")
    return link
