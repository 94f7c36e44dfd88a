"""
SendGrid email delivery for trip lifecycle events.

Email is best-effort: when SENDGRID_API_KEY is empty the send is skipped with
a warning, and delivery errors are logged and reported as False, never raised.
"""
import html
import logging
from typing import Optional

import sendgrid
from sendgrid.helpers.mail import Mail

from config import settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html_content: str) -> bool:
    if not settings.SENDGRID_API_KEY:
        logger.warning("[email] SENDGRID_API_KEY not configured, skipping email to %s", to_email)
        return False

    try:
        message = Mail(
            from_email=settings.EMAIL_FROM,
            to_emails=to_email,
            subject=subject,
            html_content=html_content,
        )
        sg = sendgrid.SendGridAPIClient(api_key=settings.SENDGRID_API_KEY)
        response = sg.send(message)
        logger.info("[email] Sent '%s' to %s, status %s", subject, to_email, response.status_code)
        return True
    except Exception as exc:
        logger.warning("[email] Failed to send '%s' to %s: %s", subject, to_email, exc)
        return False


def trip_event_template(name: Optional[str], heading: str, body: str, trip_name: Optional[str] = None) -> str:
    greeting = html.escape(name) if name else "there"
    trip_line = ""
    if trip_name:
        trip_line = f"<p>Trip: <strong>{html.escape(trip_name)}</strong></p>"
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family:Arial,sans-serif;max-width:640px;margin:auto;color:#222;padding:20px">
  <h2 style="color:#4CAF50">{html.escape(heading)}</h2>
  <p>Hello {greeting},</p>
  {trip_line}
  <p>{html.escape(body)}</p>
  <hr style="border:none;border-top:1px solid #ddd;margin:24px 0">
  <small style="color:#888">TripMate Team</small>
</body>
</html>"""
