# services/notifications.py
"""
Notification Sender - verification emails.

Renders the verification template with Jinja2 and hands the result to the
mail transport chosen at startup. Rendering faults are logged and produce an
empty body; delivery faults are raised to the caller, which decides whether
they matter (registration ignores them, resend reports them).
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from jinja2 import Environment, StrictUndefined, TemplateError

from utils.mail import MailDeliveryError, MailMessage, MailTransport

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify your email address"

VERIFICATION_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Email verification</title>
  <style>
    body { font-family: 'Helvetica Neue', Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }
    .container { border: 1px solid #ddd; border-radius: 5px; padding: 20px; }
    .header { text-align: center; margin-bottom: 20px; }
    .logo { max-width: 150px; height: auto; }
    .footer { margin-top: 30px; font-size: 12px; color: #777; text-align: center; }
    .button { display: inline-block; background-color: #4CAF50; color: white; text-decoration: none; padding: 10px 20px; border-radius: 5px; margin: 20px 0; }
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      {% if companyLogo %}
      <img src="{{ companyLogo }}" alt="{{ companyName }}" class="logo">
      {% else %}
      <h2>{{ companyName }}</h2>
      {% endif %}
    </div>
    <p>Hello {{ userName }},</p>
    <p>Thank you for signing up. Please confirm your email address by clicking the link below:</p>
    <p style="text-align: center;">
      <a href="{{ verificationLink }}" class="button">Verify email address</a>
    </p>
    <p>This link is valid for 24 hours. If it has expired you can request a new one from the login screen.</p>
    <p>If you did not create an account, you can ignore this email.</p>
    <div class="footer">
      <p>&copy; {{ currentYear }} {{ companyName }}. All rights reserved.</p>
    </div>
  </div>
</body>
</html>
"""

VERIFICATION_TEXT = (
     "Hello {userName},\n\n"
     "Please confirm your email address by opening this link:\n"
     "{verificationLink}\n\n"
     "This link is valid for 24 hours.\n"
)

_env = Environment(autoescape=True, undefined=StrictUndefined)


class NotificationSender:
     """Build and deliver verification emails through an injected transport."""

     def __init__(
          self,
          transport: MailTransport,
          frontend_url: str,
          company_name: str,
          company_logo: str = "",
          from_email: str = "noreply@example.com",
          from_name: str = "Pocket Attendance",
     ):
          self.transport = transport
          self.frontend_url = frontend_url.rstrip("/")
          self.company_name = company_name
          self.company_logo = company_logo
          self.from_email = from_email
          self.from_name = from_name

     @classmethod
     def from_settings(cls, settings, transport: MailTransport) -> "NotificationSender":
          return cls(
               transport=transport,
               frontend_url=settings.frontend_url,
               company_name=settings.company_name,
               company_logo=settings.company_logo,
               from_email=settings.email_from,
               from_name=settings.email_from_name,
          )

     def verification_link(self, user_id: str, token: str) -> str:
          query = urlencode({"token": token, "userId": user_id})
          return f"{self.frontend_url}/verify-email?{query}"

     @staticmethod
     def render_verification_email(data: Dict[str, Any]) -> str:
          """
          Render the verification email body.

          Args:
               data: userName, verificationLink, companyName, companyLogo

          Returns:
               The HTML body, or "" if the template could not be rendered.
          """
          try:
               template = _env.from_string(VERIFICATION_TEMPLATE)
               return template.render(currentYear=datetime.now().year, **data)
          except TemplateError:
               logger.exception("Verification template rendering failed")
               return ""

     def _branding(self, company) -> Dict[str, str]:
          name = self.company_name
          logo = self.company_logo
          if company is not None:
               name = company.name or name
               logo = company.logo_url or logo
          return {"companyName": name, "companyLogo": logo}

     def send_verification_email(self, user, token: str, company: Optional[Any] = None) -> str:
          """
          Send the verification link for ``token`` to ``user``.

          Returns:
               The transport's message id.

          Raises:
               MailDeliveryError: rendering produced nothing or the transport failed
          """
          link = self.verification_link(user.id, token)
          data = {"userName": user.name, "verificationLink": link}
          data.update(self._branding(company if company is not None else getattr(user, "company", None)))

          html = self.render_verification_email(data)
          if not html:
               raise MailDeliveryError("Verification email could not be rendered")

          message = MailMessage(
               to=user.email,
               subject=VERIFICATION_SUBJECT,
               html=html,
               text=VERIFICATION_TEXT.format(**data),
               from_email=self.from_email,
               from_name=self.from_name,
          )
          logger.info("Sending verification email", extra={"user_id": user.id, "to": user.email})
          message_id = self.transport.send(message)
          logger.info("Verification email sent", extra={"user_id": user.id, "message_id": message_id})
          return message_id
