# utils/mail.py
"""
Mail transports.

A transport takes a fully rendered ``MailMessage`` and hands it to something
that delivers mail. One transport is chosen at startup by ``build_transport``
and injected wherever mail is sent:

- ``console``: development sandbox, writes the message to the log
- ``smtp``: any SMTP relay (Ethereal, MailHog, a company server)
- ``brevo``: production delivery through the Brevo HTTP API
"""
import logging
import smtplib
import uuid
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

BREVO_URL = "https://api.brevo.com/v3/smtp/email"


class MailDeliveryError(Exception):
     """A message could not be rendered or handed to the mail transport."""


@dataclass(frozen=True)
class MailMessage:
     to: str
     subject: str
     html: str
     from_email: str
     from_name: str
     text: Optional[str] = None


class MailTransport(Protocol):
     def send(self, message: MailMessage) -> str:
          """Deliver ``message`` and return a provider message id."""
          ...


class ConsoleTransport:
     """Development sandbox: nothing leaves the process."""

     def send(self, message: MailMessage) -> str:
          logger.info(
               "Simulated mail delivery",
               extra={"to": message.to, "subject": message.subject},
          )
          logger.debug("Simulated mail body:\n%s", message.html or message.text or "")
          return "dev-mode"


class SmtpTransport:
     """An open-per-message session with an SMTP service."""

     def __init__(
          self,
          host: str,
          port: int = 587,
          username: Optional[str] = None,
          password: Optional[str] = None,
          starttls: bool = True,
          timeout: int = 10,
     ):
          self._host = host
          self._port = port
          self._username = username
          self._password = password
          self._starttls = starttls
          self._timeout = timeout

     def _build(self, message: MailMessage) -> EmailMessage:
          email = EmailMessage()
          email["From"] = formataddr((message.from_name, message.from_email))
          email["To"] = message.to
          email["Subject"] = message.subject
          email["Message-ID"] = f"<{uuid.uuid4()}@{message.from_email.split('@')[-1]}>"
          email.set_content(message.text or "This message requires an HTML capable mail client.")
          if message.html:
               email.add_alternative(message.html, subtype="html")
          return email

     def send(self, message: MailMessage) -> str:
          email = self._build(message)
          try:
               with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as conn:
                    if self._starttls:
                         conn.starttls()
                    if self._username:
                         conn.login(self._username, self._password or "")
                    conn.send_message(email)
          except (smtplib.SMTPException, OSError) as exc:
               raise MailDeliveryError(f"SMTP delivery to {self._host} failed: {exc}") from exc
          return email["Message-ID"]


class BrevoTransport:
     """Production delivery through the Brevo transactional email API."""

     def __init__(self, api_key: Optional[str], timeout: int = 10, session: Optional[requests.Session] = None):
          self._api_key = api_key
          self._timeout = timeout
          self._session = session or requests.Session()

     def send(self, message: MailMessage) -> str:
          if not self._api_key:
               raise MailDeliveryError("BREVO_API_KEY is not set")

          payload = {
               "sender": {"name": message.from_name, "email": message.from_email},
               "to": [{"email": message.to}],
               "subject": message.subject,
               "htmlContent": message.html,
          }
          if message.text:
               payload["textContent"] = message.text

          try:
               response = self._session.post(
                    BREVO_URL,
                    headers={
                         "api-key": self._api_key,
                         "Content-Type": "application/json",
                    },
                    json=payload,
                    timeout=self._timeout,
               )
          except requests.RequestException as exc:
               raise MailDeliveryError(f"Brevo request failed: {exc}") from exc

          if response.status_code not in (200, 201, 202):
               raise MailDeliveryError(f"Brevo error {response.status_code}: {response.text}")

          try:
               return response.json().get("messageId", "")
          except ValueError:
               return ""


def build_transport(settings) -> MailTransport:
     """Pick the transport named by ``settings.mail_transport``."""
     name = settings.mail_transport
     if name == "console":
          return ConsoleTransport()
     if name == "smtp":
          return SmtpTransport(
               host=settings.smtp_host,
               port=settings.smtp_port,
               username=settings.smtp_user,
               password=settings.smtp_password,
               starttls=settings.smtp_starttls,
          )
     if name == "brevo":
          return BrevoTransport(settings.brevo_api_key)
     raise ValueError(f"Unknown MAIL_TRANSPORT: {name!r}")
