# services/verification.py
"""
Verification Flow - single-use email verification tokens.

User verification states:

     UNVERIFIED --verify_email--> VERIFIED
     UNVERIFIED --resend_verification--> UNVERIFIED (new token, old one dead)

Nothing leaves VERIFIED.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Tuple

from sqlalchemy.orm import Session

from models import User
from utils.datetime_utils import Clock, utcnow
from utils.mail import MailDeliveryError
from . import user_store
from .errors import (
     AlreadyVerifiedError,
     InvalidOrExpiredTokenError,
     NotFoundError,
     ServerError,
)
from .notifications import NotificationSender
from .results import Failure, Result, Success
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class AuthSession:
     """A user together with a freshly issued session token."""
     user: User
     token: str


class VerificationFlow:
     """Issue, check and re-send email verification tokens."""

     def __init__(
          self,
          db: Session,
          tokens: TokenIssuer,
          notifier: NotificationSender,
          clock: Clock = utcnow,
          ttl: timedelta = DEFAULT_TTL,
     ):
          self.db = db
          self.tokens = tokens
          self.notifier = notifier
          self.clock = clock
          self.ttl = ttl

     def new_token(self) -> Tuple[str, datetime]:
          """A fresh random token and its expiry."""
          return str(uuid.uuid4()), self.clock() + self.ttl

     def verify_email(self, user_id: str, token: str) -> Result[AuthSession]:
          """
          Consume ``token`` for ``user_id`` and log the user in.

          Returns:
               Success(AuthSession) or Failure with NotFoundError,
               AlreadyVerifiedError or InvalidOrExpiredTokenError.
          """
          user = user_store.get_user_by_id(self.db, user_id)
          if user is None:
               return Failure(NotFoundError())
          if user.is_email_verified:
               return Failure(AlreadyVerifiedError())

          now = self.clock()
          if (
               not user.has_pending_verification
               or user.verification_token != token
               or now > user.verification_token_expiry
          ):
               logger.info("Rejected verification token", extra={"user_id": user_id})
               return Failure(InvalidOrExpiredTokenError())

          if not user_store.consume_verification_token(self.db, user_id, token, now):
               # another request consumed or replaced the token first
               logger.info("Verification token lost a concurrent update", extra={"user_id": user_id})
               return Failure(InvalidOrExpiredTokenError())

          self.db.refresh(user)
          logger.info("Email verified", extra={"user_id": user.id, "email": user.email})
          return Success(AuthSession(user=user, token=self.tokens.issue(user)))

     def resend_verification(self, email: str) -> Result[None]:
          """
          Issue a new token for ``email`` and mail it.

          Unknown addresses succeed without sending anything so the endpoint
          cannot be used to probe which addresses are registered.
          """
          user = user_store.get_user_by_email(self.db, user_store.normalize_email(email or ""))
          if user is None:
               logger.info("Verification resend for unknown address ignored")
               return Success(None)
          if user.is_email_verified:
               return Failure(AlreadyVerifiedError())

          token, expiry = self.new_token()
          user_store.set_verification_token(self.db, user, token, expiry)
          # commit before sending so the mailed token is the stored one
          self.db.commit()

          try:
               self.notifier.send_verification_email(user, token)
          except MailDeliveryError:
               logger.exception("Verification resend failed", extra={"user_id": user.id})
               return Failure(ServerError("Failed to send the verification email"))

          return Success(None)
