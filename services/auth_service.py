# services/auth_service.py
"""
Auth Service - business logic for registration, login and account changes.

Every operation returns a ``Success`` or ``Failure`` value instead of raising
for expected outcomes, and takes the caller's identity as an explicit
``AuthContext`` argument. Only genuinely unexpected faults (database down,
programming errors) escape as exceptions.
"""
import logging
from datetime import timedelta
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import User, UserRole
from utils.datetime_utils import Clock, utcnow
from . import user_store
from .context import AuthContext
from .errors import (
     DuplicateEmailError,
     EmailNotVerifiedError,
     ForbiddenError,
     InvalidCredentialsError,
     NotFoundError,
     UnauthenticatedError,
     ValidationError,
)
from .notifications import NotificationSender
from .passwords import hash_password, pwd_context, validate_password_strength, verify_password
from .results import Failure, Result, Success
from .tokens import TokenIssuer
from .verification import DEFAULT_TTL, AuthSession, VerificationFlow

logger = logging.getLogger(__name__)


def _check_email(email: str) -> Optional[ValidationError]:
     try:
          validate_email(email, check_deliverability=False)
     except EmailNotValidError:
          return ValidationError("Please enter a valid email address")
     return None


def _check_name(name: str) -> Optional[ValidationError]:
     if not name:
          return ValidationError("Name is required")
     if len(name) > 255:
          return ValidationError("Name must be at most 255 characters")
     return None


def _check_password(password: str) -> Optional[ValidationError]:
     problems = validate_password_strength(password or "")
     if problems:
          return ValidationError(problems[0])
     return None


class AuthService:
     """Service class for account-related business logic."""

     def __init__(
          self,
          db: Session,
          tokens: TokenIssuer,
          notifier: NotificationSender,
          clock: Clock = utcnow,
          verification_ttl: timedelta = DEFAULT_TTL,
     ):
          self.db = db
          self.tokens = tokens
          self.notifier = notifier
          self.clock = clock
          self.verification = VerificationFlow(
               db, tokens, notifier, clock=clock, ttl=verification_ttl
          )

     def _company_for(self, caller: Optional[AuthContext], requested: Optional[str]) -> Result[Optional[str]]:
          """
          Decide which company a newly registered user belongs to.

          - SUPER_ADMIN: the requested company, which must exist
          - ADMIN: the admin's own company
          - anyone else: no company
          """
          if caller is None:
               return Success(None)
          if caller.role == UserRole.SUPER_ADMIN:
               if requested is None:
                    return Success(None)
               if user_store.get_company(self.db, requested) is None:
                    return Failure(ValidationError("Company not found"))
               return Success(requested)
          if caller.role == UserRole.ADMIN:
               return Success(caller.company_id)
          return Success(None)

     def register(
          self,
          email: str,
          password: str,
          name: str,
          company_id: Optional[str] = None,
          caller: Optional[AuthContext] = None,
     ) -> Result[User]:
          """
          Create an unverified EMPLOYEE account and mail its verification link.

          A failure to deliver the email is logged but does not undo the
          account; the user can ask for the link again.

          Args:
               email: address to register, stored lowercase
               password: plain password, checked against the policy
               name: display name
               company_id: only honored for SUPER_ADMIN callers
               caller: identity of the requester, None when anonymous

          Returns:
               Success(User) or Failure(ValidationError | DuplicateEmailError)
          """
          email = user_store.normalize_email(email or "")
          name = (name or "").strip()

          for problem in (_check_email(email), _check_name(name), _check_password(password)):
               if problem is not None:
                    return Failure(problem)

          if user_store.email_in_use(self.db, email):
               logger.info("Registration rejected: duplicate email", extra={"email": email})
               return Failure(DuplicateEmailError())

          company = self._company_for(caller, company_id)
          if not company.is_success:
               return company

          token, expiry = self.verification.new_token()
          try:
               user = user_store.create_user(
                    self.db,
                    email=email,
                    password_hash=hash_password(password),
                    name=name,
                    role=UserRole.EMPLOYEE,
                    company_id=company.value,
                    is_email_verified=False,
                    verification_token=token,
                    verification_token_expiry=expiry,
               )
               # the emailed link must point at a saved account
               self.db.commit()
          except IntegrityError:
               self.db.rollback()
               logger.info("Registration lost a race on a duplicate email", extra={"email": email})
               return Failure(DuplicateEmailError())

          logger.info("User registered", extra={"user_id": user.id, "email": user.email})

          try:
               self.notifier.send_verification_email(user, token)
          except Exception:
               logger.exception(
                    "Verification email failed after registration",
                    extra={"user_id": user.id, "email": user.email},
               )

          return Success(user)

     def login(self, email: str, password: str) -> Result[AuthSession]:
          """
          Check credentials and issue a session token.

          Unknown addresses and wrong passwords produce the same error. An
          unverified account gets its own error carrying the address so the
          client can offer to resend the link.

          The address is matched exactly as stored, case included.
          """
          email = email or ""
          user = user_store.get_user_by_email(self.db, email)

          if user is None:
               # keep response time in line with a real hash comparison
               pwd_context.dummy_verify()
               logger.info("Login failed: unknown email", extra={"email": email})
               return Failure(InvalidCredentialsError())

          if not verify_password(password, user.password):
               logger.info("Login failed: wrong password", extra={"user_id": user.id})
               return Failure(InvalidCredentialsError())

          if not user.is_email_verified:
               logger.info("Login refused: email not verified", extra={"user_id": user.id})
               return Failure(EmailNotVerifiedError(user.email))

          logger.info("Login succeeded", extra={"user_id": user.id, "role": user.role.value})
          return Success(AuthSession(user=user, token=self.tokens.issue(user)))

     def get_current_user(self, caller: Optional[AuthContext]) -> Result[User]:
          if caller is None:
               return Failure(UnauthenticatedError())
          user = user_store.get_user_by_id(self.db, caller.user_id)
          if user is None:
               return Failure(NotFoundError())
          return Success(user)

     def change_password(
          self,
          caller: Optional[AuthContext],
          current_password: str,
          new_password: str,
     ) -> Result[None]:
          """
          Replace the caller's password after checking the current one.

          The stored hash is only written once the current password matches
          and the new one passes the policy.
          """
          if caller is None:
               return Failure(UnauthenticatedError())
          if not current_password:
               return Failure(ValidationError("Current password is required"))

          problem = _check_password(new_password)
          if problem is not None:
               return Failure(problem)

          user = user_store.get_user_by_id(self.db, caller.user_id)
          if user is None:
               return Failure(NotFoundError())

          if not verify_password(current_password, user.password):
               logger.info("Password change refused: wrong current password", extra={"user_id": user.id})
               return Failure(InvalidCredentialsError("Current password is incorrect"))

          user_store.update_password(self.db, user, hash_password(new_password))
          logger.info("Password changed", extra={"user_id": user.id})
          return Success(None)

     def update_profile(self, caller: Optional[AuthContext], name: str, email: str) -> Result[User]:
          if caller is None:
               return Failure(UnauthenticatedError())

          email = user_store.normalize_email(email or "")
          name = (name or "").strip()
          for problem in (_check_name(name), _check_email(email)):
               if problem is not None:
                    return Failure(problem)

          user = user_store.get_user_by_id(self.db, caller.user_id)
          if user is None:
               return Failure(NotFoundError())

          if user_store.email_in_use(self.db, email, exclude_user_id=user.id):
               return Failure(DuplicateEmailError("This email address is already in use"))

          try:
               user_store.update_profile(self.db, user, name=name, email=email)
          except IntegrityError:
               self.db.rollback()
               return Failure(DuplicateEmailError("This email address is already in use"))

          logger.info("Profile updated", extra={"user_id": user.id})
          return Success(user)

     def setup_admin(self, email: str, password: str, name: str) -> Result[AuthSession]:
          """
          Bootstrap the first ADMIN account.

          Only works while no ADMIN exists. The account is created verified
          since there is nobody yet who could have invited it.
          """
          email = user_store.normalize_email(email or "")
          name = (name or "").strip()
          for problem in (_check_email(email), _check_name(name), _check_password(password)):
               if problem is not None:
                    return Failure(problem)

          if user_store.admin_exists(self.db):
               logger.info("Admin setup refused: an admin already exists")
               return Failure(ForbiddenError("An administrator already exists; setup is no longer available"))

          if user_store.email_in_use(self.db, email):
               return Failure(DuplicateEmailError())

          try:
               admin = user_store.create_user(
                    self.db,
                    email=email,
                    password_hash=hash_password(password),
                    name=name,
                    role=UserRole.ADMIN,
                    is_email_verified=True,
               )
          except IntegrityError:
               self.db.rollback()
               return Failure(DuplicateEmailError())

          logger.info("Initial admin created", extra={"user_id": admin.id, "email": admin.email})
          return Success(AuthSession(user=admin, token=self.tokens.issue(admin)))
