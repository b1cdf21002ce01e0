# services/errors.py
"""
Error taxonomy for the auth flow.

Each class knows its HTTP status and the message shown to the client.
Service operations hand these back inside ``Failure`` values; the access
dependencies raise them directly and the app-level handler renders them.
"""
from typing import Any, Dict, Optional


class AuthError(Exception):
     """Base class for every client-visible auth failure."""

     status_code: int = 400
     default_message: str = "Request failed"

     def __init__(self, message: Optional[str] = None):
          self.message = message or self.default_message
          super().__init__(self.message)

     def to_body(self) -> Dict[str, Any]:
          return {"status": "error", "message": self.message}

     def __repr__(self):
          return f"{type(self).__name__}({self.message!r})"


class ValidationError(AuthError):
     status_code = 400
     default_message = "Invalid input"


class DuplicateEmailError(AuthError):
     status_code = 400
     default_message = "This email address is already registered"


class InvalidCredentialsError(AuthError):
     status_code = 401
     default_message = "Incorrect email address or password"


class EmailNotVerifiedError(AuthError):
     status_code = 403
     default_message = "Email address has not been verified. Please check your verification email."

     def __init__(self, email: str, message: Optional[str] = None):
          super().__init__(message)
          self.email = email

     def to_body(self) -> Dict[str, Any]:
          body = super().to_body()
          body["needsVerification"] = True
          body["email"] = self.email
          return body

     def __eq__(self, other):
          return super().__eq__(other) and self.email == other.email

     def __hash__(self):
          return hash((type(self), self.message, self.email))


class UnauthenticatedError(AuthError):
     status_code = 401
     default_message = "Authentication required"


class ForbiddenError(AuthError):
     status_code = 403
     default_message = "You do not have permission to perform this action"


class NotFoundError(AuthError):
     status_code = 404
     default_message = "User not found"


class InvalidOrExpiredTokenError(AuthError):
     status_code = 400
     default_message = "Invalid or expired verification token"


class AlreadyVerifiedError(InvalidOrExpiredTokenError):
     """
     The account is verified already.

     Once verified a user holds no verification token, so any token presented
     for it is also an invalid one.
     """
     status_code = 400
     default_message = "This email address has already been verified"


class ServerError(AuthError):
     status_code = 500
     default_message = "An unexpected error occurred"


class TokenError(Exception):
     """A session token could not be decoded (bad signature, malformed, expired)."""
