# services/__init__.py
from .errors import (
     AuthError,
     ValidationError,
     DuplicateEmailError,
     InvalidCredentialsError,
     EmailNotVerifiedError,
     UnauthenticatedError,
     ForbiddenError,
     NotFoundError,
     AlreadyVerifiedError,
     InvalidOrExpiredTokenError,
     ServerError,
     TokenError,
)
from .results import Success, Failure, Result
from .tokens import TokenIssuer, SessionClaims
from .context import AuthContext
from .notifications import NotificationSender
from .verification import VerificationFlow, AuthSession
from .auth_service import AuthService

__all__ = [
     "AuthError",
     "ValidationError",
     "DuplicateEmailError",
     "InvalidCredentialsError",
     "EmailNotVerifiedError",
     "UnauthenticatedError",
     "ForbiddenError",
     "NotFoundError",
     "AlreadyVerifiedError",
     "InvalidOrExpiredTokenError",
     "ServerError",
     "TokenError",
     "Success",
     "Failure",
     "Result",
     "TokenIssuer",
     "SessionClaims",
     "AuthContext",
     "NotificationSender",
     "VerificationFlow",
     "AuthSession",
     "AuthService",
]
