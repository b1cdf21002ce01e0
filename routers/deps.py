# routers/deps.py
"""
Request dependencies shared by the routers.

Resolves the bearer session token into an ``AuthContext`` and wires the
services to the collaborators built once at startup (token issuer,
notification sender, clock), which live on ``app.state``.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from database import get_session
from models import UserRole
from services import (
     AuthContext,
     AuthService,
     ForbiddenError,
     NotificationSender,
     TokenError,
     TokenIssuer,
     UnauthenticatedError,
)

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_issuer(request: Request) -> TokenIssuer:
     return request.app.state.token_issuer


def get_notifier(request: Request) -> NotificationSender:
     return request.app.state.notifier


def get_auth_service(
     request: Request,
     db: Session = Depends(get_session),
     tokens: TokenIssuer = Depends(get_token_issuer),
     notifier: NotificationSender = Depends(get_notifier),
) -> AuthService:
     state = request.app.state
     return AuthService(
          db,
          tokens,
          notifier,
          clock=state.clock,
          verification_ttl=state.verification_ttl,
     )


def get_optional_auth_context(
     credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
     tokens: TokenIssuer = Depends(get_token_issuer),
) -> Optional[AuthContext]:
     """
     Identity of the caller, or None when no bearer token was sent.

     A token that is present but invalid or expired is rejected rather than
     treated as anonymous.
     """
     if credentials is None:
          return None
     try:
          claims = tokens.decode(credentials.credentials)
     except TokenError as exc:
          logger.info("Rejected session token: %s", exc)
          raise UnauthenticatedError("Invalid or expired session token")
     return AuthContext.from_claims(claims)


def get_auth_context(
     context: Optional[AuthContext] = Depends(get_optional_auth_context),
) -> AuthContext:
     if context is None:
          raise UnauthenticatedError()
     return context


def require_roles(*roles: UserRole) -> Callable[..., AuthContext]:
     """
     Dependency factory gating a route on the caller's role.

     Usage:
          @router.get("/admin-only")
          def admin_only(ctx: AuthContext = Depends(require_roles(UserRole.ADMIN))):
               ...
     """
     allowed = frozenset(roles)

     def dependency(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
          if not context.has_role(*allowed):
               logger.info(
                    "Forbidden: role %s not in %s",
                    context.role.value,
                    sorted(r.value for r in allowed),
               )
               raise ForbiddenError()
          return context

     return dependency
