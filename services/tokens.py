# services/tokens.py
"""
Session token issuer.

Tokens are HS256 JWTs carrying ``userId``, ``companyId`` and ``role``. They
are not stored anywhere; expiry is enforced when a request presents one.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt

from models import UserRole
from .errors import TokenError
from utils.datetime_utils import Clock, to_epoch, utcnow


@dataclass(frozen=True)
class SessionClaims:
     user_id: str
     company_id: Optional[str]
     role: UserRole
     issued_at: int
     expires_at: int


class TokenIssuer:
     """Create and check signed session tokens."""

     def __init__(
          self,
          secret: str,
          algorithm: str = "HS256",
          ttl: timedelta = timedelta(hours=24),
          clock: Clock = utcnow,
     ):
          if not secret:
               raise ValueError("A signing secret is required")
          self.secret = secret
          self.algorithm = algorithm
          self.ttl = ttl
          self.clock = clock

     def issue(self, user) -> str:
          """Mint a token for ``user`` (anything with id, company_id and role)."""
          now = self.clock()
          role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
          payload = {
               "userId": user.id,
               "companyId": user.company_id,
               "role": role,
               "iat": to_epoch(now),
               "exp": to_epoch(now + self.ttl),
          }
          return jwt.encode(payload, self.secret, algorithm=self.algorithm)

     def decode(self, token: str) -> SessionClaims:
          """
          Verify the signature and expiry of ``token``.

          Expiry is checked against this issuer's clock rather than the wall
          clock so both sides of a test agree on "now".

          Raises:
               TokenError: bad signature, malformed token, missing claims or expired
          """
          try:
               payload = jwt.decode(
                    token,
                    self.secret,
                    algorithms=[self.algorithm],
                    options={"verify_exp": False},
               )
          except JWTError as exc:
               raise TokenError(str(exc)) from exc

          try:
               user_id = payload["userId"]
               role = UserRole(payload["role"])
               issued_at = int(payload["iat"])
               expires_at = int(payload["exp"])
          except (KeyError, ValueError, TypeError) as exc:
               raise TokenError("Token is missing required claims") from exc

          if not user_id:
               raise TokenError("Token is missing required claims")
          if to_epoch(self.clock()) >= expires_at:
               raise TokenError("Token has expired")

          return SessionClaims(
               user_id=user_id,
               company_id=payload.get("companyId"),
               role=role,
               issued_at=issued_at,
               expires_at=expires_at,
          )
