# services/context.py
from dataclasses import dataclass
from typing import Optional

from models import UserRole
from .tokens import SessionClaims


@dataclass(frozen=True)
class AuthContext:
     """Identity of the caller, resolved from the session token for one request."""

     user_id: str
     company_id: Optional[str]
     role: UserRole

     @classmethod
     def from_claims(cls, claims: SessionClaims) -> "AuthContext":
          return cls(user_id=claims.user_id, company_id=claims.company_id, role=claims.role)

     def has_role(self, *roles: UserRole) -> bool:
          return self.role in roles
