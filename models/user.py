# models/user.py
import enum
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship
from .base import Base, new_uuid


class UserRole(str, enum.Enum):
     """Privilege level of a user."""
     EMPLOYEE = "EMPLOYEE"
     ADMIN = "ADMIN"
     SUPER_ADMIN = "SUPER_ADMIN"


class User(Base):
     """
     User model - central authentication table.

     ``verification_token`` and ``verification_token_expiry`` are set and
     cleared together; a verified user has neither.
     """
     __tablename__ = "users"
     __table_args__ = (
          CheckConstraint(
               "(verification_token IS NULL AND verification_token_expiry IS NULL) "
               "OR (verification_token IS NOT NULL AND verification_token_expiry IS NOT NULL)",
               name="ck_users_verification_token_pair",
          ),
     )

     id = Column(String(36), primary_key=True, default=new_uuid)
     email = Column(String(255), unique=True, nullable=False, index=True)
     password = Column(String(255), nullable=False)
     name = Column(String(255), nullable=False)
     role = Column(
          Enum(UserRole, name="user_role", create_constraint=True),
          default=UserRole.EMPLOYEE,
          nullable=False,
          index=True
     )
     company_id = Column(
          String(36),
          ForeignKey("companies.id", ondelete="SET NULL"),
          nullable=True,
          index=True
     )

     # Email verification
     is_email_verified = Column(Boolean, default=False, nullable=False)
     verification_token = Column(String(64), nullable=True)
     verification_token_expiry = Column(DateTime, nullable=True)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     company = relationship("Company", back_populates="users")

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"

     @property
     def has_pending_verification(self) -> bool:
          return self.verification_token is not None and self.verification_token_expiry is not None
