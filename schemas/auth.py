# schemas/auth.py
"""
Pydantic schemas for the auth API request/response validation.

The JSON contract uses camelCase names (``companyId``, ``isEmailVerified``)
because that is what the web client sends and reads.
"""
from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from models import UserRole

T = TypeVar("T")


class CamelModel(BaseModel):
     model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
     """Schema for creating a new account."""
     email: EmailStr = Field(..., description="Login email address")
     password: str = Field(..., description="Must satisfy the password policy")
     name: str = Field(..., min_length=1, max_length=255, description="Display name")
     company_id: Optional[str] = Field(None, description="Only honored for SUPER_ADMIN callers")

     model_config = ConfigDict(
          alias_generator=to_camel,
          populate_by_name=True,
          json_schema_extra={
               "example": {
                    "email": "a@x.com",
                    "password": "Abc12345!",
                    "name": "Ann",
               }
          }
     )


class SetupAdminRequest(CamelModel):
     """Schema for bootstrapping the first administrator."""
     email: EmailStr
     password: str
     name: str = Field(..., min_length=1, max_length=255)


class LoginRequest(CamelModel):
     # matched verbatim against the stored address, so not normalized here
     email: str = Field(..., min_length=1, max_length=255)
     password: str = Field(..., min_length=1, description="Password is required")


class VerifyEmailRequest(CamelModel):
     token: str = Field(..., min_length=1)
     user_id: str = Field(..., min_length=1)


class ResendVerificationRequest(CamelModel):
     email: EmailStr


class ProfileUpdateRequest(CamelModel):
     name: str = Field(..., min_length=1, max_length=255)
     email: EmailStr


class PasswordChangeRequest(CamelModel):
     current_password: str = Field(..., min_length=1)
     new_password: str


class UserResponse(CamelModel):
     """A user as returned to clients. Password and verification token never appear."""
     id: str
     email: str
     name: str
     role: UserRole
     company_id: Optional[str] = None
     is_email_verified: bool
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(
          alias_generator=to_camel,
          populate_by_name=True,
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": "5f0c2f9e-8d5b-4bb2-9d55-3c1f1d2d8a10",
                    "email": "a@x.com",
                    "name": "Ann",
                    "role": "EMPLOYEE",
                    "companyId": None,
                    "isEmailVerified": False,
                    "createdAt": "2026-01-31T10:30:00",
                    "updatedAt": "2026-01-31T10:30:00",
               }
          }
     )


class AuthData(CamelModel):
     user: UserResponse
     token: str


class RegisterData(CamelModel):
     user: UserResponse


class SuccessResponse(CamelModel, Generic[T]):
     """Envelope for successful responses."""
     status: str = "success"
     message: Optional[str] = None
     data: Optional[T] = None


class ErrorResponse(CamelModel):
     """Envelope for failed responses."""
     status: str = "error"
     message: str
     needs_verification: Optional[bool] = None
     email: Optional[str] = None
