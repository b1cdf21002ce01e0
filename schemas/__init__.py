# schemas/__init__.py
from .auth import (
     RegisterRequest,
     SetupAdminRequest,
     LoginRequest,
     VerifyEmailRequest,
     ResendVerificationRequest,
     ProfileUpdateRequest,
     PasswordChangeRequest,
     UserResponse,
     AuthData,
     RegisterData,
     SuccessResponse,
     ErrorResponse,
)

__all__ = [
     "RegisterRequest",
     "SetupAdminRequest",
     "LoginRequest",
     "VerifyEmailRequest",
     "ResendVerificationRequest",
     "ProfileUpdateRequest",
     "PasswordChangeRequest",
     "UserResponse",
     "AuthData",
     "RegisterData",
     "SuccessResponse",
     "ErrorResponse",
]
