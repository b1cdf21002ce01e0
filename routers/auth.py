# routers/auth.py
"""
Auth API routes.

POST /api/auth/register             create an account (admin callers assign a company)
POST /api/auth/login                exchange credentials for a session token
GET  /api/auth/me                   current user
POST /api/auth/verify-email         consume a verification token, returns a session token
POST /api/auth/resend-verification  mail a new verification link
PUT  /api/auth/profile              change name / email
PUT  /api/auth/password             change password
POST /api/auth/setup                create the first administrator
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from models import User
from schemas.auth import (
     AuthData,
     ErrorResponse,
     LoginRequest,
     PasswordChangeRequest,
     ProfileUpdateRequest,
     RegisterData,
     RegisterRequest,
     ResendVerificationRequest,
     SetupAdminRequest,
     SuccessResponse,
     UserResponse,
     VerifyEmailRequest,
)
from services import AuthContext, AuthService, AuthSession, Failure
from .deps import get_auth_context, get_auth_service, get_optional_auth_context
from .responses import error_response, ok

router = APIRouter(prefix="/api/auth", tags=["auth"])

ERROR_RESPONSES = {
     400: {"model": ErrorResponse},
     401: {"model": ErrorResponse},
     403: {"model": ErrorResponse},
     404: {"model": ErrorResponse},
}

RESEND_MESSAGE = "If the address belongs to an unverified account, a new verification email has been sent"


def _user_body(user: User) -> dict:
     return UserResponse.model_validate(user).model_dump(mode="json", by_alias=True)


def _session_body(session: AuthSession) -> dict:
     return {"user": _user_body(session.user), "token": session.token}


@router.post(
     "/register",
     response_model=SuccessResponse[RegisterData],
     status_code=status.HTTP_201_CREATED,
     responses=ERROR_RESPONSES,
     summary="Register a new user",
)
def register(
     body: RegisterRequest,
     service: AuthService = Depends(get_auth_service),
     caller: Optional[AuthContext] = Depends(get_optional_auth_context),
):
     """
     Create an EMPLOYEE account and send its verification email.

     - **companyId**: honored only when the caller is a SUPER_ADMIN; ADMIN
       callers always assign their own company
     """
     result = service.register(
          email=body.email,
          password=body.password,
          name=body.name,
          company_id=body.company_id,
          caller=caller,
     )
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(
          {"user": _user_body(result.value)},
          message="User created; a verification email has been sent",
          status_code=status.HTTP_201_CREATED,
     )


@router.post(
     "/login",
     response_model=SuccessResponse[AuthData],
     responses=ERROR_RESPONSES,
     summary="Log in",
)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
     result = service.login(body.email, body.password)
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(_session_body(result.value))


@router.get(
     "/me",
     response_model=SuccessResponse[UserResponse],
     responses=ERROR_RESPONSES,
     summary="Current user",
)
def me(
     caller: AuthContext = Depends(get_auth_context),
     service: AuthService = Depends(get_auth_service),
):
     result = service.get_current_user(caller)
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(_user_body(result.value))


@router.post(
     "/verify-email",
     response_model=SuccessResponse[AuthData],
     responses=ERROR_RESPONSES,
     summary="Verify an email address",
)
def verify_email(body: VerifyEmailRequest, service: AuthService = Depends(get_auth_service)):
     result = service.verification.verify_email(body.user_id, body.token)
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(_session_body(result.value), message="Email address verified")


@router.post(
     "/resend-verification",
     response_model=SuccessResponse[None],
     responses=ERROR_RESPONSES,
     summary="Resend the verification email",
)
def resend_verification(body: ResendVerificationRequest, service: AuthService = Depends(get_auth_service)):
     result = service.verification.resend_verification(body.email)
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(message=RESEND_MESSAGE)


@router.put(
     "/profile",
     response_model=SuccessResponse[UserResponse],
     responses=ERROR_RESPONSES,
     summary="Update profile",
)
def update_profile(
     body: ProfileUpdateRequest,
     caller: AuthContext = Depends(get_auth_context),
     service: AuthService = Depends(get_auth_service),
):
     result = service.update_profile(caller, name=body.name, email=body.email)
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(_user_body(result.value))


@router.put(
     "/password",
     response_model=SuccessResponse[None],
     responses=ERROR_RESPONSES,
     summary="Change password",
)
def change_password(
     body: PasswordChangeRequest,
     caller: AuthContext = Depends(get_auth_context),
     service: AuthService = Depends(get_auth_service),
):
     result = service.change_password(caller, body.current_password, body.new_password)
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(message="Password changed")


@router.post(
     "/setup",
     response_model=SuccessResponse[AuthData],
     status_code=status.HTTP_201_CREATED,
     responses=ERROR_RESPONSES,
     summary="Create the first administrator",
)
def setup_admin(body: SetupAdminRequest, service: AuthService = Depends(get_auth_service)):
     result = service.setup_admin(body.email, body.password, body.name)
     if isinstance(result, Failure):
          return error_response(result.error)
     return ok(_session_body(result.value), status_code=status.HTTP_201_CREATED)
