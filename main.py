import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from app_logging import setup_logger
from config import Settings, settings as default_settings
from database import check_connection, get_session, init_db
from routers import auth_router
from routers.responses import error_response
from services import AuthError, NotificationSender, ServerError, TokenIssuer
from utils.datetime_utils import Clock, utcnow
from utils.mail import MailTransport, build_transport

logger = logging.getLogger(__name__)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[MailTransport] = None,
    clock: Clock = utcnow,
    create_tables: Optional[bool] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Build the API. Collaborators are chosen here once and shared by every request."""
    settings = settings or default_settings
    if configure_logging:
        setup_logger(settings.log_level, settings.log_format)
    if create_tables is None:
        create_tables = settings.app_env == "development"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            init_db()
        if not check_connection():
            logger.warning("Database is not reachable at startup")
        logger.info("Auth API started", extra={"env": settings.app_env, "mail_transport": settings.mail_transport})
        yield

    app = FastAPI(title="Pocket Attendance Auth API", lifespan=lifespan)

    # Startup-time collaborators
    app.state.settings = settings
    app.state.clock = clock
    app.state.verification_ttl = timedelta(hours=settings.verification_token_ttl_hours)
    app.state.token_issuer = TokenIssuer(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(hours=settings.session_token_ttl_hours),
        clock=clock,
    )
    app.state.notifier = NotificationSender.from_settings(
        settings, transport if transport is not None else build_transport(settings)
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "message": _first_validation_message(exc)},
        )

    # 404 Fallback
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Route not found"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(ServerError())

    app.include_router(auth_router)

    @app.get("/")
    def read_root():
        return {"message": "Pocket Attendance Auth API is running"}

    @app.get("/api/health")
    def health(db: Session = Depends(get_session)):
        db.execute(text("SELECT 1"))
        return {"status": "success", "database": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=default_settings.port, reload=not default_settings.is_production)
