# routers/responses.py
from typing import Any, Optional

from fastapi import status
from fastapi.responses import JSONResponse

from services import AuthError


def ok(data: Any = None, message: Optional[str] = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
     """Success envelope: ``{"status": "success", "message"?, "data"?}``."""
     body = {"status": "success"}
     if message:
          body["message"] = message
     if data is not None:
          body["data"] = data
     return JSONResponse(status_code=status_code, content=body)


def error_response(error: AuthError) -> JSONResponse:
     """
     Error envelope for an ``AuthError``, whether it came back in a
     ``Failure`` or was raised by a dependency.

     401 responses carry ``WWW-Authenticate: Bearer``.
     """
     headers = {"WWW-Authenticate": "Bearer"} if error.status_code == status.HTTP_401_UNAUTHORIZED else None
     return JSONResponse(status_code=error.status_code, content=error.to_body(), headers=headers)
