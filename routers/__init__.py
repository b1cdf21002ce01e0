# routers/__init__.py
from .auth import router as auth_router

__all__ = [
     "auth_router",
]
