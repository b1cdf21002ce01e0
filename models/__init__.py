# models/__init__.py
from .base import Base
from .company import Company
from .user import User, UserRole

__all__ = [
     "Base",
     "Company",
     "User",
     "UserRole",
]
