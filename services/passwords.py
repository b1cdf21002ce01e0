# services/passwords.py
"""
Password hashing and the password complexity policy.

Hashes are bcrypt via passlib. The policy is checked before any password is
hashed: registration, admin setup and password change all go through
``validate_password_strength``.
"""
import re
from typing import List

from passlib.context import CryptContext

# Bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes
MAX_BYTES = 72

COMMON_PASSWORDS = frozenset({
     "password", "password1", "password123", "password1!", "p@ssw0rd", "p@ssword1",
     "123456", "12345678", "123456789", "1234567890", "qwerty", "qwerty123",
     "qwerty1!", "abc123", "abcd1234", "111111", "000000", "letmein",
     "letmein1!", "welcome", "welcome1", "welcome1!", "welcome123", "admin",
     "admin123", "admin@123", "iloveyou", "monkey", "dragon", "sunshine",
     "football", "baseball", "passw0rd!", "changeme", "changeme1!", "trustno1",
     "qazwsx", "zaq12wsx", "1q2w3e4r", "1qaz2wsx",
})

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile(r"[^A-Za-z0-9]")


def hash_password(password: str) -> str:
     return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
     """Compare a plain password against a stored hash; malformed hashes never match."""
     if not password or not hashed:
          return False
     try:
          return pwd_context.verify(password, hashed)
     except (ValueError, TypeError):
          return False


def validate_password_strength(password: str) -> List[str]:
     """
     Check a candidate password against the policy.

     Returns:
          List of violation messages, in policy order. Empty when the password
          is acceptable.
     """
     problems = []
     if len(password) < MIN_LENGTH:
          problems.append(f"Password must be at least {MIN_LENGTH} characters long")
     if len(password.encode("utf-8")) > MAX_BYTES:
          problems.append(f"Password must be at most {MAX_BYTES} bytes long")
     if not _UPPER.search(password):
          problems.append("Password must contain at least one uppercase letter")
     if not _LOWER.search(password):
          problems.append("Password must contain at least one lowercase letter")
     if not _DIGIT.search(password):
          problems.append("Password must contain at least one digit")
     if not _SPECIAL.search(password):
          problems.append("Password must contain at least one special character")
     if password.lower() in COMMON_PASSWORDS:
          problems.append("Password is too common")
     return problems
