# services/user_store.py
"""
Credential Store - every read and write of ``User`` rows.

Functions take the request's SQLAlchemy session first and flush rather than
commit; the session dependency owns the transaction. Checks that must hold
under concurrent requests ("token still valid") are written as a single
conditional UPDATE so the database row lock decides the winner.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from models import Company, User, UserRole


def normalize_email(email: str) -> str:
     """Canonical stored form of an email address."""
     return email.strip().lower()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
     return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
     """Exact match against the stored address."""
     return db.query(User).filter(User.email == email).first()


def email_in_use(db: Session, email: str, exclude_user_id: Optional[str] = None) -> bool:
     """True if another user already owns ``email``."""
     query = db.query(User.id).filter(User.email == email)
     if exclude_user_id is not None:
          query = query.filter(User.id != exclude_user_id)
     return query.first() is not None


def admin_exists(db: Session) -> bool:
     return db.query(User.id).filter(User.role == UserRole.ADMIN).first() is not None


def get_company(db: Session, company_id: Optional[str]) -> Optional[Company]:
     if not company_id:
          return None
     return db.query(Company).filter(Company.id == company_id).first()


def create_user(
     db: Session,
     *,
     email: str,
     password_hash: str,
     name: str,
     role: UserRole = UserRole.EMPLOYEE,
     company_id: Optional[str] = None,
     is_email_verified: bool = False,
     verification_token: Optional[str] = None,
     verification_token_expiry: Optional[datetime] = None,
) -> User:
     """
     Insert a new user.

     Raises:
          sqlalchemy.exc.IntegrityError: email already taken by a concurrent insert
     """
     if (verification_token is None) != (verification_token_expiry is None):
          raise ValueError("verification token and expiry must be set together")
     if is_email_verified and verification_token is not None:
          raise ValueError("a verified user cannot carry a verification token")

     user = User(
          email=email,
          password=password_hash,
          name=name,
          role=role,
          company_id=company_id,
          is_email_verified=is_email_verified,
          verification_token=verification_token,
          verification_token_expiry=verification_token_expiry,
     )
     db.add(user)
     db.flush()
     db.refresh(user)
     return user


def set_verification_token(db: Session, user: User, token: str, expiry: datetime) -> User:
     """Replace any pending verification token; the previous one stops working."""
     user.verification_token = token
     user.verification_token_expiry = expiry
     db.flush()
     return user


def consume_verification_token(db: Session, user_id: str, token: str, now: datetime) -> bool:
     """
     Mark the user verified if ``token`` is still the live token.

     Loaded ``User`` objects are not updated; refresh them afterwards.

     Returns:
          True if exactly this call flipped the user to verified.
     """
     stmt = (
          update(User)
          .where(
               User.id == user_id,
               User.is_email_verified.is_(False),
               User.verification_token == token,
               User.verification_token_expiry >= now,
          )
          .values(
               is_email_verified=True,
               verification_token=None,
               verification_token_expiry=None,
          )
          .execution_options(synchronize_session=False)
     )
     result = db.execute(stmt)
     return result.rowcount == 1


def update_password(db: Session, user: User, password_hash: str) -> User:
     user.password = password_hash
     db.flush()
     return user


def update_profile(db: Session, user: User, name: str, email: str) -> User:
     user.name = name
     user.email = email
     db.flush()
     return user
