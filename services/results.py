# services/results.py
"""
Typed result values returned by the auth services.

An operation returns either ``Success(value)`` or ``Failure(error)``; callers
branch on ``is_success`` (or use ``isinstance``) instead of catching
exceptions for expected failure paths.
"""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import AuthError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
     value: T

     @property
     def is_success(self) -> bool:
          return True

     def unwrap(self) -> T:
          return self.value


@dataclass(frozen=True)
class Failure:
     error: AuthError

     @property
     def is_success(self) -> bool:
          return False

     def unwrap(self):
          raise self.error


Result = Union[Success[T], Failure]
