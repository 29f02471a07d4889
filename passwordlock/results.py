"""
Tagged outcomes for collaborator calls.

Every call into the identity or persistence service returns either
``Success(value)`` or ``Failure(kind, message)``; callers branch on
``result.ok`` instead of probing optional error fields.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from .exceptions import PasswordLockError

T = TypeVar("T")
E = TypeVar("E", bound=PasswordLockError)


class ErrorKind(str, Enum):
    """Why a collaborator call failed."""

    INVALID_CREDENTIALS = "invalid_credentials"
    NETWORK = "network"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    def exception(self, cls: type[E]) -> E:
        """Build an exception of ``cls`` carrying this failure."""
        return cls(self.message, kind=self.kind.value)


Result = Union[Success[Any], Failure]
