"""PasswordLock.

Client-side password vault: tracks the authentication session against an
identity service and keeps encrypted credentials in sync with a
persistence service.
"""
from .version import __version__
from .client import PasswordLock
from .exceptions import (
    PasswordLockError,
    AuthError,
    RecoveryExchangeError,
    VaultError,
    WeakPasswordError,
)
from .models import Phase, Page, Session, User, VaultEntry
from .vault import VaultConfig

__all__ = (
    "__version__",
    "PasswordLock",
    "PasswordLockError",
    "AuthError",
    "RecoveryExchangeError",
    "VaultError",
    "WeakPasswordError",
    "Phase",
    "Page",
    "Session",
    "User",
    "VaultEntry",
    "VaultConfig",
)
