"""PasswordLock exceptions.

Note: wrong-key decryption is not an error. ``decrypt`` returns an
incorrect string and raises nothing, so callers cannot detect a key
mismatch by catching exceptions.
"""
from typing import Optional


class PasswordLockError(Exception):
    """Base class for every PasswordLock error."""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind

    def __str__(self) -> str:
        return self.message


class AuthError(PasswordLockError):
    """Sign-in, sign-up or password update rejected (or unreachable)."""


class RecoveryExchangeError(PasswordLockError):
    """Recovery ticket could not be exchanged for a session.

    Logged only, never surfaced to the user.
    """


class VaultError(PasswordLockError):
    """Fetch, add, update or delete of a vault entry failed."""


class WeakPasswordError(PasswordLockError):
    """Password does not satisfy the account password rules."""

    def __init__(self, problems: list[str]):
        super().__init__(
            "Password requirements not met: " + ", ".join(problems),
            kind="weak_password"
        )
        self.problems = problems
