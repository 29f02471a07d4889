"""Auth — session state machine, recovery tickets and email verification."""

from .controller import SessionController
from .recovery import RecoveryTokenHandler, detect_ticket
from .verification import Latch, VerificationPoller
from .actions import AccountActions

__all__ = [
    "SessionController",
    "RecoveryTokenHandler",
    "detect_ticket",
    "Latch",
    "VerificationPoller",
    "AccountActions",
]
