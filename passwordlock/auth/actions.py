"""
AccountActions — user-initiated authentication actions.

Failures of sign-in, sign-up and password update are raised to the
caller immediately as ``AuthError``. Phase changes are not made here: they
follow from the identity events the service emits, which the
``SessionController`` applies.
"""
import logging
from typing import Optional

from ..exceptions import AuthError, WeakPasswordError
from ..models import Session, StatusMessage
from ..passwords import MIN_LENGTH, password_problems
from ..ports import IdentityProvider
from .controller import SessionController

logger = logging.getLogger("passwordlock.auth")


class AccountActions:
    """Sign-in, sign-up, password reset and sign-out for one controller."""

    def __init__(
        self,
        identity: IdentityProvider,
        controller: SessionController,
        *,
        reset_redirect_url: str = "/",
    ):
        self._identity = identity
        self._controller = controller
        self._redirect = reset_redirect_url

    async def sign_in(self, email: str, password: str) -> Session:
        result = await self._identity.sign_in(email, password)
        if not result.ok:
            logger.info("Login failed for %s: %s", email, result.kind.value)
            raise result.exception(AuthError)
        return result.value

    async def sign_up(
        self,
        email: str,
        password: str,
        confirm_password: str,
    ) -> Optional[Session]:
        """Create an account.

        When the service issues no session (email confirmation pending),
        the controller starts awaiting verification for ``email``.

        Raises:
            WeakPasswordError: the password breaks the password rules.
            ValueError: the confirmation does not match.
            AuthError: the identity service rejected the sign-up.
        """
        problems = password_problems(password)
        if problems:
            raise WeakPasswordError(problems)
        if password != confirm_password:
            raise ValueError("Passwords don't match!")
        result = await self._identity.sign_up(email, password)
        if not result.ok:
            raise result.exception(AuthError)
        session = result.value
        if session is None:
            self._controller.await_verification(email)
        return session

    async def request_password_reset(self, email: str) -> StatusMessage:
        result = await self._identity.request_password_reset(email, self._redirect)
        if not result.ok:
            return StatusMessage(text=f"Error: {result.message}", error=True)
        return StatusMessage(text="Password reset link sent to your email!")

    async def complete_recovery(
        self,
        new_password: str,
        confirm_password: str,
    ) -> StatusMessage:
        """Set a new password from a recovery session, then sign out.

        Raises:
            ValueError: passwords differ or are too short.
            AuthError: the identity service rejected the update.
        """
        if new_password != confirm_password:
            raise ValueError("Passwords don't match!")
        if len(new_password) < MIN_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_LENGTH} characters"
            )
        result = await self._identity.update_user(password=new_password)
        if not result.ok:
            raise result.exception(AuthError)
        await self._controller.sign_out()
        return StatusMessage(
            text="Password updated successfully! You can now login."
        )

    async def sign_out(self) -> None:
        await self._controller.sign_out()
