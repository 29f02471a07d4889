"""
VerificationPoller — detects the moment an account's email is verified.

Two triggers race while the controller is awaiting verification:

* **poll**: ``get_current_user`` right away, then every ``interval`` seconds;
* **push**: a SIGNED_IN, TOKEN_REFRESHED or USER_UPDATED event whose
  session is verified.

Both feed one ``Latch``. The first verified observation fires it, the
completion callback runs once after a cosmetic ``confirmation_delay``, and
every later observation is ignored. ``stop()`` releases the poll task, the
event subscription and any pending completion, so a stopped poller never
calls back.
"""
import asyncio
import logging
from typing import Callable, Optional

from ..models import AuthEvent, AuthEventType, StatusMessage, User
from ..ports import Disposer, IdentityProvider

logger = logging.getLogger("passwordlock.auth")

PUSH_EVENTS = frozenset({
    AuthEventType.SIGNED_IN,
    AuthEventType.TOKEN_REFRESHED,
    AuthEventType.USER_UPDATED,
})


class Latch:
    """One-shot guard: ``fire()`` returns True exactly once."""

    __slots__ = ("_fired",)

    def __init__(self) -> None:
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def fire(self) -> bool:
        if self._fired:
            return False
        self._fired = True
        return True


class VerificationPoller:
    """Watches for email verification until stopped or verified.

    Usable as ``async with VerificationPoller(...) as poller:``; leaving the
    block stops it on every exit path.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        on_verified: Callable[[User], None],
        *,
        interval: float = 2.0,
        confirmation_delay: float = 2.0,
        notice_ttl: float = 3.0,
    ):
        self._identity = identity
        self._on_verified = on_verified
        self._interval = interval
        self._delay = confirmation_delay
        self._notice_ttl = notice_ttl
        self._latch = Latch()
        self._poll_task: Optional[asyncio.Task] = None
        self._completion: Optional[asyncio.Task] = None
        self._notice_task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Disposer] = None
        self._active = False
        self.verified_user: Optional[User] = None
        self.status: Optional[StatusMessage] = None
        self.resending = False

    def __repr__(self) -> str:
        return (
            f"<VerificationPoller active={self._active} "
            f"verified={self._latch.fired}>"
        )

    @property
    def active(self) -> bool:
        return self._active

    @property
    def verified(self) -> bool:
        return self._latch.fired

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to push events and start polling. Needs a running loop."""
        if self._active:
            return
        self._active = True
        self._unsubscribe = self._identity.on_event(self._on_event)
        self._poll_task = asyncio.ensure_future(self._poll())
        logger.debug("Verification poller started (interval=%ss)", self._interval)

    def stop(self) -> None:
        """Release the poll task, the subscription and any pending callback."""
        if not self._active:
            return
        self._active = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        current = asyncio.current_task()
        for task in (self._poll_task, self._completion, self._notice_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._poll_task = None
        self._completion = None
        self._notice_task = None
        logger.debug("Verification poller stopped")

    async def __aenter__(self) -> "VerificationPoller":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.stop()
        return False

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def _poll(self) -> None:
        while self._active and not self._latch.fired:
            await self.check()
            if self._latch.fired:
                break
            await asyncio.sleep(self._interval)

    async def check(self) -> bool:
        """Ask the identity service once whether the email is verified."""
        result = await self._identity.get_current_user()
        if not result.ok:
            logger.debug("Verification check error: %s", result.message)
            return False
        user = result.value
        if user is not None and user.is_verified:
            self._observe(user)
            return True
        return False

    def _on_event(self, event: AuthEvent) -> None:
        if event.type in PUSH_EVENTS and event.session is not None:
            if event.session.is_verified:
                self._observe(event.session.user)

    def _observe(self, user: User) -> None:
        if not self._active or not self._latch.fire():
            return
        logger.info("Email verified for user=%s", user.id)
        self.verified_user = user
        self._completion = asyncio.ensure_future(self._complete(user))

    async def _complete(self, user: User) -> None:
        await asyncio.sleep(self._delay)
        if self._active:
            self._on_verified(user)

    # ------------------------------------------------------------------
    # Resend
    # ------------------------------------------------------------------

    async def resend_verification(self, email: str) -> StatusMessage:
        """Ask the identity service to send the verification email again.

        Success and failure both end up in ``status``; a success message
        is cleared after ``notice_ttl`` seconds. Nothing is retried.
        """
        self.resending = True
        try:
            result = await self._identity.resend_verification(email)
        finally:
            self.resending = False
        if result.ok:
            status = StatusMessage(text="Verification email sent again!")
        else:
            logger.warning("Resend verification failed: %s", result.message)
            status = StatusMessage(text=result.message, error=True)
        self.status = status
        if not status.error:
            if self._notice_task is not None and not self._notice_task.done():
                self._notice_task.cancel()
            self._notice_task = asyncio.ensure_future(self._clear_status(status))
        return status

    async def _clear_status(self, status: StatusMessage) -> None:
        await asyncio.sleep(self._notice_ttl)
        if self.status is status:
            self.status = None
