"""
SessionController — the authoritative session state machine.

The current ``Phase`` is never stored: it is computed from the adopted
``Session`` and three flags (recovery, awaiting verification, signing
out). Identity events are applied strictly in delivery order through one
rule table:

=====================  ===============================  =======================
Event                  Guard                            Result
=====================  ===============================  =======================
PASSWORD_RECOVERY      none                             AWAITING_RECOVERY
SIGNED_IN + session    exchange cancelled by sign out   ignored
SIGNED_IN + session    recovery ticket or recovery set  AWAITING_RECOVERY,
                                                        session not adopted
SIGNED_IN + session    otherwise                        adopt session
SIGNED_OUT             none                             ANONYMOUS, all cleared
USER_UPDATED verified  awaiting verification with user  AUTHENTICATED
=====================  ===============================  =======================

Replaying an event against the state it produced changes nothing.
"""
import asyncio
import logging
from typing import Callable, Optional

from ..models import AuthEvent, AuthEventType, Page, Phase, Session, User
from ..navigation import page_for_path
from ..ports import Disposer, IdentityProvider, Navigation
from ..vault.config import VaultConfig
from ..vault.store import VaultStore
from .recovery import RecoveryTokenHandler, has_recovery_type
from .verification import VerificationPoller

logger = logging.getLogger("passwordlock.auth")

PHASE_PAGES = {
    Phase.ANONYMOUS: Page.LANDING,
    Phase.AWAITING_RECOVERY: Page.LOGIN,
    Phase.AWAITING_VERIFICATION: Page.VERIFICATION,
    Phase.AUTHENTICATED: Page.VAULT,
}


class SessionController:
    """Composes session restore, identity events, recovery tickets and
    verification polling into one ``Phase``.

    Args:
        identity: identity service port (also the event source).
        navigation: page location and history port.
        vault: vault store loaded once the session is authenticated.
        config: timing settings for the verification poller.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        navigation: Navigation,
        vault: Optional[VaultStore] = None,
        config: Optional[VaultConfig] = None,
        *,
        recovery: Optional[RecoveryTokenHandler] = None,
        poller_factory: Optional[Callable[..., VerificationPoller]] = None,
    ):
        self._identity = identity
        self._navigation = navigation
        self._vault = vault
        self._config = config
        self.recovery = recovery or RecoveryTokenHandler(identity, navigation)
        self._poller_factory = poller_factory or VerificationPoller
        self._poller: Optional[VerificationPoller] = None
        # state
        self._session: Optional[Session] = None
        self._recovering = False
        self._awaiting_verification = False
        self._signing_out = False
        self._verification_email = ""
        self._signed_out = 0
        self._page = Page.LANDING
        self._phase = Phase.ANONYMOUS
        # resources
        self._unsubscribe: Optional[Disposer] = None
        self._unlisten: Optional[Disposer] = None
        self._fetch: Optional[asyncio.Task] = None
        self._loaded_for: Optional[str] = None
        self._listeners: list[Callable[[Phase], None]] = []

    def __repr__(self) -> str:
        return f"<SessionController phase={self.phase.value} page={self._page.value}>"

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        if self._recovering:
            return Phase.AWAITING_RECOVERY
        if self._signing_out:
            return Phase.LOGGED_OUT_TRANSITION
        if self._session is not None and self._session.is_verified:
            return Phase.AUTHENTICATED
        if self._session is not None or self._awaiting_verification:
            return Phase.AWAITING_VERIFICATION
        return Phase.ANONYMOUS

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def page(self) -> Page:
        return self._page

    @property
    def verification_email(self) -> str:
        return self._verification_email

    @property
    def poller(self) -> Optional[VerificationPoller]:
        return self._poller

    @property
    def vault(self) -> Optional[VaultStore]:
        return self._vault

    def on_phase_change(self, listener: Callable[[Phase], None]) -> Disposer:
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> Phase:
        """Compute the initial phase and start listening.

        A recovery ticket in the URL wins over session restore: the ticket
        is exchanged and no existing session is looked up.
        """
        if self._unsubscribe is None:
            self._unsubscribe = self._identity.on_event(self.handle_event)
            self._unlisten = self._navigation.on_pop_state(self._on_pop_state)
            self.recovery.attach()

        if self.recovery.detect() is not None:
            logger.info("Recovery ticket found in URL; skipping session restore")
            self._enter_recovery()
            self._apply()
            await self.recovery.check()
            return self.phase

        epoch = self._signed_out
        result = await self._identity.get_current_user()
        if epoch != self._signed_out:
            logger.debug("Signed out while restoring the session; result dropped")
        elif not result.ok:
            logger.warning("Session restore failed: %s", result.message)
        elif result.value is not None and self._session is None and not self._recovering:
            self._adopt(Session.from_user(result.value))
        self._apply()
        return self.phase

    async def close(self) -> None:
        """Dispose every subscription, timer and pending task."""
        for dispose in (self._unsubscribe, self._unlisten):
            if dispose is not None:
                dispose()
        self._unsubscribe = None
        self._unlisten = None
        self.recovery.detach()
        self._stop_poller()
        if self._fetch is not None and not self._fetch.done():
            self._fetch.cancel()
        self._fetch = None

    async def __aenter__(self) -> "SessionController":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False

    # ------------------------------------------------------------------
    # Event rule table
    # ------------------------------------------------------------------

    def handle_event(self, event: AuthEvent) -> None:
        """Apply one identity event."""
        logger.debug(
            "Auth state change: %s (phase=%s)", event.type.value, self.phase.value
        )
        kind = event.type
        if kind is AuthEventType.PASSWORD_RECOVERY:
            self._enter_recovery()
        elif kind is AuthEventType.SIGNED_IN and event.session is not None:
            if self.recovery.stale_exchange:
                logger.debug("Ignoring session from a recovery exchange cancelled by sign out")
            elif self._recovering or self._ticket_in_url():
                self._enter_recovery()
            else:
                self._adopt(event.session)
        elif kind is AuthEventType.SIGNED_OUT:
            self._reset()
        elif kind is AuthEventType.USER_UPDATED and event.session is not None:
            if (
                event.session.is_verified
                and self.phase is Phase.AWAITING_VERIFICATION
                and self._session is not None
            ):
                self._adopt(event.session)
        self._apply()

    def _ticket_in_url(self) -> bool:
        return has_recovery_type(self._navigation.current_location())

    def _enter_recovery(self) -> None:
        self._session = None
        self._recovering = True
        self._awaiting_verification = False
        self._page = Page.LOGIN

    def _adopt(self, session: Session) -> None:
        self._session = session
        self._recovering = False
        self._awaiting_verification = not session.is_verified
        if not session.is_verified:
            self._verification_email = session.email

    def _reset(self) -> None:
        self._signed_out += 1
        self._session = None
        self._recovering = False
        self._awaiting_verification = False
        self._signing_out = False
        self._verification_email = ""
        self.recovery.reset()
        self._loaded_for = None
        if self._fetch is not None and not self._fetch.done():
            self._fetch.cancel()
        if self._vault is not None:
            self._vault.reset()

    # ------------------------------------------------------------------
    # Side effects of a phase change
    # ------------------------------------------------------------------

    def _apply(self) -> None:
        phase = self.phase
        if phase is Phase.AUTHENTICATED:
            self._load_vault()
        if phase is self._phase:
            return
        previous, self._phase = self._phase, phase
        logger.info("Phase %s -> %s", previous.value, phase.value)

        if phase is Phase.AWAITING_VERIFICATION:
            self._start_poller()
        else:
            self._stop_poller()

        page = PHASE_PAGES.get(phase)
        if page is not None:
            self._page = page
            # recovery rewrites the URL in place; other phases push a page
            if phase is not Phase.AWAITING_RECOVERY:
                self._navigation.push(page.value)

        for listener in list(self._listeners):
            listener(phase)

    def _start_poller(self) -> None:
        if self._poller is not None:
            return
        settings = {}
        if self._config is not None:
            settings = {
                "interval": self._config.poll_interval,
                "confirmation_delay": self._config.confirmation_delay,
                "notice_ttl": self._config.notice_ttl,
            }
        self._poller = self._poller_factory(
            self._identity, self._on_verified, **settings
        )
        self._poller.start()

    def _stop_poller(self) -> None:
        if self._poller is not None:
            self._poller.stop()
            self._poller = None

    def _load_vault(self) -> None:
        if self._vault is None or self._session is None:
            return
        if self._loaded_for == self._session.user_id:
            return
        self._loaded_for = self._session.user_id
        if self._fetch is not None and not self._fetch.done():
            self._fetch.cancel()
        self._fetch = asyncio.ensure_future(
            self._vault.fetch_all(self._session.user_id)
        )

    def _on_verified(self, user: User) -> None:
        if self.phase is not Phase.AWAITING_VERIFICATION:
            return
        tokens = {}
        if self._session is not None:
            tokens = {
                "access_token": self._session.access_token,
                "refresh_token": self._session.refresh_token,
            }
        self._adopt(Session.from_user(user, **tokens))
        self._apply()

    def _on_pop_state(self, path: str) -> None:
        page = page_for_path(path)
        if page is not None:
            self._page = page

    # ------------------------------------------------------------------
    # User-initiated transitions
    # ------------------------------------------------------------------

    def await_verification(self, email: str) -> None:
        """Wait for ``email`` to be verified after a sign-up without session."""
        if self._recovering or self._session is not None:
            return
        self._verification_email = email
        self._awaiting_verification = True
        self._apply()

    def show_login(self) -> None:
        self._page = Page.LOGIN
        self._navigation.push(Page.LOGIN.value)

    def show_signup(self) -> None:
        self._page = Page.SIGNUP
        self._navigation.push(Page.SIGNUP.value)

    async def sign_out(self) -> None:
        """Sign out; always ends in ANONYMOUS, even if the call fails."""
        self._signing_out = True
        self._apply()
        try:
            result = await self._identity.sign_out()
            if not result.ok:
                logger.warning("Sign out failed: %s", result.message)
        finally:
            if self._signing_out:
                self._reset()
                self._apply()
