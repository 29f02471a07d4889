"""
RecoveryTokenHandler — one-shot password recovery tickets from the URL.

A recovery link carries ``type=recovery``, ``access_token`` and
``refresh_token`` in the query string or the fragment. The handler
exchanges the tokens for a session once, shows the new-password form and
erases the parameters from the visible URL so neither a reload nor a back
navigation can submit the same ticket again.
"""
import asyncio
import logging
from typing import Optional

from ..exceptions import RecoveryExchangeError
from ..models import AuthEvent, AuthEventType, Page, RecoveryTicket, TicketSource
from ..navigation import fragment_params, query_params, read_params, strip_params
from ..ports import Disposer, IdentityProvider, Navigation

logger = logging.getLogger("passwordlock.auth")

RECOVERY_TYPE = "recovery"
RECOVERY_PARAMS = ("type", "access_token", "refresh_token")


def detect_ticket(location: str) -> Optional[RecoveryTicket]:
    """Return the recovery ticket carried by ``location``, if well formed."""
    params = read_params(location)
    access_token = params.get("access_token")
    refresh_token = params.get("refresh_token")
    if params.get("type") != RECOVERY_TYPE or not access_token or not refresh_token:
        return None
    source = (
        TicketSource.QUERY
        if query_params(location).get("access_token")
        else TicketSource.FRAGMENT
    )
    return RecoveryTicket(
        access_token=access_token,
        refresh_token=refresh_token,
        source=source,
    )


def has_recovery_type(location: str) -> bool:
    """True when the URL still says ``type=recovery`` (tokens or not)."""
    return (
        query_params(location).get("type") == RECOVERY_TYPE
        or fragment_params(location).get("type") == RECOVERY_TYPE
    )


class RecoveryTokenHandler:
    """Consumes recovery tickets exactly once.

    ``check()`` may be called any number of times (on start and again
    whenever state changes). Concurrent calls share one exchange; once the
    form is shown, further calls do nothing.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        navigation: Navigation,
        *,
        form_path: str = Page.LOGIN.value,
    ):
        self._identity = identity
        self._navigation = navigation
        self._form_path = form_path
        self._showing_form = False
        self._exchange: Optional[asyncio.Task] = None
        self._generation = 0
        self._redeeming: Optional[int] = None
        self._unsubscribe: Optional[Disposer] = None
        self._attempted: Optional[RecoveryTicket] = None

    @property
    def showing_form(self) -> bool:
        return self._showing_form

    @property
    def stale_exchange(self) -> bool:
        """True while an exchange started before the last reset is in flight."""
        return self._redeeming is not None and self._redeeming != self._generation

    def detect(self) -> Optional[RecoveryTicket]:
        return detect_ticket(self._navigation.current_location())

    def attach(self) -> None:
        """Listen for PASSWORD_RECOVERY events from the identity service."""
        if self._unsubscribe is None:
            self._unsubscribe = self._identity.on_event(self._on_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._exchange is not None and not self._exchange.done():
            self._exchange.cancel()
        self._exchange = None

    def reset(self) -> None:
        """Hide the form and drop any in-flight exchange result."""
        self._generation += 1
        self._showing_form = False

    def _on_event(self, event: AuthEvent) -> None:
        if event.type is AuthEventType.PASSWORD_RECOVERY and event.session:
            self._show_form()

    def _show_form(self) -> None:
        self._showing_form = True
        location = self._navigation.current_location()
        cleaned = strip_params(location, RECOVERY_PARAMS, path=self._form_path)
        if cleaned != location:
            self._navigation.replace(cleaned)

    async def check(self) -> bool:
        """Exchange the URL ticket for a recovery session, at most once.

        Returns:
            True when the recovery form is being shown.
        """
        if self._showing_form:
            return True
        if self._exchange is None or self._exchange.done():
            ticket = self.detect()
            if ticket is None or ticket == self._attempted:
                return self._showing_form
            self._attempted = ticket
            self._exchange = asyncio.ensure_future(
                self._redeem(ticket, self._generation)
            )
        await asyncio.shield(self._exchange)
        return self._showing_form

    async def _redeem(self, ticket: RecoveryTicket, generation: int) -> None:
        logger.debug("Exchanging recovery ticket from %s", ticket.source.value)
        self._redeeming = generation
        try:
            result = await self._identity.set_session(
                ticket.access_token, ticket.refresh_token
            )
        finally:
            self._redeeming = None
        if not result.ok:
            err = result.exception(RecoveryExchangeError)
            logger.error("Error setting recovery session: %s", err)
            return
        if generation != self._generation:
            logger.debug("Recovery exchange finished after reset; dropping session")
            await self._identity.sign_out()
            return
        self._show_form()
