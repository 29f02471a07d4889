"""
Port interfaces - Protocol definitions for the collaborators.

The session controller, the recovery handler, the verification poller and
the vault store only talk to these protocols; the REST adapters in
``passwordlock.clients`` and the in-memory test doubles implement them.
"""
from typing import Any, Callable, Optional, Protocol, Union

from .models import AuthEvent, Record
from .results import Result

EventHandler = Callable[[AuthEvent], None]
Disposer = Callable[[], None]


class EventSource(Protocol):
    """Push-style event stream of the identity service."""

    def on_event(self, handler: EventHandler) -> Disposer:
        """Register ``handler``; calling the returned disposer unregisters it."""
        ...


class IdentityProvider(EventSource, Protocol):
    """Port interface for the remote identity service.

    Every call returns a ``Success`` or a ``Failure``:

    * ``sign_in`` -> Session
    * ``sign_up`` -> Session | None (None while the email is unconfirmed)
    * ``sign_out`` -> None
    * ``get_current_user`` -> User | None
    * ``set_session`` -> Session
    * ``update_user`` -> Session
    * ``resend_verification`` -> None
    * ``request_password_reset`` -> None
    """

    async def sign_in(self, email: str, password: str) -> Result:
        ...

    async def sign_up(self, email: str, password: str) -> Result:
        ...

    async def sign_out(self) -> Result:
        ...

    async def get_current_user(self) -> Result:
        ...

    async def set_session(self, access_token: str, refresh_token: str) -> Result:
        ...

    async def update_user(self, *, password: str) -> Result:
        ...

    async def resend_verification(self, email: str) -> Result:
        ...

    async def request_password_reset(self, email: str, redirect_url: str) -> Result:
        ...


class PersistenceBackend(Protocol):
    """Port interface for the remote vault persistence service."""

    async def select_by_owner(self, owner_id: str) -> Result:
        """Return ``Success(list[Record])`` for every row owned by ``owner_id``."""
        ...

    async def insert(self, record: Record) -> Result:
        """Return ``Success(Record)`` with the id assigned by the service."""
        ...

    async def update_by_id(
        self, record_id: Union[int, str], fields: dict[str, Any]
    ) -> Result:
        """Return ``Success(Record)`` holding the stored row."""
        ...

    async def delete_by_id(self, record_id: Union[int, str]) -> Result:
        ...


class Navigation(Protocol):
    """Port interface for the page location and history."""

    def current_location(self) -> str:
        ...

    def replace(self, url: str) -> None:
        """Replace the current URL in place, without navigating."""
        ...

    def push(self, url: str) -> None:
        ...

    def on_pop_state(self, handler: Callable[[str], None]) -> Disposer:
        """Call ``handler(path)`` on back/forward navigation."""
        ...


TokenProvider = Callable[[], Optional[str]]
