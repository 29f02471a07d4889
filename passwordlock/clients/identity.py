"""
IdentityClient — aiohttp adapter for a GoTrue-style identity service.

Keeps the current session tokens in memory and emits ``AuthEvent``s on an
``EventBus`` after each successful state change, the way the hosted
client libraries do:

* sign-in, sign-up with session, session exchange -> SIGNED_IN
* user update -> USER_UPDATED
* token refresh -> TOKEN_REFRESHED
* sign-out -> SIGNED_OUT (also when the remote call fails)
"""
import logging
from typing import Any, Optional

import aiohttp

from ..events import EventBus
from ..models import AuthEvent, AuthEventType, Session, User
from ..ports import Disposer, EventHandler
from ..results import ErrorKind, Failure, Result, Success
from .base import RestClient

logger = logging.getLogger("passwordlock.clients")


def parse_user(data: dict[str, Any]) -> User:
    return User(
        id=str(data["id"]),
        email=data.get("email") or "",
        email_verified_at=data.get("email_confirmed_at"),
    )


def parse_session(data: dict[str, Any]) -> Session:
    return Session.from_user(
        parse_user(data["user"]),
        access_token=data.get("access_token"),
        refresh_token=data.get("refresh_token"),
    )


class IdentityClient(RestClient):
    """Identity collaborator over HTTP (``/token``, ``/user``, ``/signup``...)."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        events: Optional[EventBus] = None,
    ):
        super().__init__(base_url, api_key=api_key, session=session)
        self._events = events or EventBus()
        self._current: Optional[Session] = None

    @property
    def current_session(self) -> Optional[Session]:
        return self._current

    def access_token(self) -> Optional[str]:
        return self._current.access_token if self._current else None

    def on_event(self, handler: EventHandler) -> Disposer:
        return self._events.on_event(handler)

    def _emit(self, kind: AuthEventType, session: Optional[Session]) -> None:
        self._events.emit(AuthEvent(type=kind, session=session))

    def _store(self, kind: AuthEventType, session: Session) -> Success:
        self._current = session
        self._emit(kind, session)
        return Success(session)

    async def sign_in(self, email: str, password: str) -> Result:
        result = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            body={"email": email, "password": password},
        )
        if not result.ok:
            if result.kind is ErrorKind.REJECTED:
                return Failure(ErrorKind.INVALID_CREDENTIALS, result.message)
            return result
        return self._store(AuthEventType.SIGNED_IN, parse_session(result.value))

    async def sign_up(self, email: str, password: str) -> Result:
        result = await self._request(
            "POST", "/signup", body={"email": email, "password": password}
        )
        if not result.ok:
            return result
        data = result.value or {}
        if data.get("access_token"):
            return self._store(AuthEventType.SIGNED_IN, parse_session(data))
        return Success(None)

    async def sign_out(self) -> Result:
        token = self.access_token()
        result: Result = Success(None)
        if token:
            result = await self._request("POST", "/logout", token=token)
        self._current = None
        self._emit(AuthEventType.SIGNED_OUT, None)
        return result if not result.ok else Success(None)

    async def get_current_user(self) -> Result:
        token = self.access_token()
        if not token:
            return Success(None)
        result = await self._request("GET", "/user", token=token)
        if not result.ok:
            return result
        return Success(parse_user(result.value))

    async def set_session(self, access_token: str, refresh_token: str) -> Result:
        result = await self._request("GET", "/user", token=access_token)
        if not result.ok:
            return result
        session = Session.from_user(
            parse_user(result.value),
            access_token=access_token,
            refresh_token=refresh_token,
        )
        return self._store(AuthEventType.SIGNED_IN, session)

    async def refresh_session(self) -> Result:
        if self._current is None or not self._current.refresh_token:
            return Failure(ErrorKind.INVALID_CREDENTIALS, "No refresh token")
        result = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            body={"refresh_token": self._current.refresh_token},
        )
        if not result.ok:
            return result
        return self._store(AuthEventType.TOKEN_REFRESHED, parse_session(result.value))

    async def update_user(self, *, password: str) -> Result:
        token = self.access_token()
        if not token:
            return Failure(ErrorKind.INVALID_CREDENTIALS, "Auth session missing!")
        result = await self._request(
            "PUT", "/user", body={"password": password}, token=token
        )
        if not result.ok:
            return result
        session = Session.from_user(
            parse_user(result.value),
            access_token=self._current.access_token,
            refresh_token=self._current.refresh_token,
        )
        return self._store(AuthEventType.USER_UPDATED, session)

    async def resend_verification(self, email: str) -> Result:
        result = await self._request(
            "POST", "/resend", body={"type": "signup", "email": email}
        )
        return result if not result.ok else Success(None)

    async def request_password_reset(self, email: str, redirect_url: str) -> Result:
        result = await self._request(
            "POST",
            "/recover",
            params={"redirect_to": redirect_url},
            body={"email": email},
        )
        return result if not result.ok else Success(None)
