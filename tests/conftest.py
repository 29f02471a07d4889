"""Shared fixtures and in-memory collaborators."""
import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from passwordlock.events import EventBus
from passwordlock.models import AuthEvent, AuthEventType, Record, Session, User
from passwordlock.navigation import HistoryNavigation
from passwordlock.results import ErrorKind, Failure, Success
from passwordlock.vault import CryptoEngine, VaultConfig, VaultStore

KEY = "my-secret-key"
VERIFIED_AT = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def make_user(verified: bool = True, user_id: str = "u-1") -> User:
    return User(
        id=user_id,
        email="bob@example.com",
        email_verified_at=VERIFIED_AT if verified else None,
    )


def make_session(verified: bool = True, user_id: str = "u-1") -> Session:
    return Session.from_user(
        make_user(verified, user_id), access_token="at", refresh_token="rt"
    )


class FakeIdentity:
    """Identity service double that emits events like the real client."""

    def __init__(self) -> None:
        self.events = EventBus()
        self.current_user: Optional[User] = None
        self.user_failure: Optional[Failure] = None
        self.set_session_result: Any = None
        self.set_session_gate: Optional[asyncio.Event] = None
        self.sign_in_result: Any = None
        self.sign_up_result: Any = Success(None)
        self.sign_out_result: Any = Success(None)
        self.update_result: Any = None
        self.resend_result: Any = Success(None)
        self.reset_result: Any = Success(None)
        self.calls: list[tuple] = []

    def on_event(self, handler):
        return self.events.on_event(handler)

    def emit(self, kind: AuthEventType, session: Optional[Session] = None) -> None:
        self.events.emit(AuthEvent(type=kind, session=session))

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def sign_in(self, email, password):
        self.calls.append(("sign_in", email))
        result = self.sign_in_result or Success(make_session())
        if result.ok:
            self.emit(AuthEventType.SIGNED_IN, result.value)
        return result

    async def sign_up(self, email, password):
        self.calls.append(("sign_up", email))
        return self.sign_up_result

    async def sign_out(self):
        self.calls.append(("sign_out",))
        self.emit(AuthEventType.SIGNED_OUT)
        return self.sign_out_result

    async def get_current_user(self):
        self.calls.append(("get_current_user",))
        await asyncio.sleep(0)
        if self.user_failure is not None:
            return self.user_failure
        return Success(self.current_user)

    async def set_session(self, access_token, refresh_token):
        self.calls.append(("set_session", access_token, refresh_token))
        if self.set_session_gate is not None:
            await self.set_session_gate.wait()
        else:
            await asyncio.sleep(0)
        result = self.set_session_result or Success(make_session())
        if result.ok:
            self.emit(AuthEventType.SIGNED_IN, result.value)
        return result

    async def update_user(self, *, password):
        self.calls.append(("update_user",))
        result = self.update_result or Success(make_session())
        if result.ok:
            self.emit(AuthEventType.USER_UPDATED, result.value)
        return result

    async def resend_verification(self, email):
        self.calls.append(("resend_verification", email))
        return self.resend_result

    async def request_password_reset(self, email, redirect_url):
        self.calls.append(("request_password_reset", email, redirect_url))
        return self.reset_result


class FakePersistence:
    """Vault table double keyed by integer id."""

    def __init__(self) -> None:
        self.rows: dict[int, dict] = {}
        self.next_id = 1
        self.fail: dict[str, Failure] = {}
        self.calls: list[tuple] = []

    def seed(self, **row: Any) -> dict:
        row = {"id": self.next_id, **row}
        self.rows[self.next_id] = row
        self.next_id += 1
        return row

    def _failure(self, name: str):
        return self.fail.get(name)

    async def select_by_owner(self, owner_id):
        self.calls.append(("select_by_owner", owner_id))
        await asyncio.sleep(0)
        if failure := self._failure("select"):
            return failure
        return Success([
            Record.model_validate(row)
            for row in self.rows.values() if row["user_id"] == owner_id
        ])

    async def insert(self, record):
        self.calls.append(("insert", record))
        await asyncio.sleep(0)
        if failure := self._failure("insert"):
            return failure
        row = self.seed(**record.model_dump(exclude={"id"}))
        return Success(Record.model_validate(row))

    async def update_by_id(self, record_id, fields):
        self.calls.append(("update_by_id", record_id, fields))
        await asyncio.sleep(0)
        if failure := self._failure("update"):
            return failure
        if record_id not in self.rows:
            self.rows[record_id] = {"id": record_id, "user_id": "u-1", **fields}
        else:
            self.rows[record_id].update(fields)
        return Success(Record.model_validate(self.rows[record_id]))

    async def delete_by_id(self, record_id):
        self.calls.append(("delete_by_id", record_id))
        await asyncio.sleep(0)
        if failure := self._failure("delete"):
            return failure
        self.rows.pop(record_id, None)
        return Success(None)


REJECTED = Failure(ErrorKind.REJECTED, "permission denied for table passwords")


@pytest.fixture
def crypto():
    return CryptoEngine(KEY)


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def persistence():
    return FakePersistence()


@pytest.fixture
def navigation():
    return HistoryNavigation("/")


@pytest.fixture
def config():
    return VaultConfig(
        encryption_key=KEY,
        poll_interval=0.01,
        confirmation_delay=0.02,
        notice_ttl=0.02,
    )


@pytest.fixture
def store(persistence, crypto):
    return VaultStore(persistence, crypto)


async def eventually(predicate, timeout: float = 1.0, step: float = 0.002) -> bool:
    """Wait until ``predicate()`` is true; fail the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(step)
    return True
