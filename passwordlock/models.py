"""
Domain models shared by the session state machine and the vault.

``Session`` and ``User`` are frozen: a transition always replaces the
whole record, never edits one field of it.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Phase(str, Enum):
    """Derived state of the session controller."""

    ANONYMOUS = "anonymous"
    AWAITING_RECOVERY = "awaiting_recovery"
    AWAITING_VERIFICATION = "awaiting_verification"
    AUTHENTICATED = "authenticated"
    LOGGED_OUT_TRANSITION = "logged_out_transition"


class Page(str, Enum):
    """Screens addressed by the navigation surface."""

    LANDING = "/"
    LOGIN = "/login"
    SIGNUP = "/signup"
    VERIFICATION = "/verification"
    VAULT = "/vault"


class AuthEventType(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class TicketSource(str, Enum):
    QUERY = "query"
    FRAGMENT = "fragment"


class User(BaseModel):
    """Account as reported by the identity service."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    email_verified_at: Optional[datetime] = None

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None


class Session(BaseModel):
    """The authoritative identity record."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    email_verified_at: Optional[datetime] = None
    access_token: Optional[str] = Field(default=None, repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None

    @property
    def user(self) -> User:
        return User(
            id=self.user_id,
            email=self.email,
            email_verified_at=self.email_verified_at,
        )

    @classmethod
    def from_user(cls, user: User, **tokens: Any) -> "Session":
        return cls(
            user_id=user.id,
            email=user.email,
            email_verified_at=user.email_verified_at,
            **tokens,
        )


class AuthEvent(BaseModel):
    """One notification from the identity service event stream."""

    model_config = ConfigDict(frozen=True)

    type: AuthEventType
    session: Optional[Session] = None


class RecoveryTicket(BaseModel):
    """One-shot access/refresh token pair carried by the page URL."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    source: TicketSource


class Record(BaseModel):
    """Vault row as stored by the persistence service."""

    id: Optional[Union[int, str]] = None
    sitename: str
    url: str
    username: str
    password: str
    user_id: str


class VaultEntry(BaseModel):
    """One credential in the local vault collection.

    ``cipher_text`` is the only persisted form of the secret;
    ``plain_text`` is recomputed on every read and excluded from dumps.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[Union[int, str]] = None
    owner_id: str
    site_name: str
    url: str
    username: str
    cipher_text: str = Field(repr=False)
    plain_text: str = Field(default="", repr=False, exclude=True)

    @classmethod
    def from_record(cls, record: Record, plain_text: str) -> "VaultEntry":
        return cls(
            id=record.id,
            owner_id=record.user_id,
            site_name=record.sitename,
            url=record.url,
            username=record.username,
            cipher_text=record.password,
            plain_text=plain_text,
        )

    def to_record(self) -> Record:
        return Record(
            id=self.id,
            sitename=self.site_name,
            url=self.url,
            username=self.username,
            password=self.cipher_text,
            user_id=self.owner_id,
        )


class StatusMessage(BaseModel):
    """Transient message surfaced to the user after an action."""

    model_config = ConfigDict(frozen=True)

    text: str
    error: bool = False
