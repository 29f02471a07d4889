"""
Vault Configuration — Encryption key loading and validated settings.

Reads settings from environment variables:
    VAULT_ENCRYPTION_KEY = <passphrase shared by every vault entry>
    VAULT_POLL_INTERVAL = <seconds between verification checks>
    VAULT_CONFIRMATION_DELAY = <seconds shown between verification and vault>

Security Note:
    Never log key material. A single key encrypts the entries of every
    owner; any real deployment must replace it with per-user key
    derivation and an authenticated cipher.
"""
import os
import logging
import secrets
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("passwordlock.vault")

_ENV_PREFIX = "VAULT_"


def load_encryption_key() -> str:
    """Load the vault encryption key from VAULT_ENCRYPTION_KEY.

    Returns:
        The configured key.

    Raises:
        RuntimeError: If the variable is missing or empty.
    """
    key = os.environ.get("VAULT_ENCRYPTION_KEY")
    if not key:
        raise RuntimeError(
            "No vault encryption key found in environment. "
            "Set VAULT_ENCRYPTION_KEY=<passphrase>"
        )
    logger.debug("Loaded vault encryption key (%d chars)", len(key))
    return key


def generate_encryption_key() -> str:
    """Generate a random URL-safe encryption key.

    This is a utility for operators to generate new keys.
    """
    return secrets.token_urlsafe(32)


class VaultConfig(BaseModel):
    """Validated client configuration."""

    encryption_key: str = Field(min_length=1, repr=False)
    poll_interval: float = Field(default=2.0, gt=0)
    confirmation_delay: float = Field(default=2.0, ge=0)
    notice_ttl: float = Field(default=3.0, ge=0)
    site_url: str = Field(default="http://localhost:5173")
    auth_url: Optional[str] = None
    rest_url: Optional[str] = None
    api_key: Optional[str] = Field(default=None, repr=False)
    table: str = Field(default="passwords", min_length=1)

    @field_validator("site_url", "auth_url", "rest_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        """Store base URLs without a trailing slash."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Expected an http(s) URL, got: {v}")
        return v.rstrip("/")

    @property
    def reset_redirect_url(self) -> str:
        """Where password reset emails send the user back to."""
        return f"{self.site_url}/"

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict = {"encryption_key": load_encryption_key()}
        for name in (
            "poll_interval", "confirmation_delay", "notice_ttl",
            "site_url", "auth_url", "rest_url", "api_key", "table",
        ):
            raw = os.environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls(**values)
