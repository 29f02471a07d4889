"""
PasswordLock — wires every component from one ``VaultConfig``.
"""
import logging
from typing import Optional

from .auth import AccountActions, SessionController
from .clients import IdentityClient, PersistenceClient
from .models import Phase
from .navigation import HistoryNavigation
from .ports import IdentityProvider, Navigation, PersistenceBackend
from .vault import CryptoEngine, VaultConfig, VaultStore

logger = logging.getLogger("passwordlock")


class PasswordLock:
    """Client facade: session controller, account actions and vault.

    Collaborators default to the REST adapters built from ``config``;
    any of them can be injected instead.
    """

    def __init__(
        self,
        config: VaultConfig,
        *,
        identity: Optional[IdentityProvider] = None,
        persistence: Optional[PersistenceBackend] = None,
        navigation: Optional[Navigation] = None,
    ):
        self.config = config
        if identity is None:
            if not config.auth_url:
                raise ValueError("auth_url is required without an identity provider")
            identity = IdentityClient(config.auth_url, api_key=config.api_key)
        if persistence is None:
            if not config.rest_url:
                raise ValueError("rest_url is required without a persistence backend")
            token = getattr(identity, "access_token", None)
            persistence = PersistenceClient(
                config.rest_url,
                table=config.table,
                api_key=config.api_key,
                token_provider=token if callable(token) else None,
            )
        self.identity = identity
        self.persistence = persistence
        self.navigation = navigation or HistoryNavigation()
        self.crypto = CryptoEngine(config.encryption_key)
        self.vault = VaultStore(persistence, self.crypto)
        self.controller = SessionController(
            identity, self.navigation, self.vault, config
        )
        self.account = AccountActions(
            identity,
            self.controller,
            reset_redirect_url=config.reset_redirect_url,
        )

    def __repr__(self) -> str:
        return f"<PasswordLock phase={self.phase.value}>"

    @property
    def phase(self) -> Phase:
        return self.controller.phase

    @classmethod
    def from_env(cls, **collaborators) -> "PasswordLock":
        return cls(VaultConfig.from_env(), **collaborators)

    async def start(self) -> Phase:
        phase = await self.controller.start()
        logger.info("PasswordLock started in phase %s", phase.value)
        return phase

    async def close(self) -> None:
        await self.controller.close()
        for collaborator in (self.identity, self.persistence):
            closer = getattr(collaborator, "close", None)
            if closer is not None:
                await closer()

    async def __aenter__(self) -> "PasswordLock":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False
