"""
VaultStore — Local collection of vault entries synced with persistence.

Provides the public API for the vault:
- ``fetch_all(owner_id)`` — replace the collection with the owner's entries
- ``add(...)`` — encrypt and persist a new entry
- ``update(entry_id, ...)`` — re-encrypt and persist an existing entry
- ``delete(entry_id)`` — remove an entry
- ``search(term)`` — filter the collection by site name, url or username

Collaborator failures never raise: they are recorded in ``error`` and
``last_error`` and leave ``items`` as the last known-good value. There is
no concurrency control; when two calls race, the response that lands
last wins. A response that lands after ``reset()`` is dropped.

Security Note:
    Never log plaintext or ciphertext values. Only log ids, owners and
    counts.
"""
import logging
from typing import Optional, Union

from ..exceptions import VaultError
from ..models import Record, VaultEntry
from ..ports import PersistenceBackend
from ..results import Failure
from .crypto import CryptoEngine

logger = logging.getLogger("passwordlock.vault")

EntryId = Union[int, str]


def _require(**fields: str) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValueError(
            f"Vault entry fields cannot be empty: {', '.join(missing)}"
        )


class VaultStore:
    """In-memory vault collection owned by a single client.

    ``items`` is a tuple that is only ever swapped for a new tuple, so a
    reader holding it never observes a half-applied change.
    """

    def __init__(self, backend: PersistenceBackend, crypto: CryptoEngine):
        self._backend = backend
        self._crypto = crypto
        self._items: tuple[VaultEntry, ...] = ()
        self.loading: bool = False
        self.error: Optional[str] = None
        self.last_error: Optional[VaultError] = None
        self._generation = 0

    def __repr__(self) -> str:
        return (
            f"<VaultStore items={len(self._items)} loading={self.loading} "
            f"error={self.error!r}>"
        )

    @property
    def items(self) -> tuple[VaultEntry, ...]:
        return self._items

    def get(self, entry_id: EntryId) -> Optional[VaultEntry]:
        for entry in self._items:
            if entry.id == entry_id:
                return entry
        return None

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        self.loading = True
        self.error = None
        self.last_error = None

    def _fail(self, operation: str, failure: Failure) -> None:
        self.last_error = failure.exception(VaultError)
        self.error = failure.message
        logger.error(
            "Vault %s failed (%s): %s", operation, failure.kind.value, failure.message
        )

    def _stale(self, generation: int, operation: str) -> bool:
        if generation == self._generation:
            return False
        logger.debug("Vault %s finished after reset; result dropped", operation)
        return True

    def _entry(self, record: Record) -> VaultEntry:
        return VaultEntry.from_record(record, self._crypto.decrypt(record.password))

    def reset(self) -> None:
        """Forget every entry and any recorded error."""
        self._generation += 1
        self._items = ()
        self.loading = False
        self.error = None
        self.last_error = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_all(self, owner_id: str) -> bool:
        """Replace the collection with every entry owned by ``owner_id``.

        On failure the previous collection is kept (stale read).

        Returns:
            True if the collection was replaced.
        """
        self._begin()
        generation = self._generation
        result = await self._backend.select_by_owner(owner_id)
        if self._stale(generation, "fetch"):
            return False
        if not result.ok:
            self.loading = False
            self._fail("fetch", result)
            return False
        items = tuple(self._entry(record) for record in result.value)
        self._items = items
        self.loading = False
        logger.info("Vault loaded for user=%s: %d entry(s)", owner_id, len(items))
        return True

    async def add(
        self,
        owner_id: str,
        site_name: str,
        url: str,
        username: str,
        password: str,
    ) -> Optional[VaultEntry]:
        """Encrypt ``password`` and persist a new entry.

        Raises:
            ValueError: If any field is empty.

        Returns:
            The stored entry (with its assigned id), or None on failure.
        """
        _require(
            site_name=site_name, url=url, username=username, password=password
        )
        record = Record(
            sitename=site_name,
            url=url,
            username=username,
            password=self._crypto.encrypt(password),
            user_id=owner_id,
        )
        self._begin()
        generation = self._generation
        result = await self._backend.insert(record)
        if self._stale(generation, "add"):
            return None
        if not result.ok:
            self.loading = False
            self._fail("add", result)
            return None
        entry = VaultEntry.from_record(result.value, password)
        self._items = self._items + (entry,)
        self.loading = False
        logger.debug("Vault add: user=%s id=%s", owner_id, entry.id)
        return entry

    async def update(
        self,
        entry_id: EntryId,
        site_name: str,
        url: str,
        username: str,
        password: str,
    ) -> Optional[VaultEntry]:
        """Re-encrypt ``password`` and persist the entry by id.

        The stored entry replaces the local one in place; if no local entry
        has that id the collection is left unchanged.

        Raises:
            ValueError: If any field is empty.
        """
        _require(
            site_name=site_name, url=url, username=username, password=password
        )
        fields = {
            "sitename": site_name,
            "url": url,
            "username": username,
            "password": self._crypto.encrypt(password),
        }
        self._begin()
        generation = self._generation
        result = await self._backend.update_by_id(entry_id, fields)
        if self._stale(generation, "update"):
            return None
        if not result.ok:
            self.loading = False
            self._fail("update", result)
            return None
        entry = VaultEntry.from_record(result.value, password)
        self._items = tuple(
            entry if item.id == entry_id else item for item in self._items
        )
        self.loading = False
        logger.debug("Vault update: id=%s", entry.id)
        return entry

    async def delete(self, entry_id: EntryId) -> bool:
        """Delete the entry by id.

        On failure the entry stays in the collection and the error is
        recorded like any other vault failure.
        """
        generation = self._generation
        result = await self._backend.delete_by_id(entry_id)
        if self._stale(generation, "delete"):
            return False
        if not result.ok:
            self._fail("delete", result)
            return False
        self._items = tuple(item for item in self._items if item.id != entry_id)
        logger.debug("Vault delete: id=%s", entry_id)
        return True

    def search(self, term: str) -> list[VaultEntry]:
        """Case-insensitive match on site name, url or username."""
        if not term:
            return list(self._items)
        needle = term.lower()
        return [
            item for item in self._items
            if needle in item.site_name.lower()
            or needle in item.url.lower()
            or needle in item.username.lower()
        ]
