"""
PersistenceClient — aiohttp adapter for a PostgREST-style vault table.

Rows are always addressed by owner (``user_id``) or by id; the bearer
token comes from the identity client so the service can enforce row
ownership.
"""
import logging
from typing import Any, Optional, Union

import aiohttp

from ..models import Record
from ..ports import TokenProvider
from ..results import ErrorKind, Failure, Result, Success
from .base import RestClient

logger = logging.getLogger("passwordlock.clients")

_RETURN_ROWS = {"Prefer": "return=representation"}


class PersistenceClient(RestClient):
    """Persistence collaborator for one table of vault records."""

    def __init__(
        self,
        base_url: str,
        *,
        table: str = "passwords",
        api_key: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(base_url, api_key=api_key, session=session)
        self._path = f"/{table}"
        self._token = token_provider or (lambda: None)

    async def _call(self, method: str, **kwargs: Any) -> Result:
        return await self._request(method, self._path, token=self._token(), **kwargs)

    @staticmethod
    def _first(result: Result, what: str) -> Result:
        if not result.ok:
            return result
        rows = result.value or []
        if not rows:
            return Failure(ErrorKind.NOT_FOUND, f"No {what} returned")
        return Success(Record.model_validate(rows[0]))

    async def select_by_owner(self, owner_id: str) -> Result:
        result = await self._call(
            "GET", params={"select": "*", "user_id": f"eq.{owner_id}"}
        )
        if not result.ok:
            return result
        records = [Record.model_validate(row) for row in result.value or []]
        logger.debug("Fetched %d record(s) for user=%s", len(records), owner_id)
        return Success(records)

    async def insert(self, record: Record) -> Result:
        result = await self._call(
            "POST",
            body=[record.model_dump(exclude={"id"})],
            headers=_RETURN_ROWS,
        )
        return self._first(result, "inserted row")

    async def update_by_id(
        self, record_id: Union[int, str], fields: dict[str, Any]
    ) -> Result:
        result = await self._call(
            "PATCH",
            params={"id": f"eq.{record_id}"},
            body=fields,
            headers=_RETURN_ROWS,
        )
        return self._first(result, f"row with id {record_id}")

    async def delete_by_id(self, record_id: Union[int, str]) -> Result:
        result = await self._call("DELETE", params={"id": f"eq.{record_id}"})
        return result if not result.ok else Success(None)
