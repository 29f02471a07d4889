"""
RestClient — shared aiohttp plumbing for the REST adapters.

Bodies are encoded and decoded with orjson. Transport errors and HTTP
error statuses are turned into ``Failure`` values; nothing here raises
for a failed call.
"""
import asyncio
import logging
from typing import Any, Optional

import aiohttp
import orjson

from ..results import ErrorKind, Failure, Result, Success

logger = logging.getLogger("passwordlock.clients")


def _kind_for(status: int) -> ErrorKind:
    if status in (401, 403):
        return ErrorKind.INVALID_CREDENTIALS
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status in (502, 503, 504):
        return ErrorKind.NETWORK
    if 400 <= status < 500:
        return ErrorKind.REJECTED
    return ErrorKind.UNKNOWN


def _message_for(data: Any, status: int) -> str:
    if isinstance(data, dict):
        for field in ("msg", "error_description", "message", "error"):
            if data.get(field):
                return str(data[field])
    return f"HTTP {status}"


class RestClient:
    """Base class for JSON-over-HTTP collaborators.

    Args:
        base_url: service root, without trailing slash.
        api_key: sent as the ``apikey`` header when given.
        session: optional externally managed ``aiohttp.ClientSession``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._session = session
        self._owns_session = session is None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._base_url}>"

    def _client(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False

    def _headers(
        self,
        token: Optional[str] = None,
        extra: Optional[dict[str, str]] = None
    ) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._api_key:
            headers["apikey"] = self._api_key
        bearer = token or self._api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, str]] = None,
        body: Any = None,
        token: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Result:
        url = f"{self._base_url}{path}"
        data = orjson.dumps(body) if body is not None else None
        try:
            async with self._client().request(
                method,
                url,
                params=params,
                data=data,
                headers=self._headers(token, headers),
            ) as response:
                status = response.status
                payload = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            logger.warning("%s %s failed: %s", method, path, err)
            return Failure(ErrorKind.NETWORK, str(err) or type(err).__name__)
        try:
            content = orjson.loads(payload) if payload else None
        except orjson.JSONDecodeError:
            content = None
        if status >= 400:
            logger.debug("%s %s returned HTTP %s", method, path, status)
            return Failure(_kind_for(status), _message_for(content, status))
        return Success(content)
