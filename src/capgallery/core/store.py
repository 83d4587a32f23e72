"""HTTP client for the remote relational data store.

The store speaks the PostgREST dialect used by Supabase: every table is
exposed at ``/rest/v1/<table>``, a column projection is requested with the
``select`` query parameter, and row ranges are requested with an inclusive
``Range`` header.  The authenticated user behind an access token is looked
up at ``/auth/v1/user``.

Usage
-----
::

    from capgallery.core.config import config
    from capgallery.core.store import StoreClient

    async with StoreClient(config, access_token=token) as client:
        rows = await client.read_range("images", "id, url", 0, 999)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from capgallery.core.config import GalleryConfig

logger = logging.getLogger(__name__)


class RemoteReadError(Exception):
    """A range request against the remote store failed.

    Attributes:
        table: Table that was being read.
        start: First requested row offset (inclusive).
        end: Last requested row offset (inclusive).
        status_code: HTTP status of the failed response, or ``None`` when the
            request never produced a response.
    """

    def __init__(
        self,
        message: str,
        *,
        table: str,
        start: int,
        end: int,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.table = table
        self.start = start
        self.end = end
        self.status_code = status_code


class AuthError(Exception):
    """The store rejected an access token or returned no user."""


class StoreClient:
    """Async client for table reads and user lookups.

    Attributes:
        _config (GalleryConfig):
            Application configuration: store URL, API key and timeout.
        _access_token (str | None):
            Session token sent as the bearer credential.  Falls back to the
            anonymous key when ``None``.
        _client (httpx.AsyncClient):
            Underlying HTTP client.
    """

    def __init__(
        self,
        config: GalleryConfig,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._access_token = access_token
        self._client = httpx.AsyncClient(
            base_url=config.store_url.rstrip("/"),
            timeout=config.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        bearer = access_token or self._access_token or self._config.store_anon_key
        headers = {"apikey": self._config.store_anon_key}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def read_range(
        self,
        table: str,
        columns: str,
        start: int,
        end: int,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """Read rows ``start`` through ``end`` (inclusive) of a table.

        Args:
            table: Table name.
            columns: Comma-separated column projection, e.g. ``"id, url"``.
            start: First row offset.
            end: Last row offset.
            order_by: Optional column to order by (ascending).

        Returns:
            The returned rows, possibly fewer than requested.

        Raises:
            RemoteReadError: On transport failure, a non-2xx status, or a
                response body that is not a JSON list.
        """
        params = {"select": "".join(columns.split())}
        if order_by:
            params["order"] = f"{order_by}.asc"

        headers = self._headers()
        headers["Range-Unit"] = "items"
        headers["Range"] = f"{start}-{end}"

        logger.debug(f"Reading {table} rows {start}-{end}")

        try:
            response = await self._client.get(f"/rest/v1/{table}", params=params, headers=headers)
        except httpx.HTTPError as e:
            raise RemoteReadError(
                f"Request for {table} rows {start}-{end} failed: {e}",
                table=table,
                start=start,
                end=end,
            ) from e

        if response.is_error:
            raise RemoteReadError(
                f"Request for {table} rows {start}-{end} returned HTTP {response.status_code}",
                table=table,
                start=start,
                end=end,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteReadError(
                f"Response for {table} rows {start}-{end} is not valid JSON",
                table=table,
                start=start,
                end=end,
                status_code=response.status_code,
            ) from e

        if not isinstance(data, list):
            raise RemoteReadError(
                f"Response for {table} rows {start}-{end} is not a list of rows",
                table=table,
                start=start,
                end=end,
                status_code=response.status_code,
            )

        return data

    async def fetch_user(self, access_token: str) -> dict[str, Any]:
        """Return the user that owns ``access_token``.

        Args:
            access_token: Session access token issued by the identity provider.

        Returns:
            The user object reported by the store (contains at least ``id``).

        Raises:
            AuthError: If the token is rejected or no user is returned.
            httpx.HTTPError: On transport failure.
        """
        response = await self._client.get("/auth/v1/user", headers=self._headers(access_token))

        if response.status_code in (401, 403):
            raise AuthError("Access token was rejected")
        response.raise_for_status()

        user = response.json()
        if not isinstance(user, dict) or not user.get("id"):
            raise AuthError("No user is associated with the access token")
        return user
