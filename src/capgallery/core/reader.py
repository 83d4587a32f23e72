"""Bulk reads of whole tables through a capped range API.

The remote store returns at most ``fetch_limit`` rows per request.  A table
larger than that is read as a sequence of contiguous range requests; each
request starts where the previous one ended, so the requests for one table are
strictly sequential.

Rows are not deduplicated.  The result is only consistent when the store
returns rows in a stable order across requests, which is why an optional
``order_by`` column can be passed through to the store.
"""

from __future__ import annotations

import logging
from typing import Any

from capgallery.core.store import StoreClient

logger = logging.getLogger(__name__)


class BulkTableReader:
    """Read every row of a table despite the store's per-request row cap."""

    def __init__(self, client: StoreClient, fetch_limit: int) -> None:
        if fetch_limit < 1:
            raise ValueError(f"fetch_limit must be at least 1, got {fetch_limit}")
        self._client = client
        self._fetch_limit = fetch_limit

    async def read_all(
        self,
        table: str,
        columns: str,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """Read the complete contents of ``table``.

        Requests ranges of ``fetch_limit`` rows starting at offset 0 and
        advances by the number of rows actually returned.  Stops as soon as a
        request returns fewer than ``fetch_limit`` rows, including zero, so a
        table whose size is an exact multiple of the limit costs one extra
        empty request.

        Args:
            table: Table name.
            columns: Column projection passed to the store.
            order_by: Optional ordering column for stable pagination.

        Returns:
            All rows, in the order the store returned them.

        Raises:
            RemoteReadError: If any range request fails.  Rows fetched before
                the failure are discarded.
        """
        rows: list[dict[str, Any]] = []
        offset = 0
        requests = 0

        while True:
            batch = await self._client.read_range(
                table,
                columns,
                offset,
                offset + self._fetch_limit - 1,
                order_by=order_by,
            )
            requests += 1
            rows.extend(batch)
            offset += len(batch)

            if len(batch) < self._fetch_limit:
                break

        logger.info(f"Read {len(rows)} rows from {table} in {requests} request(s)")
        return rows
