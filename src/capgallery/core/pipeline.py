"""End-to-end gallery pipeline: read both tables, then aggregate and order.

:class:`GalleryPipeline` wires the bulk table reader to the in-memory
aggregation functions in :mod:`capgallery.core.gallery`:

    images ─┐
            ├─ merge → expand → rank → shuffle → display items
  captions ─┘

The two tables are read concurrently because they are independent; the
range requests within one table stay sequential.  Merging waits for both
reads.  If either read fails the whole run fails with
:class:`~capgallery.core.store.RemoteReadError` and nothing read so far is
kept.

Usage
-----
::

    from capgallery.core.config import config
    from capgallery.core.pipeline import GalleryPipeline

    pipeline = GalleryPipeline(config)
    items = await pipeline.run(session)
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable

from capgallery.core.config import GalleryConfig
from capgallery.core.gallery import build_display_items
from capgallery.core.models import CaptionRecord, DisplayItem, ImageRecord
from capgallery.core.reader import BulkTableReader
from capgallery.core.session import SessionContext
from capgallery.core.store import StoreClient

logger = logging.getLogger(__name__)


class GalleryPipeline:
    """Builds the ordered display items for one session.

    Attributes:
        _config (GalleryConfig):
            Table names, projections, ordering columns and fetch limit.
        _client_factory:
            Callable ``(config, access_token=...) -> StoreClient``.
        _rng (random.Random | None):
            Random source for the shuffle; the module-level generator when
            ``None``.
    """

    def __init__(
        self,
        config: GalleryConfig,
        client_factory: Callable[..., StoreClient] = StoreClient,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._rng = rng

    async def fetch_records(
        self, session: SessionContext
    ) -> tuple[list[ImageRecord], list[CaptionRecord]]:
        """Read and parse both tables for ``session``.

        Raises:
            RemoteReadError: If any range request fails.
        """
        cfg = self._config
        async with self._client_factory(cfg, access_token=session.access_token) as client:
            reader = BulkTableReader(client, cfg.fetch_limit)
            tasks = [
                asyncio.ensure_future(
                    reader.read_all(cfg.images_table, cfg.images_columns, cfg.images_order_by)
                ),
                asyncio.ensure_future(
                    reader.read_all(
                        cfg.captions_table, cfg.captions_columns, cfg.captions_order_by
                    )
                ),
            ]
            try:
                image_rows, caption_rows = await asyncio.gather(*tasks)
            except BaseException:
                # A failed read fails the run; cancel the sibling read.
                for task in tasks:
                    task.cancel()
                raise

        images = [ImageRecord.from_row(row) for row in image_rows]
        captions = [CaptionRecord.from_row(row) for row in caption_rows]
        return images, captions

    async def run(self, session: SessionContext | None) -> list[DisplayItem]:
        """Run the full pipeline.

        Args:
            session: Active session, or ``None`` when signed out.  No request
                is made without a session.

        Returns:
            Display items in presentation order; empty without a session.

        Raises:
            RemoteReadError: If any range request fails.
        """
        if session is None:
            logger.debug("No active session; skipping gallery load")
            return []

        logger.info(f"Loading gallery for user {session.user_id}")
        images, captions = await self.fetch_records(session)
        items = build_display_items(images, captions, self._rng)
        logger.info(
            f"Gallery built: {len(images)} images, {len(captions)} captions, "
            f"{len(items)} display items"
        )
        return items
