"""In-memory gallery state for the Caption Gallery API.

This module isolates pipeline-run bookkeeping from ``capgallery.api.main`` so
route handlers can focus on HTTP concerns while run state remains testable as
a small unit.

The gallery is intentionally simple:

- the visible state is one immutable :class:`GallerySnapshot`
- each pipeline run replaces the snapshot as a whole, never in part
- list order is whatever the pipeline produced (shuffled per run)

Runs are numbered.  Starting a run or resetting the store bumps the
generation counter and cancels the in-flight run; a run that completes after
its generation has been superseded is discarded, so a signed-out or replaced
session never writes results.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from capgallery.core.models import DisplayItem
from capgallery.core.pagination import page_window, paginate, total_pages
from capgallery.core.pipeline import GalleryPipeline
from capgallery.core.session import SessionContext

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load images and captions."

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class GallerySnapshot:
    """The result of one pipeline run, as shown to clients."""

    status: str = STATUS_IDLE
    items: tuple[DisplayItem, ...] = field(default_factory=tuple)
    error: str | None = None
    user_id: str | None = None
    generation: int = 0


class GalleryStore:
    """Owns the visible gallery snapshot and the in-flight pipeline run.

    Attributes:
        _pipeline (GalleryPipeline):
            Pipeline executed for each run.
        _snapshot (GallerySnapshot):
            Currently visible state.
        _generation (int):
            Number of the most recent run; completions from older runs are
            ignored.
        _task (asyncio.Task | None):
            The in-flight run, if any.
    """

    def __init__(self, pipeline: GalleryPipeline) -> None:
        self._pipeline = pipeline
        self._snapshot = GallerySnapshot()
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def snapshot(self) -> GallerySnapshot:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._generation

    def trigger(self, session: SessionContext | None) -> asyncio.Task | None:
        """Start a new pipeline run for ``session``.

        Must be called from a running event loop.  Any in-flight run is
        cancelled and its eventual result discarded.

        Args:
            session: Active session.  ``None`` resets the store without
                starting a run.

        Returns:
            The task running the pipeline, or ``None`` without a session.
        """
        self._cancel_in_flight()
        self._generation += 1
        generation = self._generation

        if session is None:
            self._snapshot = GallerySnapshot(generation=generation)
            return None

        self._snapshot = GallerySnapshot(
            status=STATUS_LOADING,
            user_id=session.user_id,
            generation=generation,
        )
        self._task = asyncio.create_task(self._run(session, generation))
        return self._task

    def reset(self) -> None:
        """Cancel in-flight work and return to the idle state (logout)."""
        self._cancel_in_flight()
        self._generation += 1
        self._snapshot = GallerySnapshot(generation=self._generation)

    async def wait(self) -> GallerySnapshot:
        """Wait until no run is in flight and return the snapshot.

        A run started while waiting (a refresh or a new login) is waited on
        too, so the result is never a superseded run's ``loading`` state.
        """
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._snapshot

    async def aclose(self) -> None:
        """Cancel the in-flight run and wait for it to unwind."""
        task = self._task
        self._cancel_in_flight()
        if task is not None:
            await asyncio.wait({task})

    def _cancel_in_flight(self) -> None:
        if self._task is not None and not self._task.done():
            logger.info(f"Cancelling gallery run {self._generation}")
            self._task.cancel()
        self._task = None

    async def _run(self, session: SessionContext, generation: int) -> None:
        try:
            items = await self._pipeline.run(session)
        except asyncio.CancelledError:
            logger.debug(f"Gallery run {generation} cancelled")
            raise
        except Exception as e:
            if generation != self._generation:
                logger.warning(f"Ignoring failure of stale gallery run {generation}: {e}")
                return
            logger.error(f"Error loading gallery: {e}", exc_info=True)
            self._snapshot = GallerySnapshot(
                status=STATUS_ERROR,
                error=LOAD_FAILED_MESSAGE,
                user_id=session.user_id,
                generation=generation,
            )
            return

        if generation != self._generation:
            logger.warning(f"Discarding result of stale gallery run {generation}")
            return

        self._snapshot = GallerySnapshot(
            status=STATUS_READY,
            items=tuple(items),
            user_id=session.user_id,
            generation=generation,
        )

    def get_item(self, item_id: str) -> DisplayItem | None:
        """Look up a display item of the current snapshot by id."""
        return next((item for item in self._snapshot.items if item.id == item_id), None)

    def page(self, page: int, per_page: int, max_buttons: int) -> dict[str, Any]:
        """Build the payload for one gallery page.

        Out-of-range page numbers produce an empty ``items`` list; the
        requested page is echoed back unchanged.

        Args:
            page: Requested one-based page number.
            per_page: Items per page.
            max_buttons: Width of the navigation window.

        Returns:
            Dictionary containing ``status``, ``total``, ``page``,
            ``per_page``, ``pages``, ``window``, ``show_navigation`` and
            ``items`` for the requested page.
        """
        snapshot = self._snapshot
        total = len(snapshot.items)
        pages = total_pages(total, per_page)

        return {
            "status": snapshot.status,
            "total": total,
            "page": page,
            "per_page": per_page,
            "pages": pages,
            "window": page_window(page, pages, max_buttons),
            "show_navigation": pages > 1,
            "items": [item.to_dict() for item in paginate(snapshot.items, per_page, page)],
        }
