"""Caption Gallery — FastAPI Application.

This module is the single entry point for the web application.  It defines
the :func:`create_app` factory, the default ``app`` instance, all REST API
routes, and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Sessions** are held by a :class:`~capgallery.core.session.SessionGate` on
  ``app.state``.  The login callback posts an access token, which is verified
  against the identity provider before the session becomes active.
- **Gallery data** is produced by :class:`~capgallery.core.pipeline.GalleryPipeline`
  and held by a :class:`~capgallery.api.gallery_store.GalleryStore` on
  ``app.state``.  Each login or refresh starts a new run in the background;
  clients poll ``GET /api/gallery`` (or pass ``wait=true``).
- **Rendering** is left to the client.  The API hands over the ordered items
  of one page, the page count, and the navigation window.

Endpoints
---------
========  ==============================  ====================================
Method    Path                            Purpose
========  ==============================  ====================================
GET       ``/api/health``                 Version and gallery status
GET       ``/api/session``                Current session
POST      ``/api/session``                Login callback: start a session
DELETE    ``/api/session``                Logout: end the session
POST      ``/api/gallery/refresh``        Rebuild the gallery
GET       ``/api/gallery``                One page of the gallery
GET       ``/api/gallery/items/{id}``     Single display item
========  ==============================  ====================================

Usage
-----
CLI (installed entry point)::

    capgallery

Direct invocation::

    python -m capgallery.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from capgallery import __version__
from capgallery.api.gallery_store import STATUS_ERROR, GalleryStore
from capgallery.api.models import GalleryPage, SessionRequest, SessionStatus
from capgallery.core.config import GalleryConfig, config
from capgallery.core.pipeline import GalleryPipeline
from capgallery.core.session import LoginSuperseded, SessionContext, SessionGate
from capgallery.core.store import AuthError, StoreClient

logger = logging.getLogger(__name__)


def _session_status(session: SessionContext | None) -> SessionStatus:
    if session is None:
        return SessionStatus(authenticated=False)
    return SessionStatus(authenticated=True, user_id=session.user_id, email=session.email)


def _require_session(request: Request) -> SessionContext:
    """Return the active session or raise 401."""
    session = request.app.state.session_gate.current
    if session is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return session


def create_app(
    cfg: GalleryConfig | None = None,
    client_factory: Callable[..., StoreClient] = StoreClient,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        cfg: Configuration; the global :data:`~capgallery.core.config.config`
            when ``None``.
        client_factory: Callable building store clients.  Tests pass a
            factory wired to a mock transport.

    Returns:
        Configured FastAPI application.
    """
    cfg = cfg or config

    # -----------------------------------------------------------------------
    # Application lifecycle: session gate and gallery store setup/teardown.
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # --- Startup -------------------------------------------------------
        app.state.config = cfg
        app.state.session_gate = SessionGate(cfg, client_factory=client_factory)
        app.state.gallery_store = GalleryStore(
            GalleryPipeline(cfg, client_factory=client_factory)
        )
        logger.info(f"Caption Gallery {__version__} started (store: {cfg.store_url})")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        await app.state.gallery_store.aclose()
        logger.info("Gallery store closed on shutdown.")

    app = FastAPI(
        title="Caption Gallery",
        description="Shuffled, paginated gallery of images and their captions.",
        version=__version__,
        lifespan=lifespan,
    )

    # Allow cross-origin requests so the frontend can be served from a
    # different origin during development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health(request: Request) -> dict:
        """Return the application version and current gallery status."""
        return {
            "version": __version__,
            "status": request.app.state.gallery_store.snapshot.status,
        }

    # -----------------------------------------------------------------------
    # Session endpoints.
    # -----------------------------------------------------------------------

    @app.get("/api/session", response_model=SessionStatus)
    async def get_session(request: Request) -> SessionStatus:
        """Report whether a session is active."""
        return _session_status(request.app.state.session_gate.current)

    @app.post("/api/session", response_model=SessionStatus)
    async def login(req: SessionRequest, request: Request) -> SessionStatus:
        """Login callback: verify the token, start a session, load the gallery.

        Raises:
            HTTPException: 401 if the token is rejected, 409 if a logout
                arrived while the token was being verified, 502 if the
                identity provider cannot be reached.
        """
        gate: SessionGate = request.app.state.session_gate
        try:
            session = await gate.login(req.access_token)
        except AuthError as e:
            logger.warning(f"Login rejected: {e}")
            raise HTTPException(status_code=401, detail="Invalid access token") from e
        except LoginSuperseded as e:
            raise HTTPException(status_code=409, detail="Logged out during login") from e
        except httpx.HTTPError as e:
            logger.error(f"Session verification failed: {e}", exc_info=True)
            raise HTTPException(status_code=502, detail="Identity provider unavailable") from e

        request.app.state.gallery_store.trigger(session)
        return _session_status(session)

    @app.delete("/api/session", response_model=SessionStatus)
    async def logout(request: Request) -> SessionStatus:
        """End the session and discard any gallery data or in-flight load."""
        request.app.state.session_gate.logout()
        request.app.state.gallery_store.reset()
        return _session_status(None)

    # -----------------------------------------------------------------------
    # Gallery endpoints.
    # -----------------------------------------------------------------------

    @app.post("/api/gallery/refresh")
    async def refresh_gallery(request: Request) -> dict:
        """Rebuild the gallery for the current session.

        Raises:
            HTTPException: 401 without a session.
        """
        session = _require_session(request)
        store: GalleryStore = request.app.state.gallery_store
        store.trigger(session)
        return {"success": True, "generation": store.generation}

    @app.get("/api/gallery", response_model=GalleryPage)
    async def get_gallery(
        request: Request,
        page: int = Query(default=1, ge=1),
        per_page: int | None = Query(default=None, ge=1, le=1000),
        max_buttons: int | None = Query(default=None, ge=1, le=50),
        wait: bool = False,
    ) -> dict:
        """Return one page of the gallery.

        Args:
            page: Page number (1-indexed).  Pages past the end are empty.
            per_page: Items per page; ``config.items_per_page`` by default.
            max_buttons: Navigation window width; ``config.max_page_buttons``
                by default.
            wait: If ``True``, wait for an in-flight load to finish first.

        Returns:
            Dictionary with keys ``status``, ``total``, ``page``,
            ``per_page``, ``pages``, ``window``, ``show_navigation`` and
            ``items``.

        Raises:
            HTTPException: 401 without a session, 502 if the last load failed.
        """
        _require_session(request)
        store: GalleryStore = request.app.state.gallery_store
        snapshot = await store.wait() if wait else store.snapshot

        if snapshot.status == STATUS_ERROR:
            raise HTTPException(status_code=502, detail=snapshot.error)

        return store.page(
            page,
            per_page or cfg.items_per_page,
            max_buttons or cfg.max_page_buttons,
        )

    @app.get("/api/gallery/items/{item_id}")
    async def get_item(item_id: str, request: Request) -> dict:
        """Return a single display item by id.

        Raises:
            HTTPException: 401 without a session, 404 if the item is unknown.
        """
        _require_session(request)
        item = request.app.state.gallery_store.get_item(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail="Item not found")
        return item.to_dict()

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port, and log level from :data:`~capgallery.core.config.config`
    (``CAPGALLERY_SERVER_HOST``, ``CAPGALLERY_SERVER_PORT``,
    ``CAPGALLERY_LOG_LEVEL``).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``capgallery`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "capgallery.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
