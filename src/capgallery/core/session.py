"""Authenticated-session state for the gallery.

The gallery only loads data while an authenticated session is present.  The
session is modelled as an explicit value with an explicit lifecycle instead of
ambient state: the login callback sets it through :meth:`SessionGate.login`,
logout clears it through :meth:`SessionGate.logout`, and the pipeline receives
the :class:`SessionContext` as an argument.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from capgallery.core.config import GalleryConfig
from capgallery.core.store import StoreClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """An authenticated session: the access token and who it belongs to."""

    access_token: str
    user_id: str
    email: str | None = None


class LoginSuperseded(Exception):
    """A logout happened while the login's token was being verified."""


class SessionGate:
    """Holds at most one active :class:`SessionContext`.

    Attributes:
        _config (GalleryConfig):
            Configuration used to build store clients for token checks.
        _client_factory:
            Callable building a :class:`StoreClient` from the configuration.
        _current (SessionContext | None):
            The active session, or ``None`` when signed out.
        _generation (int):
            Bumped on every logout.  A login whose verification straddles a
            logout does not take effect.
    """

    def __init__(
        self,
        config: GalleryConfig,
        client_factory: Callable[..., StoreClient] = StoreClient,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._current: SessionContext | None = None
        self._generation = 0

    @property
    def current(self) -> SessionContext | None:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    async def login(self, access_token: str) -> SessionContext:
        """Verify ``access_token`` and make it the active session.

        Args:
            access_token: Token handed over by the identity provider's login
                callback.

        Returns:
            The new active session.

        Raises:
            AuthError: If the store does not recognise the token.  The
                previous session, if any, is left in place.
            LoginSuperseded: If :meth:`logout` was called while the token
                was being verified.  No session is set.
        """
        generation = self._generation
        async with self._client_factory(self._config) as client:
            user = await client.fetch_user(access_token)

        if generation != self._generation:
            logger.warning(f"Discarding login for user {user['id']}: logged out during verification")
            raise LoginSuperseded("Logged out while the login was being verified")

        session = SessionContext(
            access_token=access_token,
            user_id=str(user["id"]),
            email=user.get("email"),
        )
        self._current = session
        logger.info(f"Session started for user {session.user_id}")
        return session

    def logout(self) -> None:
        """Clear the active session and void any login still being verified."""
        self._generation += 1
        if self._current is not None:
            logger.info(f"Session ended for user {self._current.user_id}")
        self._current = None
