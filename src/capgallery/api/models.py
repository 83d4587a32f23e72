"""Pydantic request and response models for the Caption Gallery API.

These models define the JSON schema for the API endpoints.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Models
------
SessionRequest
    Payload for ``POST /api/session`` — the login callback handing over an
    access token.
SessionStatus
    Response of the ``/api/session`` endpoints.
DisplayItemModel
    One gallery entry: an image URL and an optional caption.
GalleryPage
    Response of ``GET /api/gallery`` — one page plus navigation data.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SessionRequest(BaseModel):
    """Request body for the ``POST /api/session`` endpoint.

    Attributes:
        access_token: Access token issued by the identity provider.
    """

    access_token: str = Field(
        ...,
        min_length=1,
        description="Access token issued by the identity provider.",
    )


class SessionStatus(BaseModel):
    """Whether a session is active and who it belongs to."""

    authenticated: bool
    user_id: str | None = None
    email: str | None = None


class DisplayItemModel(BaseModel):
    """A single gallery entry.

    Attributes:
        id: ``"<image_id>-<caption_index>"`` for captioned entries, the bare
            image id otherwise.
        image_url: URL of the image.
        caption: Caption text, or ``None``.
    """

    id: str
    image_url: str
    caption: str | None = None


class GalleryPage(BaseModel):
    """Response body for the ``GET /api/gallery`` endpoint.

    Attributes:
        status: ``idle``, ``loading``, ``ready`` or ``error``.
        total: Number of display items across all pages.
        page: Requested page number.
        per_page: Items per page.
        pages: Total number of pages (0 for an empty gallery).
        window: Page numbers to render as buttons; ``None`` marks a gap.
        show_navigation: Whether navigation controls should be shown.
        items: Display items on the requested page.
    """

    status: str
    total: int
    page: int
    per_page: int
    pages: int
    window: list[int | None]
    show_navigation: bool
    items: list[DisplayItemModel]
