"""Record and display types for the gallery pipeline."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ImageRecord:
    """One row of the images table."""

    id: int
    url: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ImageRecord":
        """Build a record from a raw store row.

        Args:
            row: Mapping with ``id`` and ``url`` keys

        Returns:
            ImageRecord instance
        """
        return cls(id=int(row["id"]), url=str(row["url"]))


@dataclass(frozen=True)
class CaptionRecord:
    """One row of the captions table.

    ``image_id`` is the foreign key into the images table and may be None.
    """

    content: str
    image_id: int | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CaptionRecord":
        """Build a record from a raw store row.

        Args:
            row: Mapping with ``content`` and ``image_id`` keys

        Returns:
            CaptionRecord instance
        """
        image_id = row.get("image_id")
        return cls(
            content=str(row.get("content") or ""),
            image_id=int(image_id) if image_id is not None else None,
        )


@dataclass
class ImageAggregate:
    """An image together with every caption attached to it.

    Built fresh for each pipeline run and discarded after expansion.
    """

    id: int
    image_url: str
    captions: list[str] = field(default_factory=list)

    @property
    def caption_count(self) -> int:
        return len(self.captions)


@dataclass(frozen=True)
class DisplayItem:
    """One renderable unit: an image and at most one caption.

    ``id`` is ``"<image_id>-<caption_index>"`` for captioned items and the
    bare image id otherwise. It is only unique within a single pipeline run.
    """

    id: str
    image_url: str
    caption: str | None = None

    @property
    def image_id(self) -> int:
        """Image id parsed back out of the item id.

        Image ids may be negative, so the caption index is split off the
        right-hand end and a bare id is parsed whole.
        """
        if self.caption is None:
            return int(self.id)
        return int(self.id.rsplit("-", 1)[0])

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary.

        Returns:
            Dictionary with ``id``, ``image_url`` and ``caption`` keys
        """
        return {"id": self.id, "image_url": self.image_url, "caption": self.caption}
