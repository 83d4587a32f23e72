"""Caption Gallery - shuffled, paginated gallery of images and captions."""

__version__ = "0.1.0"

from capgallery.core.config import GalleryConfig, config
from capgallery.core.models import CaptionRecord, DisplayItem, ImageAggregate, ImageRecord

__all__ = [
    "CaptionRecord",
    "DisplayItem",
    "GalleryConfig",
    "ImageAggregate",
    "ImageRecord",
    "config",
]
