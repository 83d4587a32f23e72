"""Aggregation of images and captions into ordered display items.

The functions in this module are the in-memory half of the gallery pipeline.
They run after both tables have been read in full:

1. :func:`merge` joins caption records onto image records, keyed by image id.
2. :func:`expand` turns every aggregate into one display item per caption, or
   a single caption-less item for an image with no captions.
3. :func:`order` ranks items by the caption count of their image and then
   shuffles the whole sequence.

The ranking pass is computed and then fully erased by the shuffle that
follows it, so the final order is a uniform random permutation.  Both passes
run on every call.

All functions are total over well-formed input and never raise.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping, MutableSequence, Sequence

from capgallery.core.models import CaptionRecord, DisplayItem, ImageAggregate, ImageRecord


def merge(
    images: Iterable[ImageRecord],
    captions: Iterable[CaptionRecord],
) -> dict[int, ImageAggregate]:
    """Join captions onto their images.

    Every image gets an aggregate, even when no caption references it.
    Captions are appended in input order.  A caption with a null image id or
    an id that matches no image is dropped silently.

    Args:
        images: Image records.
        captions: Caption records.

    Returns:
        Mapping of image id to aggregate, in image input order.
    """
    aggregates: dict[int, ImageAggregate] = {}
    for image in images:
        aggregates[image.id] = ImageAggregate(id=image.id, image_url=image.url)

    for caption in captions:
        if caption.image_id is None:
            continue
        aggregate = aggregates.get(caption.image_id)
        if aggregate is not None:
            aggregate.captions.append(caption.content)

    return aggregates


def expand(aggregates: Mapping[int, ImageAggregate]) -> list[DisplayItem]:
    """Convert aggregates into display items.

    Args:
        aggregates: Output of :func:`merge`.

    Returns:
        Display items in aggregate iteration order, captions in caption order.
    """
    items: list[DisplayItem] = []
    for aggregate in aggregates.values():
        if aggregate.captions:
            for index, caption in enumerate(aggregate.captions):
                items.append(
                    DisplayItem(
                        id=f"{aggregate.id}-{index}",
                        image_url=aggregate.image_url,
                        caption=caption,
                    )
                )
        else:
            items.append(DisplayItem(id=str(aggregate.id), image_url=aggregate.image_url))
    return items


def rank(
    items: Sequence[DisplayItem],
    aggregates: Mapping[int, ImageAggregate],
) -> list[DisplayItem]:
    """Stable-sort items by descending caption count of their source image.

    Items whose image is missing from ``aggregates`` count as zero captions.

    Args:
        items: Display items.
        aggregates: Aggregates the items were expanded from.

    Returns:
        New list; ties keep their relative input order.
    """

    def caption_count(item: DisplayItem) -> int:
        aggregate = aggregates.get(item.image_id)
        return aggregate.caption_count if aggregate is not None else 0

    return sorted(items, key=lambda item: -caption_count(item))


def shuffle(items: MutableSequence[DisplayItem], rng: random.Random | None = None) -> None:
    """Fisher-Yates shuffle ``items`` in place.

    For ``i`` from the last index down to 1, swap position ``i`` with a
    uniformly drawn position in ``[0, i]``.

    Args:
        items: Sequence to permute.
        rng: Random source; the module-level generator when ``None``.
    """
    randint = rng.randint if rng is not None else random.randint
    for i in range(len(items) - 1, 0, -1):
        j = randint(0, i)
        items[i], items[j] = items[j], items[i]


def order(
    items: Sequence[DisplayItem],
    aggregates: Mapping[int, ImageAggregate],
    rng: random.Random | None = None,
) -> list[DisplayItem]:
    """Rank, then shuffle, returning a permutation of ``items``.

    The input sequence is left untouched.

    Args:
        items: Display items from :func:`expand`.
        aggregates: Aggregates from :func:`merge`.
        rng: Random source for the shuffle.

    Returns:
        New list with the same items in randomized order.
    """
    ordered = rank(items, aggregates)
    shuffle(ordered, rng)
    return ordered


def build_display_items(
    images: Iterable[ImageRecord],
    captions: Iterable[CaptionRecord],
    rng: random.Random | None = None,
) -> list[DisplayItem]:
    """Run merge, expand and order over fully-read tables.

    Args:
        images: Image records.
        captions: Caption records.
        rng: Random source for the shuffle.

    Returns:
        The ordered display items for one pipeline run.
    """
    aggregates = merge(images, captions)
    return order(expand(aggregates), aggregates, rng)
