"""Tests for capgallery.core.gallery — merge, expand, rank, shuffle, order."""

from __future__ import annotations

import random

from capgallery.core.gallery import build_display_items, expand, merge, order, rank, shuffle
from capgallery.core.models import CaptionRecord, DisplayItem, ImageRecord


def _ids(items: list[DisplayItem]) -> list[str]:
    return [item.id for item in items]


# ============================================================================
# merge Tests
# ============================================================================


class TestMerge:
    """Tests for joining captions onto images."""

    def test_sample_scenario(self, sample_images, sample_captions):
        """Captions attach to image 1; image 2 is empty; image 99 is dropped."""
        aggregates = merge(sample_images, sample_captions)

        assert list(aggregates) == [1, 2]
        assert aggregates[1].captions == ["x", "y"]
        assert aggregates[1].image_url == "a"
        assert aggregates[2].captions == []

    def test_null_image_id_dropped(self):
        images = [ImageRecord(id=1, url="a")]
        captions = [CaptionRecord(content="orphan", image_id=None)]

        aggregates = merge(images, captions)

        assert aggregates[1].captions == []

    def test_caption_order_preserved_per_image(self):
        """Captions keep their input order even when interleaved across images."""
        images = [ImageRecord(id=1, url="a"), ImageRecord(id=2, url="b")]
        captions = [
            CaptionRecord("first-1", 1),
            CaptionRecord("first-2", 2),
            CaptionRecord("second-1", 1),
            CaptionRecord("second-2", 2),
            CaptionRecord("third-1", 1),
        ]

        aggregates = merge(images, captions)

        assert aggregates[1].captions == ["first-1", "second-1", "third-1"]
        assert aggregates[2].captions == ["first-2", "second-2"]

    def test_image_id_zero_is_not_treated_as_null(self):
        images = [ImageRecord(id=0, url="zero")]
        captions = [CaptionRecord("caption for zero", 0)]

        assert merge(images, captions)[0].captions == ["caption for zero"]

    def test_empty_inputs(self):
        assert merge([], []) == {}
        assert merge([], [CaptionRecord("x", 1)]) == {}


# ============================================================================
# expand Tests
# ============================================================================


class TestExpand:
    """Tests for turning aggregates into display items."""

    def test_sample_scenario(self, sample_images, sample_captions):
        items = expand(merge(sample_images, sample_captions))

        assert items == [
            DisplayItem(id="1-0", image_url="a", caption="x"),
            DisplayItem(id="1-1", image_url="a", caption="y"),
            DisplayItem(id="2", image_url="b", caption=None),
        ]

    def test_item_count_matches_caption_counts(self):
        """N captions give N items; zero captions give exactly one item."""
        rng = random.Random(7)
        images = [ImageRecord(id=i, url=f"u{i}") for i in range(1, 30)]
        captions = [CaptionRecord(f"c{n}", rng.choice([None, 500, *range(1, 30)])) for n in range(120)]

        aggregates = merge(images, captions)
        items = expand(aggregates)

        expected = sum(len(a.captions) if a.captions else 1 for a in aggregates.values())
        assert len(items) == expected

    def test_dropped_captions_never_displayed(self):
        images = [ImageRecord(id=1, url="a")]
        captions = [CaptionRecord("kept", 1), CaptionRecord("lost", 2), CaptionRecord("null", None)]

        captions_shown = [item.caption for item in expand(merge(images, captions))]

        assert captions_shown == ["kept"]

    def test_image_id_round_trips_through_item_id(self, sample_images, sample_captions):
        items = expand(merge(sample_images, sample_captions))
        assert [item.image_id for item in items] == [1, 1, 2]


# ============================================================================
# rank / shuffle / order Tests
# ============================================================================


class TestRank:
    """Tests for the caption-count ranking pass."""

    def test_most_captioned_first(self):
        images = [ImageRecord(id=i, url=f"u{i}") for i in (1, 2, 3)]
        captions = [
            CaptionRecord("a", 2),
            CaptionRecord("b", 3),
            CaptionRecord("c", 3),
            CaptionRecord("d", 3),
        ]
        aggregates = merge(images, captions)

        ranked = rank(expand(aggregates), aggregates)

        assert _ids(ranked) == ["3-0", "3-1", "3-2", "2-0", "1"]

    def test_ties_keep_input_order(self):
        images = [ImageRecord(id=i, url=f"u{i}") for i in (5, 4, 6)]
        aggregates = merge(images, [])

        ranked = rank(expand(aggregates), aggregates)

        assert _ids(ranked) == ["5", "4", "6"]

    def test_negative_image_ids(self):
        images = [
            ImageRecord(id=3, url="pos"),
            ImageRecord(id=-5, url="neg"),
            ImageRecord(id=-7, url="bare"),
        ]
        aggregates = merge(images, [CaptionRecord("c", -5)])

        ranked = rank(expand(aggregates), aggregates)

        assert _ids(ranked) == ["-5-0", "3", "-7"]

    def test_rank_does_not_mutate_input(self, sample_images, sample_captions):
        aggregates = merge(sample_images, sample_captions)
        items = expand(aggregates)
        before = list(items)

        rank(list(reversed(items)), aggregates)

        assert items == before


class TestShuffle:
    """Tests for the Fisher-Yates shuffle."""

    def test_is_permutation(self):
        items = [DisplayItem(id=str(i), image_url="u") for i in range(50)]
        shuffled = list(items)

        shuffle(shuffled, random.Random(1))

        assert sorted(_ids(shuffled), key=int) == _ids(items)

    def test_seeded_shuffle_is_reproducible(self):
        items = [DisplayItem(id=str(i), image_url="u") for i in range(20)]
        first, second = list(items), list(items)

        shuffle(first, random.Random(42))
        shuffle(second, random.Random(42))

        assert first == second

    def test_draws_from_shrinking_range(self):
        """One draw per position, from [0, i] for i = len-1 down to 1."""
        calls = []

        class RecordingRandom(random.Random):
            def randint(self, a, b):
                calls.append((a, b))
                return b

        items = [DisplayItem(id=str(i), image_url="u") for i in range(4)]
        shuffle(items, RecordingRandom())

        assert calls == [(0, 3), (0, 2), (0, 1)]
        # randint returning b never swaps, so the order is unchanged.
        assert _ids(items) == ["0", "1", "2", "3"]

    def test_empty_and_single(self):
        empty: list[DisplayItem] = []
        single = [DisplayItem(id="1", image_url="u")]

        shuffle(empty)
        shuffle(single)

        assert empty == []
        assert _ids(single) == ["1"]


class TestOrder:
    """Tests for rank-then-shuffle ordering."""

    def test_order_is_permutation(self, sample_images, sample_captions):
        aggregates = merge(sample_images, sample_captions)
        items = expand(aggregates)

        ordered = order(items, aggregates)

        assert sorted(_ids(ordered)) == sorted(_ids(items))
        assert len(ordered) == len(items)

    def test_order_returns_new_list(self, sample_images, sample_captions):
        aggregates = merge(sample_images, sample_captions)
        items = expand(aggregates)
        before = list(items)

        ordered = order(items, aggregates, random.Random(3))

        assert ordered is not items
        assert items == before

    def test_shuffle_applies_to_ranked_sequence(self):
        """With a fixed seed, order() equals shuffling the ranked list."""
        images = [ImageRecord(id=i, url=f"u{i}") for i in range(1, 8)]
        captions = [CaptionRecord(f"c{i}", i % 3 + 1) for i in range(10)]
        aggregates = merge(images, captions)
        items = expand(aggregates)

        expected = rank(items, aggregates)
        shuffle(expected, random.Random(11))

        assert order(items, aggregates, random.Random(11)) == expected


class TestBuildDisplayItems:
    """Tests for the combined in-memory pipeline."""

    def test_sample_scenario(self, sample_images, sample_captions):
        items = build_display_items(sample_images, sample_captions, random.Random(0))

        assert sorted(_ids(items)) == ["1-0", "1-1", "2"]
        assert {item.caption for item in items} == {"x", "y", None}

    def test_negative_image_ids(self):
        images = [ImageRecord(id=-5, url="neg"), ImageRecord(id=3, url="pos")]
        captions = [CaptionRecord("c", -5)]

        items = build_display_items(images, captions, random.Random(0))

        assert sorted(_ids(items)) == ["-5-0", "3"]
        by_id = {item.id: item for item in items}
        assert by_id["-5-0"] == DisplayItem(id="-5-0", image_url="neg", caption="c")
        assert by_id["3"].image_id == 3
