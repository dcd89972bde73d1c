"""Tests for the pixel comparator."""

import pytest
from PIL import Image

from conftest import BLUE, RED, solid, with_pixels
from snapverify.compare.comparator import DIFF_HIGHLIGHT, compare, overlay_diff
from snapverify.models.outcome import MismatchReason


class TestCompareIdentity:
    """An image always matches itself."""

    @pytest.mark.parametrize("size", [(1, 1), (10, 10), (37, 5)])
    def test_identical_images_match(self, size):
        image = solid(size)
        result = compare(image, image.copy(), tolerance=0)
        assert result.matched is True
        assert result.reason == MismatchReason.NONE
        assert result.mismatch_fraction == 0.0
        assert result.diff is None

    def test_mode_difference_alone_is_not_a_mismatch(self):
        rgb = Image.new("RGB", (4, 4), (255, 0, 0))
        result = compare(rgb, solid((4, 4), RED), tolerance=0)
        assert result.matched is True


class TestSizeMismatch:
    """Different dimensions never match."""

    @pytest.mark.parametrize("tolerance", [0.0, 0.5, 1.0])
    def test_size_mismatch_regardless_of_tolerance(self, tolerance):
        result = compare(solid((10, 10)), solid((10, 11)), tolerance=tolerance)
        assert result.matched is False
        assert result.reason == MismatchReason.SIZE_MISMATCH
        assert result.diff is None

    def test_both_zero_area_match(self):
        result = compare(solid((0, 0)), solid((0, 0)), tolerance=0)
        assert result.matched is True

    def test_zero_area_against_non_empty_is_size_mismatch(self):
        result = compare(solid((0, 0)), solid((1, 1)), tolerance=1)
        assert result.reason == MismatchReason.SIZE_MISMATCH


class TestPixelMismatch:
    """Tolerance semantics on the fraction of differing pixels."""

    def test_one_pixel_in_hundred(self):
        reference = solid()
        candidate = with_pixels(reference, [(3, 4)])
        result = compare(reference, candidate, tolerance=0)
        assert result.matched is False
        assert result.reason == MismatchReason.PIXEL_MISMATCH
        assert result.mismatched_pixels == 1
        assert result.total_pixels == 100
        assert result.mismatch_fraction == pytest.approx(0.01)

    def test_within_tolerance_matches(self):
        reference = solid()
        candidate = with_pixels(reference, [(3, 4)])
        result = compare(reference, candidate, tolerance=0.02)
        assert result.matched is True
        assert result.mismatch_fraction == pytest.approx(0.01)
        assert result.diff is None

    def test_fraction_equal_to_tolerance_matches(self):
        reference = solid()
        candidate = with_pixels(reference, [(0, 0)])
        assert compare(reference, candidate, tolerance=0.01).matched is True

    def test_tolerance_monotonic(self):
        reference = solid()
        candidate = with_pixels(reference, [(x, 0) for x in range(7)])
        outcomes = [compare(reference, candidate, tolerance=t / 100).matched for t in range(0, 101, 5)]
        first_match = outcomes.index(True)
        assert all(outcomes[first_match:])
        assert not any(outcomes[:first_match])

    def test_alpha_only_difference_counts(self):
        reference = solid()
        candidate = with_pixels(reference, [(5, 5)], color=(255, 0, 0, 254))
        assert compare(reference, candidate, tolerance=0).mismatched_pixels == 1

    def test_epsilon_forgives_small_channel_noise(self):
        reference = solid()
        candidate = with_pixels(reference, [(5, 5)], color=(250, 3, 0, 255))
        assert compare(reference, candidate, tolerance=0).matched is False
        assert compare(reference, candidate, tolerance=0, epsilon=5).matched is True

    def test_diff_highlights_differing_pixels(self):
        reference = solid()
        candidate = with_pixels(reference, [(2, 2), (7, 1)])
        result = compare(reference, candidate, tolerance=0)
        diff = result.diff
        assert diff is not None
        assert diff.size == reference.size
        assert diff.getpixel((2, 2)) == DIFF_HIGHLIGHT
        assert diff.getpixel((7, 1)) == DIFF_HIGHLIGHT
        assert diff.getpixel((0, 0)) != DIFF_HIGHLIGHT

    @pytest.mark.parametrize("tolerance", [-0.01, 1.01])
    def test_invalid_tolerance(self, tolerance):
        with pytest.raises(ValueError):
            compare(solid(), solid(), tolerance=tolerance)


class TestOverlayDiff:
    def test_covers_both_extents(self):
        diff = overlay_diff(solid((4, 6), RED), solid((8, 2), BLUE))
        assert diff.size == (8, 6)

    def test_identical_region_is_black(self):
        diff = overlay_diff(solid((4, 4), RED), solid((6, 6), RED))
        assert diff.getpixel((1, 1)) == (0, 0, 0)
        assert diff.getpixel((5, 5)) == (255, 0, 0)
