"""Pixel-by-pixel image comparison with a tolerance on the fraction of differing pixels.

A pixel counts as different when any RGBA channel differs by more than
``PIXEL_CHANNEL_EPSILON``. The default of 0 means exact channel equality;
raise it to forgive anti-aliasing noise.
"""

from __future__ import annotations

import logging

from PIL import Image, ImageChops

from snapverify.models.outcome import ComparisonResult, MismatchReason

logger = logging.getLogger(__name__)

PIXEL_CHANNEL_EPSILON = 0

# Colour painted over differing pixels in the diff image
DIFF_HIGHLIGHT = (255, 0, 0, 255)


def compare(
    reference: Image.Image,
    candidate: Image.Image,
    tolerance: float = 0.0,
    epsilon: int = PIXEL_CHANNEL_EPSILON,
) -> ComparisonResult:
    """Compare ``candidate`` against ``reference``.

    ``tolerance`` is the largest fraction of differing pixels still treated
    as a match: 0 requires identical pixels, 1 accepts anything of the
    right size. Images of different sizes never match.
    """
    if not 0.0 <= tolerance <= 1.0:
        raise ValueError(f"Tolerance must be between 0 and 1, got {tolerance}")

    if reference.size != candidate.size:
        logger.debug("Size mismatch: %s vs %s", reference.size, candidate.size)
        return ComparisonResult(matched=False, reason=MismatchReason.SIZE_MISMATCH)

    width, height = reference.size
    total = width * height
    if total == 0:
        return ComparisonResult(matched=True)

    reference = reference.convert("RGBA")
    candidate = candidate.convert("RGBA")
    mask = difference_mask(reference, candidate, epsilon)
    diff_count = mask.histogram()[255]

    diff_ratio = diff_count / total
    matched = diff_ratio <= tolerance
    logger.debug("Pixel diff: %.2f%% (tolerance: %.2f%%)", diff_ratio * 100, tolerance * 100)

    if matched:
        return ComparisonResult(
            matched=True,
            mismatched_pixels=diff_count,
            total_pixels=total,
            mismatch_fraction=diff_ratio,
        )
    return ComparisonResult(
        matched=False,
        reason=MismatchReason.PIXEL_MISMATCH,
        mismatched_pixels=diff_count,
        total_pixels=total,
        mismatch_fraction=diff_ratio,
        diff=highlight_diff(reference, mask),
    )


def difference_mask(reference: Image.Image, candidate: Image.Image, epsilon: int) -> Image.Image:
    """Mode "L" mask: 255 where any channel differs by more than ``epsilon``, 0 elsewhere."""
    delta = ImageChops.difference(reference, candidate)
    bands = delta.split()
    peak = bands[0]
    for band in bands[1:]:
        peak = ImageChops.lighter(peak, band)
    return peak.point(lambda v: 255 if v > epsilon else 0)


def highlight_diff(reference: Image.Image, mask: Image.Image) -> Image.Image:
    """Grayscale copy of the reference with the masked pixels painted ``DIFF_HIGHLIGHT``."""
    base = reference.convert("L").convert("RGBA")
    highlight = Image.new("RGBA", reference.size, DIFF_HIGHLIGHT)
    return Image.composite(highlight, base, mask)


def overlay_diff(reference: Image.Image, candidate: Image.Image) -> Image.Image:
    """Absolute difference of both images laid over a canvas of their combined extent.

    Works for images of different sizes, where no per-pixel mask exists.
    """
    width = max(reference.width, candidate.width)
    height = max(reference.height, candidate.height)
    canvases = []
    for image in (reference, candidate):
        canvas = Image.new("RGB", (width, height), (0, 0, 0))
        canvas.paste(image.convert("RGB"), (0, 0))
        canvases.append(canvas)
    return ImageChops.difference(*canvases)
