"""Renderers that turn a page, an element or a ready-made image into a bitmap."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from PIL import Image
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import ElementHandle, Locator, Page

from snapverify.compare.codec import ImageCodec, PngCodec
from snapverify.errors import CaptureError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class View:
    """A whole page (the viewport, or the full scrollable page)."""

    handle: Any


@dataclass(frozen=True)
class Layer:
    """A single element of a page."""

    handle: Any


@dataclass(frozen=True)
class StaticImage:
    """An already-rendered bitmap: a Pillow image or the path of an image file."""

    handle: Any


Renderable = Union[View, Layer, StaticImage]


def as_renderable(obj: Any) -> Renderable:
    """Resolve a raw object to a Renderable once, at the boundary."""
    if isinstance(obj, (View, Layer, StaticImage)):
        return obj
    if obj is None:
        raise ConfigurationError("Object to be snapshotted must not be nil")
    if isinstance(obj, Page):
        return View(obj)
    if isinstance(obj, (Locator, ElementHandle)):
        return Layer(obj)
    if isinstance(obj, (Image.Image, str, Path)):
        return StaticImage(obj)
    raise ConfigurationError(
        f"Only pages, elements and images can be snapshotted, got {type(obj).__name__}"
    )


class Renderer(Protocol):
    def render_to_bitmap(self, renderable: Renderable) -> Image.Image: ...


class ImageRenderer:
    """Renders StaticImage handles."""

    def __init__(self, codec: Optional[ImageCodec] = None):
        self.codec = codec or PngCodec()

    def render_to_bitmap(self, renderable: Renderable) -> Image.Image:
        if not isinstance(renderable, StaticImage):
            raise ConfigurationError(f"ImageRenderer cannot render {type(renderable).__name__}")
        handle = renderable.handle
        if isinstance(handle, Image.Image):
            return handle
        path = Path(handle)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise CaptureError(f"Unable to read image: {e.strerror or e}", path) from e
        return self.codec.decode(data, path)


class PlaywrightRenderer:
    """Screenshots Playwright pages (View) and locators/element handles (Layer).

    StaticImage renderables are passed through unchanged.
    """

    def __init__(self, codec: Optional[ImageCodec] = None, full_page: bool = False):
        self.codec = codec or PngCodec()
        self.full_page = full_page
        self._images = ImageRenderer(self.codec)

    def render_to_bitmap(self, renderable: Renderable) -> Image.Image:
        try:
            match renderable:
                case View(handle=page):
                    data = page.screenshot(full_page=self.full_page, animations="disabled")
                case Layer(handle=element):
                    data = element.screenshot(animations="disabled")
                case StaticImage():
                    return self._images.render_to_bitmap(renderable)
                case _:
                    raise ConfigurationError(f"Not a renderable: {renderable!r}")
        except PlaywrightError as e:
            raise CaptureError(f"Screenshot failed: {e}") from e
        logger.debug("Captured %d byte screenshot", len(data))
        return self.codec.decode(data)
