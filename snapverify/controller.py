"""Verification controller: records reference images or verifies against them."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from PIL import Image

from snapverify.capture.renderer import PlaywrightRenderer, Renderable, Renderer, as_renderable
from snapverify.compare.codec import ImageCodec, PngCodec
from snapverify.compare.comparator import compare
from snapverify.errors import (
    CaptureError,
    ConfigurationError,
    NeedsRecordingError,
    PixelMismatchError,
    SizeMismatchError,
    SnapshotError,
    SnapshotIOError,
)
from snapverify.models.config import SnapshotConfig
from snapverify.models.identity import EnvironmentInfo, FileNameType, TestIdentity
from snapverify.models.outcome import (
    Failed,
    MismatchReason,
    Recorded,
    Success,
    SuffixAttempt,
    VerificationOutcome,
)
from snapverify.naming.paths import (
    compute_file_name,
    compute_reference_path,
    suffixed_directory,
    suffixed_failure_directory,
)
from snapverify.storage.artifacts import ArtifactWriter, FailureArtifactWriter
from snapverify.storage.filesystem import LocalStorage, Storage

logger = logging.getLogger(__name__)


class VerificationController:
    """Runs one snapshot assertion at a time against an immutable configuration.

    Holds no state between calls; every ``verify`` builds its own paths and
    bitmaps, so a single controller can serve concurrently running tests.
    """

    def __init__(
        self,
        config: SnapshotConfig,
        renderer: Optional[Renderer] = None,
        codec: Optional[ImageCodec] = None,
        storage: Optional[Storage] = None,
        environment: Optional[EnvironmentInfo] = None,
    ):
        self.config = config
        self.codec = codec or PngCodec()
        self.renderer = renderer or PlaywrightRenderer(self.codec, full_page=config.full_page)
        self.storage = storage or LocalStorage()
        self.naming = config.naming_context(environment)
        self.reference_writer = ArtifactWriter(self.storage, self.codec)
        self.failure_writer = FailureArtifactWriter(self.storage, self.codec)

    # -- paths ---------------------------------------------------------------

    def reference_path(self, identity: TestIdentity, suffix: str = "") -> Path:
        file_name = compute_file_name(identity, FileNameType.REFERENCE, self.naming)
        directory = suffixed_directory(self.config.reference_dir, suffix)
        return compute_reference_path(directory, identity, file_name)

    # -- entry point ---------------------------------------------------------

    def verify(
        self,
        renderable: Any,
        identity: TestIdentity,
        suffixes: Optional[Sequence[str]] = None,
        tolerance: Optional[float] = None,
    ) -> VerificationOutcome:
        """Record or verify a snapshot and return exactly one outcome.

        Engine failures never propagate as exceptions: they come back as
        ``Failed`` with the error attached.
        """
        suffixes = list(self.config.suffixes if suffixes is None else suffixes)
        tolerance = self.config.tolerance if tolerance is None else tolerance
        try:
            target = self._check_inputs(renderable, suffixes, tolerance)
        except ConfigurationError as e:
            logger.debug("Rejected snapshot of %s: %s", identity, e)
            return Failed(error=e)

        if self.config.record_mode:
            return self._record(target, identity, suffixes[0])
        return self._verify(target, identity, suffixes, tolerance)

    def _check_inputs(self, renderable: Any, suffixes: list[str], tolerance: float) -> Renderable:
        if renderable is None:
            raise ConfigurationError("Object to be snapshotted must not be nil")
        if not self.config.reference_dir:
            raise ConfigurationError(
                "Missing value for reference_dir - set SNAPVERIFY_REFERENCE_DIR or configure it explicitly"
            )
        if not suffixes:
            raise ConfigurationError(f"Suffixes set cannot be empty {suffixes}")
        if not 0.0 <= tolerance <= 1.0:
            raise ConfigurationError(f"Tolerance must be between 0 and 1, got {tolerance}")
        return as_renderable(renderable)

    # -- record mode ---------------------------------------------------------

    def _record(self, target: Renderable, identity: TestIdentity, suffix: str) -> VerificationOutcome:
        path = self.reference_path(identity, suffix)
        try:
            snapshot = self._render(target)
            self.reference_writer.write_reference(snapshot, path)
        except SnapshotError as e:
            logger.error("Recording %s failed: %s", path, e)
            return Failed(error=e)
        return Recorded(path=path)

    # -- verify mode ---------------------------------------------------------

    def _verify(
        self,
        target: Renderable,
        identity: TestIdentity,
        suffixes: list[str],
        tolerance: float,
    ) -> VerificationOutcome:
        attempts: list[SuffixAttempt] = []
        snapshot: Optional[Image.Image] = None

        for suffix in suffixes:
            path = self.reference_path(identity, suffix)
            logger.debug("Trying reference %s (suffix %r)", path, suffix)
            try:
                reference = self.load_reference(path)
            except SnapshotError as e:
                attempts.append(SuffixAttempt(suffix=suffix, reference_path=path, error=e))
                continue

            if snapshot is None:
                try:
                    snapshot = self._render(target)
                except SnapshotError as e:
                    return Failed(error=e, attempts=tuple(attempts))

            result = compare(reference, snapshot, tolerance, epsilon=self.config.pixel_epsilon)
            if result.matched:
                logger.debug("Snapshot matches %s", path)
                return Success(suffix=suffix, reference_path=path, comparison=result)

            if result.reason == MismatchReason.SIZE_MISMATCH:
                error: SnapshotError = SizeMismatchError(reference.size, snapshot.size, path)
            else:
                error = PixelMismatchError(result.mismatch_fraction, tolerance, result.diff, path)
            attempts.append(self._save_failure(suffix, path, error, reference, snapshot, result.diff, identity))

        first = attempts[0]
        return Failed(error=first.error, artifacts=first.artifacts, attempts=tuple(attempts))

    def load_reference(self, path: Path) -> Image.Image:
        """Load and decode a reference image.

        Raises NeedsRecordingError when the file is missing and DecodeError
        when it exists but is not a readable image.
        """
        if not self.storage.exists(path):
            raise NeedsRecordingError(path)
        try:
            data = self.storage.read_bytes(path)
        except FileNotFoundError as e:
            raise NeedsRecordingError(path) from e
        except OSError as e:
            raise SnapshotIOError(f"Unable to read reference image: {e.strerror or e}", path) from e
        return self.codec.decode(data, path)

    def _render(self, target: Renderable) -> Image.Image:
        try:
            return self.renderer.render_to_bitmap(target)
        except SnapshotError:
            raise
        except Exception as e:
            raise CaptureError(f"Unable to render snapshot: {e}") from e

    def _save_failure(
        self,
        suffix: str,
        path: Path,
        error: SnapshotError,
        reference: Image.Image,
        snapshot: Image.Image,
        diff: Optional[Image.Image],
        identity: TestIdentity,
    ) -> SuffixAttempt:
        failure_dir = suffixed_failure_directory(self.config.failure_dir, suffix)
        try:
            artifacts = self.failure_writer.write(reference, snapshot, diff, identity, failure_dir, self.naming)
        except SnapshotError as e:
            logger.warning("Error saving test images: %s", e)
            return SuffixAttempt(suffix=suffix, reference_path=path, error=error, artifact_error=e)
        return SuffixAttempt(suffix=suffix, reference_path=path, error=error, artifacts=artifacts)
