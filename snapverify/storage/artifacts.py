"""Artifact writer: persists reference images and failure diagnostics."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image

from snapverify.compare.codec import ImageCodec, PngCodec
from snapverify.compare.comparator import overlay_diff
from snapverify.models.identity import FileNameType, NamingContext, TestIdentity
from snapverify.models.outcome import FailureArtifacts
from snapverify.naming.paths import compute_failure_path, compute_file_name
from snapverify.storage.filesystem import LocalStorage, Storage

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Writes encoded bitmaps, creating every parent directory before the first write."""

    def __init__(self, storage: Optional[Storage] = None, codec: Optional[ImageCodec] = None):
        self.storage = storage or LocalStorage()
        self.codec = codec or PngCodec()

    def write_images(self, images: list[tuple[Path, Image.Image]]) -> None:
        """Write each image to its path, in order.

        Raises SnapshotIOError if a directory cannot be created (nothing has
        been written at that point) and EncodingFailedError or
        SnapshotIOError if an individual image fails; images written before
        the failing one are left in place.
        """
        for parent in dict.fromkeys(path.parent for path, _ in images):
            self.storage.make_dirs(parent)
        for path, image in images:
            data = self.codec.encode(image)
            self.storage.write_bytes(path, data)

    def write_reference(self, image: Image.Image, path: Path) -> Path:
        """Record-mode write of a new reference image."""
        self.write_images([(path, image)])
        logger.info("Reference image saved at: %s", path)
        return path


class FailureArtifactWriter(ArtifactWriter):
    """Writes the reference, captured and diff images of a failed comparison."""

    def artifact_paths(
        self,
        identity: TestIdentity,
        failure_dir: Optional[str | Path],
        context: NamingContext,
    ) -> FailureArtifacts:
        def path_for(file_type: FileNameType) -> Path:
            return compute_failure_path(failure_dir, identity, compute_file_name(identity, file_type, context))

        return FailureArtifacts(
            reference=path_for(FileNameType.FAILED_REFERENCE),
            captured=path_for(FileNameType.FAILED_TEST),
            diff=path_for(FileNameType.FAILED_TEST_DIFF),
        )

    def write(
        self,
        reference: Image.Image,
        candidate: Image.Image,
        diff: Optional[Image.Image],
        identity: TestIdentity,
        failure_dir: Optional[str | Path],
        context: NamingContext,
    ) -> FailureArtifacts:
        """Persist the three failure images and return their paths.

        Without a diff (images of different sizes) an overlay of both images
        is written in its place.
        """
        paths = self.artifact_paths(identity, failure_dir, context)
        if diff is None:
            diff = overlay_diff(reference, candidate)
        self.write_images([
            (paths.reference, reference),
            (paths.captured, candidate),
            (paths.diff, diff),
        ])
        logger.info(
            "Failure images written to %s. If you have Kaleidoscope installed you can "
            "run this command to see an image diff:\n%s",
            paths.reference.parent, paths.diff_command(),
        )
        return paths
