"""Error kinds raised by the snapshot engine and reported on failed outcomes."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Optional

if TYPE_CHECKING:
    from PIL import Image


class SnapshotError(Exception):
    """Base class for every failure the engine can report.

    Attributes:
        message: Human-readable description
        path: File the failure relates to, when there is one
    """

    kind: ClassVar[str] = "unknown"

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message} ({self.path})"
        return self.message


class NeedsRecordingError(SnapshotError):
    """The reference image does not exist yet."""

    kind = "needs-recording"

    def __init__(self, path: Path) -> None:
        super().__init__(
            "Reference image not found. You need to run the test in record mode", path
        )


class DecodeError(SnapshotError):
    """A reference file exists but cannot be read as an image."""

    kind = "decode-error"


class SizeMismatchError(SnapshotError):
    kind = "size-mismatch"

    def __init__(
        self,
        reference_size: tuple[int, int],
        candidate_size: tuple[int, int],
        path: Optional[Path] = None,
    ) -> None:
        super().__init__(
            "Images different sizes - reference image: %dx%d, image: %dx%d"
            % (*reference_size, *candidate_size),
            path,
        )
        self.reference_size = reference_size
        self.candidate_size = candidate_size


class PixelMismatchError(SnapshotError):
    kind = "pixel-mismatch"

    def __init__(
        self,
        mismatch_fraction: float,
        tolerance: float,
        diff: Optional["Image.Image"] = None,
        path: Optional[Path] = None,
    ) -> None:
        super().__init__(
            f"Images different - {mismatch_fraction:.2%} of pixels differ, "
            f"more than the {tolerance:.2%} allowed by the tolerance",
            path,
        )
        self.mismatch_fraction = mismatch_fraction
        self.tolerance = tolerance
        self.diff = diff


class EncodingFailedError(SnapshotError):
    """A bitmap could not be encoded to PNG."""

    kind = "encoding-failed"


class SnapshotIOError(SnapshotError, OSError):
    """Creating a directory or writing a file failed."""

    kind = "io-error"


class ConfigurationError(SnapshotError):
    kind = "configuration-error"


class CaptureError(SnapshotError):
    """The renderer could not produce a bitmap."""

    kind = "capture-error"
