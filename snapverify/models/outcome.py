"""Comparison results and verification outcomes."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PIL import Image

from snapverify.errors import SnapshotError

RECORD_MODE_MESSAGE = (
    "Test ran in record mode. Reference image is now saved. "
    "Disable record mode to perform an actual snapshot comparison!"
)


class MismatchReason(str, enum.Enum):
    NONE = "none"
    SIZE_MISMATCH = "size-mismatch"
    PIXEL_MISMATCH = "pixel-mismatch"


@dataclass(frozen=True)
class ComparisonResult:
    matched: bool
    reason: MismatchReason = MismatchReason.NONE
    mismatched_pixels: int = 0
    total_pixels: int = 0
    mismatch_fraction: float = 0.0
    diff: Optional[Image.Image] = None  # only set for pixel mismatches


@dataclass(frozen=True)
class FailureArtifacts:
    reference: Path
    captured: Path
    diff: Path

    def diff_command(self) -> str:
        """Command line for viewing the reference/captured pair in Kaleidoscope."""
        return f'ksdiff "{self.reference}" "{self.captured}"'


@dataclass(frozen=True)
class SuffixAttempt:
    """One suffix that was tried and did not match."""

    suffix: str
    reference_path: Path
    error: SnapshotError
    artifacts: Optional[FailureArtifacts] = None
    artifact_error: Optional[SnapshotError] = None


class VerificationOutcome:
    """Base of the three terminal outcomes of a verification call."""

    passed: bool = False

    @property
    def message(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Success(VerificationOutcome):
    suffix: str
    reference_path: Path
    comparison: ComparisonResult

    passed = True

    @property
    def message(self) -> str:
        return f"Snapshot matches reference image {self.reference_path}"


@dataclass(frozen=True)
class Recorded(VerificationOutcome):
    path: Path

    passed = True

    @property
    def message(self) -> str:
        return RECORD_MODE_MESSAGE


@dataclass(frozen=True)
class Failed(VerificationOutcome):
    error: SnapshotError
    artifacts: Optional[FailureArtifacts] = None
    attempts: tuple[SuffixAttempt, ...] = field(default_factory=tuple)

    @property
    def reason(self) -> str:
        return self.error.kind

    @property
    def message(self) -> str:
        lines = [f"Snapshot comparison failed: {self.error}"]
        if self.artifacts is not None:
            lines.append(f"Failure images written to {self.artifacts.reference.parent}")
            lines.append(self.artifacts.diff_command())
        return "\n".join(lines)
