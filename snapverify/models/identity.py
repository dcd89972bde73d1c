"""Naming inputs: which snapshot assertion this is and how its files are named."""

from __future__ import annotations

import enum
import platform
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class TestIdentity:
    """Stable identity of one snapshot assertion (suite, test method, identifier)."""

    __test__ = False  # not a pytest test class

    suite: str
    method: str
    identifier: Optional[str] = None


class FileNameType(enum.Enum):
    REFERENCE = ""
    FAILED_REFERENCE = "reference_"
    FAILED_TEST = "failed_"
    FAILED_TEST_DIFF = "diff_"

    @property
    def prefix(self) -> str:
        return self.value


class AgnosticOption(enum.Flag):
    """Which environment axes are encoded in a reference file name."""

    NONE = 0
    DEVICE = enum.auto()
    OS = enum.auto()
    SCREEN_SIZE = enum.auto()

    @classmethod
    def parse(cls, names: Iterable[str]) -> "AgnosticOption":
        """Build a flag set from option names such as ``["device", "screen_size"]``."""
        options = cls.NONE
        for name in names:
            key = name.strip().upper().replace("-", "_")
            if key not in cls.__members__:
                raise ValueError(f"Unknown agnostic option: {name!r}")
            options |= cls[key]
        return options


ALL_AGNOSTIC_OPTIONS = AgnosticOption.DEVICE | AgnosticOption.OS | AgnosticOption.SCREEN_SIZE


@dataclass(frozen=True)
class EnvironmentInfo:
    device_model: str
    os_version: str
    screen_width: int
    screen_height: int

    @property
    def screen_size(self) -> str:
        return f"{self.screen_width}x{self.screen_height}"

    @classmethod
    def detect(cls, screen_width: int = 1280, screen_height: int = 720) -> "EnvironmentInfo":
        """Read the host machine and OS; the screen size comes from the viewport."""
        return cls(
            device_model=platform.machine() or "unknown",
            os_version=f"{platform.system()} {platform.release()}".strip() or "unknown",
            screen_width=screen_width,
            screen_height=screen_height,
        )


@dataclass(frozen=True)
class NamingContext:
    """Everything besides the test identity that shapes a file name."""

    environment: EnvironmentInfo
    agnostic_options: AgnosticOption = AgnosticOption.NONE
    device_agnostic: bool = False
    scale: float = 1.0

    def __post_init__(self) -> None:
        if self.scale <= 0:
            raise ValueError(f"Screen scale must be positive, got {self.scale}")

    @property
    def effective_options(self) -> AgnosticOption:
        # The legacy flag wins over the option set
        if self.device_agnostic:
            return ALL_AGNOSTIC_OPTIONS
        return self.agnostic_options
