"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image

from snapverify.controller import VerificationController
from snapverify.models.config import SnapshotConfig, ViewportConfig
from snapverify.models.identity import EnvironmentInfo, NamingContext, TestIdentity
from snapverify.storage.filesystem import LocalStorage

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


# ============================================================================
# Image Helpers
# ============================================================================


def solid(size=(10, 10), color=RED) -> Image.Image:
    """Create a single-colour RGBA image."""
    return Image.new("RGBA", size, color)


def with_pixels(image: Image.Image, pixels, color=BLUE) -> Image.Image:
    """Copy ``image`` with the given (x, y) pixels repainted."""
    changed = image.copy()
    for xy in pixels:
        changed.putpixel(xy, color)
    return changed


# ============================================================================
# Naming Fixtures
# ============================================================================


@pytest.fixture
def environment() -> EnvironmentInfo:
    """A fixed environment so names do not depend on the host."""
    return EnvironmentInfo(device_model="iPhone", os_version="17.2", screen_width=375, screen_height=812)


@pytest.fixture
def naming_context(environment: EnvironmentInfo) -> NamingContext:
    return NamingContext(environment=environment)


@pytest.fixture
def identity() -> TestIdentity:
    return TestIdentity(suite="MySuite", method="testLogo")


# ============================================================================
# Controller Fixtures
# ============================================================================


@pytest.fixture
def snapshot_config(tmp_path: Path) -> SnapshotConfig:
    """Verify-mode configuration writing into the test's temp directory."""
    return SnapshotConfig(
        reference_dir=str(tmp_path / "refs"),
        failure_dir=str(tmp_path / "failures"),
        viewport=ViewportConfig(width=375, height=812),
    )


@pytest.fixture
def storage_spy() -> Mock:
    """LocalStorage wrapped in a Mock so calls can be counted."""
    return Mock(wraps=LocalStorage())


@pytest.fixture
def make_controller(environment: EnvironmentInfo, storage_spy: Mock):
    """Factory building a controller around a config, sharing the storage spy."""

    def _make(config: SnapshotConfig, **overrides) -> VerificationController:
        return VerificationController(
            config,
            storage=overrides.pop("storage", storage_spy),
            environment=overrides.pop("environment", environment),
            **overrides,
        )

    return _make


@pytest.fixture
def controller(make_controller, snapshot_config: SnapshotConfig) -> VerificationController:
    return make_controller(snapshot_config)


@pytest.fixture
def recorder(make_controller, snapshot_config: SnapshotConfig) -> VerificationController:
    return make_controller(snapshot_config.model_copy(update={"record_mode": True}))
