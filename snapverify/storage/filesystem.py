"""Minimal storage abstraction and its local-filesystem implementation."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from snapverify.errors import SnapshotIOError

logger = logging.getLogger(__name__)


class Storage(Protocol):
    def read_bytes(self, path: Path) -> bytes: ...

    def write_bytes(self, path: Path, data: bytes) -> None: ...

    def make_dirs(self, path: Path) -> None: ...

    def exists(self, path: Path) -> bool: ...


class LocalStorage:
    """Reads and writes files on the local disk. Writes are atomic (tmp file + rename)."""

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        path = Path(path)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as e:
            raise SnapshotIOError(f"Unable to write file: {e.strerror or e}", path) from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SnapshotIOError(f"Unable to write file: {e.strerror or e}", path) from e
        logger.debug("Wrote %d bytes to %s", len(data), path)

    def make_dirs(self, path: Path) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SnapshotIOError(f"Unable to create directory: {e.strerror or e}", Path(path)) from e

    def exists(self, path: Path) -> bool:
        return Path(path).exists()
