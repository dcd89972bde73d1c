"""Reference and failure file naming.

Every function here is pure: the same identity and context always produce
the same name, and nothing touches the filesystem.

Layout::

    <reference_dir><suffix>/<suite>/<method>[_<identifier>][_<env tokens>][@<scale>x].png
    <failure_dir>[/<suffix>]/<suite>/{reference_,failed_,diff_}<same name>

Failure images of a non-empty suffix go one level deeper, into a
subdirectory named after the suffix; `snapverify name` prints them.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Optional

from snapverify.models.identity import AgnosticOption, FileNameType, NamingContext, TestIdentity
from snapverify.naming.agnostic import agnostic_tokens, sanitize

PNG_EXTENSION = ".png"


def format_scale(scale: float) -> str:
    """Render a scale factor without trailing zeros (2.0 -> "2", 1.5 -> "1.5")."""
    return f"{scale:g}"


def compute_file_name(
    identity: TestIdentity, file_type: FileNameType, context: NamingContext
) -> str:
    name = identity.method
    if identity.identifier:
        name = f"{name}_{identity.identifier}"

    options = context.effective_options
    if options != AgnosticOption.NONE:
        # Always appended, even when the name already ends with the same tokens
        name = "_".join([sanitize(name), *agnostic_tokens(options, context.environment)])

    if context.scale > 1:
        name = f"{name}@{format_scale(context.scale)}x"

    return f"{file_type.prefix}{name}{PNG_EXTENSION}"


def compute_reference_path(base_dir: str | Path, identity: TestIdentity, file_name: str) -> Path:
    return Path(base_dir) / identity.suite / file_name


def default_failure_dir() -> str:
    return tempfile.gettempdir()


def compute_failure_path(
    failure_dir: Optional[str | Path], identity: TestIdentity, file_name: str
) -> Path:
    if not failure_dir:
        failure_dir = default_failure_dir()
    return Path(failure_dir) / identity.suite / file_name


def suffixed_directory(base_dir: str | Path, suffix: str) -> str:
    """Reference directory of a suffix variant: the suffix is appended to the directory string as-is."""
    return f"{base_dir}{suffix}"


def suffixed_failure_directory(failure_dir: Optional[str | Path], suffix: str) -> Path:
    """Failure directory of a suffix variant.

    Non-empty suffixes get their own subdirectory so the artifacts of one
    variant never overwrite another's.
    """
    base = Path(failure_dir) if failure_dir else Path(default_failure_dir())
    subdir = suffix.strip("/\\")
    return base / subdir if subdir else base
