"""Device/OS/screen-size agnostic file-name normalization."""

from __future__ import annotations

import re

from snapverify.models.identity import AgnosticOption, EnvironmentInfo

_INVALID_RUN = re.compile(r"[^A-Za-z0-9_]+")


def sanitize(text: str) -> str:
    """Replace each run of characters outside ``[A-Za-z0-9_]`` with one ``_``."""
    return _INVALID_RUN.sub("_", text)


def agnostic_tokens(options: AgnosticOption, environment: EnvironmentInfo) -> list[str]:
    """Environment tokens for the enabled flags, always in device, OS, screen-size order."""
    tokens = []
    if AgnosticOption.DEVICE in options:
        tokens.append(sanitize(environment.device_model))
    if AgnosticOption.OS in options:
        tokens.append(sanitize(environment.os_version))
    if AgnosticOption.SCREEN_SIZE in options:
        tokens.append(sanitize(environment.screen_size))
    return tokens


def normalize(name: str, options: AgnosticOption, environment: EnvironmentInfo) -> str:
    """Sanitize ``name`` and append the environment tokens selected by ``options``.

    Normalizing an already-normalized name with the same options and
    environment returns it unchanged.
    """
    name = sanitize(name)
    tokens = agnostic_tokens(options, environment)
    if not tokens:
        return name
    tail = "_" + "_".join(tokens)
    if name.endswith(tail):
        return name
    return name + tail
