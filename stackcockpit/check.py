"""Checks for required programs on the PATH."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable

log = logging.getLogger(__name__)


def binary_present(name: str) -> bool:
    """Return whether a program called `name` is found on the PATH."""
    return shutil.which(name) is not None


def binaries_present(names: Iterable[str]) -> bool:
    """Return whether every program in `names` is found on the PATH."""
    log.debug("Checking if required binaries are present on the system")
    return all(binary_present(name) for name in names)


def binaries_present_with_name(names: Iterable[str]) -> str | None:
    """Return the first program not found on the PATH, or None if all are."""
    log.debug("Checking if required binaries are present on the system")
    return next((name for name in names if not binary_present(name)), None)