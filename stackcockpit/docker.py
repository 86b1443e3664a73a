"""Checks on the local Docker daemon."""

from __future__ import annotations

import logging
import subprocess

log = logging.getLogger(__name__)


class DockerError(Exception):
    """Docker could not be queried or is unusable."""


class DockerNotRunningError(DockerError):
    """The Docker daemon does not answer."""

    def __init__(self) -> None:
        super().__init__("It seems like Docker is not running on this system")


def check_if_docker_is_running() -> None:
    """Raise DockerNotRunningError unless `docker info` succeeds."""
    log.debug("Checking if Docker is running")
    try:
        result = subprocess.run(["docker", "info"], stdout=subprocess.DEVNULL, check=False)
    except OSError as err:
        raise DockerError(f"io error: {err}") from err
    if result.returncode != 0:
        raise DockerNotRunningError()