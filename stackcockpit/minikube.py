"""Local Kubernetes clusters created with minikube."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field

from stackcockpit.check import binaries_present
from stackcockpit.constants import DEFAULT_LOCAL_CLUSTER_NAME
from stackcockpit.docker import DockerError, check_if_docker_is_running

log = logging.getLogger(__name__)


class MinikubeClusterError(Exception):
    """A minikube cluster could not be created or queried."""


@dataclass
class MinikubeCluster:
    """A local cluster managed by minikube; nothing is created until `create`."""

    node_count: int
    name: str = field(default=DEFAULT_LOCAL_CLUSTER_NAME)

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = DEFAULT_LOCAL_CLUSTER_NAME

    def create(self) -> None:
        """Create the cluster by running minikube."""
        log.info("Creating local cluster using minikube")

        if not binaries_present(["docker", "minikube"]):
            raise MinikubeClusterError("missing dependencies")

        try:
            check_if_docker_is_running()
        except DockerError as err:
            raise MinikubeClusterError("Docker error") from err

        log.debug("Creating minikube cluster")
        try:
            subprocess.run(
                [
                    "minikube",
                    "start",
                    "--driver",
                    "docker",
                    "--nodes",
                    str(self.node_count),
                    "-p",
                    self.name,
                ],
                check=False,
            )
        except OSError as err:
            raise MinikubeClusterError(f"command error: {err}") from err

    def create_if_not_exists(self) -> None:
        """Create the cluster unless a profile with the same name exists."""
        log.info("Creating cluster if it doesn't exist using minikube")
        if self.exists():
            return
        self.create()

    def exists(self) -> bool:
        """Return whether minikube reports a profile with this name."""
        log.debug("Checking if minikube cluster exists")
        try:
            result = subprocess.run(
                ["minikube", "status", "-p", self.name, "-o", "json"],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as err:
            raise MinikubeClusterError(f"io error: {err}") from err
        return result.returncode == 0