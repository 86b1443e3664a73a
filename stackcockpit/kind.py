"""Local Kubernetes clusters created with kind."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import yaml

from stackcockpit.check import binaries_present_with_name
from stackcockpit.constants import DEFAULT_LOCAL_CLUSTER_NAME
from stackcockpit.docker import DockerError, check_if_docker_is_running

log = logging.getLogger(__name__)


class NodeRole(Enum):
    """The role of a node in a local cluster."""

    WORKER = "worker"
    CONTROL_PLANE = "control-plane"


@dataclass(frozen=True)
class KindClusterConfig:
    """The cluster configuration handed to kind."""

    nodes: tuple[NodeRole, ...] = ()
    kind: str = "Cluster"
    api_version: str = "kind.x-k8s.io/v1alpha4"

    @classmethod
    def create(cls, node_count: int, cp_node_count: int) -> KindClusterConfig:
        """Build a config with control plane nodes first, then workers."""
        if cp_node_count >= node_count:
            cp_node_count = 1
        if node_count < cp_node_count:
            raise ValueError(
                f"node count {node_count} is smaller than control plane node count {cp_node_count}"
            )
        nodes = (NodeRole.CONTROL_PLANE,) * cp_node_count + (NodeRole.WORKER,) * (
            node_count - cp_node_count
        )
        return cls(nodes=nodes)

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping of this config."""
        return {
            "kind": self.kind,
            "apiVersion": self.api_version,
            "nodes": [{"role": role.value} for role in self.nodes],
        }

    def to_yaml(self) -> str:
        """Return this config as a YAML document."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False)


class KindClusterError(Exception):
    """A kind cluster could not be created or queried."""


@dataclass
class KindCluster:
    """A local cluster managed by kind; nothing is created until `create`."""

    node_count: int
    cp_node_count: int
    name: str = field(default=DEFAULT_LOCAL_CLUSTER_NAME)

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = DEFAULT_LOCAL_CLUSTER_NAME

    def create(self) -> None:
        """Create the cluster by running kind."""
        log.info("Creating local cluster using kind")

        missing = binaries_present_with_name(["docker", "kind"])
        if missing is not None:
            raise KindClusterError(f"missing required binary: {missing}")

        try:
            check_if_docker_is_running()
        except DockerError as err:
            raise KindClusterError("docker error") from err

        log.debug("Creating kind cluster config")
        config = KindClusterConfig.create(self.node_count, self.cp_node_count).to_yaml()

        log.debug("Creating kind cluster")
        try:
            subprocess.run(
                ["kind", "create", "cluster", "--name", self.name, "--config", "-"],
                input=config,
                text=True,
                check=False,
            )
        except OSError as err:
            raise KindClusterError(f"io error: {err}") from err

    def create_if_not_exists(self) -> None:
        """Create the cluster unless one with the same name exists."""
        log.info("Creating cluster if it doesn't exist using kind")
        if self.exists():
            return
        self.create()

    def exists(self) -> bool:
        """Return whether kind knows a cluster with this name."""
        log.debug("Checking if kind cluster exists")
        try:
            result = subprocess.run(
                ["kind", "get", "clusters"], capture_output=True, text=True, check=False
            )
        except OSError as err:
            raise KindClusterError(f"io error: {err}") from err
        if result.returncode != 0:
            raise KindClusterError(f"kind command error: {result.stderr or ''}")
        return any(line == self.name for line in (result.stdout or "").splitlines())