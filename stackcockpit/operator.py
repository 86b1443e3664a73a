"""Operator specifications of the form `<NAME>(=<VERSION>)`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from stackcockpit import helm
from stackcockpit.constants import HELM_REPO_NAME_DEV, HELM_REPO_NAME_STABLE, HELM_REPO_NAME_TEST
from stackcockpit.strings import operator_chart_name

log = logging.getLogger(__name__)

VALID_OPERATORS = (
    "airflow",
    "commons",
    "druid",
    "hbase",
    "hdfs",
    "hive",
    "kafka",
    "listener",
    "nifi",
    "opa",
    "secret",
    "spark-k8s",
    "superset",
    "trino",
    "zookeeper",
)


class OperatorSpecErrorKind(Enum):
    INVALID_EQUAL_SIGN_COUNT = "invalid equal sign count in operator spec, expected one"
    INVALID_SPEC_VERSION = "invalid spec version"
    INVALID_SPEC_INPUT = "invalid (empty) operator spec input"
    INVALID_NAME = "invalid operator name"


class OperatorSpecParseError(ValueError):
    """An operator spec could not be parsed."""

    def __init__(self, kind: OperatorSpecErrorKind, name: str | None = None) -> None:
        if kind is OperatorSpecErrorKind.INVALID_NAME:
            message = f"invalid operator name: '{name}'"
        else:
            message = kind.value
        super().__init__(message)
        self.kind = kind
        self.name = name


@dataclass(frozen=True)
class OperatorSpec:
    """An operator name with an optional version."""

    name: str
    version: str | None = None

    def __str__(self) -> str:
        return self.name if self.version is None else f"{self.name}={self.version}"

    def helm_name(self) -> str:
        """Return the chart name used by Helm."""
        return operator_chart_name(self.name)

    def helm_repo_name(self) -> str:
        """Return the Helm repository matching the requested version."""
        version = self.version
        if version is None:
            return HELM_REPO_NAME_DEV
        if version.endswith("-nightly") or version.endswith("-dev"):
            return HELM_REPO_NAME_DEV
        if "-pr" in version:
            return HELM_REPO_NAME_TEST
        return HELM_REPO_NAME_STABLE

    def install(self, namespace: str) -> helm.InstallStatus:
        """Install the operator using Helm."""
        log.info("Installing operator %s", self)
        helm_name = self.helm_name()
        status = helm.install_release_from_repo(
            self.name,
            helm_name,
            helm.ChartVersion(
                repo_name=self.helm_repo_name(),
                chart_name=helm_name,
                chart_version=self.version,
            ),
            None,
            namespace,
            True,
        )
        log.debug("%s", status)
        return status

    def uninstall(self, namespace: str) -> helm.UninstallStatus:
        """Uninstall the operator using Helm."""
        status = helm.uninstall_release(self.helm_name(), namespace, True)
        print(status)
        return status


def parse_operator_spec(text: str) -> OperatorSpec:
    """Parse `<NAME>` or `<NAME>=<VERSION>`."""
    stripped = text.strip()
    if not stripped:
        raise OperatorSpecParseError(OperatorSpecErrorKind.INVALID_SPEC_INPUT)

    parts = stripped.split("=")
    if len(parts) > 2:
        raise OperatorSpecParseError(OperatorSpecErrorKind.INVALID_EQUAL_SIGN_COUNT)
    if len(parts) == 1:
        return OperatorSpec(name=stripped)

    name, version = parts
    if not version:
        raise OperatorSpecParseError(OperatorSpecErrorKind.INVALID_SPEC_VERSION)
    if name not in VALID_OPERATORS:
        raise OperatorSpecParseError(OperatorSpecErrorKind.INVALID_NAME, name)
    return OperatorSpec(name=name, version=version)


def operator_spec(name: str, version: str | None = None) -> OperatorSpec:
    """Build an operator spec, checking that the operator is known."""
    if name not in VALID_OPERATORS:
        raise OperatorSpecParseError(OperatorSpecErrorKind.INVALID_NAME, name)
    return OperatorSpec(name=name, version=version)