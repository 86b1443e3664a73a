"""Stacks: a release, its operators and the manifests installed on top."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import yaml

from stackcockpit.params import IntoParametersError, Parameter, into_params
from stackcockpit.release import ReleaseInstallError, ReleaseSpec

log = logging.getLogger(__name__)


def _require_str(data: Mapping[str, Any], key: str, what: str) -> str:
    if key not in data:
        raise ValueError(f"missing field '{key}' in {what}")
    item = data[key]
    if not isinstance(item, str):
        raise ValueError(f"field '{key}' of {what} must be a string")
    return item


def _str_list(data: Mapping[str, Any], key: str, what: str) -> list[str]:
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
        raise ValueError(f"field '{key}' of {what} must be a list of strings")
    return list(items)


def _mapping_list(data: Mapping[str, Any], key: str, what: str) -> list[Any]:
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError(f"field '{key}' of {what} must be a list")
    return items


class ManifestKind(Enum):
    """How a manifest is installed."""

    HELM_CHART = "helmChart"
    PLAIN_YAML = "plainYaml"


@dataclass(frozen=True)
class ManifestSpec:
    """A Helm chart or plain YAML manifest, given by its location."""

    kind: ManifestKind
    location: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ManifestSpec:
        """Build a manifest from a single-key mapping such as `{helmChart: <location>}`."""
        if not isinstance(data, Mapping) or len(data) != 1:
            raise ValueError("manifest must be a mapping with exactly one key")
        ((key, value),) = data.items()
        try:
            kind = ManifestKind(key)
        except ValueError:
            raise ValueError(f"unknown manifest kind '{key}'") from None
        if not isinstance(value, str):
            raise ValueError(f"location of manifest '{key}' must be a string")
        return cls(kind=kind, location=value)

    def to_dict(self) -> dict[str, str]:
        """Return the single-key mapping of this manifest."""
        return {self.kind.value: self.location}


@dataclass(frozen=True)
class ResourceRequests:
    """CPU, memory and disk space a stack or demo needs, as Kubernetes quantities."""

    memory: str
    cpu: str
    pvc: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResourceRequests:
        """Build resource requests from their mapping."""
        if not isinstance(data, Mapping):
            raise ValueError("resource requests must be a mapping")
        return cls(
            memory=_require_str(data, "memory", "resource requests"),
            cpu=_require_str(data, "cpu", "resource requests"),
            pvc=_require_str(data, "pvc", "resource requests"),
        )

    def __str__(self) -> str:
        return f"CPU: {self.cpu}, Memory: {self.memory}, PVC space: {self.pvc}"


class StackError(Exception):
    """A stack or its manifests could not be installed."""


class NoSuchReleaseError(StackError):
    """The release the stack is built on is not known."""

    def __init__(self, name: str) -> None:
        super().__init__(f"no release with name '{name}'")
        self.name = name


class UnsupportedNamespaceError(StackError):
    """The stack cannot be installed in the requested namespace."""

    def __init__(self, requested: str, supported: Sequence[str]) -> None:
        super().__init__(
            f"cannot install stack in namespace '{requested}', "
            f"only '{', '.join(supported)}' supported"
        )
        self.requested = requested
        self.supported = list(supported)


@dataclass
class StackSpec:
    """A stack definition."""

    description: str
    release: str
    operators: list[str]
    supported_namespaces: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    manifests: list[ManifestSpec] = field(default_factory=list)
    resource_requests: ResourceRequests | None = None
    parameters: list[Parameter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StackSpec:
        """Build a stack from its camelCase mapping."""
        if not isinstance(data, Mapping):
            raise ValueError("stack must be a mapping")
        if "stackableOperators" not in data:
            raise ValueError("missing field 'stackableOperators' in stack")
        requests = data.get("resourceRequests")
        return cls(
            description=_require_str(data, "description", "stack"),
            release=_require_str(data, "stackableRelease", "stack"),
            operators=_str_list(data, "stackableOperators", "stack"),
            supported_namespaces=_str_list(data, "supportedNamespaces", "stack"),
            labels=_str_list(data, "labels", "stack"),
            manifests=[
                ManifestSpec.from_dict(m) for m in _mapping_list(data, "manifests", "stack")
            ],
            resource_requests=None if requests is None else ResourceRequests.from_dict(requests),
            parameters=[
                Parameter.from_dict(p) for p in _mapping_list(data, "parameters", "stack")
            ],
        )

    def supports_namespace(self, namespace: str) -> bool:
        """Return whether the stack may be installed in `namespace`."""
        return not self.supported_namespaces or namespace in self.supported_namespaces

    def check_prerequisites(self, product_namespace: str) -> None:
        """Raise UnsupportedNamespaceError unless the stack supports the namespace."""
        log.debug("Checking prerequisites before installing stack")
        if not self.supports_namespace(product_namespace):
            raise UnsupportedNamespaceError(product_namespace, self.supported_namespaces)

    def install_release(
        self,
        releases: Mapping[str, ReleaseSpec],
        operator_namespace: str,
        product_namespace: str,
        skip_release_install: bool,
    ) -> None:
        """Install the operators of the stack's release, unless skipped."""
        log.info("Installing release for stack (products in %s)", product_namespace)
        if skip_release_install:
            log.info("Skipping release installation during stack installation process")
            return

        release = releases.get(self.release)
        if release is None:
            raise NoSuchReleaseError(self.release)
        try:
            release.install(self.operators, [], operator_namespace)
        except ReleaseInstallError as err:
            raise StackError(f"release install error: {err}") from err

    def stack_parameters(self, parameters: str | Iterable[str]) -> dict[str, str]:
        """Validate raw stack parameters, filling in defaults."""
        try:
            return into_params(parameters, self.parameters)
        except IntoParametersError as err:
            raise StackError(f"parameter parse error: {err}") from err


def parse_stacks(text: str) -> dict[str, StackSpec]:
    """Parse a stacks file into stacks keyed by name, in file order."""
    try:
        document = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as err:
        raise ValueError(f"yaml error: {err}") from err
    if not isinstance(document, Mapping) or not isinstance(document.get("stacks"), Mapping):
        raise ValueError("missing field 'stacks'")
    return {str(name): StackSpec.from_dict(spec) for name, spec in document["stacks"].items()}