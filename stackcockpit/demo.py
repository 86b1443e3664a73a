"""Demos: a stack plus demo-specific manifests."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import yaml

from stackcockpit.params import IntoParametersError, Parameter, into_params
from stackcockpit.stack import ManifestSpec, ResourceRequests, StackSpec

log = logging.getLogger(__name__)


def _require_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise ValueError(f"missing field '{key}' in demo")
    item = data[key]
    if not isinstance(item, str):
        raise ValueError(f"field '{key}' of demo must be a string")
    return item


def _list(data: Mapping[str, Any], key: str) -> list[Any]:
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError(f"field '{key}' of demo must be a list")
    return items


def _str_list(data: Mapping[str, Any], key: str) -> list[str]:
    items = _list(data, key)
    if not all(isinstance(i, str) for i in items):
        raise ValueError(f"field '{key}' of demo must be a list of strings")
    return list(items)


class DemoError(Exception):
    """A demo could not be installed."""


class NoSuchStackError(DemoError):
    """The stack the demo is built on is not known."""

    def __init__(self, name: str) -> None:
        super().__init__(f"no stack with name '{name}'")
        self.name = name


class DemoUnsupportedNamespaceError(DemoError):
    """The demo cannot be installed in the requested namespace."""

    def __init__(self, requested: str, supported: Sequence[str]) -> None:
        super().__init__(
            f"cannot install demo in namespace '{requested}', "
            f"only '{', '.join(supported)}' supported"
        )
        self.requested = requested
        self.supported = list(supported)


@dataclass
class DemoSpec:
    """A demo definition."""

    description: str
    stack: str
    documentation: str | None = None
    supported_namespaces: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    manifests: list[ManifestSpec] = field(default_factory=list)
    resource_requests: ResourceRequests | None = None
    parameters: list[Parameter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DemoSpec:
        """Build a demo from its camelCase mapping."""
        if not isinstance(data, Mapping):
            raise ValueError("demo must be a mapping")
        documentation = data.get("documentation")
        if documentation is not None and not isinstance(documentation, str):
            raise ValueError("field 'documentation' of demo must be a string")
        requests = data.get("resourceRequests")
        return cls(
            description=_require_str(data, "description"),
            stack=_require_str(data, "stackableStack"),
            documentation=documentation,
            supported_namespaces=_str_list(data, "supportedNamespaces"),
            labels=_str_list(data, "labels"),
            manifests=[ManifestSpec.from_dict(m) for m in _list(data, "manifests")],
            resource_requests=None if requests is None else ResourceRequests.from_dict(requests),
            parameters=[Parameter.from_dict(p) for p in _list(data, "parameters")],
        )

    def supports_namespace(self, namespace: str) -> bool:
        """Return whether the demo may be installed in `namespace`."""
        return not self.supported_namespaces or namespace in self.supported_namespaces

    def check_prerequisites(self, product_namespace: str) -> None:
        """Raise DemoUnsupportedNamespaceError unless the demo supports the namespace."""
        log.debug("Checking prerequisites before installing demo")
        if not self.supports_namespace(product_namespace):
            raise DemoUnsupportedNamespaceError(product_namespace, self.supported_namespaces)

    def demo_parameters(self, parameters: str | Iterable[str]) -> dict[str, str]:
        """Validate raw demo parameters, filling in defaults."""
        try:
            return into_params(parameters, self.parameters)
        except IntoParametersError as err:
            raise DemoError(f"parameter parse error: {err}") from err

    def stack_spec(self, stacks: Mapping[str, StackSpec]) -> StackSpec:
        """Return the stack this demo is built on."""
        stack = stacks.get(self.stack)
        if stack is None:
            raise NoSuchStackError(self.stack)
        return stack


def parse_demos(text: str) -> dict[str, DemoSpec]:
    """Parse a demos file into demos keyed by name, in file order."""
    try:
        document = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as err:
        raise ValueError(f"yaml error: {err}") from err
    if not isinstance(document, Mapping) or not isinstance(document.get("demos"), Mapping):
        raise ValueError("missing field 'demos'")
    return {str(name): DemoSpec.from_dict(spec) for name, spec in document["demos"].items()}