"""Releases: sets of operator versions that are installed together."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import yaml

from stackcockpit import helm
from stackcockpit.operator import OperatorSpecParseError, operator_spec

log = logging.getLogger(__name__)


class ReleaseInstallError(Exception):
    """A release could not be installed."""


class ReleaseUninstallError(Exception):
    """A release could not be uninstalled."""


def _require_str(data: Mapping[str, Any], key: str, what: str) -> str:
    if key not in data:
        raise ValueError(f"missing field '{key}' in {what}")
    item = data[key]
    if not isinstance(item, str):
        raise ValueError(f"field '{key}' of {what} must be a string")
    return item


@dataclass(frozen=True)
class ProductSpec:
    """The operator version of one product in a release."""

    version: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProductSpec:
        """Build a product spec from its mapping."""
        return cls(version=_require_str(data, "operatorVersion", "product"))


@dataclass
class ReleaseSpec:
    """A release: its date, description and product versions."""

    date: str
    description: str
    products: dict[str, ProductSpec] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReleaseSpec:
        """Build a release from its camelCase mapping."""
        if not isinstance(data, Mapping):
            raise ValueError("release must be a mapping")
        raw_products = data.get("products")
        if not isinstance(raw_products, Mapping):
            raise ValueError("missing field 'products' in release")
        products = {}
        for name, product in raw_products.items():
            if not isinstance(product, Mapping):
                raise ValueError(f"product '{name}' must be a mapping")
            products[str(name)] = ProductSpec.from_dict(product)
        return cls(
            date=_require_str(data, "releaseDate", "release"),
            description=_require_str(data, "description", "release"),
            products=products,
        )

    def filter_products(
        self, include_products: Sequence[str], exclude_products: Sequence[str]
    ) -> list[tuple[str, ProductSpec]]:
        """Return the products that are included and not excluded."""
        return [
            (name, product)
            for name, product in self.products.items()
            if (not include_products or name in include_products)
            and name not in exclude_products
        ]

    def install(
        self,
        include_products: Sequence[str],
        exclude_products: Sequence[str],
        namespace: str,
    ) -> None:
        """Install the release by installing each selected operator."""
        log.info("Installing release")
        for product_name, product in self.filter_products(include_products, exclude_products):
            log.info("Installing product %s", product_name)
            try:
                operator = operator_spec(product_name, product.version)
            except OperatorSpecParseError as err:
                raise ReleaseInstallError(f"failed to parse operator spec: {err}") from err
            try:
                operator.install(namespace)
            except helm.HelmError as err:
                raise ReleaseInstallError(f"failed with Helm error: {err}") from err

    def uninstall(self, namespace: str) -> None:
        """Uninstall the release of every product."""
        for product_name in self.products:
            try:
                helm.uninstall_release(product_name, namespace, True)
            except helm.HelmError as err:
                raise ReleaseUninstallError("failed with Helm error") from err


def parse_releases(text: str) -> dict[str, ReleaseSpec]:
    """Parse a releases file into releases keyed by name, in file order."""
    try:
        # Every field is a string, so nothing is resolved to dates or numbers.
        document = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as err:
        raise ValueError(f"yaml error: {err}") from err
    if not isinstance(document, Mapping) or not isinstance(document.get("releases"), Mapping):
        raise ValueError("missing field 'releases'")
    return {
        str(name): ReleaseSpec.from_dict(spec) for name, spec in document["releases"].items()
    }