"""Stacklets: installed products together with their endpoints and conditions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from stackcockpit.conditions import DisplayCondition
from stackcockpit.strings import capitalize


@dataclass(frozen=True)
class GroupVersionKind:
    """The group, version and kind of a Kubernetes resource."""

    group: str
    version: str
    kind: str


@dataclass
class Stacklet:
    """An installed product instance."""

    name: str
    namespace: str | None
    product: str
    endpoints: dict[str, str] = field(default_factory=dict)
    conditions: list[DisplayCondition] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the serialized form of this stacklet."""
        return {
            "name": self.name,
            "namespace": self.namespace,
            "product": self.product,
            "endpoints": dict(self.endpoints),
            "conditions": [
                {
                    "message": c.message,
                    "is_good": c.is_good,
                    "condition": c.condition,
                }
                for c in self.conditions
            ],
        }


def build_products_gvk_list(product_names: Iterable[str]) -> dict[str, GroupVersionKind]:
    """Map each product name to the custom resource kind of its clusters."""
    result: dict[str, GroupVersionKind] = {}
    for product_name in product_names:
        if product_name == "spark-history-server":
            result[product_name] = GroupVersionKind(
                group="spark.stackable.tech",
                version="v1alpha1",
                kind="SparkHistoryServer",
            )
            continue
        result[product_name] = GroupVersionKind(
            group=f"{product_name}.stackable.tech",
            version="v1alpha1",
            kind=f"{capitalize(product_name)}Cluster",
        )
    return result