"""Kubernetes label selectors for Stackable products."""

from __future__ import annotations

from enum import Enum


class ProductLabel(Enum):
    """Which product labels a selector matches on."""

    BOTH = "both"
    NAME = "name"
    APP = "app"


def add_label(selector: str | None, label: str) -> str:
    """Append `label` to a comma separated label selector."""
    if selector is None:
        return label
    return f"{selector},{label}"


def product_label_selector(
    product_name: str,
    instance_name: str | None,
    product_label: ProductLabel,
) -> str | None:
    """Build the label selector that matches a product and optional instance."""
    selector: str | None = None

    if product_label in (ProductLabel.NAME, ProductLabel.BOTH):
        selector = add_label(selector, f"app.kubernetes.io/name={product_name}")

    if product_label in (ProductLabel.APP, ProductLabel.BOTH):
        selector = add_label(selector, f"app.kubernetes.io/app={product_name}")

    if instance_name is not None:
        selector = add_label(selector, f"app.kubernetes.io/instance={instance_name}")

    return selector