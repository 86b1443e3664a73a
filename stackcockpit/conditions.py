"""Plain display form of Kubernetes status conditions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DisplayCondition:
    """A condition reduced to text, an optional message and an optional verdict."""

    condition: str
    message: str | None = None
    is_good: bool | None = None


def _plain(condition: Any) -> DisplayCondition:
    if hasattr(condition, "display_short") and hasattr(condition, "is_good"):
        return DisplayCondition(
            condition=condition.display_short(),
            message=getattr(condition, "message", None),
            is_good=bool(condition.is_good()),
        )
    if not isinstance(condition, Mapping):
        raise ValueError(f"unsupported condition: {condition!r}")
    for key in ("type", "status"):
        if key not in condition:
            raise ValueError(f"missing field '{key}' in condition")
    return DisplayCondition(
        condition=f"{condition['type']}: {condition['status']}",
        message=condition.get("message"),
        is_good=None,
    )


def plain_conditions(conditions: Iterable[Any]) -> list[DisplayCondition]:
    """Return the plain display form of each condition.

    Mappings with `type`, `status` and an optional `message` give no verdict;
    objects offering `display_short()` and `is_good()` give their own.
    """
    return [_plain(condition) for condition in conditions]