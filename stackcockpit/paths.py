"""Locations that are either a local path or an HTTP(S) URL."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit


class PathOrUrlParseError(ValueError):
    """A URL could not be parsed."""


@dataclass(frozen=True)
class PathOrUrl:
    """Exactly one of a local path or a remote URL."""

    path: Path | None = None
    url: str | None = None

    def __post_init__(self) -> None:
        if (self.path is None) == (self.url is None):
            raise ValueError("exactly one of path or url must be set")

    def __str__(self) -> str:
        return self.url if self.url is not None else str(self.path)


def _validate_url(text: str) -> str:
    try:
        parts = urlsplit(text)
        parts.port  # raises for a malformed or out-of-range port
    except ValueError as err:
        raise PathOrUrlParseError(f"url parse error: {err}") from err
    if not parts.hostname:
        raise PathOrUrlParseError("url parse error: empty host")
    return text


def parse_path_or_url(value: str | PathOrUrl) -> PathOrUrl:
    """Turn a string into a URL when it starts with http(s)://, else a path."""
    if isinstance(value, PathOrUrl):
        return value
    if value.startswith("https://") or value.startswith("http://"):
        return PathOrUrl(url=_validate_url(value))
    return PathOrUrl(path=Path(value))


def into_paths_or_urls(items: PathOrUrl | Iterable[str | PathOrUrl]) -> list[PathOrUrl]:
    """Turn one location or several into a list of locations."""
    if isinstance(items, PathOrUrl):
        return [items]
    return [parse_path_or_url(item) for item in items]


def parse_paths_or_urls(value: str) -> list[PathOrUrl]:
    """Parse a space separated list of locations."""
    return [parse_path_or_url(item) for item in value.split(" ")]