"""Helm releases and repositories, driven through the helm command line."""

from __future__ import annotations

import json
import logging
import re
import subprocess
import sys
import urllib.error
import urllib.request
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin, urlsplit

import yaml

from stackcockpit.constants import (
    HELM_DEFAULT_CHART_VERSION,
    HELM_ERROR_PREFIX,
    HELM_REPO_INDEX_FILE,
)

log = logging.getLogger(__name__)

_HELM_BINARY = "helm"
_CHART_WITH_VERSION = re.compile(r"^(?P<name>.+?)-(?P<version>\d+\.\d+.*)$")


def _require_str(data: Mapping[str, Any], key: str, what: str) -> str:
    if key not in data:
        raise ValueError(f"missing field '{key}' in {what}")
    item = data[key]
    if not isinstance(item, str):
        raise ValueError(f"field '{key}' of {what} must be a string")
    return item


@dataclass(frozen=True)
class HelmRelease:
    """An installed Helm release."""

    name: str
    version: str
    namespace: str
    status: str
    last_updated: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HelmRelease:
        """Build a release from its camelCase mapping."""
        return cls(
            name=_require_str(data, "name", "Helm release"),
            version=_require_str(data, "version", "Helm release"),
            namespace=_require_str(data, "namespace", "Helm release"),
            status=_require_str(data, "status", "Helm release"),
            last_updated=_require_str(data, "lastUpdated", "Helm release"),
        )

    def to_dict(self) -> dict[str, str]:
        """Return the camelCase mapping of this release."""
        return {
            "name": self.name,
            "version": self.version,
            "namespace": self.namespace,
            "status": self.status,
            "lastUpdated": self.last_updated,
        }


@dataclass(frozen=True)
class HelmChartRepo:
    """The repository a chart is installed from."""

    name: str
    url: str


@dataclass(frozen=True)
class HelmChart:
    """A Helm chart manifest as used by demos and stacks."""

    release_name: str
    name: str
    repo: HelmChartRepo
    version: str
    options: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HelmChart:
        """Build a chart description from its camelCase mapping."""
        repo = data.get("repo")
        if not isinstance(repo, Mapping):
            raise ValueError("missing field 'repo' in Helm chart")
        return cls(
            release_name=_require_str(data, "releaseName", "Helm chart"),
            name=_require_str(data, "name", "Helm chart"),
            repo=HelmChartRepo(
                name=_require_str(repo, "name", "Helm chart repo"),
                url=_require_str(repo, "url", "Helm chart repo"),
            ),
            version=_require_str(data, "version", "Helm chart"),
            options=data.get("options"),
        )


@dataclass(frozen=True)
class HelmRepoEntry:
    """One chart version listed in a repository index."""

    name: str
    version: str


@dataclass(frozen=True)
class HelmRepo:
    """The index of a Helm repository."""

    entries: dict[str, list[HelmRepoEntry]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HelmRepo:
        """Build a repository index from its parsed index file."""
        if not isinstance(data, Mapping) or "entries" not in data:
            raise ValueError("missing field 'entries' in Helm repo index")
        raw_entries = data["entries"]
        if not isinstance(raw_entries, Mapping):
            raise ValueError("field 'entries' of Helm repo index must be a mapping")
        entries: dict[str, list[HelmRepoEntry]] = {}
        for chart, versions in raw_entries.items():
            if not isinstance(versions, list):
                raise ValueError(f"entries of chart '{chart}' must be a list")
            entries[str(chart)] = [
                HelmRepoEntry(
                    name=_require_str(item, "name", "Helm repo entry"),
                    version=_require_str(item, "version", "Helm repo entry"),
                )
                for item in versions
            ]
        return cls(entries=entries)


class HelmError(Exception):
    """A Helm operation failed."""


class HelmAddRepoError(HelmError):
    def __init__(self, error: str) -> None:
        super().__init__(f"failed to add Helm repo: {error}")
        self.error = error


class HelmListReleasesError(HelmError):
    def __init__(self, error: str) -> None:
        super().__init__(f"failed to list Helm releases: {error}")
        self.error = error


class HelmUninstallReleaseError(HelmError):
    def __init__(self, error: str) -> None:
        super().__init__(f"failed to uninstall Helm release: {error}")
        self.error = error


class HelmInstallReleaseError(HelmError):
    """Installing a Helm release failed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"failed to install Helm release: {detail}")
        self.detail = detail


class NoSuchReleaseError(HelmInstallReleaseError):
    """The release was reported to exist but is missing from the release list."""

    def __init__(self, name: str) -> None:
        super().__init__(f"failed to find release {name}")
        self.name = name


class ReleaseAlreadyInstalledError(HelmInstallReleaseError):
    """The release is installed at a different version than requested."""

    def __init__(self, name: str, current_version: str, requested_version: str) -> None:
        super().__init__(
            f"release {name} ({current_version}) already installed, "
            f"skipping requested version {requested_version}"
        )
        self.name = name
        self.current_version = current_version
        self.requested_version = requested_version


class HelmWrapperError(HelmInstallReleaseError):
    """Helm itself reported an error."""

    def __init__(self, error: str) -> None:
        super().__init__(f"helm error: {error}")
        self.error = error


@dataclass(frozen=True)
class ReleaseAlreadyInstalledWithVersion:
    release_name: str
    current_version: str
    requested_version: str

    def __str__(self) -> str:
        return (
            f"The release {self.release_name} ({self.current_version}) is already "
            f"installed (requested {self.requested_version}), skipping."
        )


@dataclass(frozen=True)
class ReleaseAlreadyInstalledUnspecified:
    release_name: str
    current_version: str

    def __str__(self) -> str:
        return (
            f"The release {self.release_name} ({self.current_version}) is already "
            "installed and no specific version was requested, skipping."
        )


@dataclass(frozen=True)
class ReleaseInstalled:
    release_name: str

    def __str__(self) -> str:
        return f"The release {self.release_name} was successfully installed."


@dataclass(frozen=True)
class ReleaseNotInstalled:
    release_name: str

    def __str__(self) -> str:
        return f"The release {self.release_name} is not installed, skipping."


@dataclass(frozen=True)
class ReleaseUninstalled:
    release_name: str

    def __str__(self) -> str:
        return f"The release {self.release_name} was successfully uninstalled."


InstallStatus = (
    ReleaseAlreadyInstalledWithVersion | ReleaseAlreadyInstalledUnspecified | ReleaseInstalled
)
UninstallStatus = ReleaseNotInstalled | ReleaseUninstalled


@dataclass(frozen=True)
class ChartVersion:
    """A chart in a repository, optionally pinned to a version."""

    repo_name: str
    chart_name: str
    chart_version: str | None = None


def to_helm_error(result: str) -> str | None:
    """Return the error message if `result` carries the Helm error prefix."""
    if result and result.startswith(HELM_ERROR_PREFIX):
        return result.replace(HELM_ERROR_PREFIX, "")
    return None


def _run_helm(args: Sequence[str], stdin: str | None = None) -> str:
    """Run helm and return its output, or the error prefixed with HELM_ERROR_PREFIX."""
    try:
        completed = subprocess.run(
            [_HELM_BINARY, *args],
            input=stdin,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as err:
        return f"{HELM_ERROR_PREFIX}{err}"
    if completed.returncode != 0:
        message = (completed.stderr or completed.stdout or "").strip()
        return f"{HELM_ERROR_PREFIX}{message}"
    return completed.stdout or ""


def install_release_from_repo(
    operator_name: str,
    release_name: str,
    chart_version: ChartVersion,
    values_yaml: str | None,
    namespace: str,
    suppress_output: bool,
) -> InstallStatus:
    """Install a release from a repository chart unless it is already installed."""
    log.debug("Install Helm release from repo (operator %s)", operator_name)

    if check_release_exists(release_name, namespace):
        release = get_release(release_name, namespace)
        if release is None:
            raise NoSuchReleaseError(release_name)

        current_version = release.version
        requested = chart_version.chart_version
        if requested is None:
            return ReleaseAlreadyInstalledUnspecified(
                release_name=release_name, current_version=current_version
            )
        if requested == current_version:
            return ReleaseAlreadyInstalledWithVersion(
                release_name=release_name,
                current_version=current_version,
                requested_version=requested,
            )
        raise ReleaseAlreadyInstalledError(
            name=release_name,
            current_version=current_version,
            requested_version=requested,
        )

    full_chart_name = f"{chart_version.repo_name}/{chart_version.chart_name}"
    version = chart_version.chart_version or HELM_DEFAULT_CHART_VERSION

    log.debug(
        "Installing Helm release %s (%s) from chart %s", release_name, version, full_chart_name
    )
    _install_release(
        release_name, full_chart_name, version, values_yaml, namespace, suppress_output
    )
    return ReleaseInstalled(release_name)


def _install_release(
    release_name: str,
    chart_name: str,
    chart_version: str,
    values_yaml: str | None,
    namespace: str,
    suppress_output: bool,
) -> None:
    args = [
        "install",
        release_name,
        chart_name,
        "--version",
        chart_version,
        "--namespace",
        namespace,
    ]
    stdin = None
    if values_yaml:
        args += ["--values", "-"]
        stdin = values_yaml

    result = _run_helm(args, stdin)
    error = to_helm_error(result)
    if error is not None:
        log.error("Helm install encountered an error: %s", error)
        raise HelmWrapperError(error)
    if not suppress_output and result:
        sys.stdout.write(result)


def uninstall_release(release_name: str, namespace: str, suppress_output: bool) -> UninstallStatus:
    """Uninstall a release if it is installed."""
    log.debug("Uninstall Helm release")

    if check_release_exists(release_name, namespace):
        result = _run_helm(["uninstall", release_name, "--namespace", namespace])
        error = to_helm_error(result)
        if error is not None:
            log.error("Helm uninstall encountered an error: %s", error)
            raise HelmUninstallReleaseError(error)
        if not suppress_output and result:
            sys.stdout.write(result)
        return ReleaseUninstalled(release_name)

    log.info("The Helm release %s is not installed, skipping.", release_name)
    return ReleaseNotInstalled(release_name)


def check_release_exists(release_name: str, namespace: str) -> bool:
    """Return whether a release with this name exists in the namespace."""
    log.debug("Check if Helm release exists")
    result = _run_helm(["status", release_name, "--namespace", namespace])
    return to_helm_error(result) is None


def _release_from_listing(entry: Mapping[str, Any]) -> HelmRelease:
    chart = str(entry.get("chart", ""))
    match = _CHART_WITH_VERSION.match(chart)
    version = match.group("version") if match else str(entry.get("app_version", ""))
    return HelmRelease.from_dict(
        {
            "name": entry.get("name"),
            "version": version,
            "namespace": entry.get("namespace"),
            "status": entry.get("status"),
            "lastUpdated": str(entry.get("updated", "")),
        }
    )


def list_releases(namespace: str) -> list[HelmRelease]:
    """Return the releases installed in the namespace."""
    log.debug("List Helm releases")
    result = _run_helm(["list", "--namespace", namespace, "--output", "json"])
    error = to_helm_error(result)
    if error is not None:
        log.error("Helm list encountered an error: %s", error)
        raise HelmListReleasesError(error)

    try:
        entries = json.loads(result) if result.strip() else []
        if not isinstance(entries, list):
            raise ValueError("expected a list of releases")
        return [_release_from_listing(entry) for entry in entries]
    except (ValueError, AttributeError) as err:
        raise HelmError(f"json error: {err}") from err


def get_release(release_name: str, namespace: str) -> HelmRelease | None:
    """Return the release called `release_name`, or None."""
    log.debug("Get Helm release")
    return next((r for r in list_releases(namespace) if r.name == release_name), None)


def add_repo(repo_name: str, repo_url: str) -> None:
    """Add (or update) a Helm repository."""
    log.debug("Add Helm repo")
    result = _run_helm(["repo", "add", "--force-update", repo_name, repo_url])
    error = to_helm_error(result)
    if error is not None:
        log.error("Helm repo add encountered an error: %s", error)
        raise HelmAddRepoError(error)


def helm_index_url(repo_url: str) -> str:
    """Return the URL of the index file of a repository."""
    try:
        parts = urlsplit(repo_url)
        parts.port
    except ValueError as err:
        raise HelmError(f"url parse error: {err}") from err
    if not parts.scheme:
        raise HelmError("url parse error: relative URL without a base")
    if parts.scheme != "file" and not parts.netloc:
        raise HelmError("url parse error: empty host")
    return urljoin(repo_url, HELM_REPO_INDEX_FILE)


def get_helm_index(repo_url: str) -> HelmRepo:
    """Download and parse the index file of a repository."""
    log.debug("Get Helm repo index file")
    url = helm_index_url(repo_url)
    log.debug("Using %s to retrieve Helm index file", url)

    try:
        with urllib.request.urlopen(url) as response:
            content = response.read().decode("utf-8")
    except (urllib.error.URLError, OSError, UnicodeDecodeError) as err:
        raise HelmError(f"request error: {err}") from err

    try:
        return HelmRepo.from_dict(yaml.safe_load(content))
    except (yaml.YAMLError, ValueError) as err:
        raise HelmError(f"yaml error: {err}") from err