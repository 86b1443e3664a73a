import json
import subprocess
from unittest import mock

import pytest

from stackcockpit import helm
from stackcockpit.constants import HELM_DEFAULT_CHART_VERSION


class FakeHelm:
    def __init__(self):
        self.releases = []
        self.fail = {}
        self.calls = []

    def __call__(self, args, **kwargs):
        args = list(args)
        self.calls.append((args, kwargs.get("input")))
        command = args[1]
        if command in self.fail:
            return subprocess.CompletedProcess(args, 1, "", self.fail[command])
        if command == "status":
            found = any(r["name"] == args[2] for r in self.releases)
            if found:
                return subprocess.CompletedProcess(args, 0, "STATUS: deployed", "")
            return subprocess.CompletedProcess(args, 1, "", "Error: release: not found")
        if command == "list":
            return subprocess.CompletedProcess(args, 0, json.dumps(self.releases), "")
        return subprocess.CompletedProcess(args, 0, "", "")

    def commands(self, name):
        return [args for args, _ in self.calls if args[1] == name]


def listing(name, chart):
    return {
        "name": name,
        "namespace": "stackable-operators",
        "revision": "1",
        "updated": "2023-05-01 10:00:00 +0000 UTC",
        "status": "deployed",
        "chart": chart,
        "app_version": "0.0.0",
    }


@pytest.fixture
def fake_helm():
    fake = FakeHelm()
    with mock.patch("subprocess.run", side_effect=fake):
        yield fake


@pytest.mark.parametrize(
    ("result", "expected"),
    [("ERROR:boom", "boom"), ("", None), ("all good", None), ("ERROR:a ERROR:b", "a b")],
)
def test_to_helm_error(result, expected):
    assert helm.to_helm_error(result) == expected


def test_status_messages():
    assert str(helm.ReleaseInstalled("zk")) == "The release zk was successfully installed."
    assert str(helm.ReleaseNotInstalled("zk")) == "The release zk is not installed, skipping."
    assert str(helm.ReleaseAlreadyInstalledWithVersion("zk", "1", "1")) == (
        "The release zk (1) is already installed (requested 1), skipping."
    )
    assert str(helm.ReleaseAlreadyInstalledUnspecified("zk", "1")) == (
        "The release zk (1) is already installed and no specific version was requested, skipping."
    )


def test_install_new_release_uses_default_version(fake_helm):
    status = helm.install_release_from_repo(
        "zookeeper",
        "zookeeper-operator",
        helm.ChartVersion("stackable-stable", "zookeeper-operator"),
        None,
        "stackable-operators",
        True,
    )
    assert status == helm.ReleaseInstalled("zookeeper-operator")
    (args,) = fake_helm.commands("install")
    assert "stackable-stable/zookeeper-operator" in args
    assert args[args.index("--version") + 1] == HELM_DEFAULT_CHART_VERSION
    assert "--values" not in args


def test_install_passes_values_on_stdin(fake_helm):
    status = helm.install_release_from_repo(
        "minio",
        "minio",
        helm.ChartVersion("minio", "minio", "4.0.2"),
        "replicas: 1\n",
        "default",
        True,
    )
    assert status == helm.ReleaseInstalled("minio")
    installs = [(args, stdin) for args, stdin in fake_helm.calls if args[1] == "install"]
    assert len(installs) == 1
    args, stdin = installs[0]
    assert args[args.index("--values") + 1] == "-"
    assert stdin == "replicas: 1\n"
    assert args[args.index("--version") + 1] == "4.0.2"


def test_install_existing_same_version(fake_helm):
    fake_helm.releases.append(listing("zookeeper-operator", "zookeeper-operator-23.4.0"))
    status = helm.install_release_from_repo(
        "zookeeper",
        "zookeeper-operator",
        helm.ChartVersion("stackable-stable", "zookeeper-operator", "23.4.0"),
        None,
        "stackable-operators",
        True,
    )
    assert status == helm.ReleaseAlreadyInstalledWithVersion(
        "zookeeper-operator", "23.4.0", "23.4.0"
    )
    assert fake_helm.commands("install") == []


def test_install_existing_other_version(fake_helm):
    fake_helm.releases.append(listing("zookeeper-operator", "zookeeper-operator-23.4.0"))
    with pytest.raises(helm.ReleaseAlreadyInstalledError) as info:
        helm.install_release_from_repo(
            "zookeeper",
            "zookeeper-operator",
            helm.ChartVersion("stackable-stable", "zookeeper-operator", "23.1.0"),
            None,
            "stackable-operators",
            True,
        )
    assert info.value.current_version == "23.4.0"
    assert info.value.requested_version == "23.1.0"
    assert isinstance(info.value, helm.HelmInstallReleaseError)


def test_install_existing_unspecified(fake_helm):
    fake_helm.releases.append(listing("zookeeper-operator", "zookeeper-operator-23.4.0"))
    status = helm.install_release_from_repo(
        "zookeeper",
        "zookeeper-operator",
        helm.ChartVersion("stackable-dev", "zookeeper-operator"),
        None,
        "stackable-operators",
        True,
    )
    assert status == helm.ReleaseAlreadyInstalledUnspecified("zookeeper-operator", "23.4.0")


def test_install_exists_but_not_listed(fake_helm):
    fake_helm.releases.append(listing("zookeeper-operator", "zookeeper-operator-23.4.0"))
    fake_helm.fail["list"] = "cluster unreachable"
    with pytest.raises(helm.HelmListReleasesError):
        helm.install_release_from_repo(
            "zookeeper",
            "zookeeper-operator",
            helm.ChartVersion("stackable-dev", "zookeeper-operator"),
            None,
            "stackable-operators",
            True,
        )


def test_install_failure(fake_helm):
    fake_helm.fail["install"] = "chart not found"
    with pytest.raises(helm.HelmWrapperError) as info:
        helm.install_release_from_repo(
            "kafka",
            "kafka-operator",
            helm.ChartVersion("stackable-dev", "kafka-operator"),
            None,
            "stackable-operators",
            True,
        )
    assert info.value.error == "chart not found"


def test_list_releases_splits_chart_version(fake_helm):
    fake_helm.releases.append(listing("spark-k8s-operator", "spark-k8s-operator-23.4.0-rc1"))
    (release,) = helm.list_releases("stackable-operators")
    assert release.name == "spark-k8s-operator"
    assert release.version == "23.4.0-rc1"
    assert release.status == "deployed"
    assert release.namespace == "stackable-operators"


def test_get_release(fake_helm):
    fake_helm.releases.append(listing("hive-operator", "hive-operator-23.4.0"))
    assert helm.get_release("hive-operator", "stackable-operators").version == "23.4.0"
    assert helm.get_release("nifi-operator", "stackable-operators") is None


def test_check_release_exists(fake_helm):
    fake_helm.releases.append(listing("hive-operator", "hive-operator-23.4.0"))
    assert helm.check_release_exists("hive-operator", "stackable-operators") is True
    assert helm.check_release_exists("nifi-operator", "stackable-operators") is False


def test_uninstall_not_installed(fake_helm):
    status = helm.uninstall_release("nifi-operator", "stackable-operators", True)
    assert status == helm.ReleaseNotInstalled("nifi-operator")
    assert fake_helm.commands("uninstall") == []


def test_uninstall_installed(fake_helm):
    fake_helm.releases.append(listing("hive-operator", "hive-operator-23.4.0"))
    status = helm.uninstall_release("hive-operator", "stackable-operators", True)
    assert status == helm.ReleaseUninstalled("hive-operator")
    assert fake_helm.commands("uninstall")[0][2] == "hive-operator"


def test_uninstall_failure(fake_helm):
    fake_helm.releases.append(listing("hive-operator", "hive-operator-23.4.0"))
    fake_helm.fail["uninstall"] = "forbidden"
    with pytest.raises(helm.HelmUninstallReleaseError) as info:
        helm.uninstall_release("hive-operator", "stackable-operators", True)
    assert info.value.error == "forbidden"


def test_add_repo(fake_helm):
    result = helm.add_repo("stackable-stable", "https://repo.example.com/helm-stable/")
    assert result is None
    (args,) = fake_helm.commands("repo")
    assert args[-2:] == ["stackable-stable", "https://repo.example.com/helm-stable/"]


def test_add_repo_failure(fake_helm):
    fake_helm.fail["repo"] = "bad url"
    with pytest.raises(helm.HelmAddRepoError) as info:
        helm.add_repo("broken", "https://repo.example.com/")
    assert str(info.value) == "failed to add Helm repo: bad url"


def test_missing_helm_binary():
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("helm")):
        with pytest.raises(helm.HelmListReleasesError):
            helm.list_releases("default")


def test_helm_index_url():
    assert (
        helm.helm_index_url("https://repo.example.com/helm-stable/")
        == "https://repo.example.com/helm-stable/index.yaml"
    )
    assert (
        helm.helm_index_url("https://repo.example.com/helm-stable")
        == "https://repo.example.com/index.yaml"
    )


def test_helm_index_url_invalid():
    with pytest.raises(helm.HelmError):
        helm.helm_index_url("not a url")


def test_get_helm_index_from_file(tmp_path):
    (tmp_path / "index.yaml").write_text(
        "apiVersion: v1\n"
        "entries:\n"
        "  zookeeper-operator:\n"
        "    - name: zookeeper-operator\n"
        "      version: 23.4.0\n"
        "    - name: zookeeper-operator\n"
        "      version: 23.1.0\n"
    )
    repo = helm.get_helm_index(tmp_path.as_uri() + "/")
    versions = [e.version for e in repo.entries["zookeeper-operator"]]
    assert versions == ["23.4.0", "23.1.0"]


def test_get_helm_index_bad_yaml(tmp_path):
    (tmp_path / "index.yaml").write_text("apiVersion: v1\n")
    with pytest.raises(helm.HelmError):
        helm.get_helm_index(tmp_path.as_uri() + "/")


def test_helm_repo_requires_entries():
    with pytest.raises(ValueError):
        helm.HelmRepo.from_dict({"apiVersion": "v1"})


def test_helm_release_round_trip():
    data = {
        "name": "trino-operator",
        "version": "23.4.0",
        "namespace": "stackable-operators",
        "status": "deployed",
        "lastUpdated": "yesterday",
    }
    assert helm.HelmRelease.from_dict(data).to_dict() == data


def test_helm_chart_from_dict():
    chart = helm.HelmChart.from_dict(
        {
            "releaseName": "minio",
            "name": "minio",
            "repo": {"name": "minio", "url": "https://charts.example.com/"},
            "version": "4.0.2",
            "options": {"replicas": 1},
        }
    )
    assert chart.repo == helm.HelmChartRepo("minio", "https://charts.example.com/")
    assert chart.options == {"replicas": 1}
    assert chart.release_name == "minio"


def test_helm_chart_missing_repo():
    with pytest.raises(ValueError):
        helm.HelmChart.from_dict({"releaseName": "x", "name": "x", "version": "1"})