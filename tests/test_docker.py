import subprocess

import pytest

from stackcockpit.docker import DockerError, DockerNotRunningError, check_if_docker_is_running


def _fake_run(returncode, calls):
    def run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, returncode)

    return run


def test_running_docker_calls_docker_info(monkeypatch):
    calls = []
    monkeypatch.setattr(subprocess, "run", _fake_run(0, calls))
    assert check_if_docker_is_running() is None
    assert [cmd for cmd, _ in calls] == [["docker", "info"]]
    assert calls[0][1]["stdout"] == subprocess.DEVNULL


def test_failing_docker_raises_not_running(monkeypatch):
    monkeypatch.setattr(subprocess, "run", _fake_run(1, []))
    with pytest.raises(DockerNotRunningError, match="It seems like Docker is not running"):
        check_if_docker_is_running()


def test_missing_docker_binary_raises_docker_error(monkeypatch):
    def run(cmd, **kwargs):
        raise FileNotFoundError("docker")

    monkeypatch.setattr(subprocess, "run", run)
    with pytest.raises(DockerError) as info:
        check_if_docker_is_running()
    assert not isinstance(info.value, DockerNotRunningError)
    assert str(info.value).startswith("io error")