import os
import stat

import pytest

from stackcockpit.check import binaries_present, binaries_present_with_name, binary_present


@pytest.fixture
def fake_path(tmp_path, monkeypatch):
    for name in ("docker", "kind"):
        program = tmp_path / name
        program.write_text("#!/bin/sh\nexit 0\n")
        program.chmod(program.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("PATH", str(tmp_path))
    monkeypatch.setenv("PATHEXT", os.environ.get("PATHEXT", ""))
    return tmp_path


def test_binary_present(fake_path):
    assert binary_present("docker") is True


def test_binary_missing(fake_path):
    assert binary_present("minikube") is False


def test_binaries_present_all(fake_path):
    assert binaries_present(["docker", "kind"]) is True


def test_binaries_present_one_missing(fake_path):
    assert binaries_present(["docker", "minikube"]) is False


def test_binaries_present_empty(fake_path):
    assert binaries_present([]) is True


def test_binaries_present_with_name_none_missing(fake_path):
    assert binaries_present_with_name(["docker", "kind"]) is None


def test_binaries_present_with_name_first_missing(fake_path):
    missing = binaries_present_with_name(["docker", "minikube", "helm"])
    assert missing == "minikube"