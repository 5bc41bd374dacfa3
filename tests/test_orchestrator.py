import json
import os

import pytest
from pydantic import ValidationError

from k0s_setup.errors import InstallError, StartError, UnsupportedArchitectureError
from k0s_setup.marker import RunMarker, RunPhase
from k0s_setup.orchestrator import run, run_cleanup, run_main

K0S = "/usr/local/bin/k0s"
KUBECONFIG_TEXT = "apiVersion: v1\nkind: Config\n"


@pytest.fixture
def healthy_cluster(fake_commands):
    fake_commands.on("uname", "-m", stdout="x86_64\n")
    fake_commands.on("curl", "-sfL", "-H", stdout=json.dumps({"tag_name": "v1.31.0+k0s.0"}))
    fake_commands.on("sudo", K0S, "kubeconfig", "admin", stdout=KUBECONFIG_TEXT)
    fake_commands.on("kubectl", "get", "nodes", stdout="runner   Ready   control-plane   1m   v1.30.0+k0s\n")
    fake_commands.on("kubectl", "get", "pods", stdout="coredns-abc   1/1   Running   0   1m\n")
    return fake_commands


def test_pinned_version_with_readiness(monkeypatch, healthy_cluster, runner_env, read_file_command) -> None:
    monkeypatch.setenv("INPUT_VERSION", "v1.30.0+k0s.0")
    monkeypatch.setenv("INPUT_WAIT-FOR-READY", "true")
    monkeypatch.setenv("INPUT_TIMEOUT", "60")

    result = run_main()

    assert result.request.binary_arch == "amd64"
    assert "v1.30.0+k0s.0" in result.request.download_url
    assert result.request.download_url.endswith("/k0s-v1.30.0+k0s.0-amd64")
    assert result.readiness is not None and result.readiness.ready

    kubeconfig = os.path.join(os.environ["HOME"], ".kube", "config")
    assert str(result.credential.path) == kubeconfig
    assert read_file_command(runner_env["GITHUB_OUTPUT"]) == {"kubeconfig": kubeconfig}
    assert os.environ["KUBECONFIG"] == kubeconfig
    assert healthy_cluster.called("curl", "-sfL", "-H") == []
    assert healthy_cluster.called("kubectl", "get", "pods")


def test_readiness_skipped_by_default(healthy_cluster) -> None:
    result = run_main()
    assert result.readiness is None
    assert healthy_cluster.called("kubectl") == []


def test_marker_written_before_install_failure(healthy_cluster, runner_env, read_file_command) -> None:
    healthy_cluster.on("uname", "-m", stdout="mips64\n")
    with pytest.raises(UnsupportedArchitectureError):
        run_main()
    assert read_file_command(runner_env["GITHUB_STATE"]) == {"isPost": "true"}


def test_marker_written_before_input_validation(monkeypatch, healthy_cluster, runner_env, read_file_command) -> None:
    monkeypatch.setenv("INPUT_TIMEOUT", "-1")
    with pytest.raises(ValidationError):
        run_main()
    assert read_file_command(runner_env["GITHUB_STATE"]) == {"isPost": "true"}
    assert healthy_cluster.calls == []


def test_download_failure_stops_before_start(monkeypatch, healthy_cluster) -> None:
    monkeypatch.setenv("INPUT_VERSION", "v1.30.0+k0s.0")
    healthy_cluster.on("curl", "-sfL", exit_code=22, stderr="The requested URL returned error: 404")
    with pytest.raises(InstallError, match="404"):
        run_main()
    assert healthy_cluster.called("sudo", K0S) == []


def test_start_failure_propagates(healthy_cluster) -> None:
    healthy_cluster.on("sudo", K0S, "install", "controller", exit_code=1)
    with pytest.raises(StartError):
        run_main()


def test_missing_prerequisite_fails_before_install(monkeypatch, healthy_cluster) -> None:
    checked: list[str] = []

    def _require(cmd: str) -> None:
        checked.append(cmd)
        if cmd == "kubectl":
            raise RuntimeError("Required command 'kubectl' not found. Please install it first.")

    monkeypatch.setattr("k0s_setup.orchestrator.require_command", _require)
    monkeypatch.setenv("INPUT_WAIT-FOR-READY", "true")

    with pytest.raises(RuntimeError, match="kubectl"):
        run_main()
    assert checked == ["uname", "curl", "sudo", "kubectl"]
    assert healthy_cluster.calls == []


def test_cleanup_skipped_without_marker(fake_commands) -> None:
    assert run_cleanup()
    assert fake_commands.calls == []


def test_cleanup_forced(fake_commands) -> None:
    assert run_cleanup(force=True)
    assert ("sudo", K0S, "reset") in fake_commands.argvs()


def test_dispatch_runs_cleanup_after_main(monkeypatch, fake_commands) -> None:
    monkeypatch.setenv("STATE_isPost", "true")
    assert run() is True
    assert fake_commands.argvs()[0] == ("sudo", K0S, "stop")
    assert fake_commands.called("uname") == []


def test_dispatch_runs_main_first(healthy_cluster, runner_env, read_file_command) -> None:
    marker = RunMarker()
    assert marker.read() is RunPhase.NOT_STARTED
    result = run(marker=marker)
    assert result.credential.contents == KUBECONFIG_TEXT
    assert read_file_command(runner_env["GITHUB_STATE"]) == {"isPost": "true"}
