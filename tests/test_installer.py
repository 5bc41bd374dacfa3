import json
from pathlib import Path

import pytest
from pydantic import SecretStr

from k0s_setup.errors import InstallError, UnsupportedArchitectureError
from k0s_setup.installer import build_install_request, install_k0s, map_architecture
from k0s_setup.runner import CommandResult

LATEST_API = "https://api.github.com/repos/k0sproject/k0s/releases/latest"


@pytest.mark.parametrize(
    ("machine", "expected"),
    [("x86_64", "amd64"), ("aarch64", "arm64"), ("arm64", "arm64"), ("armv7l", "arm")],
)
def test_architecture_mapping(machine: str, expected: str) -> None:
    assert map_architecture(machine) == expected


@pytest.mark.parametrize("machine", ["i686", "mips64", "riscv64", "", "X86_64"])
def test_unsupported_architecture(machine: str) -> None:
    with pytest.raises(UnsupportedArchitectureError):
        map_architecture(machine)


def test_unsupported_architecture_fails_before_network(fake_commands, settings) -> None:
    fake_commands.on("uname", "-m", stdout="mips64\n")
    with pytest.raises(UnsupportedArchitectureError, match="mips64"):
        install_k0s("latest", settings)
    assert fake_commands.called("curl") == []
    assert fake_commands.called("sudo") == []


def test_explicit_version_needs_no_resolution(fake_commands, settings) -> None:
    request = build_install_request("v1.30.0+k0s.0", settings, machine="x86_64")
    assert fake_commands.calls == []
    assert request.resolved_version == "v1.30.0+k0s.0"
    assert request.binary_arch == "amd64"
    assert request.download_url == (
        "https://github.com/k0sproject/k0s/releases/download/"
        "v1.30.0+k0s.0/k0s-v1.30.0+k0s.0-amd64"
    )


def test_latest_is_resolved_exactly_once(fake_commands, settings) -> None:
    answers = ["v1.31.1+k0s.0", "v9.9.9+k0s.0"]

    def _api(argv, kwargs):
        return CommandResult(0, json.dumps({"tag_name": answers.pop(0)}))

    fake_commands.on("uname", "-m", stdout="aarch64\n")
    fake_commands.on("curl", "-sfL", "-H", handler=_api)

    request = install_k0s("latest", settings)

    assert len(fake_commands.called("curl", "-sfL", "-H")) == 1
    assert request.resolved_version == "v1.31.1+k0s.0"
    assert request.binary_arch == "arm64"
    download = fake_commands.called("curl", "-sfL", request.download_url)
    assert len(download) == 1
    assert "v1.31.1+k0s.0/k0s-v1.31.1+k0s.0-arm64" in request.download_url
    assert ("/usr/local/bin/k0s", "version") in fake_commands.argvs()


def test_github_token_sent_on_stdin(fake_commands, settings) -> None:
    settings = settings.model_copy(update={"github_token": SecretStr("t0k3n")})
    fake_commands.on("curl", "-sfL", "-H", stdout=json.dumps({"tag_name": "v1.30.0+k0s.0"}))

    build_install_request("latest", settings, machine="x86_64")

    (argv, kwargs), = fake_commands.called("curl")
    assert argv[-1] == LATEST_API
    assert "@-" in argv
    assert all("t0k3n" not in arg for arg in argv)
    assert kwargs["input"] == "Authorization: Bearer t0k3n\n"
    assert kwargs["silent"] is True


@pytest.mark.parametrize("body", ["", "not json", "[]", json.dumps({"tag_name": ""}), json.dumps({})])
def test_unusable_release_metadata(fake_commands, settings, body: str) -> None:
    fake_commands.on("uname", "-m", stdout="x86_64\n")
    fake_commands.on("curl", "-sfL", "-H", stdout=body)
    with pytest.raises(InstallError, match="Failed to install k0s"):
        install_k0s("latest", settings)
    assert fake_commands.called("sudo") == []


def test_temporary_download_removed_when_install_fails(fake_commands, settings) -> None:
    downloaded: list[Path] = []

    def _download(argv, kwargs):
        target = Path(argv[-1])
        target.write_bytes(b"\x7fELF")
        downloaded.append(target)
        return CommandResult(0)

    fake_commands.on("uname", "-m", stdout="x86_64\n")
    fake_commands.on("curl", "-sfL", handler=_download)
    fake_commands.on("sudo", "install", exit_code=1, stderr="permission denied")

    with pytest.raises(InstallError, match="permission denied"):
        install_k0s("v1.30.0+k0s.0", settings)

    assert len(downloaded) == 1
    assert not downloaded[0].exists()
    assert not downloaded[0].parent.exists()


def test_temporary_download_removed_after_success(fake_commands, settings) -> None:
    downloaded: list[Path] = []

    def _download(argv, kwargs):
        target = Path(argv[-1])
        target.write_bytes(b"\x7fELF")
        downloaded.append(target)
        return CommandResult(0)

    fake_commands.on("uname", "-m", stdout="x86_64\n")
    fake_commands.on("curl", "-sfL", handler=_download)

    install_k0s("v1.30.0+k0s.0", settings)

    (argv, _), = fake_commands.called("sudo", "install")
    assert argv == ("sudo", "install", str(downloaded[0]), "/usr/local/bin/k0s")
    assert not downloaded[0].parent.exists()


def test_failed_verification_is_fatal(fake_commands, settings) -> None:
    fake_commands.on("uname", "-m", stdout="x86_64\n")
    fake_commands.on("/usr/local/bin/k0s", "version", exit_code=126)
    with pytest.raises(InstallError, match="exit code 126"):
        install_k0s("v1.30.0+k0s.0", settings)
