import httpx
import pytest

from runclawd_lifecycle import packages
from runclawd_lifecycle.errors import CommandFailed, PreconditionFailure, UnsupportedEnvironment
from runclawd_lifecycle.packages import (
    AptInstaller,
    ApkInstaller,
    ensure_dependencies,
    ensure_docker,
    installer_for,
    require_docker,
)
from runclawd_lifecycle.probe import PackageManagerFamily


def test_detect_family_prefers_apt_over_later_managers(probe_with) -> None:
    probe = probe_with("zypper", "yum", "apt-get")
    assert probe.detect_package_manager_family() is PackageManagerFamily.APT


def test_detect_family_dnf_before_yum(probe_with) -> None:
    assert probe_with("yum", "dnf").detect_package_manager_family() is PackageManagerFamily.DNF


def test_detect_family_none(probe_with) -> None:
    assert probe_with("curl").detect_package_manager_family() is PackageManagerFamily.NONE


def test_apt_refreshes_index_noninteractively(runner) -> None:
    installer = installer_for(PackageManagerFamily.APT, runner)
    installer.install("git")

    assert runner.commands == [["apt-get", "update", "-y"], ["apt-get", "install", "-y", "git"]]
    assert all(c.env == {"DEBIAN_FRONTEND": "noninteractive"} for c in runner.calls)


@pytest.mark.parametrize(
    ("family", "expected"),
    [
        (PackageManagerFamily.DNF, ["dnf", "install", "-y", "curl"]),
        (PackageManagerFamily.YUM, ["yum", "install", "-y", "curl"]),
        (PackageManagerFamily.APK, ["apk", "add", "--no-cache", "curl"]),
        (PackageManagerFamily.PACMAN, ["pacman", "-Sy", "--noconfirm", "curl"]),
        (PackageManagerFamily.ZYPPER, ["zypper", "--non-interactive", "in", "-y", "curl"]),
    ],
)
def test_family_install_commands(runner, family, expected) -> None:
    installer_for(family, runner).install("curl")
    assert runner.commands == [expected]


def test_ssh_client_package_differs_by_family(runner) -> None:
    assert AptInstaller(runner).ssh_client_package == "openssh-client"
    assert ApkInstaller(runner).ssh_client_package == "openssh-client"
    assert installer_for(PackageManagerFamily.PACMAN, runner).ssh_client_package == "openssh"


def test_unsupported_family_names_package(runner) -> None:
    installer = installer_for(PackageManagerFamily.NONE, runner)
    with pytest.raises(UnsupportedEnvironment, match="'git'"):
        installer.install("git")
    assert runner.calls == []


def test_ensure_dependencies_installs_only_missing(runner, probe_with) -> None:
    probe = probe_with("curl", "apk")
    installer = installer_for(probe.detect_package_manager_family(), runner)

    installed = ensure_dependencies(installer, probe)

    assert installed == ["git", "openssh-client"]
    assert runner.commands == [
        ["apk", "add", "--no-cache", "git"],
        ["apk", "add", "--no-cache", "openssh-client"],
    ]


def test_ensure_dependencies_without_package_manager_is_fatal(runner, probe_with) -> None:
    probe = probe_with("git", "ssh")
    installer = installer_for(probe.detect_package_manager_family(), runner)
    with pytest.raises(UnsupportedEnvironment, match="curl"):
        ensure_dependencies(installer, probe)


def test_failed_install_propagates(runner) -> None:
    runner.on("yum", returncode=1, stderr="No package git available.")
    with pytest.raises(CommandFailed, match="No package git available"):
        installer_for(PackageManagerFamily.YUM, runner).install("git")


def test_ensure_docker_is_noop_when_present(runner, probe_with) -> None:
    def _fetch() -> str:
        raise AssertionError("should not download")

    assert ensure_docker(probe_with("docker"), runner, fetch=_fetch) is False
    assert runner.calls == []


def test_ensure_docker_pipes_vendor_script_to_sh(runner, probe_with) -> None:
    ran = ensure_docker(probe_with(), runner, fetch=lambda: "echo install docker\n")

    assert ran is True
    assert runner.calls[0].cmd == ["sh", "-s"]
    assert runner.calls[0].input == "echo install docker\n"


def test_fetch_install_script_wraps_network_errors(monkeypatch) -> None:
    def _fail(*_args, **_kwargs):
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx, "get", _fail)
    with pytest.raises(PreconditionFailure, match="Docker install script"):
        packages.fetch_install_script()


def test_require_docker(probe_with) -> None:
    require_docker(probe_with("docker"))
    with pytest.raises(PreconditionFailure, match="usable 'docker' command"):
        require_docker(probe_with())
