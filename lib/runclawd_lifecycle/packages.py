from __future__ import annotations

import logging
from typing import Callable

import httpx

from .errors import CommandFailed, PreconditionFailure, UnsupportedEnvironment
from .probe import CapabilityProbe, PackageManagerFamily
from .runner import CommandRunner, format_cmd

log = logging.getLogger(__name__)

DOCKER_INSTALL_SCRIPT_URL = "https://get.docker.com"


class PackageInstaller:
    family = PackageManagerFamily.NONE
    ssh_client_package = "openssh"

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def commands(self, pkg: str) -> list[list[str]]:
        raise NotImplementedError

    def env(self) -> dict[str, str]:
        return {}

    def install(self, pkg: str) -> None:
        for cmd in self.commands(pkg):
            res = self.runner.run(cmd, env=self.env() or None)
            if res.returncode != 0:
                raise CommandFailed(f"{format_cmd(cmd)} failed", cmd, res.returncode, res.stderr)


class AptInstaller(PackageInstaller):
    family = PackageManagerFamily.APT
    ssh_client_package = "openssh-client"

    def env(self) -> dict[str, str]:
        return {"DEBIAN_FRONTEND": "noninteractive"}

    def commands(self, pkg: str) -> list[list[str]]:
        return [["apt-get", "update", "-y"], ["apt-get", "install", "-y", pkg]]


class DnfInstaller(PackageInstaller):
    family = PackageManagerFamily.DNF

    def commands(self, pkg: str) -> list[list[str]]:
        return [["dnf", "install", "-y", pkg]]


class YumInstaller(PackageInstaller):
    family = PackageManagerFamily.YUM

    def commands(self, pkg: str) -> list[list[str]]:
        return [["yum", "install", "-y", pkg]]


class ApkInstaller(PackageInstaller):
    family = PackageManagerFamily.APK
    ssh_client_package = "openssh-client"

    def commands(self, pkg: str) -> list[list[str]]:
        return [["apk", "add", "--no-cache", pkg]]


class PacmanInstaller(PackageInstaller):
    family = PackageManagerFamily.PACMAN

    def commands(self, pkg: str) -> list[list[str]]:
        return [["pacman", "-Sy", "--noconfirm", pkg]]


class ZypperInstaller(PackageInstaller):
    family = PackageManagerFamily.ZYPPER

    def commands(self, pkg: str) -> list[list[str]]:
        return [["zypper", "--non-interactive", "in", "-y", pkg]]


class UnsupportedInstaller(PackageInstaller):
    def install(self, pkg: str) -> None:
        raise UnsupportedEnvironment(f"Unsupported package manager. Please install '{pkg}' manually.")


_INSTALLERS: dict[PackageManagerFamily, type[PackageInstaller]] = {
    PackageManagerFamily.APT: AptInstaller,
    PackageManagerFamily.DNF: DnfInstaller,
    PackageManagerFamily.YUM: YumInstaller,
    PackageManagerFamily.APK: ApkInstaller,
    PackageManagerFamily.PACMAN: PacmanInstaller,
    PackageManagerFamily.ZYPPER: ZypperInstaller,
}


def installer_for(family: PackageManagerFamily, runner: CommandRunner) -> PackageInstaller:
    return _INSTALLERS.get(family, UnsupportedInstaller)(runner)


def ensure_dependencies(
        installer: PackageInstaller,
        probe: CapabilityProbe,
        *,
        on_install: Callable[[str], None] | None = None,
) -> list[str]:
    """Install curl, git and an ssh client where missing. Returns installed packages."""
    wanted = [
        ("curl", "curl"),
        ("git", "git"),
        ("ssh", installer.ssh_client_package),
    ]
    installed = []
    for binary, pkg in wanted:
        if probe.has_command(binary):
            continue
        if on_install:
            on_install(pkg)
        installer.install(pkg)
        installed.append(pkg)
    return installed


def fetch_install_script(url: str = DOCKER_INSTALL_SCRIPT_URL, *, timeout_s: float = 30.0) -> str:
    try:
        resp = httpx.get(url, timeout=timeout_s, follow_redirects=True)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise PreconditionFailure(f"Failed to download Docker install script from {url}: {exc}") from exc
    return resp.text


def ensure_docker(
        probe: CapabilityProbe,
        runner: CommandRunner,
        *,
        fetch: Callable[[], str] = fetch_install_script,
) -> bool:
    """Run the vendor install script when docker is absent. Returns True if it ran."""
    if probe.has_command("docker"):
        return False
    script = fetch()
    res = runner.run(["sh", "-s"], input=script)
    if res.returncode != 0:
        raise CommandFailed("Docker install script failed", ["sh", "-s"], res.returncode, res.stderr)
    log.debug("docker install script finished")
    return True


def require_docker(probe: CapabilityProbe) -> None:
    if not probe.has_command("docker"):
        raise PreconditionFailure("Docker installation did not produce a usable 'docker' command.")
