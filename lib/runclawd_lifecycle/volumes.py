from __future__ import annotations

from .errors import PreconditionFailure
from .probe import CapabilityProbe
from .runner import CommandRunner

HELPER_IMAGE = "alpine"


def require_docker_cli(probe: CapabilityProbe) -> None:
    if not probe.has_command("docker"):
        raise PreconditionFailure("docker command not found")


def volume_exists(runner: CommandRunner, volume: str) -> bool:
    return runner.succeeds(["docker", "volume", "inspect", volume])


def require_volume(runner: CommandRunner, volume: str) -> None:
    if not volume_exists(runner, volume):
        raise PreconditionFailure(f"Docker volume not found: {volume}")


def helper_container(mounts: list[str], script: str, *, image: str = HELPER_IMAGE) -> list[str]:
    cmd = ["docker", "run", "--rm"]
    for mount in mounts:
        cmd += ["-v", mount]
    return [*cmd, image, "sh", "-c", script]
