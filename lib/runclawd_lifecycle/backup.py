from __future__ import annotations

import logging
import shlex
from datetime import datetime
from pathlib import Path

from .errors import BackupError, PreconditionFailure
from .probe import CapabilityProbe
from .runner import CommandRunner
from .volumes import helper_container, require_docker_cli, require_volume

log = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tgz"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H%M%S"


def default_archive_name(volume: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return f"{volume}-{stamp}{ARCHIVE_SUFFIX}"


def archive_glob(volume: str) -> str:
    return f"{volume}-*{ARCHIVE_SUFFIX}"


def backup_volume(
        volume: str,
        backup_dir: str | Path,
        archive_name: str | None = None,
        *,
        runner: CommandRunner,
        probe: CapabilityProbe,
        now: datetime | None = None,
) -> Path:
    """Snapshot a docker volume into <backup_dir>/<archive_name> and return its absolute path."""
    require_docker_cli(probe)
    require_volume(runner, volume)

    name = archive_name or default_archive_name(volume, now)
    if "/" in name or name in {".", ".."}:
        raise PreconditionFailure(f"Archive name must be a plain file name: {name}")

    target_dir = Path(backup_dir).expanduser().resolve()
    target_dir.mkdir(parents=True, exist_ok=True)
    archive_path = target_dir / name

    cmd = helper_container(
        [f"{volume}:/from:ro", f"{target_dir}:/to"],
        f"tar czf {shlex.quote(f'/to/{name}')} -C /from .",
    )
    log.debug("backing up %s to %s", volume, archive_path)
    res = runner.run(cmd)
    if res.returncode != 0:
        raise BackupError(f"Backup of volume '{volume}' failed", cmd, res.returncode, res.stderr)
    return archive_path
