from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Callable

from .errors import PreconditionFailure, RestoreError, UserDeclined
from .probe import CapabilityProbe
from .runner import CommandRunner
from .volumes import helper_container, require_docker_cli, require_volume

log = logging.getLogger(__name__)

AFFIRMATIVE_ANSWERS = {"y", "Y", "yes", "YES"}

# Best-effort: dotfiles included, individual failures ignored.
WIPE_SCRIPT = "rm -rf /data/* /data/.[!.]* /data/..?* 2>/dev/null || true"


def is_affirmative(answer: str | None) -> bool:
    return (answer or "").strip() in AFFIRMATIVE_ANSWERS


def confirmation_message(backup_file: Path, volume: str, *, wipe_first: bool) -> str:
    lines = [f"This will restore '{backup_file}' into volume '{volume}'."]
    if wipe_first:
        lines.append("Existing files in the volume will be deleted first.")
    return "\n".join(lines)


def wipe_volume(volume: str, *, runner: CommandRunner) -> bool:
    cmd = helper_container([f"{volume}:/data"], WIPE_SCRIPT)
    res = runner.run(cmd)
    if res.returncode != 0:
        log.warning("wipe of volume %s reported errors: %s", volume, (res.stderr or "").strip())
        return False
    return True


def restore_volume(
        backup_file: str | Path | None,
        volume: str,
        *,
        wipe_first: bool = True,
        force: bool = False,
        runner: CommandRunner,
        probe: CapabilityProbe,
        confirm: Callable[[str], bool] | None = None,
        on_step: Callable[[str], None] | None = None,
) -> Path:
    """Restore an archive into a volume.

    There is no staging volume: if extraction fails after a wipe, the volume
    is left empty.
    """
    if not backup_file:
        raise PreconditionFailure("--backup-file is required")
    require_docker_cli(probe)
    archive = Path(backup_file).expanduser()
    if not archive.is_file():
        raise PreconditionFailure(f"Backup file not found: {backup_file}")
    require_volume(runner, volume)

    archive = archive.resolve()
    if not force:
        message = confirmation_message(archive, volume, wipe_first=wipe_first)
        if confirm is None or not confirm(message):
            raise UserDeclined("Aborted.")

    if wipe_first:
        if on_step:
            on_step(f"Wiping existing data in volume '{volume}' ...")
        wipe_volume(volume, runner=runner)

    if on_step:
        on_step(f"Restoring '{archive}' into volume '{volume}' ...")
    cmd = helper_container(
        [f"{volume}:/to", f"{archive.parent}:/from:ro"],
        f"tar xzf {shlex.quote(f'/from/{archive.name}')} -C /to",
    )
    res = runner.run(cmd)
    if res.returncode != 0:
        raise RestoreError(f"Restore into volume '{volume}' failed", cmd, res.returncode, res.stderr)
    return archive
