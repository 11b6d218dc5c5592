from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import tempfile
import time
from pathlib import Path
from typing import Callable

from .backup import archive_glob
from .config_types import DEFAULT_BACKUP_DIR, DEFAULT_COMPOSE_FILE, DEFAULT_VOLUME
from .errors import PreconditionFailure, ScheduleError
from .probe import CapabilityProbe
from .runner import CommandRunner

log = logging.getLogger(__name__)

CRON_MARKER = "# runclawd-volume-backup"
DEFAULT_SCHEDULE = "30 3 * * *"
DEFAULT_RETENTION_DAYS = 14
ENTRY_POINT_NAME = "runclawd"

_DIGITS_RE = re.compile(r"[0-9]+")
_SECONDS_PER_DAY = 86400


def validate_retention_days(value: str | int) -> int:
    text = str(value)
    if not _DIGITS_RE.fullmatch(text):
        raise PreconditionFailure("--retention-days must be a non-negative integer")
    return int(text)


def validate_cron_expression(expr: str) -> str:
    fields = expr.split()
    if len(fields) != 5:
        raise PreconditionFailure(f"--schedule must be a five-field cron expression, got: {expr!r}")
    return " ".join(fields)


def resolve_entry_point(
        project_dir: Path,
        entry_point: str | None = None,
        *,
        which: Callable[[str], str | None] = shutil.which,
) -> Path:
    """Locate the runclawd executable the cron job will call."""
    if entry_point:
        candidates = [project_dir / entry_point]
    else:
        found = which(ENTRY_POINT_NAME)
        candidates = [project_dir / ".venv" / "bin" / ENTRY_POINT_NAME]
        if found:
            candidates.append(Path(found))
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    raise PreconditionFailure(f"{ENTRY_POINT_NAME} entry point not found in: {project_dir}")


def build_backup_command(
        project_dir: Path,
        entry_point: Path,
        retention_days: int,
        *,
        backup_dir: str = DEFAULT_BACKUP_DIR,
        volume: str = DEFAULT_VOLUME,
) -> str:
    q = shlex.quote
    return (
        f"mkdir -p {q(backup_dir)}"
        f" && cd {q(str(project_dir))}"
        f" && {q(str(entry_point))} backup --volume {q(volume)} --backup-dir {q(backup_dir)}"
        f" && find {q(backup_dir)} -name {q(archive_glob(volume))} -mtime +{retention_days} -delete"
    )


def build_cron_line(schedule: str, command: str, marker: str = CRON_MARKER) -> str:
    return f"{schedule} {command} {marker}"


def replace_marked_entry(table: str, line: str, marker: str = CRON_MARKER) -> str:
    kept = [row for row in table.splitlines() if marker not in row]
    kept.append(line)
    return "\n".join(kept) + "\n"


def read_crontab(runner: CommandRunner) -> str:
    res = runner.run(["crontab", "-l"])
    if res.returncode != 0:
        # "no crontab for user" is an empty table.
        return ""
    return res.stdout or ""


def write_crontab(runner: CommandRunner, table: str) -> None:
    fd, tmp_path = tempfile.mkstemp(prefix="runclawd-cron-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(table)
        cmd = ["crontab", tmp_path]
        res = runner.run(cmd)
        if res.returncode != 0:
            raise ScheduleError("Failed to install crontab", cmd, res.returncode, res.stderr)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass


def list_marked_entries(runner: CommandRunner, marker: str = CRON_MARKER) -> list[str]:
    return [row for row in read_crontab(runner).splitlines() if marker in row]


def install_schedule(
        project_dir: str | Path,
        cron_expr: str = DEFAULT_SCHEDULE,
        retention_days: str | int = DEFAULT_RETENTION_DAYS,
        *,
        runner: CommandRunner,
        probe: CapabilityProbe,
        backup_dir: str = DEFAULT_BACKUP_DIR,
        volume: str = DEFAULT_VOLUME,
        entry_point: str | None = None,
) -> str:
    """Install or replace the single marked backup line; returns the installed line."""
    if not probe.has_command("crontab"):
        raise PreconditionFailure("crontab command not found")
    project = Path(project_dir).expanduser()
    if not project.is_dir():
        raise PreconditionFailure(f"Project directory not found: {project}")
    if not (project / DEFAULT_COMPOSE_FILE).is_file():
        raise PreconditionFailure(f"{DEFAULT_COMPOSE_FILE} not found in: {project}")
    entry = resolve_entry_point(project, entry_point)
    days = validate_retention_days(retention_days)
    schedule = validate_cron_expression(cron_expr)

    command = build_backup_command(project.resolve(), entry, days, backup_dir=backup_dir, volume=volume)
    line = build_cron_line(schedule, command)
    table = replace_marked_entry(read_crontab(runner), line)
    write_crontab(runner, table)
    log.debug("installed cron line: %s", line)
    return line


def prune_archives(
        backup_dir: str | Path,
        volume: str,
        retention_days: int,
        *,
        now: float | None = None,
) -> list[Path]:
    """Delete archives older than retention_days whole days, the way find -mtime +N does."""
    directory = Path(backup_dir)
    if not directory.is_dir():
        return []
    now = time.time() if now is None else now
    removed = []
    for path in sorted(directory.glob(archive_glob(volume))):
        if not path.is_file():
            continue
        age_days = int((now - path.stat().st_mtime) // _SECONDS_PER_DAY)
        if age_days > retention_days:
            path.unlink()
            removed.append(path)
    return removed
