from __future__ import annotations

import os

import typer

from runclawd_lifecycle import RunclawdError
from runclawd_lifecycle.probe import CapabilityProbe
from runclawd_lifecycle.runner import CommandRunner
from runclawd_lifecycle.schedule import install_schedule, list_marked_entries

from .. import console
from ..config import (
    ENV_BACKUP_DIR,
    ENV_PROJECT_DIR,
    ENV_RETENTION_DAYS,
    ENV_SCHEDULE,
    ENV_VOLUME,
    load_config,
    resolve_raw_setting,
    resolve_setting,
)


def schedule(
        project_dir: str | None = typer.Option(
            None,
            "--project-dir",
            help="Directory of the runclawd checkout (env PROJECT_DIR, default /opt/runclawd).",
        ),
        cron_expr: str | None = typer.Option(
            None,
            "--schedule",
            help='Cron expression for the backup job (env SCHEDULE, default "30 3 * * *").',
        ),
        retention_days: str | None = typer.Option(
            None,
            "--retention-days",
            help="Delete backup files older than N days (env RETENTION_DAYS, default 14).",
        ),
        entry_point: str | None = typer.Option(
            None,
            "--entry-point",
            help="runclawd executable, relative to the project dir (default: .venv/bin/runclawd or PATH).",
        ),
):
    """Install or replace the nightly volume backup cron job."""
    cfg = load_config()
    env = os.environ
    project = resolve_setting(project_dir, env, ENV_PROJECT_DIR, cfg.install.install_dir)
    expr = resolve_raw_setting(cron_expr, env, ENV_SCHEDULE, cfg.backup.schedule)
    days = resolve_raw_setting(retention_days, env, ENV_RETENTION_DAYS, str(cfg.backup.retention_days))

    runner = CommandRunner()
    try:
        line = install_schedule(
            project,
            expr,
            days,
            runner=runner,
            probe=CapabilityProbe(),
            backup_dir=resolve_setting(None, env, ENV_BACKUP_DIR, cfg.backup.backup_dir),
            volume=resolve_setting(None, env, ENV_VOLUME, cfg.backup.volume),
            entry_point=entry_point,
        )
    except RunclawdError as exc:
        console.err(str(exc))
        raise typer.Exit(code=1)

    console.ok("Installed/updated cron job:")
    console.plain(line + "\n")
    console.info("Current crontab entries with marker:")
    for row in list_marked_entries(runner):
        console.plain(row + "\n")
