from __future__ import annotations

import os

import typer

from runclawd_lifecycle import RunclawdError
from runclawd_lifecycle.backup import backup_volume
from runclawd_lifecycle.probe import CapabilityProbe
from runclawd_lifecycle.runner import CommandRunner
from runclawd_lifecycle.schedule import prune_archives

from .. import console
from ..config import ENV_ARCHIVE_NAME, ENV_BACKUP_DIR, ENV_VOLUME, load_config, resolve_setting


def backup(
        volume: str | None = typer.Option(None, "--volume", help="Docker volume to back up (env VOLUME_NAME)."),
        backup_dir: str | None = typer.Option(
            None,
            "--backup-dir",
            help="Output directory on host (env BACKUP_DIR).",
        ),
        archive_name: str | None = typer.Option(
            None,
            "--archive-name",
            help="Archive filename (env ARCHIVE_NAME, default <volume>-<timestamp>.tgz).",
        ),
        prune_days: int | None = typer.Option(
            None,
            "--prune-days",
            min=0,
            help="After backing up, delete archives of this volume older than N days.",
        ),
):
    """Snapshot the stack's docker volume into a .tgz archive."""
    cfg = load_config()
    env = os.environ
    volume = resolve_setting(volume, env, ENV_VOLUME, cfg.backup.volume)
    backup_dir = resolve_setting(backup_dir, env, ENV_BACKUP_DIR, cfg.backup.backup_dir)
    archive_name = resolve_setting(archive_name, env, ENV_ARCHIVE_NAME, "") or None

    console.info(f"Backing up volume '{volume}' to '{backup_dir}' ...")
    try:
        path = backup_volume(
            volume,
            backup_dir,
            archive_name,
            runner=CommandRunner(),
            probe=CapabilityProbe(),
        )
    except RunclawdError as exc:
        console.err(str(exc))
        raise typer.Exit(code=1)
    console.ok(f"Backup complete: {path}")

    if prune_days is not None:
        removed = prune_archives(path.parent, volume, prune_days)
        for old in removed:
            console.info(f"Removed expired archive {old}")
