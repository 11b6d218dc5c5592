from __future__ import annotations

import os

import typer

from runclawd_lifecycle import RunclawdError
from runclawd_lifecycle.errors import UserDeclined
from runclawd_lifecycle.probe import CapabilityProbe
from runclawd_lifecycle.restore import is_affirmative, restore_volume
from runclawd_lifecycle.runner import CommandRunner

from .. import console
from ..config import ENV_VOLUME, load_config, resolve_setting


def _prompt_confirm(message: str) -> bool:
    console.warn(message)
    answer = typer.prompt("Continue? [y/N]", default="", show_default=False)
    return is_affirmative(answer)


def restore(
        backup_file: str | None = typer.Option(
            None,
            "--backup-file",
            help="Backup archive (.tgz) created by 'runclawd backup' (required).",
        ),
        volume: str | None = typer.Option(None, "--volume", help="Docker volume to restore into (env VOLUME_NAME)."),
        no_wipe: bool = typer.Option(False, "--no-wipe", help="Do not delete existing files in the volume first."),
        force: bool = typer.Option(False, "--force", help="Skip confirmation prompt."),
):
    """Restore a volume archive. DANGEROUS: wipes the volume first unless --no-wipe."""
    cfg = load_config()
    volume = resolve_setting(volume, os.environ, ENV_VOLUME, cfg.backup.volume)
    try:
        restore_volume(
            backup_file,
            volume,
            wipe_first=not no_wipe,
            force=force,
            runner=CommandRunner(),
            probe=CapabilityProbe(),
            confirm=_prompt_confirm,
            on_step=console.info,
        )
    except UserDeclined as exc:
        console.err(str(exc))
        raise typer.Exit(code=1)
    except RunclawdError as exc:
        console.err(str(exc))
        raise typer.Exit(code=1)
    console.ok("Restore complete.")
    console.info("Tip: restart services after restore: docker compose up -d")
