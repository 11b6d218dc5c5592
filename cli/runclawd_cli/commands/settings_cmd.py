from __future__ import annotations

import os

import typer

from runclawd_lifecycle.errors import PreconditionFailure
from runclawd_lifecycle.schedule import validate_cron_expression

from .. import console
from ..config import config_path, default_config, load_config, save_config

app = typer.Typer(help="Manage local defaults (~/.config/runclawd/config.toml).")

_KEYS = (
    "install_dir",
    "repo_url",
    "timeout_s",
    "volume",
    "backup_dir",
    "schedule",
    "retention_days",
)


@app.command("init")
def init_settings(
        force: bool = typer.Option(False, "--force", help="Overwrite existing config."),
):
    path = config_path()
    if os.path.exists(path) and not force:
        console.info(f"Config already exists: {path}")
        console.info("Use --force to overwrite.")
        return
    saved = save_config(default_config())
    console.ok(f"Config written: {saved}")


@app.command("show")
def show_settings():
    cfg = load_config()
    console.console.print(
        f"install_dir={cfg.install.install_dir} repo_url={cfg.install.repo_url} timeout_s={cfg.install.timeout_s:g}"
    )
    console.console.print(
        f"volume={cfg.backup.volume} backup_dir={cfg.backup.backup_dir} "
        f"schedule=\"{cfg.backup.schedule}\" retention_days={cfg.backup.retention_days}",
        markup=False,
    )


@app.command("get")
def get_setting(
        key: str = typer.Argument(..., help=f"Setting key ({', '.join(_KEYS)})."),
):
    cfg = load_config()
    k = key.strip().lower()
    for section in (cfg.install, cfg.backup):
        if hasattr(section, k):
            console.console.print(str(getattr(section, k)), markup=False)
            return
    console.err(f"Unknown setting: {key}")
    raise typer.Exit(code=1)


@app.command("set")
def set_setting(
        install_dir: str | None = typer.Option(None, "--install-dir", help="Default install directory."),
        repo_url: str | None = typer.Option(None, "--repo-url", help="Git origin to clone."),
        timeout_s: float | None = typer.Option(None, "--timeout", min=1, help="Credential wait timeout (s)."),
        volume: str | None = typer.Option(None, "--volume", help="Docker volume to back up."),
        backup_dir: str | None = typer.Option(None, "--backup-dir", help="Backup directory."),
        schedule: str | None = typer.Option(None, "--schedule", help="Cron expression."),
        retention_days: int | None = typer.Option(None, "--retention-days", min=0, help="Retention in days."),
):
    cfg = load_config()
    if install_dir is not None:
        cfg.install.install_dir = install_dir.strip()
    if repo_url is not None:
        cfg.install.repo_url = repo_url.strip()
    if timeout_s is not None:
        cfg.install.timeout_s = timeout_s
    if volume is not None:
        cfg.backup.volume = volume.strip()
    if backup_dir is not None:
        cfg.backup.backup_dir = backup_dir.strip()
    if schedule is not None:
        try:
            cfg.backup.schedule = validate_cron_expression(schedule)
        except PreconditionFailure as exc:
            console.err(str(exc))
            raise typer.Exit(code=1)
    if retention_days is not None:
        cfg.backup.retention_days = retention_days
    saved = save_config(cfg)
    console.ok(f"Settings updated: {saved}")
