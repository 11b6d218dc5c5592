from __future__ import annotations

import typer

from .commands import backup_cmd, install_cmd, restore_cmd, schedule_cmd, settings_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="runclawd",
        help="Install and operate a RunClawd gateway on this host.",
        no_args_is_help=True,
    )

    app.command("install")(install_cmd.install)
    app.command("backup")(backup_cmd.backup)
    app.command("schedule")(schedule_cmd.schedule)
    app.command("restore")(restore_cmd.restore)
    app.add_typer(settings_cmd.app, name="settings")

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()
