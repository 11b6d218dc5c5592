from __future__ import annotations

import click

from . import console


def main() -> None:
    from .main import app

    try:
        code = app(standalone_mode=False)
    except click.exceptions.Abort:
        console.err("Aborted.")
        raise SystemExit(1)
    except click.ClickException as exc:
        # Usage errors exit 1 like every other failure.
        exc.show()
        raise SystemExit(1)
    raise SystemExit(code or 0)


if __name__ == "__main__":
    main()
