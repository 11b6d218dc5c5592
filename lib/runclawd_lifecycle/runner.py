from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

log = logging.getLogger(__name__)


def format_cmd(cmd: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(arg)) for arg in cmd)


class CommandRunner:
    """Runs host commands; every external call in the lifecycle goes through here."""

    def run(
            self,
            cmd: Sequence[str],
            *,
            cwd: str | Path | None = None,
            env: Mapping[str, str] | None = None,
            input: str | None = None,
    ) -> subprocess.CompletedProcess[str]:
        args = [str(arg) for arg in cmd]
        log.debug("run: %s%s", format_cmd(args), f" (cwd={cwd})" if cwd else "")
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)
        try:
            res = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                env=full_env,
                input=input,
                text=True,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as exc:
            return subprocess.CompletedProcess(args, 127, "", str(exc))
        if res.returncode != 0:
            log.debug("exit %s: %s", res.returncode, (res.stderr or "").strip())
        return res

    def succeeds(self, cmd: Sequence[str], **kwargs) -> bool:
        return self.run(cmd, **kwargs).returncode == 0
