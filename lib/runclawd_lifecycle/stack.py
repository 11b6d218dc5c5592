from __future__ import annotations

import logging

from .config_types import DeploymentContext
from .errors import PreconditionFailure, StackError
from .probe import CapabilityProbe
from .runner import CommandRunner, format_cmd

log = logging.getLogger(__name__)


def detect_compose_command(runner: CommandRunner, probe: CapabilityProbe) -> list[str]:
    if runner.succeeds(["docker", "compose", "version"]):
        return ["docker", "compose"]
    if probe.has_command("docker-compose"):
        return ["docker-compose"]
    raise PreconditionFailure("Docker Compose not found. Please install docker compose plugin.")


class StackController:
    def __init__(self, ctx: DeploymentContext, runner: CommandRunner, compose_cmd: list[str]):
        self.ctx = ctx
        self.runner = runner
        self.compose_cmd = list(compose_cmd)

    def overlay_args(self) -> list[str]:
        # Later -f files override earlier keys, so the base file stays first.
        args = ["-f", self.ctx.compose_file]
        if self.ctx.mode.uses_tunnel_token:
            args += ["-f", self.ctx.tunnel_overlay_file]
        return args

    def _env(self) -> dict[str, str]:
        return {"CF_TUNNEL_TOKEN": self.ctx.tunnel_token or ""}

    def _compose(self, *args: str) -> list[str]:
        return [*self.compose_cmd, *self.overlay_args(), *args]

    def _run_checked(self, cmd: list[str]) -> None:
        res = self.runner.run(cmd, cwd=self.ctx.install_dir, env=self._env())
        if res.returncode != 0:
            raise StackError(f"{format_cmd(cmd)} failed", cmd, res.returncode, res.stderr)

    def build(self) -> None:
        self._run_checked(self._compose("build", self.ctx.primary_service))

    def up(self) -> None:
        self._run_checked(self._compose("up", "-d"))

    def bring_up(self, build: bool = False) -> None:
        if build:
            self.build()
        self.up()

    def read_logs(self, service: str, *, tail: int | None = None) -> str:
        args = ["logs", "--no-color"]
        if tail is not None:
            args += ["--tail", str(tail)]
        cmd = self._compose(*args, service)
        res = self.runner.run(cmd, cwd=self.ctx.install_dir, env=self._env())
        if res.returncode != 0:
            # Service not created yet; the extractor keeps polling.
            log.debug("logs for %s unavailable: %s", service, (res.stderr or "").strip())
            return ""
        return res.stdout or ""
