from __future__ import annotations

from typing import Callable

import typer

from runclawd_lifecycle import DeploymentContext, ExtractedValues, RunclawdError
from runclawd_lifecycle.errors import ConvergenceTimeout
from runclawd_lifecycle.extractor import Clock, CredentialExtractor
from runclawd_lifecycle.logsource import ComposeLogSource, LogSource
from runclawd_lifecycle.packages import (
    ensure_dependencies,
    ensure_docker,
    fetch_install_script,
    installer_for,
    require_docker,
)
from runclawd_lifecycle.probe import CapabilityProbe, require_root
from runclawd_lifecycle.report import render_result
from runclawd_lifecycle.runner import CommandRunner
from runclawd_lifecycle.source import AcquireResult, acquire_source, ensure_local_checkout
from runclawd_lifecycle.stack import StackController, detect_compose_command
from runclawd_lifecycle.tunnel import ensure_tunnel_config

from .. import console
from ..config import build_context


def _prepare_host(runner: CommandRunner, probe: CapabilityProbe, fetch: Callable[[], str]) -> None:
    require_root()
    installer = installer_for(probe.detect_package_manager_family(), runner)
    ensure_dependencies(installer, probe, on_install=lambda pkg: console.info(f"Installing {pkg}..."))
    if not probe.has_command("docker"):
        console.info("Installing Docker using get.docker.com...")
    ensure_docker(probe, runner, fetch=fetch)


def _acquire(ctx: DeploymentContext, runner: CommandRunner) -> None:
    if ctx.mode.local:
        ensure_local_checkout(ctx.install_dir, ctx.compose_file)
        return
    if (ctx.install_dir / ".git").exists():
        console.info(f"Updating repo in {ctx.install_dir}...")
    else:
        console.info(f"Cloning {ctx.repo_url} into {ctx.install_dir}...")
    result = acquire_source(ctx.install_dir, ctx.repo_url, runner)
    if result is AcquireResult.CLONED:
        console.ok(f"Cloned into {ctx.install_dir}")


def run_install(
        ctx: DeploymentContext,
        *,
        runner: CommandRunner | None = None,
        probe: CapabilityProbe | None = None,
        clock: Clock | None = None,
        log_source: LogSource | None = None,
        fetch: Callable[[], str] = fetch_install_script,
) -> ExtractedValues:
    """Probe, install, acquire, bring up, then wait for credentials in the logs."""
    runner = runner or CommandRunner()
    probe = probe or CapabilityProbe()

    if not ctx.mode.local:
        _prepare_host(runner, probe, fetch)
    require_docker(probe)

    _acquire(ctx, runner)

    config_path = ensure_tunnel_config(ctx)
    if config_path:
        console.ok(f"Wrote tunnel config to {config_path}")

    stack = StackController(ctx, runner, detect_compose_command(runner, probe))
    console.info("Starting services with docker compose...")
    if ctx.build:
        console.info(f"Rebuilding {ctx.primary_service} image...")
    stack.bring_up(build=ctx.build)

    source = log_source or ComposeLogSource(stack, tail=ctx.log_tail)
    extractor = CredentialExtractor(ctx, source, clock=clock)
    console.info(f"Waiting up to {int(ctx.poll_timeout)}s for credentials in service logs...")
    return extractor.run()


def install(
        local: bool = typer.Option(False, "--local", help="Operate on the checkout in the current directory."),
        build: bool = typer.Option(False, "--build", help="Rebuild the runclawd image before starting."),
        install_dir: str | None = typer.Option(
            None,
            "--install-dir",
            help="Install directory (env RUNCLAWD_INSTALL_DIR, default /opt/runclawd).",
        ),
        timeout: float | None = typer.Option(
            None,
            "--timeout",
            min=1,
            help="Seconds to wait for credentials to appear in logs.",
        ),
):
    """Install prerequisites, start the stack and print access details.

    Environment:
      CF_TUNNEL_TOKEN        use a named Cloudflare tunnel instead of a quick tunnel
      SERVICE_FQDN_OPENCLAW  public hostname routed to the tunnel
      RUNCLAWD_LOCAL=1       same as --local
    """
    ctx = build_context(local=local, build=build, install_dir=install_dir, timeout_s=timeout)
    console.rule("[bold]RunClawd Install[/]")
    try:
        values = run_install(ctx)
    except ConvergenceTimeout as exc:
        console.err(str(exc))
        console.err("Failed to extract Access Token / Basic Auth Password / Tunnel URL from logs.")
        raise typer.Exit(code=1)
    except RunclawdError as exc:
        console.err(str(exc))
        raise typer.Exit(code=1)
    console.plain(render_result(ctx.mode, values))
