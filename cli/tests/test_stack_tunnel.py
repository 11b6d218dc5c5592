from pathlib import Path

import pytest
import yaml

from runclawd_lifecycle.config_types import DeploymentContext, DeploymentMode
from runclawd_lifecycle.errors import PreconditionFailure, StackError
from runclawd_lifecycle.logsource import ComposeLogSource
from runclawd_lifecycle.stack import StackController, detect_compose_command
from runclawd_lifecycle.tunnel import ensure_tunnel_config, render_tunnel_config


def _ctx(tmp_path: Path, mode: DeploymentMode, **kw) -> DeploymentContext:
    return DeploymentContext(install_dir=tmp_path, mode=mode, **kw)


def test_compose_plugin_preferred(runner, probe_with) -> None:
    assert detect_compose_command(runner, probe_with("docker-compose")) == ["docker", "compose"]


def test_standalone_compose_fallback(runner, probe_with) -> None:
    runner.on("docker", "compose", "version", returncode=1)
    assert detect_compose_command(runner, probe_with("docker-compose")) == ["docker-compose"]


def test_no_compose_is_fatal(runner, probe_with) -> None:
    runner.on("docker", "compose", "version", returncode=127)
    with pytest.raises(PreconditionFailure, match="Docker Compose not found"):
        detect_compose_command(runner, probe_with())


def test_quick_tunnel_uses_base_file_only(tmp_path, runner) -> None:
    stack = StackController(_ctx(tmp_path, DeploymentMode.QUICK_TUNNEL), runner, ["docker", "compose"])
    stack.bring_up(build=False)

    assert runner.commands == [["docker", "compose", "-f", "docker-compose.yaml", "up", "-d"]]
    assert runner.calls[0].cwd == str(tmp_path)
    assert runner.calls[0].env == {"CF_TUNNEL_TOKEN": ""}


def test_token_tunnel_layers_overlay_and_builds_first(tmp_path, runner) -> None:
    ctx = _ctx(tmp_path, DeploymentMode.TOKEN_TUNNEL, tunnel_token="tok-123")
    StackController(ctx, runner, ["docker-compose"]).bring_up(build=True)

    overlays = ["-f", "docker-compose.yaml", "-f", "docker-compose.tunnel.yaml"]
    assert runner.commands == [
        ["docker-compose", *overlays, "build", "runclawd"],
        ["docker-compose", *overlays, "up", "-d"],
    ]
    assert all(c.env == {"CF_TUNNEL_TOKEN": "tok-123"} for c in runner.calls)


def test_failed_up_raises_stack_error(tmp_path, runner) -> None:
    runner.on("docker", "compose", returncode=1, stderr="port is already allocated")
    stack = StackController(_ctx(tmp_path, DeploymentMode.QUICK_TUNNEL), runner, ["docker", "compose"])
    with pytest.raises(StackError, match="port is already allocated"):
        stack.up()


def test_failed_build_skips_up(tmp_path, runner) -> None:
    runner.on("docker", "compose", "-f", "docker-compose.yaml", "build", returncode=1)
    stack = StackController(_ctx(tmp_path, DeploymentMode.QUICK_TUNNEL), runner, ["docker", "compose"])
    with pytest.raises(StackError):
        stack.bring_up(build=True)
    assert not any("up" in cmd for cmd in runner.commands)


def test_read_logs_tolerates_missing_service(tmp_path, runner) -> None:
    runner.on("docker", "compose", returncode=1, stderr="no such service: cloudflared")
    stack = StackController(_ctx(tmp_path, DeploymentMode.QUICK_TUNNEL), runner, ["docker", "compose"])
    assert stack.read_logs("cloudflared") == ""
    assert runner.commands[0][-3:] == ["logs", "--no-color", "cloudflared"]


def test_compose_log_source_keeps_tail(tmp_path, runner) -> None:
    runner.on("docker", "compose", stdout="".join(f"line {i}\n" for i in range(10)))
    stack = StackController(_ctx(tmp_path, DeploymentMode.QUICK_TUNNEL), runner, ["docker", "compose"])

    lines = ComposeLogSource(stack, tail=3).lines("runclawd")

    assert lines == ["line 7", "line 8", "line 9"]
    assert runner.commands[0][-5:] == ["logs", "--no-color", "--tail", "3", "runclawd"]


def test_tunnel_config_routes_hostname_to_proxy() -> None:
    doc = yaml.safe_load(render_tunnel_config("claw.example.com"))
    assert doc == {
        "ingress": [
            {"hostname": "claw.example.com", "service": "http://caddy:80"},
            {"service": "http_status:404"},
        ]
    }


def test_tunnel_config_without_hostname_routes_everything() -> None:
    doc = yaml.safe_load(render_tunnel_config())
    assert doc["ingress"][0] == {"service": "http://caddy:80"}


def test_ensure_tunnel_config_only_for_token_modes(tmp_path) -> None:
    assert ensure_tunnel_config(_ctx(tmp_path, DeploymentMode.QUICK_TUNNEL)) is None
    assert not (tmp_path / "cloudflared").exists()

    ctx = _ctx(tmp_path, DeploymentMode.TOKEN_TUNNEL_LOCAL, public_hostname="claw.example.com")
    path = ensure_tunnel_config(ctx)

    assert path == tmp_path / "cloudflared" / "config.yml"
    assert "claw.example.com" in path.read_text(encoding="utf-8")
