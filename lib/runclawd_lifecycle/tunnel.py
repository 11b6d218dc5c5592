from __future__ import annotations

from pathlib import Path

import yaml

from .config_types import DeploymentContext

INGRESS_SERVICE = "http://caddy:80"
FALLBACK_SERVICE = "http_status:404"


def render_tunnel_config(public_hostname: str = "") -> str:
    first: dict[str, str] = {}
    if public_hostname:
        first["hostname"] = public_hostname
    first["service"] = INGRESS_SERVICE
    doc = {"ingress": [first, {"service": FALLBACK_SERVICE}]}
    return yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


def ensure_tunnel_config(ctx: DeploymentContext) -> Path | None:
    """Write cloudflared/config.yml for token tunnels; quick tunnels need none."""
    if not ctx.mode.uses_tunnel_token:
        return None
    path = ctx.tunnel_config_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_tunnel_config(ctx.public_hostname), encoding="utf-8")
    return path
