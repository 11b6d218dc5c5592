from __future__ import annotations

import enum
from dataclasses import dataclass, fields
from pathlib import Path

DEFAULT_REPO_URL = "https://github.com/RunClawd/runclawd.git"
DEFAULT_INSTALL_DIR = "/opt/runclawd"
DEFAULT_COMPOSE_FILE = "docker-compose.yaml"
DEFAULT_TUNNEL_OVERLAY_FILE = "docker-compose.tunnel.yaml"
DEFAULT_VOLUME = "runclawd-data"
DEFAULT_BACKUP_DIR = "/opt/backups/runclawd"

PRIMARY_SERVICE = "runclawd"
PROXY_SERVICE = "caddy"
TUNNEL_SERVICE = "cloudflared"

DEFAULT_POLL_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_LOG_TAIL = 500


class DeploymentMode(enum.Enum):
    QUICK_TUNNEL = "quick-tunnel"
    QUICK_TUNNEL_LOCAL = "quick-tunnel-local"
    TOKEN_TUNNEL = "token-tunnel"
    TOKEN_TUNNEL_LOCAL = "token-tunnel-local"

    @classmethod
    def from_flags(cls, *, local: bool, tunnel_token: bool) -> "DeploymentMode":
        if tunnel_token:
            return cls.TOKEN_TUNNEL_LOCAL if local else cls.TOKEN_TUNNEL
        return cls.QUICK_TUNNEL_LOCAL if local else cls.QUICK_TUNNEL

    @property
    def local(self) -> bool:
        return self in (DeploymentMode.QUICK_TUNNEL_LOCAL, DeploymentMode.TOKEN_TUNNEL_LOCAL)

    @property
    def uses_tunnel_token(self) -> bool:
        return self in (DeploymentMode.TOKEN_TUNNEL, DeploymentMode.TOKEN_TUNNEL_LOCAL)


@dataclass(frozen=True)
class DeploymentContext:
    install_dir: Path
    mode: DeploymentMode
    build: bool = False
    tunnel_token: str = ""
    public_hostname: str = ""
    repo_url: str = DEFAULT_REPO_URL
    compose_file: str = DEFAULT_COMPOSE_FILE
    tunnel_overlay_file: str = DEFAULT_TUNNEL_OVERLAY_FILE
    primary_service: str = PRIMARY_SERVICE
    secret_service: str = PROXY_SERVICE
    tunnel_service: str = TUNNEL_SERVICE
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    log_tail: int = DEFAULT_LOG_TAIL

    @property
    def compose_path(self) -> Path:
        return self.install_dir / self.compose_file

    @property
    def tunnel_config_path(self) -> Path:
        return self.install_dir / "cloudflared" / "config.yml"

    @property
    def known_public_url(self) -> str | None:
        # Only token tunnels have a URL before the stack starts.
        if self.mode.uses_tunnel_token and self.public_hostname:
            return f"https://{self.public_hostname}"
        return None


@dataclass
class ExtractedValues:
    access_token: str | None = None
    secondary_credential: str | None = None
    public_url: str | None = None

    def fill(self, name: str, value: str | None) -> bool:
        """Set a field once; later values never overwrite it."""
        if not value or getattr(self, name) is not None:
            return False
        setattr(self, name, value)
        return True

    def required(self, mode: DeploymentMode) -> list[str]:
        names = ["access_token", "secondary_credential"]
        if not mode.uses_tunnel_token:
            names.append("public_url")
        return names

    def missing(self, mode: DeploymentMode) -> list[str]:
        return [name for name in self.required(mode) if getattr(self, name) is None]

    def complete(self, mode: DeploymentMode) -> bool:
        return not self.missing(mode)

    def as_dict(self) -> dict[str, str | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
