from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import tomli_w
from platformdirs import user_config_dir

from runclawd_lifecycle.config_types import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_INSTALL_DIR,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_REPO_URL,
    DEFAULT_VOLUME,
    DeploymentContext,
    DeploymentMode,
)
from runclawd_lifecycle.schedule import DEFAULT_RETENTION_DAYS, DEFAULT_SCHEDULE

APP_NAME = "runclawd"
CONFIG_FILENAME = "config.toml"

ENV_LOCAL = "RUNCLAWD_LOCAL"
ENV_INSTALL_DIR = "RUNCLAWD_INSTALL_DIR"
ENV_TUNNEL_TOKEN = "CF_TUNNEL_TOKEN"
ENV_PUBLIC_HOSTNAME = "SERVICE_FQDN_OPENCLAW"
ENV_VOLUME = "VOLUME_NAME"
ENV_BACKUP_DIR = "BACKUP_DIR"
ENV_ARCHIVE_NAME = "ARCHIVE_NAME"
ENV_PROJECT_DIR = "PROJECT_DIR"
ENV_SCHEDULE = "SCHEDULE"
ENV_RETENTION_DAYS = "RETENTION_DAYS"


@dataclass
class InstallSettings:
    install_dir: str = DEFAULT_INSTALL_DIR
    repo_url: str = DEFAULT_REPO_URL
    timeout_s: float = DEFAULT_POLL_TIMEOUT


@dataclass
class BackupSettings:
    volume: str = DEFAULT_VOLUME
    backup_dir: str = DEFAULT_BACKUP_DIR
    schedule: str = DEFAULT_SCHEDULE
    retention_days: int = DEFAULT_RETENTION_DAYS


@dataclass
class AppConfig:
    install: InstallSettings = field(default_factory=InstallSettings)
    backup: BackupSettings = field(default_factory=BackupSettings)


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_config() -> AppConfig:
    return AppConfig()


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return {
        "install": {
            "install_dir": cfg.install.install_dir,
            "repo_url": cfg.install.repo_url,
            "timeout_s": cfg.install.timeout_s,
        },
        "backup": {
            "volume": cfg.backup.volume,
            "backup_dir": cfg.backup.backup_dir,
            "schedule": cfg.backup.schedule,
            "retention_days": cfg.backup.retention_days,
        },
    }


def from_toml(data: dict[str, Any]) -> AppConfig:
    cfg = default_config()
    install_raw = data.get("install") or {}
    if isinstance(install_raw, dict):
        cfg.install.install_dir = str(install_raw.get("install_dir") or cfg.install.install_dir).strip()
        cfg.install.repo_url = str(install_raw.get("repo_url") or cfg.install.repo_url).strip()
        timeout = install_raw.get("timeout_s")
        if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
            cfg.install.timeout_s = float(timeout)
    backup_raw = data.get("backup") or {}
    if isinstance(backup_raw, dict):
        cfg.backup.volume = str(backup_raw.get("volume") or cfg.backup.volume).strip()
        cfg.backup.backup_dir = str(backup_raw.get("backup_dir") or cfg.backup.backup_dir).strip()
        cfg.backup.schedule = str(backup_raw.get("schedule") or cfg.backup.schedule).strip()
        days = backup_raw.get("retention_days")
        if isinstance(days, int) and not isinstance(days, bool) and days >= 0:
            cfg.backup.retention_days = days
    return cfg


def load_config() -> AppConfig:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return from_toml(data)
    except FileNotFoundError:
        return default_config()


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def save_config(cfg: AppConfig) -> str:
    path = config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(cfg)).encode("utf-8"))
    return path


def env_value(env: Mapping[str, str], name: str) -> str:
    return (env.get(name) or "").strip()


def resolve_setting(flag: str | None, env: Mapping[str, str], env_name: str, fallback: str) -> str:
    """CLI flag, then environment, then settings file / default."""
    if flag is not None:
        return flag
    return env_value(env, env_name) or fallback


def resolve_raw_setting(flag: str | None, env: Mapping[str, str], env_name: str, fallback: str) -> str:
    """Same precedence, but the value is passed on unstripped for strict validation."""
    if flag is not None:
        return flag
    return env.get(env_name) or fallback


def build_context(
        *,
        local: bool,
        build: bool,
        install_dir: str | None = None,
        timeout_s: float | None = None,
        cfg: AppConfig | None = None,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
) -> DeploymentContext:
    """Derive the deployment context once; nothing downstream reads the environment."""
    env = os.environ if env is None else env
    cfg = cfg or load_config()
    local = local or env_value(env, ENV_LOCAL) == "1"
    tunnel_token = env_value(env, ENV_TUNNEL_TOKEN)
    if local:
        target = (cwd or Path.cwd()).resolve()
    else:
        target = Path(resolve_setting(install_dir, env, ENV_INSTALL_DIR, cfg.install.install_dir)).expanduser()
    return DeploymentContext(
        install_dir=target,
        mode=DeploymentMode.from_flags(local=local, tunnel_token=bool(tunnel_token)),
        build=build,
        tunnel_token=tunnel_token,
        public_hostname=env_value(env, ENV_PUBLIC_HOSTNAME),
        repo_url=cfg.install.repo_url,
        poll_timeout=timeout_s if timeout_s is not None else cfg.install.timeout_s,
    )
