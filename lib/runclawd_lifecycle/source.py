from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ForeignStateConflict, PreconditionFailure, SourceError
from .runner import CommandRunner, format_cmd

log = logging.getLogger(__name__)


class AcquireResult(enum.Enum):
    CLONED = "cloned"
    UPDATED = "updated"


@dataclass(frozen=True)
class Installation:
    path: Path
    exists: bool
    is_dir: bool
    is_empty: bool
    is_checkout: bool
    origin: str | None

    def matches_origin(self, expected: str) -> bool:
        return self.origin is not None and normalize_origin(self.origin) == normalize_origin(expected)

    def usable(self, expected_origin: str) -> bool:
        if not self.exists:
            return True
        if not self.is_dir:
            return False
        if self.is_checkout:
            return self.matches_origin(expected_origin)
        return self.is_empty


def normalize_origin(url: str) -> str:
    value = url.strip().rstrip("/")
    if value.endswith(".git"):
        value = value[: -len(".git")]
    return value.lower()


def inspect_installation(path: Path, runner: CommandRunner) -> Installation:
    exists = path.exists()
    is_dir = path.is_dir()
    is_checkout = is_dir and (path / ".git").exists()
    is_empty = is_dir and not any(path.iterdir())
    origin = None
    if is_checkout:
        res = runner.run(["git", "-C", str(path), "remote", "get-url", "origin"])
        if res.returncode == 0:
            origin = (res.stdout or "").strip() or None
    return Installation(
        path=path,
        exists=exists,
        is_dir=is_dir,
        is_empty=is_empty,
        is_checkout=is_checkout,
        origin=origin,
    )


def _git(runner: CommandRunner, cmd: list[str]) -> None:
    res = runner.run(cmd)
    if res.returncode != 0:
        raise SourceError(f"{format_cmd(cmd)} failed", cmd, res.returncode, res.stderr)


def acquire_source(path: Path, origin: str, runner: CommandRunner) -> AcquireResult:
    """Clone into a missing/empty path or fast-forward an existing checkout of origin."""
    inst = inspect_installation(path, runner)

    if inst.exists and not inst.is_dir:
        raise ForeignStateConflict(f"{path} exists and is not a directory.")

    if inst.is_checkout:
        if not inst.matches_origin(origin):
            raise ForeignStateConflict(
                f"{path} is a git checkout of {inst.origin or '<no origin>'}, expected {origin}."
            )
        log.debug("updating checkout in %s", path)
        _git(runner, ["git", "-C", str(path), "fetch", "--all", "--prune"])
        _git(runner, ["git", "-C", str(path), "pull", "--rebase"])
        return AcquireResult.UPDATED

    if inst.exists and not inst.is_empty:
        raise ForeignStateConflict(
            f"{path} exists but is not a git repo. Please remove it or choose a different install dir."
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    _git(runner, ["git", "clone", origin, str(path)])
    return AcquireResult.CLONED


def ensure_local_checkout(path: Path, compose_file: str) -> None:
    if not (path / compose_file).is_file():
        raise PreconditionFailure(f"Local mode expects {compose_file} in current directory.")
