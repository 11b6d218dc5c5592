from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .config_types import ExtractedValues


class RunclawdError(Exception):
    """Base lifecycle error."""


class PreconditionFailure(RunclawdError):
    """Missing tool, file or argument."""


class UnsupportedEnvironment(RunclawdError):
    """No supported package manager on this host."""


class ForeignStateConflict(RunclawdError):
    """Target path exists but is not the expected checkout."""


class UserDeclined(RunclawdError):
    """Confirmation prompt was not affirmed."""


class ConvergenceTimeout(RunclawdError):
    def __init__(self, message: str, values: "ExtractedValues", missing: Sequence[str]):
        super().__init__(message)
        self.values = values
        self.missing = list(missing)


class CommandFailed(RunclawdError):
    def __init__(self, message: str, cmd: Sequence[str] | None = None, returncode: int | None = None,
                 stderr: str | None = None):
        super().__init__(message)
        self.cmd = list(cmd or [])
        self.returncode = returncode
        self.stderr = (stderr or "").strip()

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}: {self.stderr}"
        return base


class SourceError(CommandFailed):
    """git clone/fetch/pull failed."""


class StackError(CommandFailed):
    """docker compose build/up failed."""


class BackupError(CommandFailed):
    """Backup container failed."""


class RestoreError(CommandFailed):
    """Restore container failed."""


class ScheduleError(CommandFailed):
    """crontab could not be replaced."""
