from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Sequence

from .stack import StackController


class LogSource(Protocol):
    def lines(self, service: str) -> Iterable[str]:
        """Return a fresh sequence of the service's log lines."""
        ...


class ComposeLogSource:
    def __init__(self, stack: StackController, *, tail: int = 500):
        self.stack = stack
        self.tail = tail

    def lines(self, service: str) -> list[str]:
        text = self.stack.read_logs(service, tail=self.tail or None)
        lines = text.splitlines()
        if self.tail and len(lines) > self.tail:
            lines = lines[-self.tail:]
        return lines


class StaticLogSource:
    def __init__(self, logs: Mapping[str, Sequence[str]]):
        self._logs = {k: list(v) for k, v in logs.items()}

    def lines(self, service: str) -> list[str]:
        return list(self._logs.get(service, []))


class ScriptedLogSource:
    """Each read of a service returns the next snapshot; the last one repeats."""

    def __init__(self, snapshots: Mapping[str, Sequence[Sequence[str]]]):
        self._snapshots = {k: [list(s) for s in v] for k, v in snapshots.items()}
        self.reads: dict[str, int] = {}

    def lines(self, service: str) -> list[str]:
        snaps = self._snapshots.get(service)
        count = self.reads.get(service, 0)
        self.reads[service] = count + 1
        if not snaps:
            return []
        return list(snaps[min(count, len(snaps) - 1)])
