from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Callable

import pytest

from runclawd_lifecycle.probe import CapabilityProbe
from runclawd_lifecycle.runner import CommandRunner


@dataclass
class Call:
    cmd: list[str]
    cwd: str | None = None
    env: dict[str, str] | None = None
    input: str | None = None


@dataclass
class _Rule:
    prefix: list[str]
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    handler: Callable[[Call], subprocess.CompletedProcess[str]] | None = None


@dataclass
class FakeRunner(CommandRunner):
    calls: list[Call] = field(default_factory=list)
    rules: list[_Rule] = field(default_factory=list)

    def on(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "", handler=None) -> None:
        self.rules.append(_Rule(list(prefix), returncode, stdout, stderr, handler))

    def run(self, cmd, *, cwd=None, env=None, input=None) -> subprocess.CompletedProcess[str]:
        call = Call([str(a) for a in cmd], str(cwd) if cwd else None, dict(env) if env else None, input)
        self.calls.append(call)
        # Last registered rule wins.
        for rule in reversed(self.rules):
            if call.cmd[: len(rule.prefix)] == rule.prefix:
                if rule.handler:
                    return rule.handler(call)
                return subprocess.CompletedProcess(call.cmd, rule.returncode, rule.stdout, rule.stderr)
        return subprocess.CompletedProcess(call.cmd, 0, "", "")

    @property
    def commands(self) -> list[list[str]]:
        return [c.cmd for c in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(cmd[: len(prefix)] == list(prefix) for cmd in self.commands)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_probe(*available: str) -> CapabilityProbe:
    names = set(available)
    return CapabilityProbe(which=lambda name: f"/usr/bin/{name}" if name in names else None)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def probe_with() -> Callable[..., CapabilityProbe]:
    return make_probe
