from __future__ import annotations

import logging
import re
import time
from functools import lru_cache
from typing import Callable, Iterable, Protocol, Sequence

from .config_types import DeploymentContext, DeploymentMode, ExtractedValues
from .errors import ConvergenceTimeout
from .logsource import LogSource

log = logging.getLogger(__name__)

ACCESS_TOKEN_LABEL = "Access Token:"
BASIC_AUTH_PASSWORD_LABEL = "Basic Auth Password:"
WEB_TERMINAL_PASSWORD_LABEL = "Web Terminal Password:"
QUICK_TUNNEL_URL_RE = re.compile(r"https://[a-z0-9-]+\.trycloudflare\.com")


def secret_labels(mode: DeploymentMode) -> tuple[str, ...]:
    if mode.uses_tunnel_token:
        return (BASIC_AUTH_PASSWORD_LABEL, WEB_TERMINAL_PASSWORD_LABEL)
    return (WEB_TERMINAL_PASSWORD_LABEL, BASIC_AUTH_PASSWORD_LABEL)


@lru_cache(maxsize=None)
def _label_re(label: str) -> re.Pattern[str]:
    # Greedy prefix: the last label occurrence on a line wins, like sed.
    return re.compile(r".*" + re.escape(label) + r"\s*(\S+)")


def extract_labeled(lines: Iterable[str], labels: str | Sequence[str]) -> str | None:
    """Token after the label on the most recent matching line."""
    if isinstance(labels, str):
        labels = (labels,)
    patterns = [_label_re(label) for label in labels]
    for line in reversed(list(lines)):
        for pattern in patterns:
            match = pattern.search(line)
            if match:
                return match.group(1)
    return None


def extract_first_url(lines: Iterable[str], pattern: re.Pattern[str] = QUICK_TUNNEL_URL_RE) -> str | None:
    for line in lines:
        match = pattern.search(line)
        if match:
            return match.group(0)
    return None


class Clock(Protocol):
    def monotonic(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def describe_values(values: ExtractedValues, mode: DeploymentMode) -> list[str]:
    titles = {
        "access_token": "Access Token",
        "secondary_credential": secret_labels(mode)[0].rstrip(":"),
        "public_url": "Tunnel URL",
    }
    lines = []
    for name, title in titles.items():
        value = getattr(values, name)
        if value is None:
            value = "<skipped>" if name == "public_url" and mode.uses_tunnel_token else "<missing>"
        lines.append(f"- {title}: {value}")
    return lines


class CredentialExtractor:
    def __init__(self, ctx: DeploymentContext, source: LogSource, *, clock: Clock | None = None):
        self.ctx = ctx
        self.source = source
        self.clock = clock or SystemClock()

    def poll_once(self, values: ExtractedValues) -> ExtractedValues:
        """One pass over the logs; only fields still unset are looked up."""
        mode = self.ctx.mode
        if values.access_token is None:
            lines = self.source.lines(self.ctx.primary_service)
            values.fill("access_token", extract_labeled(lines, ACCESS_TOKEN_LABEL))
        if values.secondary_credential is None:
            lines = self.source.lines(self.ctx.secret_service)
            values.fill("secondary_credential", extract_labeled(lines, secret_labels(mode)))
        if not mode.uses_tunnel_token and values.public_url is None:
            lines = self.source.lines(self.ctx.tunnel_service)
            values.fill("public_url", extract_first_url(lines))
        return values

    def run(
            self,
            *,
            timeout: float | None = None,
            interval: float | None = None,
            on_poll: Callable[[int, ExtractedValues], None] | None = None,
    ) -> ExtractedValues:
        timeout = self.ctx.poll_timeout if timeout is None else timeout
        interval = self.ctx.poll_interval if interval is None else interval
        mode = self.ctx.mode

        values = ExtractedValues(public_url=self.ctx.known_public_url)
        start = self.clock.monotonic()
        attempt = 0
        while self.clock.monotonic() - start <= timeout:
            attempt += 1
            self.poll_once(values)
            if on_poll:
                on_poll(attempt, values)
            if values.complete(mode):
                log.debug("credentials converged after %d poll(s)", attempt)
                return values
            self.clock.sleep(interval)

        missing = values.missing(mode)
        message = "\n".join(["Timed out waiting for required values from logs.", *describe_values(values, mode)])
        raise ConvergenceTimeout(message, values, missing)
