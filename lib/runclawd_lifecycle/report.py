from __future__ import annotations

from .config_types import DeploymentMode, ExtractedValues

BASIC_AUTH_USERNAME = "runclawd"

_RULE = "=" * 69
_HEADER = f"{_RULE}\n 🦞 OpenClaw is ready\n{_RULE}"
_BASIC_AUTH_NOTE = (
    "  - All HTTP endpoints are protected by Caddy HTTP Basic Auth (including /openclaw onboarding routes)."
)


def _basic_auth_section(step: str, password: str) -> str:
    return (
        f"[{step}] Basic Auth\n"
        f"  Basic Auth Username: {BASIC_AUTH_USERNAME}\n"
        f"  Basic Auth Password: {password}"
    )


def _render_token_tunnel(values: ExtractedValues) -> str:
    url = values.public_url or ""
    token = values.access_token or ""
    access = [
        "[2/2] Public access (Cloudflare Tunnel)",
        "  CF_TUNNEL_TOKEN is set. Configure a Public Hostname / Route in Cloudflare for this tunnel.",
    ]
    if url:
        access.append(f"  Public URL: {url}")
    access += [
        "  Then access:",
        f"    {url}/openclaw/?arg=onboard",
        f"    {url}/term/",
        f"    {url}/?token={token}",
    ]
    sections = [
        _HEADER,
        _basic_auth_section("1/2", values.secondary_credential or ""),
        "\n".join(access),
        f"Notes:\n{_BASIC_AUTH_NOTE}",
    ]
    return "\n\n".join(sections) + "\n"


def _render_quick_tunnel(values: ExtractedValues) -> str:
    url = values.public_url or ""
    token = values.access_token or ""
    sections = [
        _HEADER,
        _basic_auth_section("1/5", values.secondary_credential or ""),
        f"[2/5] Onboarding\n  {url}/openclaw/?arg=onboard",
        f"[3/5] Web Terminal\n  {url}/term/",
        f"[4/5] Gateway Dashboard\n  {url}/?token={token}",
        "[5/5] Device approval (required)\n"
        "  List devices:\n"
        f"    {url}/openclaw/?arg=devices&arg=list\n"
        "\n"
        "  Approve a device:\n"
        f"    {url}/openclaw/?arg=devices&arg=approve&arg={{request_id}}\n"
        "\n"
        '  Tip: open the "List devices" link, find the pending request (UUID), copy its ID, '
        'then replace "{request_id}" in the approve link.',
        "Notes:\n"
        "  - If the URL is not reachable right away, wait a few minutes for DNS/route propagation and try again.\n"
        "  - You must approve the device before you can access it.\n"
        f"{_BASIC_AUTH_NOTE}",
    ]
    return "\n\n".join(sections) + "\n"


def render_result(mode: DeploymentMode, values: ExtractedValues) -> str:
    """Human-readable banner; nothing parses it."""
    if mode.uses_tunnel_token:
        return _render_token_tunnel(values)
    return _render_quick_tunnel(values)
