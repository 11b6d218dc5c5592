import shlex

import pytest

from runclawd_lifecycle.errors import PreconditionFailure, RestoreError, UserDeclined
from runclawd_lifecycle.restore import WIPE_SCRIPT, is_affirmative, restore_volume


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "runclawd-data-2026-01-01_000000.tgz"
    path.write_bytes(b"\x1f\x8b")
    return path


def _docker_runs(runner) -> list[list[str]]:
    return [cmd for cmd in runner.commands if cmd[:2] == ["docker", "run"]]


def test_force_wipes_then_extracts(archive, runner, probe_with) -> None:
    steps = []

    result = restore_volume(
        archive, "runclawd-data", force=True, runner=runner, probe=probe_with("docker"), on_step=steps.append
    )

    assert result == archive.resolve()
    runs = _docker_runs(runner)
    assert runs == [
        ["docker", "run", "--rm", "-v", "runclawd-data:/data", "alpine", "sh", "-c", WIPE_SCRIPT],
        [
            "docker", "run", "--rm",
            "-v", "runclawd-data:/to",
            "-v", f"{archive.resolve().parent}:/from:ro",
            "alpine", "sh", "-c",
            f"tar xzf /from/{archive.name} -C /to",
        ],
    ]
    assert len(steps) == 2


def test_no_wipe_skips_wipe_container(archive, runner, probe_with) -> None:
    restore_volume(archive, "vol", wipe_first=False, force=True, runner=runner, probe=probe_with("docker"))
    runs = _docker_runs(runner)
    assert len(runs) == 1
    assert "tar xzf" in runs[0][-1]


def test_confirmation_is_required_without_force(archive, runner, probe_with) -> None:
    prompts = []

    def _confirm(message: str) -> bool:
        prompts.append(message)
        return is_affirmative("yes")

    restore_volume(archive, "vol", runner=runner, probe=probe_with("docker"), confirm=_confirm)

    assert len(prompts) == 1
    assert "Existing files in the volume will be deleted first." in prompts[0]
    assert len(_docker_runs(runner)) == 2


def test_declined_prompt_runs_no_container(archive, runner, probe_with) -> None:
    with pytest.raises(UserDeclined, match="Aborted."):
        restore_volume(archive, "vol", runner=runner, probe=probe_with("docker"), confirm=lambda _m: False)
    assert _docker_runs(runner) == []


def test_missing_confirm_callback_counts_as_decline(archive, runner, probe_with) -> None:
    with pytest.raises(UserDeclined):
        restore_volume(archive, "vol", runner=runner, probe=probe_with("docker"))


@pytest.mark.parametrize("answer", ["y", "Y", "yes", "YES", " yes "])
def test_affirmative_answers(answer) -> None:
    assert is_affirmative(answer)


@pytest.mark.parametrize("answer", ["", "n", "Yes", "yep", None])
def test_non_affirmative_answers(answer) -> None:
    assert not is_affirmative(answer)


def test_force_with_missing_file_fails_before_docker(tmp_path, runner, probe_with) -> None:
    with pytest.raises(PreconditionFailure, match="Backup file not found"):
        restore_volume(tmp_path / "nope.tgz", "vol", force=True, runner=runner, probe=probe_with("docker"))
    assert runner.calls == []


def test_backup_file_is_required(runner, probe_with) -> None:
    with pytest.raises(PreconditionFailure, match="--backup-file is required"):
        restore_volume(None, "vol", force=True, runner=runner, probe=probe_with("docker"))


def test_missing_volume_fails_before_prompt(archive, runner, probe_with) -> None:
    runner.on("docker", "volume", "inspect", returncode=1)

    def _confirm(_message: str) -> bool:
        raise AssertionError("prompted for a missing volume")

    with pytest.raises(PreconditionFailure, match="Docker volume not found: vol"):
        restore_volume(archive, "vol", runner=runner, probe=probe_with("docker"), confirm=_confirm)


def test_wipe_failure_is_ignored(archive, runner, probe_with, caplog) -> None:
    runner.on("docker", "run", "--rm", "-v", "vol:/data", returncode=1, stderr="permission denied")

    restore_volume(archive, "vol", force=True, runner=runner, probe=probe_with("docker"))

    assert len(_docker_runs(runner)) == 2
    assert "permission denied" in caplog.text


def test_extract_failure_raises(archive, runner, probe_with) -> None:
    runner.on("docker", "run", "--rm", "-v", "vol:/to", returncode=2, stderr="gzip: invalid magic")
    with pytest.raises(RestoreError, match="invalid magic"):
        restore_volume(archive, "vol", force=True, runner=runner, probe=probe_with("docker"))


def test_archive_name_with_quote_stays_one_shell_word(tmp_path, runner, probe_with) -> None:
    odd = tmp_path / "it's $(reboot).tgz"
    odd.write_bytes(b"\x1f\x8b")

    restore_volume(odd, "vol", wipe_first=False, force=True, runner=runner, probe=probe_with("docker"))

    script = _docker_runs(runner)[-1][-1]
    assert shlex.split(script) == ["tar", "xzf", "/from/it's $(reboot).tgz", "-C", "/to"]
