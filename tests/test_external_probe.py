"""Tests for the external classifier adapter."""

import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest

from mimeguess.detection import UNKNOWN, ExternalProbe
from mimeguess.detection.external import DEFAULT_ALIASES, apply_aliases


class FakeRunner:
    """Stand-in for ``subprocess.run`` that records calls."""

    def __init__(self, stdout: str = "", returncode: int = 0, error: Exception | None = None):
        self.stdout = stdout
        self.returncode = returncode
        self.error = error
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(args, self.returncode, self.stdout, "boom")


def test_probe_passes_path_as_last_argument(tmp_path: Path) -> None:
    runner = FakeRunner(stdout="image/png\n")
    probe = ExternalProbe(("file", "--brief", "--mime-type"), timeout=2.5, runner=runner)
    target = tmp_path / "a b.png"

    assert probe.probe(target) == "image/png"
    args, kwargs = runner.calls[0]
    assert args == ["file", "--brief", "--mime-type", str(target)]
    assert kwargs["timeout"] == 2.5
    assert kwargs["capture_output"] is True
    assert kwargs["errors"] == "replace"


@pytest.mark.parametrize(("raw", "expected"), list(DEFAULT_ALIASES))
def test_default_aliases_normalize_output(raw: str, expected: str) -> None:
    probe = ExternalProbe(runner=FakeRunner(stdout=f"  {raw}\n"))

    assert probe.probe("sample") == expected


def test_unaliased_output_is_returned_trimmed() -> None:
    probe = ExternalProbe(runner=FakeRunner(stdout="\tapplication/x-sqlite3 \n"))

    assert probe.probe("db") == "application/x-sqlite3"


def test_alias_override_replaces_default_table() -> None:
    probe = ExternalProbe(runner=FakeRunner(stdout="image/x-ms-bmp\n"))

    assert probe.probe("bmp", aliases=()) == "image/x-ms-bmp"
    assert probe.probe("bmp", aliases=[("image/x-ms-bmp", "image/x-bmp")]) == "image/x-bmp"


def test_first_matching_alias_wins() -> None:
    aliases = [("text/x-log", "text/plain"), ("text/x-log", "text/x-other")]

    assert apply_aliases("text/x-log", aliases) == "text/plain"


@pytest.mark.parametrize(
    "runner",
    [
        FakeRunner(stdout="", returncode=1),
        FakeRunner(stdout="image/png", returncode=2),
        FakeRunner(stdout="   \n"),
        FakeRunner(error=FileNotFoundError("mimetype")),
        FakeRunner(error=PermissionError("denied")),
        FakeRunner(error=subprocess.TimeoutExpired(["mimetype"], 5)),
        FakeRunner(error=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")),
        FakeRunner(error=ValueError("embedded null byte")),
    ],
)
def test_failures_are_downgraded_to_unknown(runner: FakeRunner) -> None:
    probe = ExternalProbe(runner=runner)

    assert probe.probe("anything") == UNKNOWN


def test_run_reports_failure_reason() -> None:
    outcome = ExternalProbe(runner=FakeRunner(returncode=3)).run("anything")

    assert outcome.ok is False
    assert "status 3" in (outcome.error or "")


def test_missing_executable_is_unknown(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("hello", encoding="utf-8")
    probe = ExternalProbe(("mimeguess-test-no-such-command",))

    outcome = probe.run(target)

    assert outcome.ok is False
    assert probe.probe(target) == UNKNOWN


def test_empty_command_is_rejected() -> None:
    with pytest.raises(ValueError):
        ExternalProbe(())


def _python_command(script: str) -> tuple[str, ...]:
    return (sys.executable, "-c", script)


def test_undecodable_stderr_from_failed_command_is_unknown() -> None:
    script = "import sys; sys.stderr.buffer.write(b'\\xff no such file'); sys.exit(1)"
    probe = ExternalProbe(_python_command(script))

    outcome = probe.run("x.pdf")

    assert outcome.ok is False
    assert "status 1" in (outcome.error or "")
    assert probe.probe("x.pdf") == UNKNOWN


def test_undecodable_stdout_is_replaced_not_raised() -> None:
    script = "import sys; sys.stdout.buffer.write(b'image/\\xffpng\\n')"
    probe = ExternalProbe(_python_command(script))

    result = probe.probe("x.png")

    assert result.startswith("image/")
    assert result.endswith("png")


def test_path_with_embedded_nul_is_unknown() -> None:
    probe = ExternalProbe(_python_command("print('text/plain')"))

    assert probe.run("bad\x00name.txt").ok is False
    assert probe.probe("bad\x00name.txt") == UNKNOWN
