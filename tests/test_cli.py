"""CLI tests for detection commands."""

import json
import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from mimeguess.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    return env


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "mimeguess identifies file types" in result.output
    for command in ("detect", "ext", "signatures", "config"):
        assert command in result.output


def test_detect_json_reports_stage(tmp_path: Path) -> None:
    png = tmp_path / "image.bin"
    png.write_bytes(b"\x89PNG\r\n\x1a\n".ljust(64, b"\x00"))
    notes = tmp_path / "notes.md"
    notes.write_text("plain words\n", encoding="utf-8")
    missing = tmp_path / "missing.xyz"

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["detect", "--no-probe", "--json", str(png), str(notes), str(missing)],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload == [
        {"path": str(png), "mime": "image/png", "stage": "signature"},
        {"path": str(notes), "mime": "text/markdown", "stage": "extension"},
        {"path": str(missing), "mime": "unknown", "stage": None},
    ]


def test_detect_uses_configured_probe_command(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "probe:\n  command: [mimeguess-test-no-such-command]\ncli:\n  json_default: true\n",
        encoding="utf-8",
    )
    pdf = tmp_path / "paper"
    pdf.write_bytes(b"%PDF-1.5\n")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(config_path), "detect", str(pdf)])

    assert result.exit_code == 0
    assert json.loads(result.output) == [
        {"path": str(pdf), "mime": "application/pdf", "stage": "signature"}
    ]


def test_detect_table_output(tmp_path: Path) -> None:
    gif = tmp_path / "a.gif"
    gif.write_bytes(b"GIF89a\x01\x00\x01\x00")

    runner = CliRunner()
    result = runner.invoke(cli, ["detect", "--no-probe", str(gif)], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "image/gif" in result.output
    assert "signature" in result.output


def test_detect_rejects_invalid_config(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("probe:\n  timeout_seconds: never\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(config_path), "detect", "x.pdf"])

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output


def test_ext_prints_representative_extension(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ext", "application/pdf"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert result.output.strip() == "pdf"


def test_ext_unknown_mime_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ext", "application/x-nothing"], env=_env_with_home(tmp_path))

    assert result.exit_code == 1
    assert "No extension is registered" in result.output


def test_signatures_lists_catalog(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["signatures"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "PKZIP" in result.output
    assert "TrueType" in result.output
