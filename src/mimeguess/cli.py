"""Command line interface for mimeguess."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from mimeguess.config import ConfigError, ConfigManager, MimeGuessConfig, resolve_with_precedence
from mimeguess.detection import SIGNATURES, MimeDetector, load_extension_table
from mimeguess.detection.buffers import format_pattern

console = Console()
err_console = Console(stderr=True)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _configure_logging(level: str) -> None:
    """Route package log records to stderr through Rich.

    Args:
        level: Name of the logging level to apply to the ``mimeguess`` logger.
    """
    logger = logging.getLogger("mimeguess")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(RichHandler(console=err_console, show_path=False))
    logger.setLevel(level.upper())
    logger.propagate = False


def _load_config(
    ctx: click.Context, cli_overrides: Optional[dict[str, Any]] = None
) -> MimeGuessConfig:
    """Load configuration for a command, surfacing errors through Click.

    Args:
        ctx: Active Click context carrying the config manager.
        cli_overrides: Dotted overrides derived from command options.

    Returns:
        MimeGuessConfig: Effective configuration.

    Raises:
        click.ClickException: If the configuration cannot be loaded.
    """
    manager: ConfigManager = ctx.obj["manager"]
    try:
        return manager.load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """
    node = target
    for segment in path[:-1]:
        existing = node.setdefault(segment, {})
        if not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _effective_file_config(file_data: dict[str, Any]) -> MimeGuessConfig:
    """Validate ``file_data`` as a config file layered over the defaults."""
    try:
        return resolve_with_precedence(defaults=MimeGuessConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _changed_settings(
    before: dict[str, Any], after: dict[str, Any], prefix: str = ""
) -> list[str]:
    """Return dotted keys whose values differ between two config dumps."""
    changed: list[str] = []
    for key in sorted(set(before) | set(after)):
        old, new = before.get(key), after.get(key)
        dotted = f"{prefix}{key}"
        if isinstance(old, dict) and isinstance(new, dict):
            changed.extend(_changed_settings(old, new, f"{dotted}."))
        elif old != new:
            changed.append(dotted)
    return changed


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mimeguess")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file to use instead of ~/.mimeguess/config.yaml.",
)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    help="Override the configured logging level.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], log_level: Optional[str]) -> None:
    """mimeguess identifies file types with an external probe, magic bytes, and extensions."""
    manager = ConfigManager(config_path=config_path)
    ctx.ensure_object(dict)
    ctx.obj["manager"] = manager

    level = log_level
    if level is None:
        try:
            level = manager.load().logging.level
        except ConfigError:
            level = "WARNING"
    _configure_logging(level)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit detection reports as JSON.")
@click.option("--no-probe", is_flag=True, help="Skip the external classifier stage.")
@click.option("--timeout", type=float, help="Override the external classifier timeout (seconds).")
@click.pass_context
def detect(
    ctx: click.Context,
    paths: tuple[str, ...],
    json_output: bool,
    no_probe: bool,
    timeout: Optional[float],
) -> None:
    """Detect the MIME type of each PATH.

    Missing or unreadable files are reported as `unknown` unless their
    extension is known.
    """
    overrides: dict[str, Any] = {}
    if no_probe:
        overrides["probe.enabled"] = False
    if timeout is not None:
        overrides["probe.timeout_seconds"] = timeout

    config = _load_config(ctx, overrides)
    if ctx.get_parameter_source("json_output") == ParameterSource.DEFAULT:
        json_output = config.cli.json_default

    detector = MimeDetector.from_config(config)
    reports = [detector.inspect(path) for path in paths]

    if json_output:
        console.print_json(data=[report.as_dict() for report in reports])
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Path", overflow="fold")
    table.add_column("MIME type", no_wrap=True)
    table.add_column("Stage", no_wrap=True)
    for report in reports:
        style = None if report.known else "yellow"
        table.add_row(report.path, report.mime, report.stage or "-", style=style)
    console.print(table)


@cli.command()
@click.argument("mime")
@click.pass_context
def ext(ctx: click.Context, mime: str) -> None:
    """Print a representative file extension for MIME."""
    config = _load_config(ctx)
    table = load_extension_table().with_overrides(config.extensions.overrides)
    extension = table.extension_for(mime)
    if extension is None:
        raise click.ClickException(f"No extension is registered for '{mime}'.")
    click.echo(extension)


@cli.command()
def signatures() -> None:
    """List the binary signature rules in evaluation order."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Format")
    table.add_column("Offset", justify="right")
    table.add_column("Pattern", overflow="fold")
    table.add_column("MIME type", overflow="fold")
    for index, rule in enumerate(SIGNATURES, start=1):
        mime = rule.mime
        if rule.extension_map:
            mime = f"{mime} (by extension)"
        table.add_row(str(index), rule.label, str(rule.offset), format_pattern(rule.pattern), mime)
    console.print(table)


@cli.group()
def config() -> None:
    """Manage mimeguess configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager: ConfigManager = ctx.obj["manager"]
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager: ConfigManager = ctx.obj["manager"]
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must be a dotted path such as 'probe.timeout_seconds'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _effective_file_config(file_data)

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The timestamp line always changes; only report real edits.
    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    changed = [
        line
        for line in diff
        if line[:1] in "+-" and not line[1:].startswith(("# Last updated", "--", "++"))
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
@click.pass_context
def config_edit(ctx: click.Context) -> None:
    """Edit the configuration file in $EDITOR and report which settings changed.

    Raises:
        click.ClickException: If the edited file is not a valid configuration.
    """
    manager: ConfigManager = ctx.obj["manager"]
    manager.ensure_exists()

    text = manager.read_text()
    edited = click.edit(text, extension=".yaml")
    if edited is None or edited == text:
        console.print("[yellow]Configuration left unchanged.[/yellow]")
        return

    try:
        data = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise click.ClickException("The configuration file must hold a mapping of sections.")

    updated = _effective_file_config(data)
    try:
        previous = resolve_with_precedence(
            defaults=MimeGuessConfig(), file_overrides=manager.load_file_overrides()
        )
    except ConfigError:
        # A broken file on disk is being repaired; compare against the defaults.
        previous = MimeGuessConfig()
    changed = _changed_settings(previous.model_dump(mode="json"), updated.model_dump(mode="json"))

    manager.save(data)
    if not changed:
        console.print("[yellow]Saved; no effective settings changed.[/yellow]")
        return
    for key in changed:
        console.print(f"[green]Updated {key}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
