"""Adapter around an external command-line file classifier.

The command receives the file path as its last argument and prints a single
MIME type line. Any failure to run it is reported as a ``ProbeOutcome`` and
downgraded to ``UNKNOWN`` by :meth:`ExternalProbe.probe`.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .models import UNKNOWN, ProbeOutcome

LOGGER = logging.getLogger(__name__)

AliasTable = Tuple[Tuple[str, str], ...]

DEFAULT_COMMAND: Tuple[str, ...] = ("mimetype", "--brief")
DEFAULT_TIMEOUT_SECONDS = 5.0

DEFAULT_ALIASES: AliasTable = (
    ("image/x-ms-bmp", "image/bmp"),
    ("text/x-log", "text/plain"),
    ("audio/x-vorbis+ogg", "audio/ogg"),
    ("video/x-theora+ogg", "video/ogg"),
)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


def apply_aliases(raw: str, aliases: Iterable[Tuple[str, str]]) -> str:
    """Return the canonical MIME for ``raw`` using the first matching alias."""
    for source, canonical in aliases:
        if raw == source:
            return canonical
    return raw


class ExternalProbe:
    """Classify files by running an external command."""

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_COMMAND,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        aliases: Iterable[Tuple[str, str]] = DEFAULT_ALIASES,
        runner: Runner = subprocess.run,
    ) -> None:
        if not command:
            raise ValueError("command must contain at least the executable name")
        self.command: Tuple[str, ...] = tuple(command)
        self.timeout = timeout
        self.aliases: AliasTable = tuple((str(src), str(dst)) for src, dst in aliases)
        self.runner = runner

    def run(self, path: str | os.PathLike) -> ProbeOutcome:
        """Run the command against ``path`` and capture its output.

        Args:
            path: File to classify.

        Returns:
            ProbeOutcome: Successful outcome with the trimmed output, or a
            failure describing why the command could not classify the file.
        """
        args = [*self.command, os.fspath(path)]
        try:
            completed = self.runner(
                args,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            return ProbeOutcome.failure(f"{self.command[0]}: command not found")
        except subprocess.TimeoutExpired:
            return ProbeOutcome.failure(f"{self.command[0]}: timed out after {self.timeout}s")
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            return ProbeOutcome.failure(f"{self.command[0]}: {exc}")

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            return ProbeOutcome.failure(
                f"{self.command[0]} exited with status {completed.returncode}: {stderr}"
            )

        output = (completed.stdout or "").strip()
        if not output:
            return ProbeOutcome.failure(f"{self.command[0]} produced no output")
        return ProbeOutcome(ok=True, output=output)

    def probe(
        self,
        path: str | os.PathLike,
        aliases: Optional[Iterable[Tuple[str, str]]] = None,
    ) -> str:
        """Return the normalized MIME type for ``path`` or ``UNKNOWN``.

        Args:
            path: File to classify.
            aliases: Alias table to use instead of the instance table. An
                empty table disables normalization.

        Returns:
            str: Canonical MIME type, raw command output when no alias
            applies, or ``UNKNOWN`` when the command failed.
        """
        outcome = self.run(path)
        if not outcome.ok:
            LOGGER.debug("External probe failed for %s: %s", path, outcome.error)
            return UNKNOWN
        table = self.aliases if aliases is None else aliases
        return apply_aliases(outcome.output, table)


_DEFAULT_PROBE = ExternalProbe()


def probe(
    path: str | os.PathLike,
    aliases: Optional[Iterable[Tuple[str, str]]] = None,
) -> str:
    """Classify ``path`` with the default external command."""
    return _DEFAULT_PROBE.probe(path, aliases)


__all__ = [
    "AliasTable",
    "DEFAULT_ALIASES",
    "DEFAULT_COMMAND",
    "DEFAULT_TIMEOUT_SECONDS",
    "ExternalProbe",
    "apply_aliases",
    "probe",
]
