"""Detection cascade: external probe, then binary signature, then extension."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .extensions import ExtensionTable, load_extension_table
from .external import ExternalProbe
from .models import UNKNOWN, DetectionReport
from .signatures import SignatureMatcher

if TYPE_CHECKING:
    from mimeguess.config.models import MimeGuessConfig

LOGGER = logging.getLogger(__name__)

STAGE_PROBE = "probe"
STAGE_SIGNATURE = "signature"
STAGE_EXTENSION = "extension"


class MimeDetector:
    """Run the detection stages in priority order and stop at the first answer.

    The detector keeps no per-call state, so one instance can serve
    concurrent callers.
    """

    def __init__(
        self,
        probe: Optional[ExternalProbe] = None,
        matcher: Optional[SignatureMatcher] = None,
        extensions: Optional[ExtensionTable] = None,
    ) -> None:
        self.probe = probe
        self.matcher = matcher or SignatureMatcher()
        self.extensions = extensions if extensions is not None else load_extension_table()

    @classmethod
    def from_config(cls, config: "MimeGuessConfig") -> "MimeDetector":
        """Build a detector from application settings."""
        probe: Optional[ExternalProbe] = None
        if config.probe.enabled:
            probe = ExternalProbe(
                config.probe.command,
                timeout=config.probe.timeout_seconds,
                aliases=config.probe.aliases,
            )
        extensions = load_extension_table().with_overrides(config.extensions.overrides)
        return cls(probe=probe, extensions=extensions)

    def inspect(
        self,
        path: str | os.PathLike,
        aliases: Optional[Iterable[Tuple[str, str]]] = None,
    ) -> DetectionReport:
        """Run the cascade for ``path`` and report which stage decided.

        Args:
            path: File to classify. Missing or unreadable files are not an
                error; the byte-reading stages simply miss.
            aliases: Optional alias table forwarded to the external probe.

        Returns:
            DetectionReport: Detected MIME type and deciding stage.
        """
        display = os.fspath(path)

        if self.probe is not None:
            mime = self.probe.probe(path, aliases)
            if mime != UNKNOWN:
                return DetectionReport(path=display, mime=mime, stage=STAGE_PROBE)
            LOGGER.debug("Probe could not classify %s; trying signatures.", display)

        mime = self.matcher.match_file(path)
        if mime != UNKNOWN:
            return DetectionReport(path=display, mime=mime, stage=STAGE_SIGNATURE)
        LOGGER.debug("No signature matched %s; trying extension.", display)

        mime = self.extensions.lookup(path)
        if mime != UNKNOWN:
            return DetectionReport(path=display, mime=mime, stage=STAGE_EXTENSION)

        LOGGER.debug("Could not determine a MIME type for %s.", display)
        return DetectionReport(path=display)

    def detect(
        self,
        path: str | os.PathLike,
        aliases: Optional[Iterable[Tuple[str, str]]] = None,
    ) -> str:
        """Return the MIME type of ``path`` or ``UNKNOWN``."""
        return self.inspect(path, aliases).mime


_DEFAULT_DETECTOR: Optional[MimeDetector] = None


def default_detector() -> MimeDetector:
    """Return the shared detector using the default external command."""
    global _DEFAULT_DETECTOR
    if _DEFAULT_DETECTOR is None:
        _DEFAULT_DETECTOR = MimeDetector(probe=ExternalProbe())
    return _DEFAULT_DETECTOR


def detect(
    path: str | os.PathLike,
    aliases: Optional[Iterable[Tuple[str, str]]] = None,
) -> str:
    """Return the MIME type of ``path`` using the default cascade."""
    return default_detector().detect(path, aliases)


__all__ = [
    "MimeDetector",
    "STAGE_PROBE",
    "STAGE_SIGNATURE",
    "STAGE_EXTENSION",
    "default_detector",
    "detect",
]
