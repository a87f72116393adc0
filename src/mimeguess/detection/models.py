"""Data models shared by the detection stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

UNKNOWN = "unknown"

Pattern = Tuple[Optional[int], ...]


@dataclass(frozen=True)
class SignatureRule:
    """Describes one magic-byte rule in the signature catalog.

    Attributes:
        label: Short description of the format, shown in listings.
        pattern: Bytes to compare; ``None`` entries match any byte.
        offset: Position in the header window where the pattern starts.
        mime: MIME type returned on a match, or the fallback when the rule
            disambiguates by extension and the extension is not mapped.
        extension_map: Optional normalized extension to MIME mapping used for
            container formats that share a signature.
    """

    label: str
    pattern: Pattern
    offset: int
    mime: str
    extension_map: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.extension_map, MappingProxyType):
            object.__setattr__(self, "extension_map", MappingProxyType(dict(self.extension_map)))

    @property
    def end(self) -> int:
        """Return the index just past the last byte this rule inspects."""
        return self.offset + len(self.pattern)

    def resolve(self, extension: str) -> str:
        """Return the MIME type for a matching buffer given the file extension."""
        if not self.extension_map:
            return self.mime
        return self.extension_map.get(normalize_extension(extension), self.mime)


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of running the external classifier.

    Attributes:
        ok: Whether the command ran and produced output.
        output: Trimmed standard output of the command.
        error: Failure description when ``ok`` is False.
    """

    ok: bool
    output: str = ""
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "ProbeOutcome":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class DetectionReport:
    """Outcome of a cascade run for one path.

    Attributes:
        path: Path that was inspected.
        mime: Detected MIME type or ``UNKNOWN``.
        stage: Name of the stage that decided, or None when every stage missed.
    """

    path: str
    mime: str = UNKNOWN
    stage: Optional[str] = None

    @property
    def known(self) -> bool:
        return self.mime != UNKNOWN

    def as_dict(self) -> dict[str, Optional[str]]:
        return {"path": self.path, "mime": self.mime, "stage": self.stage}


def normalize_extension(extension: str) -> str:
    """Strip a leading dot and lowercase an extension."""
    return extension.lstrip(".").lower()


__all__ = [
    "UNKNOWN",
    "Pattern",
    "SignatureRule",
    "ProbeOutcome",
    "DetectionReport",
    "normalize_extension",
]
