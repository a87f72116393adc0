"""Top-level package for mimeguess."""

from importlib import metadata as _metadata

from mimeguess.detection import (
    UNKNOWN,
    MimeDetector,
    detect,
    lookup_by_extension,
    lookup_mime_extension,
    match_signature,
    probe,
)

__all__ = [
    "__version__",
    "UNKNOWN",
    "MimeDetector",
    "detect",
    "lookup_by_extension",
    "lookup_mime_extension",
    "match_signature",
    "probe",
]


def __getattr__(name: str):
    if name == "__version__":
        return _metadata.version("mimeguess")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + ["__version__"])
