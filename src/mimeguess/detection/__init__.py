"""MIME type detection cascade."""

from .buffers import read_bytes, read_tail
from .detector import MimeDetector, default_detector, detect
from .errors import CatalogError, DetectionError
from .extensions import (
    ExtensionTable,
    load_extension_table,
    lookup_by_extension,
    lookup_mime_extension,
)
from .external import DEFAULT_ALIASES, ExternalProbe, probe
from .models import UNKNOWN, DetectionReport, ProbeOutcome, SignatureRule
from .signatures import SIGNATURE_WINDOW, SIGNATURES, SignatureMatcher, match_signature

__all__ = [
    "UNKNOWN",
    "DetectionReport",
    "ProbeOutcome",
    "SignatureRule",
    "DetectionError",
    "CatalogError",
    "read_bytes",
    "read_tail",
    "SIGNATURE_WINDOW",
    "SIGNATURES",
    "SignatureMatcher",
    "match_signature",
    "DEFAULT_ALIASES",
    "ExternalProbe",
    "probe",
    "ExtensionTable",
    "load_extension_table",
    "lookup_by_extension",
    "lookup_mime_extension",
    "MimeDetector",
    "default_detector",
    "detect",
]
