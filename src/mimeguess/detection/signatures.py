"""Binary signature catalog and matcher.

Rules are evaluated strictly in catalog order and the first match wins, so the
order itself encodes tie-breaking. Container formats that share the PKZIP
signature are told apart by file extension, never by further bytes.

Signature references:
    https://www.garykessler.net/library/file_sigs.html
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Sequence, Tuple

from .buffers import PathLike, build_pattern, matches_at, read_bytes
from .errors import CatalogError
from .extensions import extension_of
from .models import UNKNOWN, SignatureRule

LOGGER = logging.getLogger(__name__)

# Sized to the longest rule: Ogg page header plus the codec tag at offset 29.
SIGNATURE_WINDOW = 35

_OGG_PAGE = b"OggS\x00\x02\x00\x00\x00\x00\x00\x00\x00\x00"
_ASF_GUID = b"\x30\x26\xB2\x75\x8E\x66\xCF\x11\xA6\xD9\x00\xAA\x00\x62\xCE\x6C"
_PKZIP = b"PK\x03\x04"

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

OOXML_EXTENSIONS = MappingProxyType(
    {
        "docx": DOCX_MIME,
        "pptx": PPTX_MIME,
        "xlsx": XLSX_MIME,
    }
)

ZIP_CONTAINER_EXTENSIONS = MappingProxyType(
    {
        "jar": "application/java-archive",
        "kmz": "application/vnd.google-earth.kmz",
        "kwd": "application/vnd.kde.kword",
        "odp": "application/vnd.oasis.opendocument.presentation",
        "odt": "application/vnd.oasis.opendocument.text",
        "ott": "application/vnd.oasis.opendocument.text-template",
        "oxps": "application/oxps",
        **OOXML_EXTENSIONS,
    }
)


def _rule(label: str, mime: str, *parts: bytes | int, offset: int = 0, **kwargs) -> SignatureRule:
    return SignatureRule(
        label=label,
        pattern=build_pattern(*parts),
        offset=offset,
        mime=mime,
        **kwargs,
    )


SIGNATURES: Tuple[SignatureRule, ...] = (
    # Images
    _rule("BMP", "image/bmp", b"BM"),
    _rule("GIF87a", "image/gif", b"GIF87a"),
    _rule("GIF89a", "image/gif", b"GIF89a"),
    _rule("JPEG", "image/jpeg", b"\xFF\xD8"),
    _rule("JPEG 2000", "image/jp2", b"jP  ", offset=4),
    _rule("PNG", "image/png", b"\x89PNG\r\n\x1A\n"),
    _rule("TIFF (little endian)", "image/tiff", b"II*\x00"),
    _rule("TIFF (big endian)", "image/tiff", b"MM\x00*"),
    _rule("BigTIFF", "image/tiff", b"MM\x00+"),
    _rule("TIFF (I I)", "image/tiff", b"I I"),
    _rule("Photoshop", "image/vnd.adobe.photoshop", b"8BPS"),
    _rule("PBM (ASCII)", "image/x-portable-bitmap", b"P1\n"),
    _rule("PBM (binary)", "image/x-portable-bitmap", b"P4\n"),
    _rule("PGM (ASCII)", "image/x-portable-graymap", b"P2\n"),
    _rule("PGM (binary)", "image/x-portable-graymap", b"P5\n"),
    _rule("PPM (ASCII)", "image/x-portable-pixmap", b"P3\n"),
    _rule("PPM (binary)", "image/x-portable-pixmap", b"P6\n"),
    _rule("PAM", "image/x-portable-anymap", b"P7\n"),
    # Audio and video
    _rule("MP3 (ID3v2)", "audio/mpeg", b"ID3"),
    _rule("MP3", "audio/mpeg", b"\xFF\xFB"),
    _rule("Flash video", "video/x-flv", b"FLV\x01"),
    _rule("M4A", "audio/mp4", b"ftypM4A ", offset=4),
    _rule("M4V", "video/mp4", b"ftypM4V ", offset=4),
    _rule("Ogg Theora", "video/ogg", _OGG_PAGE, 15, b"theora"),
    _rule("Ogg Vorbis", "audio/ogg", _OGG_PAGE, 15, b"vorbis"),
    _rule("WAVE", "audio/x-wav", b"RIFF", 4, b"WAVE"),
    _rule("MPEG-4 (MSNV)", "video/mp4", b"ftypMSNV", offset=4),
    _rule("MPEG-4 (isom)", "video/mp4", b"ftypisom", offset=4),
    _rule("AVI", "video/x-msvideo", b"RIFF", 4, b"AVI LIST"),
    _rule("QuickTime", "video/quicktime", b"ftypqt  ", offset=4),
    _rule("ASF/WMV", "video/x-ms-wmv", _ASF_GUID),
    # Documents and containers
    _rule("PDF", "application/pdf", b"%PDF"),
    _rule(
        "Office Open XML",
        DOCX_MIME,
        _PKZIP,
        b"\x14\x00\x06\x00",
        extension_map=OOXML_EXTENSIONS,
    ),
    _rule("PKZIP", "application/zip", _PKZIP, extension_map=ZIP_CONTAINER_EXTENSIONS),
    # Fonts
    _rule("TrueType", "font/ttf", b"true\x00"),
)


def _shadows(earlier: SignatureRule, later: SignatureRule) -> bool:
    """Return True when every buffer matching ``later`` also matches ``earlier``."""
    if earlier.offset < later.offset or earlier.end > later.end:
        return False
    for index, expected in enumerate(earlier.pattern):
        if expected is None:
            continue
        if later.pattern[earlier.offset - later.offset + index] != expected:
            return False
    return True


def validate_catalog(rules: Sequence[SignatureRule], window: int = SIGNATURE_WINDOW) -> None:
    """Check catalog invariants.

    Args:
        rules: Rules in evaluation order.
        window: Size of the header window the rules are matched against.

    Raises:
        CatalogError: If a rule is malformed, reaches past the window, or can
            never match because an earlier rule always wins first.
    """
    for position, rule in enumerate(rules):
        if not rule.pattern:
            raise CatalogError(f"Rule '{rule.label}' has an empty pattern.")
        if rule.offset < 0:
            raise CatalogError(f"Rule '{rule.label}' has a negative offset.")
        if rule.end > window:
            raise CatalogError(
                f"Rule '{rule.label}' ends at byte {rule.end}, past the {window}-byte window."
            )
        if any(value is not None and not 0 <= value <= 0xFF for value in rule.pattern):
            raise CatalogError(f"Rule '{rule.label}' contains a value outside the byte range.")
        if not rule.mime:
            raise CatalogError(f"Rule '{rule.label}' has no MIME type.")
        for earlier in rules[:position]:
            if _shadows(earlier, rule):
                raise CatalogError(
                    f"Rule '{rule.label}' is unreachable; '{earlier.label}' always matches first."
                )


class SignatureMatcher:
    """Match header windows against an ordered signature catalog."""

    def __init__(
        self,
        rules: Iterable[SignatureRule] = SIGNATURES,
        *,
        window: int = SIGNATURE_WINDOW,
    ) -> None:
        self.rules: Tuple[SignatureRule, ...] = tuple(rules)
        self.window = window
        validate_catalog(self.rules, window)

    def find_rule(self, header: bytes) -> SignatureRule | None:
        """Return the first rule matching ``header``, if any."""
        for rule in self.rules:
            if matches_at(header, rule.pattern, rule.offset):
                return rule
        return None

    def match(self, header: bytes, extension: str = "") -> str:
        """Return the MIME type for ``header`` or ``UNKNOWN``.

        Args:
            header: Leading bytes of the file, ideally ``window`` bytes long.
            extension: File extension used to disambiguate container formats.

        Returns:
            str: Detected MIME type or ``UNKNOWN``.
        """
        rule = self.find_rule(header)
        if rule is None:
            return UNKNOWN
        mime = rule.resolve(extension)
        LOGGER.debug("Signature rule '%s' matched; resolved to %s.", rule.label, mime)
        return mime

    def match_file(self, path: PathLike) -> str:
        """Read the header window of ``path`` and match it.

        Unreadable files yield ``UNKNOWN``.
        """
        try:
            header = read_bytes(path, 0, self.window)
        except (OSError, ValueError) as exc:
            LOGGER.debug("Could not read header window of %s: %s", path, exc)
            return UNKNOWN
        return self.match(header, extension_of(path))


validate_catalog(SIGNATURES)

_DEFAULT_MATCHER = SignatureMatcher()


def match_signature(header: bytes, extension: str = "") -> str:
    """Match ``header`` against the default catalog."""
    return _DEFAULT_MATCHER.match(header, extension)


__all__ = [
    "SIGNATURE_WINDOW",
    "SIGNATURES",
    "OOXML_EXTENSIONS",
    "ZIP_CONTAINER_EXTENSIONS",
    "SignatureMatcher",
    "match_signature",
    "validate_catalog",
]
