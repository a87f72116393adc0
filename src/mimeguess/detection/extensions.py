"""Extension to MIME lookups backed by the bundled ``mime_types.json`` asset."""

from __future__ import annotations

import functools
import json
import os
from importlib import resources
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

from .models import UNKNOWN, normalize_extension

_DATA_PACKAGE = "mimeguess.detection"
_DATA_FILE = "mime_types.json"


def extension_of(path: Union[str, os.PathLike]) -> str:
    """Return the lowercased text after the final dot of the file name.

    Dotfiles such as ``.bashrc`` and names without a dot have no extension.
    """
    _, ext = os.path.splitext(os.path.basename(os.fspath(path)))
    return normalize_extension(ext)


class ExtensionTable(Mapping[str, str]):
    """Immutable, ordered extension to MIME mapping.

    Several extensions may share a MIME type, so reverse lookups return the
    first extension in table order rather than a canonical one.
    """

    def __init__(self, entries: Mapping[str, str]) -> None:
        table: dict[str, str] = {}
        for extension, mime in entries.items():
            table[normalize_extension(extension)] = mime
        self._table = MappingProxyType(table)

    def __getitem__(self, extension: str) -> str:
        return self._table[extension]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, path: Union[str, os.PathLike]) -> str:
        """Return the MIME type for the extension of ``path`` or ``UNKNOWN``."""
        extension = extension_of(path)
        if not extension:
            return UNKNOWN
        return self._table.get(extension, UNKNOWN)

    def extension_for(self, mime: str) -> Optional[str]:
        """Return the first extension mapped to ``mime``, or None."""
        for extension, candidate in self._table.items():
            if candidate == mime:
                return extension
        return None

    def with_overrides(self, overrides: Mapping[str, str]) -> "ExtensionTable":
        """Return a new table with ``overrides`` applied.

        Existing keys keep their position; new keys are appended.
        """
        if not overrides:
            return self
        merged = dict(self._table)
        for extension, mime in overrides.items():
            merged[normalize_extension(extension)] = mime
        return ExtensionTable(merged)


@functools.lru_cache(maxsize=1)
def load_extension_table() -> ExtensionTable:
    """Load the bundled extension table once per process."""
    asset = resources.files(_DATA_PACKAGE).joinpath("data").joinpath(_DATA_FILE)
    raw = asset.read_text(encoding="utf-8")
    return ExtensionTable(json.loads(raw))


def lookup_by_extension(path: Union[str, os.PathLike]) -> str:
    """Return the MIME type implied by the extension of ``path``."""
    return load_extension_table().lookup(path)


def lookup_mime_extension(mime: str) -> Optional[str]:
    """Return a representative extension for ``mime``, or None."""
    return load_extension_table().extension_for(mime)


__all__ = [
    "ExtensionTable",
    "extension_of",
    "load_extension_table",
    "lookup_by_extension",
    "lookup_mime_extension",
]
