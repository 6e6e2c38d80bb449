"""Canonical result models — The transport-independent shapes every adapter produces.

Each transport returns something different (CSV rows, per-index native
getters, JSON objects). Adapters map those into ``SearchResult`` through
``SearchResult.build()``, which is the single place the normalization rules
live:

  - missing numbers become ``0`` and missing strings become ``""``
  - ``full_path`` is always derived from ``path`` and ``name``
  - attribute flags come from the bitmask when it is authoritative,
    otherwise from whatever explicit flag or heuristic the transport offers
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from everything_client.models.timestamps import UNIX_EPOCH, to_unix_ms

PATH_SEPARATOR = "\\"

FILE_ATTRIBUTE_READONLY = 0x1
FILE_ATTRIBUTE_HIDDEN = 0x2
FILE_ATTRIBUTE_SYSTEM = 0x4
FILE_ATTRIBUTE_DIRECTORY = 0x10

# Returned by the native interface when attributes were not requested
INVALID_FILE_ATTRIBUTES = 0xFFFFFFFF


def coerce_int(value: Any) -> int:
    """Coerce a transport value to a non-negative ``int``.

    ``None``, empty strings, booleans, negative numbers and anything that
    does not parse as a number all become ``0``.
    """
    if value is None or value == "" or isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
    return number if number > 0 else 0


_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


def coerce_bool(value: Any) -> bool:
    """Coerce a transport flag to ``bool``.

    Accepts booleans, numbers and their string forms (``"1"``, ``"0"``,
    ``"true"``, ``"false"``, case-insensitive). ``None`` and unrecognized
    strings are ``False``.
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        return coerce_int(text) > 0
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    return False


def coerce_str(value: Any) -> str:
    """Coerce a transport value to ``str``, mapping ``None`` to ``""``."""
    if value is None:
        return ""
    return str(value)


def join_path(path: str, name: str) -> str:
    """Join a containing directory and a leaf name with the Windows separator."""
    if not path:
        return name
    if not name:
        return path
    if path.endswith(PATH_SEPARATOR):
        return f"{path}{name}"
    return f"{path}{PATH_SEPARATOR}{name}"


def split_full_path(full_path: str) -> tuple[str, str]:
    """Split a full path into ``(path, name)`` at the last separator.

    A trailing separator is ignored so ``C:\\dir\\`` splits into
    ``("C:", "dir")``.
    """
    stripped = full_path.rstrip(PATH_SEPARATOR) or full_path
    index = stripped.rfind(PATH_SEPARATOR)
    if index == -1:
        return "", stripped
    return stripped[:index], stripped[index + 1 :]


class SearchResult(BaseModel):
    """A single file or directory returned by the search engine.

    ``full_path`` is the identity key used by change detection; no two
    results in one snapshot share it.
    """

    name: str = Field(default="", description="Leaf file or directory name")
    path: str = Field(default="", description="Containing directory")
    full_path: str = Field(default="", description="path + separator + name")
    size: int = Field(default=0, ge=0, description="File size in bytes (0 when unknown)")
    date_modified: datetime = Field(default=UNIX_EPOCH, description="Last modification time (UTC)")
    date_created: datetime = Field(default=UNIX_EPOCH, description="Creation time (UTC)")
    date_accessed: datetime = Field(default=UNIX_EPOCH, description="Last access time (UTC)")
    attributes: int = Field(default=0, ge=0, description="Raw file attribute bitmask")
    is_directory: bool = Field(default=False, description="Whether the result is a directory")
    is_hidden: bool = Field(default=False, description="Whether the result is hidden")
    is_system: bool = Field(default=False, description="Whether the result is a system file")
    is_read_only: bool = Field(default=False, description="Whether the result is read-only")

    @property
    def modified_ms(self) -> int:
        """``date_modified`` as Unix milliseconds."""
        return to_unix_ms(self.date_modified)

    @classmethod
    def build(
        cls,
        *,
        name: Any = None,
        path: Any = None,
        full_path: Any = None,
        size: Any = None,
        date_modified: datetime | None = None,
        date_created: datetime | None = None,
        date_accessed: datetime | None = None,
        attributes: Any = None,
        is_directory: bool | None = None,
        is_hidden: bool | None = None,
        is_system: bool | None = None,
        is_read_only: bool | None = None,
    ) -> SearchResult:
        """Build a normalized result from loosely-typed transport fields.

        Args:
            name: Leaf name. If empty, derived from ``full_path``.
            path: Containing directory. Derived from ``full_path`` when
                both ``name`` and ``path`` are empty.
            full_path: Transport-supplied full path, used only when
                ``name`` is missing.
            size: Byte count in any numeric form.
            date_modified: Already-converted UTC datetime.
            date_created: Already-converted UTC datetime.
            date_accessed: Already-converted UTC datetime.
            attributes: Attribute bitmask in any numeric form.
            is_directory: Explicit directory flag from the transport.
            is_hidden: Explicit hidden flag from the transport.
            is_system: Explicit system flag from the transport.
            is_read_only: Explicit read-only flag from the transport.

        Returns:
            A ``SearchResult`` obeying the canonical invariants.
        """
        name_str = coerce_str(name)
        path_str = coerce_str(path)
        supplied_full = coerce_str(full_path)

        trailing_separator = supplied_full.endswith(PATH_SEPARATOR)
        if not name_str and supplied_full:
            split_path, name_str = split_full_path(supplied_full)
            if not path_str:
                path_str = split_path

        attrs = coerce_int(attributes)
        if attrs == INVALID_FILE_ATTRIBUTES:
            attrs = 0

        if attrs:
            directory = bool(attrs & FILE_ATTRIBUTE_DIRECTORY)
            hidden = bool(attrs & FILE_ATTRIBUTE_HIDDEN)
            system = bool(attrs & FILE_ATTRIBUTE_SYSTEM)
            read_only = bool(attrs & FILE_ATTRIBUTE_READONLY)
        else:
            if is_directory is None:
                directory = trailing_separator or (bool(supplied_full) and not name_str)
            else:
                directory = bool(is_directory)
            hidden = bool(is_hidden)
            system = bool(is_system)
            read_only = bool(is_read_only)

        return cls(
            name=name_str,
            path=path_str,
            full_path=join_path(path_str, name_str),
            size=coerce_int(size),
            date_modified=date_modified or UNIX_EPOCH,
            date_created=date_created or UNIX_EPOCH,
            date_accessed=date_accessed or UNIX_EPOCH,
            attributes=attrs,
            is_directory=directory,
            is_hidden=hidden,
            is_system=system,
            is_read_only=read_only,
        )


class SearchStatus(BaseModel):
    """Best-effort status of the engine's index."""

    total_results: int = Field(default=0, ge=0, description="Total number of results for the current query")
    indexing_complete: bool = Field(default=True, description="Whether the index is fully loaded")
    percent_complete: int = Field(default=100, ge=0, le=100, description="Index load percentage")


class ChangeType(str, Enum):
    """Kind of difference between two snapshots for one path."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class FileChange(BaseModel):
    """A single change record produced by the change detector."""

    path: str = Field(description="Full path of the changed entry")
    type: ChangeType = Field(description="Type of change")
