"""Value encoding shared by all engines."""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy import literal_column
from sqlalchemy.sql.elements import ColumnElement

from sqlkv.exceptions import ValueFormatError

# Some drivers send an empty bound binary differently from a genuinely
# empty value, so empty values are written as a plain SQL literal.
EMPTY = literal_column("''")

_INTEGER = re.compile(rb"-?\d+")


def blob(value: bytes) -> bytes | ColumnElement[Any]:
    return value if value else EMPTY


def to_bytes(value: Any) -> bytes | None:
    """Normalise whatever the driver returned for a value column."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def to_text(value: bytes) -> str:
    return value.decode("utf-8")


def encode_integer(number: int) -> bytes:
    return str(number).encode("ascii")


def parse_integer(key: str, value: Any) -> int:
    """Parse a stored value as base-10 integer text."""
    raw = to_bytes(value)
    if raw is None or not _INTEGER.fullmatch(raw):
        raise ValueFormatError(key, raw)
    return int(raw)
