"""Cell address codec."""

# Module responsibilities:
# - Convert zero-based (row, col) coordinates to A1-style addresses and back.
# - Enforce the strict ``[A-Z]+[1-9][0-9]*`` grammar used by mapping registries.

from __future__ import annotations

import re
from typing import NamedTuple

from openpyxl.utils.cell import column_index_from_string, get_column_letter

from .errors import InvalidAddress

ADDRESS_PATTERN = re.compile(r"^([A-Z]+)([1-9][0-9]*)$")
MAX_COLUMN_INDEX = 16384  # XFD
MAX_ROW_NUMBER = 1_048_576


class CellPosition(NamedTuple):
    """Zero-based cell coordinates."""

    row: int
    col: int


def encode(row: int, col: int) -> str:
    """Return the A1-style address for zero-based ``row``/``col``."""

    if row < 0 or col < 0:
        raise InvalidAddress((row, col), "coordinates must be non-negative")
    if col >= MAX_COLUMN_INDEX or row >= MAX_ROW_NUMBER:
        raise InvalidAddress((row, col), "coordinates exceed the worksheet limits")
    return f"{get_column_letter(col + 1)}{row + 1}"


def decode(address: str) -> CellPosition:
    """Parse an A1-style address into zero-based coordinates.

    Raises:
        InvalidAddress: When ``address`` does not match the grammar or lies
            outside the worksheet limits.
    """

    if not isinstance(address, str):
        raise InvalidAddress(address, "address must be a string")
    match = ADDRESS_PATTERN.match(address)
    if match is None:
        raise InvalidAddress(address)
    letters, digits = match.groups()
    try:
        column = column_index_from_string(letters)
    except ValueError as exc:
        raise InvalidAddress(address, "column is beyond XFD") from exc
    if column > MAX_COLUMN_INDEX:
        raise InvalidAddress(address, "column is beyond XFD")
    row = int(digits)
    if row > MAX_ROW_NUMBER:
        raise InvalidAddress(address, "row is beyond the worksheet limit")
    return CellPosition(row=row - 1, col=column - 1)


def is_valid(address: str) -> bool:
    try:
        decode(address)
    except InvalidAddress:
        return False
    return True


__all__ = ["CellPosition", "encode", "decode", "is_valid", "ADDRESS_PATTERN"]
