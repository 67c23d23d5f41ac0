"""Conversion between domain values and cell-native values."""

# Module responsibilities:
# - Turn resolved model values into what a template cell should hold, per declared type.
# - Parse edited cell values back into the representation the domain model stores.
# - Stay pure: no workbook access, no module state.

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd
from openpyxl.utils.datetime import WINDOWS_EPOCH, from_excel, to_excel

from .errors import CoercionError
from .resolver import ABSENT
from .schema import CellMapping, ValueType

MARKER_GLYPH = "○"


class _Skip:
    """Singleton returned when a cell must be left untouched."""

    _instance: "_Skip | None" = None

    def __new__(cls) -> "_Skip":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "SKIP"


SKIP = _Skip()


def _parse_number(text: str) -> int | float | None:
    cleaned = text.strip().replace(",", "")
    if not cleaned:
        return None
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def _parse_iso_date(text: str) -> date | None:
    parsed = pd.to_datetime(text.strip(), format="ISO8601", errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _as_date(value: Any, value_type: ValueType) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        if not value.strip():
            return None
        parsed = _parse_iso_date(value)
        if parsed is None:
            raise CoercionError(f"{value!r} is not an ISO-8601 date")
        return parsed
    raise CoercionError(f"{type(value).__name__} cannot be written as {value_type.value}")


def date_to_serial(day: date) -> int:
    """Return the Windows-epoch day count (days since 1899-12-30)."""

    serial = int(to_excel(datetime(day.year, day.month, day.day), epoch=WINDOWS_EPOCH))
    if serial <= 0:
        raise CoercionError(f"{day.isoformat()} falls on or before the reserved serial day 0")
    return serial


def serial_to_date(serial: int | float) -> date:
    if serial < 1:
        raise CoercionError(f"serial {serial!r} is not a positive day count")
    return from_excel(serial, epoch=WINDOWS_EPOCH).date()


def _check_shape(value: Any, value_type: ValueType) -> None:
    if isinstance(value, (Mapping, list, tuple, set, frozenset, bytes)):
        raise CoercionError(
            f"{type(value).__name__} value cannot be written as {value_type.value}"
        )


def to_cell_value(value: Any, value_type: ValueType) -> Any:
    """Convert a domain value into the value a template cell should hold.

    Returns ``SKIP`` when the cell must be left untouched.

    Raises:
        CoercionError: When the value has a shape the declared type cannot hold.
    """

    value_type = ValueType(value_type)
    if value is None or value is ABSENT or value_type is ValueType.FORMULA:
        return SKIP
    _check_shape(value, value_type)

    if value_type is ValueType.TEXT:
        return str(value)

    if value_type is ValueType.NUMBER:
        if isinstance(value, bool):
            return SKIP
        if isinstance(value, (int, Decimal)):
            return value
        if isinstance(value, float):
            return SKIP if math.isnan(value) else value
        if isinstance(value, str):
            parsed = _parse_number(value)
            return SKIP if parsed is None else parsed
        return SKIP

    if value_type is ValueType.DATE:
        parsed = _as_date(value, value_type)
        return SKIP if parsed is None else parsed

    if value_type is ValueType.DATE_SERIAL:
        if isinstance(value, int) and not isinstance(value, bool):
            if value <= 0:
                raise CoercionError(f"serial {value} is not a positive day count")
            return value
        parsed = _as_date(value, value_type)
        return SKIP if parsed is None else date_to_serial(parsed)

    if value_type is ValueType.BOOLEAN:
        if isinstance(value, bool):
            return MARKER_GLYPH if value else ""
        raise CoercionError(f"{value!r} is not a boolean")

    raise CoercionError(f"unsupported value type {value_type!r}")


def mapped_cell_value(value: Any, mapping: CellMapping) -> Any:
    """Convert a domain value for one mapping, applying its rendering options.

    A boolean mapping with ``match`` treats a text value as True when it
    contains the match string; ``glyphs`` replaces the default marker pair.
    A text mapping with ``text_format`` wraps non-empty text in the pattern.
    """

    if mapping.value_type is ValueType.BOOLEAN and value is not None and value is not ABSENT:
        if mapping.match and isinstance(value, str):
            if not value.strip():
                return SKIP
            value = mapping.match in value
        if mapping.glyphs and isinstance(value, bool):
            return mapping.glyphs[0] if value else mapping.glyphs[1]

    cell_value = to_cell_value(value, mapping.value_type)
    if mapping.text_format and isinstance(cell_value, str):
        return mapping.text_format.replace("{value}", cell_value) if cell_value else SKIP
    return cell_value


def parse_from_cell_value(raw: Any, value_type: ValueType) -> Any:
    """Convert a raw cell value back into the domain representation."""

    value_type = ValueType(value_type)

    if value_type is ValueType.NUMBER:
        if isinstance(raw, bool) or raw is None:
            return 0
        if isinstance(raw, (int, float, Decimal)):
            return 0 if isinstance(raw, float) and math.isnan(raw) else raw
        parsed = _parse_number(str(raw))
        return 0 if parsed is None else parsed

    if value_type is ValueType.TEXT:
        return "" if raw is None else str(raw)

    if value_type in (ValueType.DATE, ValueType.DATE_SERIAL):
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        if value_type is ValueType.DATE_SERIAL and isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return serial_to_date(raw).isoformat()
        return _as_date(raw, value_type).isoformat()

    if value_type is ValueType.BOOLEAN:
        return raw == MARKER_GLYPH

    raise CoercionError("formula cells are owned by the template and cannot be edited")


__all__ = [
    "MARKER_GLYPH",
    "SKIP",
    "to_cell_value",
    "mapped_cell_value",
    "parse_from_cell_value",
    "date_to_serial",
    "serial_to_date",
]
