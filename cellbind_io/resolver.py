"""Dotted path access into nested domain models."""

# Module responsibilities:
# - Read a value at a dotted path, distinguishing "absent" from falsy values.
# - Assign a value at a dotted path, creating intermediate records on demand.

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel

from .errors import PathError


class _Absent:
    """Singleton marking a path that does not resolve."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


def split_path(path: str) -> list[str]:
    if not isinstance(path, str) or not path:
        raise PathError(f"Data path must be a non-empty string: {path!r}")
    segments = path.split(".")
    if any(not segment for segment in segments):
        raise PathError(f"Data path contains an empty segment: {path!r}")
    return segments


_SCALAR_TYPES = (str, bytes, int, float, Decimal, date)


def _field_name(node: BaseModel, key: str) -> Optional[str]:
    """Attribute name of the pydantic field called ``key`` by name or by alias."""

    fields = type(node).model_fields
    if key in fields:
        return key
    for name, info in fields.items():
        if info.alias == key:
            return name
    return None


def _child(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(key, ABSENT)
    if isinstance(node, BaseModel):
        name = _field_name(node, key)
        return ABSENT if name is None else getattr(node, name)
    if isinstance(node, _SCALAR_TYPES) or isinstance(node, (list, tuple)):
        return ABSENT
    return getattr(node, key, ABSENT)


def get(model: Any, path: str) -> Any:
    """Return the value at ``path`` or ``ABSENT``.

    Missing or ``None`` intermediates yield ``ABSENT``. A leaf that exists
    with a falsy value (``0``, ``""``, ``False``, ``None``) is returned as is.
    """

    segments = split_path(path)
    current = model
    for segment in segments[:-1]:
        if current is None or current is ABSENT:
            return ABSENT
        current = _child(current, segment)
        if current is None:
            return ABSENT
    if current is None or current is ABSENT:
        return ABSENT
    return _child(current, segments[-1])


def _assign(node: Any, key: str, value: Any) -> None:
    if isinstance(node, MutableMapping):
        node[key] = value
        return
    if isinstance(node, Mapping):
        raise PathError(f"Cannot assign '{key}' on a read-only mapping")
    if isinstance(node, BaseModel):
        name = _field_name(node, key)
        if name is None:
            raise PathError(f"{type(node).__name__} has no field '{key}'")
        key = name
    try:
        setattr(node, key, value)
    except (AttributeError, TypeError, ValueError) as exc:
        raise PathError(f"Cannot assign '{key}' on {type(node).__name__}: {exc}") from exc


def _new_record(node: Any, key: str) -> Any:
    if isinstance(node, BaseModel):
        name = _field_name(node, key)
        annotation = type(node).model_fields[name].annotation if name else None
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            return annotation.model_construct()
    return {}


def _is_record(node: Any) -> bool:
    if isinstance(node, Mapping):
        return True
    return not isinstance(node, _SCALAR_TYPES) and hasattr(node, "__dict__")


def set(model: Any, path: str, value: Any) -> None:  # noqa: A001 - mirrors get()
    """Assign ``value`` at ``path``, creating intermediate records as needed.

    Pydantic models are addressed by field name or alias; a missing nested
    model is created from its declared type, anything else as a dict.
    """

    segments = split_path(path)
    current = model
    walked: list[str] = []
    for segment in segments[:-1]:
        walked.append(segment)
        child = _child(current, segment)
        if child is ABSENT or child is None:
            child = _new_record(current, segment)
            _assign(current, segment, child)
        elif not _is_record(child):
            raise PathError(
                f"Cannot descend into scalar at '{'.'.join(walked)}' while setting '{path}'"
            )
        current = child
    _assign(current, segments[-1], value)


__all__ = ["ABSENT", "get", "set", "split_path"]
