"""Field paths and structured validation errors."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

FIELD_IMMUTABLE_MESSAGE = "field is immutable"


class ErrorType(str, Enum):
    """The kind of a validation error."""

    NOT_FOUND = "FieldValueNotFound"
    REQUIRED = "FieldValueRequired"
    DUPLICATE = "FieldValueDuplicate"
    INVALID = "FieldValueInvalid"
    NOT_SUPPORTED = "FieldValueNotSupported"
    FORBIDDEN = "FieldValueForbidden"
    TOO_LONG = "FieldValueTooLong"
    TOO_MANY = "FieldValueTooMany"
    INTERNAL = "InternalError"

    @property
    def description(self) -> str:
        """Human readable name of the error type."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ErrorType.NOT_FOUND: "Not found",
    ErrorType.REQUIRED: "Required value",
    ErrorType.DUPLICATE: "Duplicate value",
    ErrorType.INVALID: "Invalid value",
    ErrorType.NOT_SUPPORTED: "Unsupported value",
    ErrorType.FORBIDDEN: "Forbidden",
    ErrorType.TOO_LONG: "Too long",
    ErrorType.TOO_MANY: "Too many",
    ErrorType.INTERNAL: "Internal error",
}

_VALUELESS = {ErrorType.REQUIRED, ErrorType.FORBIDDEN, ErrorType.TOO_LONG, ErrorType.INTERNAL}


def _quote(value: Any) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return _quote(value)
    return str(value)


class Path:
    """A path to a field inside a nested object, such as ``spec.workers[0].zones``.

    ``Path()`` is the root path and renders as an empty string.
    """

    __slots__ = ("_name", "_index", "_parent")

    def __init__(self, *names: str) -> None:
        if not names:
            names = ("",)
        *head, last = names
        self._name = last
        self._index: str | None = None
        self._parent: Path | None = Path(*head) if head else None

    @classmethod
    def _node(cls, name: str, index: str | None, parent: Path | None) -> Path:
        node = cls.__new__(cls)
        node._name = name
        node._index = index
        node._parent = parent
        return node

    def _root(self) -> Path:
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    def _elements(self) -> list[tuple[str, str | None]]:
        elements = []
        node: Path | None = self
        while node is not None:
            elements.append((node._name, node._index))
            node = node._parent
        elements.reverse()
        return elements

    def child(self, name: str, *more_names: str) -> Path:
        """Return a path to a named child field, possibly several levels deep."""
        result = Path(name, *more_names)
        result._root()._parent = self
        return result

    def index(self, index: int) -> Path:
        """Return a path to an element of a list field."""
        return Path._node("", str(index), self)

    def key(self, key: str) -> Path:
        """Return a path to an entry of a map field."""
        return Path._node("", key, self)

    def __str__(self) -> str:
        parts: list[str] = []
        for name, index in self._elements():
            if index is not None:
                parts.append(f"[{index}]")
            else:
                if parts and name:
                    parts.append(".")
                parts.append(name)
        return "".join(parts)

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._elements() == other._elements()

    def __hash__(self) -> int:
        return hash(tuple(self._elements()))


def _path_str(path: Path | None) -> str:
    return "" if path is None else str(path)


@dataclass(frozen=True)
class FieldError:
    """A single validation error for one field."""

    type: ErrorType
    field: str
    bad_value: Any = None
    detail: str = ""

    def body(self) -> str:
        """The error message without the field path."""
        if self.type in _VALUELESS:
            text = self.type.description
        else:
            text = f"{self.type.description}: {_format_value(self.bad_value)}"
        if self.detail:
            text += f": {self.detail}"
        return text

    def __str__(self) -> str:
        return f"{self.field}: {self.body()}"


ErrorList = list[FieldError]


def required(path: Path | None, detail: str) -> FieldError:
    """A required value was not given."""
    return FieldError(ErrorType.REQUIRED, _path_str(path), "", detail)


def invalid(path: Path | None, value: Any, detail: str) -> FieldError:
    """A value was given but is not valid."""
    return FieldError(ErrorType.INVALID, _path_str(path), value, detail)


def not_supported(path: Path | None, value: Any, valid_values: Iterable[Any] | None) -> FieldError:
    """A value is not one of the supported ones."""
    values = list(valid_values or [])
    detail = ""
    if values:
        detail = "supported values: " + ", ".join(_quote(v) for v in values)
    return FieldError(ErrorType.NOT_SUPPORTED, _path_str(path), value, detail)


def forbidden(path: Path | None, detail: str) -> FieldError:
    """A value was given that may not be set."""
    return FieldError(ErrorType.FORBIDDEN, _path_str(path), "", detail)


def duplicate(path: Path | None, value: Any) -> FieldError:
    """A value that must be unique was repeated."""
    return FieldError(ErrorType.DUPLICATE, _path_str(path), value, "")


def validate_immutable_field(new_value: Any, old_value: Any, path: Path | None) -> ErrorList:
    """Report an error when an immutable field has changed."""
    if new_value == old_value:
        return []
    return [invalid(path, new_value, FIELD_IMMUTABLE_MESSAGE)]