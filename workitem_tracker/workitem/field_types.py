"""
Field type system.

A work item type declares each of its fields with a field type: a SimpleType
for scalars and references, a ListType wrapping a component SimpleType, or an
EnumType wrapping a base SimpleType plus its allowed values. Every field type
converts a stored value to an ordered list of string tokens; the conversion for
each simple Kind lives in a single table below.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import BadValueError
from .codebase import CodebaseContent
from .enums import Kind
from .rendering import MarkupContent


def _reject(value: Any) -> None:
    raise TypeError(f"unexpected value type {type(value).__name__}")


def _string_token(value: Any) -> str:
    if isinstance(value, str):
        return value
    _reject(value)


def _id_token(value: Any) -> str:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, str):
        return value
    _reject(value)


def _integer_token(value: Any) -> str:
    if isinstance(value, bool):
        _reject(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    _reject(value)


def _float_token(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _reject(value)
    return str(float(value))


def _boolean_token(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    _reject(value)


def parse_instant(value: str) -> datetime:
    """Parse an ISO 8601 instant, accepting a trailing ``Z`` for UTC."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _instant_token(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return parse_instant(value).isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
    _reject(value)


def _duration_token(value: Any) -> str:
    # durations are whole seconds
    if isinstance(value, timedelta):
        return str(int(value.total_seconds()))
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    _reject(value)


def _markup_token(value: Any) -> str:
    content = MarkupContent.from_value(value)
    if content is None:
        _reject(value)
    return content.content


def _codebase_token(value: Any) -> str:
    if isinstance(value, CodebaseContent):
        return value.repository
    if isinstance(value, dict) and isinstance(value.get("repository"), str):
        return value["repository"]
    _reject(value)


_SIMPLE_CONVERTERS: Dict[Kind, Callable[[Any], str]] = {
    Kind.STRING: _string_token,
    Kind.URL: _string_token,
    Kind.INTEGER: _integer_token,
    Kind.FLOAT: _float_token,
    Kind.BOOLEAN: _boolean_token,
    Kind.INSTANT: _instant_token,
    Kind.DURATION: _duration_token,
    Kind.MARKUP: _markup_token,
    Kind.CODEBASE: _codebase_token,
    Kind.BOARD_COLUMN: _id_token,
    Kind.USER: _id_token,
    Kind.ITERATION: _id_token,
    Kind.AREA: _id_token,
    Kind.LABEL: _id_token,
}


class SimpleType(BaseModel):
    """A scalar or reference field type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Kind = Field(..., description="Simple (non-compound) kind")

    @field_validator("kind")
    @classmethod
    def _simple_kinds_only(cls, kind: Kind) -> Kind:
        if kind.is_compound:
            raise ValueError(f"'{kind.value}' is not a simple kind")
        return kind

    @property
    def element_kind(self) -> Kind:
        return self.kind

    def convert_to_string_slice(self, value: Any, field_key: str = "") -> List[str]:
        """Convert ``value`` to a single token, or none for a missing value.

        Raises:
            BadValueError: if the value's shape does not match the kind.
        """
        if value is None:
            return []
        try:
            return [_SIMPLE_CONVERTERS[self.kind](value)]
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise BadValueError(field_key, self.kind, value) from e


class ListType(BaseModel):
    """A list of values of one component kind."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Kind = Field(Kind.LIST, description="Always 'list'")
    component_type: SimpleType

    @field_validator("kind")
    @classmethod
    def _list_kind_only(cls, kind: Kind) -> Kind:
        if kind != Kind.LIST:
            raise ValueError("ListType kind must be 'list'")
        return kind

    @property
    def element_kind(self) -> Kind:
        return self.component_type.kind

    def convert_to_string_slice(self, value: Any, field_key: str = "") -> List[str]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise BadValueError(field_key, self.kind, value)
        tokens: List[str] = []
        for element in value:
            tokens.extend(self.component_type.convert_to_string_slice(element, field_key))
        return tokens


class EnumType(BaseModel):
    """A value drawn from a fixed set of values of one base kind."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Kind = Field(Kind.ENUM, description="Always 'enum'")
    base_type: SimpleType
    values: List[Any] = Field(default_factory=list, description="Allowed values")

    @field_validator("kind")
    @classmethod
    def _enum_kind_only(cls, kind: Kind) -> Kind:
        if kind != Kind.ENUM:
            raise ValueError("EnumType kind must be 'enum'")
        return kind

    @property
    def element_kind(self) -> Kind:
        return self.base_type.kind

    def convert_to_string_slice(self, value: Any, field_key: str = "") -> List[str]:
        return self.base_type.convert_to_string_slice(value, field_key)


FieldType = Union[ListType, EnumType, SimpleType]


def simple(kind: Kind) -> SimpleType:
    return SimpleType(kind=kind)


def list_of(kind: Kind) -> ListType:
    return ListType(component_type=SimpleType(kind=kind))


def enum_of(kind: Kind, values: Optional[List[Any]] = None) -> EnumType:
    return EnumType(base_type=SimpleType(kind=kind), values=list(values or []))
