"""
String to value conversion for form scalars.

Form values always arrive as strings. The registry maps each supported
scalar type to a function that parses such a string, and knows the zero
value used when a field is allocated or a list is grown.
"""

import types
import uuid
from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union, get_args, get_origin

Converter = Callable[[str], Any]

_TRUE_STRINGS = frozenset({"true", "1", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "off"})


def parse_bool(value: str) -> bool:
    """
    Parse bool from a form string.

    Accepts 'true'/'false'/'1'/'0' and the 'on'/'off' pair browsers submit
    for checkboxes, case-insensitively.

    Raises:
        ValueError: For any other string
    """
    lower_val = value.lower()
    if lower_val in _TRUE_STRINGS:
        return True
    if lower_val in _FALSE_STRINGS:
        return False
    raise ValueError(
        f"Cannot parse '{value}' as bool (only 'true'/'false'/'1'/'0'/'on'/'off' allowed)"
    )


def parse_decimal(value: str) -> Decimal:
    """Parse a Decimal, normalising decimal.InvalidOperation to ValueError."""
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(f"Cannot parse '{value}' as Decimal")


def _parse_enum(enum_type: type[Enum], value: str) -> Enum:
    """Resolve an Enum member by value, trying the raw string then member names."""
    for member in enum_type:
        if str(member.value) == value:
            return member
    try:
        return enum_type[value]
    except KeyError:
        raise ValueError(f"'{value}' is not a valid {enum_type.__name__}")


BUILTIN_CONVERTERS: dict[type, Converter] = {
    str: str,
    int: int,
    float: float,
    bool: parse_bool,
    Decimal: parse_decimal,
    date: date.fromisoformat,
    datetime: datetime.fromisoformat,
    time: time.fromisoformat,
    uuid.UUID: uuid.UUID,
}

ZERO_VALUES: dict[type, Any] = {
    str: "",
    int: 0,
    float: 0.0,
    bool: False,
    Decimal: Decimal(0),
}


class ConverterRegistry:
    """Registry of string converters keyed by target scalar type."""

    def __init__(self, converters: dict[type, Converter] | None = None):
        self._converters: dict[type, Converter] = dict(BUILTIN_CONVERTERS)
        if converters:
            self._converters.update(converters)

    def register(self, target_type: type, converter: Converter) -> None:
        """
        Register a converter for a scalar type.

        Caller converters take precedence over the built-in ones, so this is
        also how a built-in parsing rule is replaced.

        Params:
            target_type: The field type the converter produces
            converter: Callable taking the raw string, raising ValueError or
                TypeError when the string is not acceptable
        """
        self._converters[target_type] = converter

    def get(self, target_type: Any) -> Converter | None:
        """Return the converter for a type, or None when no conversion is known."""
        converter = self._converters.get(target_type)
        if converter is not None:
            return converter
        if isinstance(target_type, type) and issubclass(target_type, Enum):
            return lambda value: _parse_enum(target_type, value)
        if get_origin(target_type) in (Union, types.UnionType):
            return self._union_converter(target_type)
        return None

    def _union_converter(self, target_union: Any) -> Converter | None:
        """Try each union member in declaration order until one converts."""
        members = [
            (member, self.get(member))
            for member in get_args(target_union)
            if member is not type(None)
        ]
        if any(converter is None for _, converter in members):
            return None

        def convert(value: str) -> Any:
            for _, converter in members:
                try:
                    return converter(value)
                except (ValueError, TypeError):
                    continue
            raise ValueError(f"Cannot convert '{value}' to {target_union}")

        return convert

    def supports(self, target_type: Any) -> bool:
        return self.get(target_type) is not None

    def convert(self, value: str, target_type: Any) -> Any:
        """
        Convert a raw form string to target_type.

        Raises:
            TypeError: If no converter is registered for target_type
            ValueError: If the converter rejects the value
        """
        converter = self.get(target_type)
        if converter is None:
            raise TypeError(f"No converter registered for {target_type}")
        return converter(value)


def zero_value(target_type: Any) -> Any:
    """Zero value for a scalar type; None for types without a natural zero."""
    return ZERO_VALUES.get(target_type)
