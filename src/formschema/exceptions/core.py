"""
Exception classes for formschema decoding.

This module defines specific exception types for the error conditions that
can occur while mapping flat form data onto nested models: a structurally
invalid target, keys that do not resolve to a field, and values that cannot
be converted to the field's type.
"""

from collections.abc import ItemsView, Iterator, KeysView, Mapping, ValuesView
from typing import Any


class FormSchemaError(Exception):
    """Base exception for all formschema errors."""

    pass


class TargetTypeError(FormSchemaError):
    """Raised when the decode target is not a model or dataclass instance."""

    def __init__(self, target: Any):
        """
        Initialize the exception.

        Params:
            target: The object that was passed as decode target
        """
        self.target = target
        kind = target.__name__ if isinstance(target, type) else type(target).__name__
        super().__init__(
            f"formschema: target must be a model or dataclass instance, got {kind}"
        )


class InvalidPathError(FormSchemaError):
    """Raised when a form key does not resolve to a field of the target."""

    def __init__(self, key: str, reason: str = "does not resolve to a field"):
        """
        Initialize the exception.

        Params:
            key: The external form key
            reason: Why the key could not be resolved
        """
        self.key = key
        self.reason = reason
        super().__init__(f"formschema: invalid path '{key}': {reason}")


class UnknownFieldError(InvalidPathError):
    """Recorded for form keys that match no field when unknown keys are not ignored."""

    def __init__(self, key: str, reason: str = "does not resolve to a field"):
        super().__init__(key, reason)


class ConversionError(FormSchemaError):
    """Raised when a raw form value cannot be converted to the field type."""

    def __init__(
        self,
        key: str,
        value: Any,
        target_type: Any,
        index: int | None = None,
        cause: BaseException | None = None,
    ):
        """
        Initialize the exception.

        Params:
            key: The external form key the value was submitted under
            value: The offending raw value
            target_type: The type the value should have converted to
            index: Position of the value within a multi-valued field, if any
            cause: The underlying conversion failure
        """
        self.key = key
        self.value = value
        self.target_type = target_type
        self.index = index
        self.cause = cause

        type_name = getattr(target_type, "__name__", str(target_type))
        message = f"formschema: error converting value {value!r} to {type_name} for '{key}'"
        if index is not None:
            message += f" at index {index}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class EmptyFieldError(FormSchemaError):
    """Raised when a field marked required receives no value."""

    def __init__(self, key: str):
        """
        Initialize the exception.

        Params:
            key: The external key of the required field
        """
        self.key = key
        super().__init__(f"formschema: required field '{key}' is empty")


class MultiError(FormSchemaError):
    """
    Per-key collection of errors from a single decode call.

    Behaves as a mapping from external form key to the error
    recorded for it. A decode that raises MultiError has still assigned
    every field that did not fail; callers should inspect which keys
    errored rather than discard the target.
    """

    def __init__(self, errors: Mapping[str, Exception] | None = None):
        """
        Initialize the exception.

        Params:
            errors: Initial mapping of form key to error
        """
        self.errors: dict[str, Exception] = dict(errors or {})
        super().__init__(self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return "formschema: no errors"
        first = next(iter(self.errors.values()))
        others = len(self.errors) - 1
        if others == 0:
            return str(first)
        suffix = "error" if others == 1 else "errors"
        return f"{first} (and {others} other {suffix})"

    def __getitem__(self, key: str) -> Exception:
        return self.errors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __contains__(self, key: object) -> bool:
        return key in self.errors

    def __bool__(self) -> bool:
        return bool(self.errors)

    def keys(self) -> KeysView[str]:
        return self.errors.keys()

    def values(self) -> ValuesView[Exception]:
        return self.errors.values()

    def items(self) -> ItemsView[str, Exception]:
        return self.errors.items()

    def get(self, key: str, default: Exception | None = None) -> Exception | None:
        return self.errors.get(key, default)

    def add(self, key: str, error: Exception) -> None:
        """Record an error under a form key, replacing any previous one."""
        self.errors[key] = error


class FormParseError(FormSchemaError):
    """Raised when a multipart/form-data body cannot be parsed."""

    def __init__(self, reason: str):
        """
        Initialize the exception.

        Params:
            reason: Description of the malformed input
        """
        self.reason = reason
        super().__init__(f"formschema: cannot parse multipart form: {reason}")
