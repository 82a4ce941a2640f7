"""
formschema exception classes.

This package provides all exception types used by the decoders for
consistent error handling and reporting.
"""

from formschema.exceptions.core import (
    ConversionError,
    EmptyFieldError,
    FormParseError,
    FormSchemaError,
    InvalidPathError,
    MultiError,
    TargetTypeError,
    UnknownFieldError,
)

__all__ = [
    "FormSchemaError",
    "TargetTypeError",
    "InvalidPathError",
    "UnknownFieldError",
    "ConversionError",
    "EmptyFieldError",
    "FormParseError",
    "MultiError",
]
