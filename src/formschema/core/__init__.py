"""
Core formschema components.

Key handling helpers and type aliases shared across the package.
"""

from formschema.core.path_utils import (
    SEPARATOR,
    is_index,
    join_key,
    split_key,
)
from formschema.core.types import FileValues, FormValues, RawValues

__all__ = [
    "SEPARATOR",
    "split_key",
    "join_key",
    "is_index",
    "FormValues",
    "FileValues",
    "RawValues",
]
