"""
formschema structure components.

This package provides model shape descriptors, the path cache and the
string conversion registry.
"""

from formschema.structure.registry import (
    Index,
    Path,
    PathCache,
    Route,
    Select,
    path_cache,
)
from formschema.structure.shape import (
    FieldKind,
    FieldShape,
    Form,
    StructShape,
    TypeShape,
    describe,
    is_struct_instance,
    is_struct_type,
    shape_of_type,
    zero_instance,
)
from formschema.structure.type_mapping import (
    ConverterRegistry,
    parse_bool,
    zero_value,
)

__all__ = [
    "Index",
    "Path",
    "PathCache",
    "Route",
    "Select",
    "path_cache",
    "FieldKind",
    "FieldShape",
    "Form",
    "StructShape",
    "TypeShape",
    "describe",
    "is_struct_instance",
    "is_struct_type",
    "shape_of_type",
    "zero_instance",
    "ConverterRegistry",
    "parse_bool",
    "zero_value",
]
