"""
Assignment engine: walks a live instance along a parsed Path and stores
the decoded value at its leaf.

The walk is the same for every kind of form input; what happens at the
leaf is delegated to a LeafStrategy. ConvertLeaf turns submitted strings
into typed values, FileLeaf stores uploaded file handles as they are.
"""

import logging
from typing import Any, Protocol

from pydantic import BaseModel

from formschema.core.types import RawValues
from formschema.exceptions import ConversionError, InvalidPathError
from formschema.forms import FileHeader
from formschema.structure.registry import Path, Select
from formschema.structure.shape import (
    FieldKind,
    FieldShape,
    TypeShape,
    zero_for,
    zero_instance,
)
from formschema.structure.type_mapping import ConverterRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_INDEX = 16000


class _Skip:
    def __repr__(self) -> str:
        return "SKIP"


SKIP = _Skip()
"""Returned by a leaf strategy to leave the current value untouched."""


class LeafStrategy(Protocol):
    """Produces the value stored at the end of a path."""

    def leaf_value(
        self, path: Path, shape: TypeShape, values: RawValues, current: Any
    ) -> Any:
        """
        Compute the new leaf value.

        Params:
            path: The path being assigned
            shape: Shape of the leaf; a list shape when the whole field is
                assigned, the element shape when a single index is
            values: Raw submitted values, in input order
            current: The value currently stored at the leaf

        Returns:
            The value to store, or SKIP to leave the leaf unchanged
        """
        ...


class ConvertLeaf:
    """
    Leaf strategy for submitted strings.

    A single-valued field takes the first submitted value. A list of scalars
    is rebuilt from every submitted value in input order; if any element
    fails to convert, the field is left unchanged and the error names the
    element index. Empty strings are skipped unless zero_empty is set, in
    which case they store the type's zero value; a list whose submitted
    values are all empty keeps its current contents.
    """

    def __init__(self, converters: ConverterRegistry, zero_empty: bool = False):
        self.converters = converters
        self.zero_empty = zero_empty

    def leaf_value(
        self, path: Path, shape: TypeShape, values: RawValues, current: Any
    ) -> Any:
        if shape.kind is FieldKind.SEQUENCE:
            if not self.zero_empty and all(raw == "" for raw in values):
                return SKIP
            items = []
            for index, raw in enumerate(values):
                if raw == "":
                    if self.zero_empty:
                        items.append(zero_for(shape.element))
                    continue
                items.append(self._convert(path, raw, shape.element, index))
            return items

        if not values:
            return SKIP
        raw = values[0]
        if raw == "":
            return zero_for(shape) if self.zero_empty else SKIP
        return self._convert(path, raw, shape)

    def _convert(
        self, path: Path, raw: Any, shape: TypeShape, index: int | None = None
    ) -> Any:
        if shape.kind is FieldKind.FILE:
            raise ConversionError(
                path.key,
                raw,
                shape.python_type,
                index,
                TypeError("file fields only accept uploads"),
            )
        try:
            return self.converters.convert(raw, shape.python_type)
        except (ValueError, TypeError) as e:
            raise ConversionError(path.key, raw, shape.python_type, index, e) from e


class FileLeaf:
    """
    Leaf strategy for uploaded files.

    A single file field keeps the last upload under its key; a list of files
    keeps every upload in input order.
    """

    def leaf_value(
        self, path: Path, shape: TypeShape, values: RawValues, current: Any
    ) -> Any:
        if shape.kind is FieldKind.SEQUENCE and shape.element.kind is FieldKind.FILE:
            return list(values)
        if shape.kind is FieldKind.FILE:
            return values[-1] if values else None

        first = values[0] if values else None
        raise ConversionError(
            path.key,
            first.filename if isinstance(first, FileHeader) else first,
            shape.python_type,
            cause=TypeError("only file fields accept uploads"),
        )


def is_frozen_instance(obj: Any) -> bool:
    """Check if attribute assignment on a model or dataclass instance is refused."""
    if isinstance(obj, BaseModel):
        return bool(type(obj).model_config.get("frozen", False))
    params = getattr(type(obj), "__dataclass_params__", None)
    return bool(params and params.frozen)


def _settable(container: Any, field_shape: FieldShape) -> bool:
    return not field_shape.frozen and not is_frozen_instance(container)


def _set(container: Any, field_shape: FieldShape, value: Any, path: Path) -> Any:
    """Assign a field and return the stored value, which validation may have copied."""
    try:
        setattr(container, field_shape.attr, value)
    except ValueError as e:
        raise ConversionError(path.key, value, field_shape.shape.python_type, cause=e) from e
    return getattr(container, field_shape.attr)


def _allocate(shape: TypeShape) -> Any:
    if shape.kind is FieldKind.SEQUENCE:
        return []
    return zero_instance(shape.python_type)


def walk(
    root: Any,
    path: Path,
    values: RawValues,
    strategy: LeafStrategy,
    max_index: int = DEFAULT_MAX_INDEX,
) -> None:
    """
    Assign values to the field a Path addresses on a live instance.

    Optional structs met on the way are allocated (zero valued) when unset,
    and lists are grown with zero values to reach an index, keeping
    existing elements in place. Fields that cannot be assigned, on frozen
    models or frozen fields, are silently left alone.

    Params:
        root: Instance the path was parsed for
        path: Parsed path from the path cache
        values: Raw submitted values for the path's key
        strategy: Computes the leaf value
        max_index: Largest list index a path may address

    Raises:
        ConversionError: If the leaf value cannot be produced
        InvalidPathError: If an index exceeds max_index
    """
    container = root
    owner_frozen = False
    segments = path.segments
    last = len(segments) - 1

    for position, segment in enumerate(segments):
        if isinstance(segment, Select):
            field_shape = segment.field
            settable = _settable(container, field_shape)
            current = getattr(container, segment.attr, None)

            if position == last:
                if not settable:
                    logger.debug("Skipping unassignable field for %s", path.key)
                    return
                value = strategy.leaf_value(path, field_shape.shape, values, current)
                if value is not SKIP:
                    _set(container, field_shape, value, path)
                return

            if current is None:
                if not settable:
                    return
                current = _set(container, field_shape, _allocate(field_shape.shape), path)
            container = current
            owner_frozen = not settable
            continue

        if segment.position > max_index:
            raise InvalidPathError(
                path.key, f"index {segment.position} exceeds limit of {max_index}"
            )

        items = container
        if len(items) <= segment.position:
            if owner_frozen:
                return
            while len(items) <= segment.position:
                items.append(zero_for(segment.shape))

        if position == last:
            if owner_frozen:
                return
            value = strategy.leaf_value(
                path, segment.shape, values, items[segment.position]
            )
            if value is not SKIP:
                items[segment.position] = value
            return

        element = items[segment.position]
        if element is None:
            if owner_frozen:
                return
            element = zero_instance(segment.shape.python_type)
            items[segment.position] = element
        container = element
        owner_frozen = False
