"""
Shape descriptors for decode targets.

A shape records, per model type, what the decoders need to know about each
bindable field: its external key, whether it holds a scalar, a nested
struct, a list or an uploaded file, whether it is optional, and how it is
marked. Shapes are derived once per type from pydantic ``model_fields`` or
dataclass fields and only describe structure, never data.
"""

import dataclasses
import types
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin, get_type_hints

from attrs import field, frozen
from pydantic import BaseModel

from formschema.forms import FileHeader
from formschema.structure.type_mapping import zero_value

IGNORE = "-"


@frozen
class Form:
    """
    Annotation marker controlling how a field binds to form keys.

    Usage:
        title: Annotated[str, Form("title", required=True)] = ""
        secret: Annotated[str, Form("-")] = ""
        post: Annotated[Post, Form(embed=True)] = Post()

    Params:
        name: External key; "-" excludes the field from binding entirely
        required: Report an empty-field error when no value is submitted
        embed: Promote the nested struct's fields into the outer lookup
    """

    name: str | None = None
    required: bool = field(default=False, kw_only=True)
    embed: bool = field(default=False, kw_only=True)

    @property
    def ignored(self) -> bool:
        return self.name == IGNORE


class FieldKind(Enum):
    """What a field (or list element) holds."""

    SCALAR = "scalar"
    STRUCT = "struct"
    SEQUENCE = "sequence"
    FILE = "file"


@frozen
class TypeShape:
    """
    Structural description of one annotation.

    For SEQUENCE shapes ``element`` describes the list items; ``optional``
    marks a ``T | None`` annotation, the equivalent of a nil-able pointer.
    """

    kind: FieldKind
    python_type: Any
    optional: bool = False
    element: "TypeShape | None" = None

    @property
    def is_leaf(self) -> bool:
        """True when a path may end on this shape."""
        if self.kind is FieldKind.SEQUENCE:
            return self.element.kind in (FieldKind.SCALAR, FieldKind.FILE)
        return self.kind in (FieldKind.SCALAR, FieldKind.FILE)


@frozen
class FieldShape:
    """One bindable field of a struct."""

    attr: str
    key: str
    shape: TypeShape
    embedded: bool = False
    required: bool = False
    frozen: bool = False


@frozen
class StructShape:
    """All bindable fields of a model type."""

    model: type
    fields: tuple[FieldShape, ...]
    frozen: bool = False

    def direct(self, token: str) -> FieldShape | None:
        """
        Find a field declared on this struct.

        External keys win over attribute names so a renamed field cannot be
        shadowed by another field's Python identifier.
        """
        for field_shape in self.fields:
            if field_shape.key == token:
                return field_shape
        for field_shape in self.fields:
            if field_shape.attr == token:
                return field_shape
        return None

    @property
    def embedded(self) -> tuple[FieldShape, ...]:
        return tuple(f for f in self.fields if f.embedded)


def is_struct_type(tp: Any) -> bool:
    """Check if a type is a pydantic model or a dataclass class."""
    if not isinstance(tp, type):
        return False
    return issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp)


def is_struct_instance(obj: Any) -> bool:
    """Check if an object is a live pydantic model or dataclass instance."""
    return not isinstance(obj, type) and is_struct_type(type(obj))


def _split_annotated(annotation: Any) -> tuple[Any, list[Any]]:
    metadata: list[Any] = []
    while get_origin(annotation) is Annotated:
        annotation, *extra = get_args(annotation)
        metadata.extend(extra)
    return annotation, metadata


def shape_of_type(annotation: Any) -> TypeShape:
    """
    Build the TypeShape of an annotation.

    Recognises ``T | None`` and ``Optional[T]`` (optional), ``list[T]``
    (sequence), FileHeader (file) and models/dataclasses (struct). Anything
    else is a scalar; whether it can actually be converted is decided by the
    converter registry at decode time.
    """
    annotation, _ = _split_annotated(annotation)
    optional = False

    if get_origin(annotation) in (Union, types.UnionType):
        members = get_args(annotation)
        non_none = tuple(m for m in members if m is not type(None))
        optional = len(non_none) != len(members)
        if len(non_none) == 1:
            annotation, _ = _split_annotated(non_none[0])
        else:
            return TypeShape(FieldKind.SCALAR, Union[non_none], optional)

    if annotation is list or get_origin(annotation) is list:
        args = get_args(annotation)
        element = shape_of_type(args[0]) if args else TypeShape(FieldKind.SCALAR, str)
        if element.kind is FieldKind.SEQUENCE:
            # Nested lists have no key syntax; treat as an unconvertible scalar.
            return TypeShape(FieldKind.SCALAR, annotation, optional)
        return TypeShape(FieldKind.SEQUENCE, list, optional, element)

    if annotation is FileHeader:
        return TypeShape(FieldKind.FILE, FileHeader, optional)
    if is_struct_type(annotation):
        return TypeShape(FieldKind.STRUCT, annotation, optional)
    return TypeShape(FieldKind.SCALAR, annotation, optional)


def _form_marker(metadata: list[Any]) -> Form | None:
    for item in metadata:
        if isinstance(item, Form):
            return item
    return None


def _build_field(
    attr: str, annotation: Any, metadata: list[Any], alias: str | None, frozen_: bool
) -> FieldShape | None:
    if attr.startswith("_"):
        return None

    marker = _form_marker(metadata)
    if marker is not None and marker.ignored:
        return None

    key = (marker.name if marker and marker.name else None) or alias or attr
    shape = shape_of_type(annotation)
    embedded = bool(marker and marker.embed) and shape.kind is FieldKind.STRUCT
    return FieldShape(
        attr=attr,
        key=key,
        shape=shape,
        embedded=embedded,
        required=bool(marker and marker.required),
        frozen=frozen_,
    )


def describe(model: type) -> StructShape:
    """
    Build the StructShape of a pydantic model or dataclass.

    Fields whose name starts with an underscore and fields marked ``Form("-")``
    are left out entirely, so no key can ever resolve to them.

    Params:
        model: A BaseModel subclass or dataclass type

    Returns:
        StructShape describing every bindable field

    Raises:
        TypeError: If model is neither a pydantic model nor a dataclass
    """
    fields: list[FieldShape] = []

    if isinstance(model, type) and issubclass(model, BaseModel):
        model_frozen = bool(model.model_config.get("frozen", False))
        for name, info in model.model_fields.items():
            field_shape = _build_field(
                name,
                info.annotation,
                list(info.metadata),
                info.alias,
                bool(info.frozen),
            )
            if field_shape is not None:
                fields.append(field_shape)
        return StructShape(model=model, fields=tuple(fields), frozen=model_frozen)

    if dataclasses.is_dataclass(model) and isinstance(model, type):
        hints = get_type_hints(model, include_extras=True)
        for data_field in dataclasses.fields(model):
            annotation, metadata = _split_annotated(hints.get(data_field.name, Any))
            field_shape = _build_field(data_field.name, annotation, metadata, None, False)
            if field_shape is not None:
                fields.append(field_shape)
        return StructShape(
            model=model,
            fields=tuple(fields),
            frozen=model.__dataclass_params__.frozen,
        )

    raise TypeError(f"{model!r} is not a pydantic model or dataclass")


def zero_for(shape: TypeShape, _building: frozenset[type] = frozenset()) -> Any:
    """Zero value for a field of the given shape."""
    if shape.optional:
        return None
    if shape.kind is FieldKind.SEQUENCE:
        return []
    if shape.kind is FieldKind.STRUCT:
        if shape.python_type in _building:
            return None
        return zero_instance(shape.python_type, _building)
    if shape.kind is FieldKind.FILE:
        return None
    return zero_value(shape.python_type)


def zero_instance(model: type, _building: frozenset[type] = frozenset()) -> Any:
    """
    Create a zero-valued instance of a model or dataclass.

    Declared defaults are honoured; required fields are filled with the zero
    value of their type (empty string, 0, empty list, nested zero struct, or
    None for optional fields). Pydantic models are built with
    ``model_construct`` so no validation runs on the zero values.
    """
    building = _building | {model}
    if issubclass(model, BaseModel):
        values = {
            name: zero_for(shape_of_type(info.annotation), building)
            for name, info in model.model_fields.items()
            if info.is_required()
        }
        return model.model_construct(**values)

    hints = get_type_hints(model, include_extras=True)
    values = {}
    for data_field in dataclasses.fields(model):
        if not data_field.init:
            continue
        if (
            data_field.default is dataclasses.MISSING
            and data_field.default_factory is dataclasses.MISSING
        ):
            values[data_field.name] = zero_for(
                shape_of_type(hints.get(data_field.name, Any)), building
            )
    return model(**values)
