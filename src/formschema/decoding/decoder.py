"""
Decoder: maps flat form values onto a model instance.

For every submitted key the decoder asks the path cache for the parsed
path, walks the target along it and stores the converted value. Problems
with individual keys are collected into one MultiError so every field that
can be decoded is decoded, and the caller sees all failures at once.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, fields
from typing import Any

from formschema.core.path_utils import join_key
from formschema.core.types import FileValues, FormValues
from formschema.decoding.walker import (
    DEFAULT_MAX_INDEX,
    ConvertLeaf,
    LeafStrategy,
    walk,
)
from formschema.exceptions import (
    EmptyFieldError,
    FormSchemaError,
    InvalidPathError,
    MultiError,
    TargetTypeError,
    UnknownFieldError,
)
from formschema.forms import FileHeader
from formschema.structure.registry import Path, PathCache, Route, path_cache
from formschema.structure.shape import FieldKind, is_struct_instance
from formschema.structure.type_mapping import Converter, ConverterRegistry

logger = logging.getLogger(__name__)


@dataclass
class DecoderConfig:
    """Configuration for decoder behavior."""

    ignore_unknown_keys: bool = False  # Skip keys that match no field
    zero_empty: bool = False  # Empty strings store the zero value instead of nothing
    check_required: bool = True  # Report Form(required=True) fields left empty
    max_index: int = DEFAULT_MAX_INDEX  # Largest list index a key may address

    @classmethod
    def from_dict(cls, config: dict | None = None) -> "DecoderConfig":
        """Factory method to create config from dict with defaults."""
        if config is None:
            config = {}
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            raise ValueError(f"Unknown decoder options: {sorted(unknown)}")
        return cls(**config)


def create_decoder_config(config: DecoderConfig | dict | None = None) -> DecoderConfig:
    """
    Factory function for creating DecoderConfig with flexible input types.

    Params:
        config: DecoderConfig instance, dict to override defaults, or None for defaults

    Returns:
        DecoderConfig instance
    """
    if isinstance(config, DecoderConfig):
        return config
    elif isinstance(config, dict):
        return DecoderConfig.from_dict(config)
    else:
        return DecoderConfig()


def iter_form_items(values: FormValues | FileValues) -> Iterator[tuple[str, list[Any]]]:
    """
    Yield (key, values) pairs from a form mapping.

    Accepts plain mappings of key to list (``urllib.parse.parse_qs`` output),
    mappings of key to a single value, and multi-dicts exposing ``getlist``
    such as the form containers of common web frameworks.
    """
    if hasattr(values, "getlist"):
        for key in dict.fromkeys(values.keys()):
            yield key, list(values.getlist(key))
        return

    for key, raw in values.items():
        if isinstance(raw, (str, bytes, FileHeader)):
            yield key, [raw]
        else:
            yield key, list(raw)


class Decoder:
    """
    Decodes a mapping of form key to submitted strings into a model instance.

    Keys are dotted paths to fields of nested models: ``author.name``,
    ``readers.0.email``, ``rating`` for a list of scalars. A Decoder is
    cheap to create and safe to share between threads once configured;
    parsed paths are cached process-wide per model type.

    Usage:
        decoder = Decoder()
        decoder.ignore_unknown_keys = True
        decoder.decode(post, {"title": ["Hello"], "rating": ["3", "5"]})
    """

    def __init__(
        self,
        config: DecoderConfig | dict | None = None,
        cache: PathCache | None = None,
    ):
        self.config = create_decoder_config(config)
        self.cache = cache if cache is not None else path_cache
        self.converters = ConverterRegistry()

    @property
    def ignore_unknown_keys(self) -> bool:
        return self.config.ignore_unknown_keys

    @ignore_unknown_keys.setter
    def ignore_unknown_keys(self, value: bool) -> None:
        self.config.ignore_unknown_keys = value

    @property
    def zero_empty(self) -> bool:
        return self.config.zero_empty

    @zero_empty.setter
    def zero_empty(self, value: bool) -> None:
        self.config.zero_empty = value

    def register_converter(self, target_type: type, converter: Converter) -> None:
        """
        Register a string converter for a custom scalar field type.

        Params:
            target_type: The field annotation the converter produces
            converter: Callable taking the raw string and returning the value;
                ValueError or TypeError signal an unacceptable string
        """
        self.converters.register(target_type, converter)

    def decode(self, target: Any, values: FormValues) -> None:
        """
        Decode form values into a model instance.

        Params:
            target: A pydantic model or dataclass instance, modified in place
            values: Mapping of form key to submitted strings

        Raises:
            TargetTypeError: If target is not a model or dataclass instance;
                nothing is decoded
            MultiError: If any key failed; all other keys are still assigned
        """
        self._check_target(target)
        errors = MultiError()
        submitted = self._decode_items(
            target, iter_form_items(values), self._string_strategy(), errors
        )
        self._finish(target, submitted, errors)

    def _check_target(self, target: Any) -> None:
        if not is_struct_instance(target):
            raise TargetTypeError(target)

    def _string_strategy(self) -> LeafStrategy:
        return ConvertLeaf(self.converters, self.config.zero_empty)

    def _decode_items(
        self,
        target: Any,
        items: Iterator[tuple[str, list[Any]]],
        strategy: LeafStrategy,
        errors: MultiError,
    ) -> set[Route]:
        """
        Decode every (key, values) pair with one leaf strategy.

        Returns:
            Routes of the resolved keys that carried at least one non-empty value
        """
        model = type(target)
        submitted = set()
        for key, raw_values in items:
            path = self._decode_key(target, model, key, raw_values, strategy, errors)
            if path is not None and any(value != "" for value in raw_values):
                submitted.add(path.route)
        return submitted

    def _decode_key(
        self,
        target: Any,
        model: type,
        key: str,
        raw_values: list[Any],
        strategy: LeafStrategy,
        errors: MultiError,
    ) -> Path | None:
        try:
            path = self.cache.parse_path(key, model)
        except InvalidPathError as e:
            if not self.config.ignore_unknown_keys:
                errors.add(key, UnknownFieldError(key, e.reason))
            return None

        try:
            walk(target, path, raw_values, strategy, self.config.max_index)
        except FormSchemaError as e:
            errors.add(key, e)
        return path

    def _finish(self, target: Any, submitted: set[Route], errors: MultiError) -> None:
        if self.config.check_required:
            self._check_required(target, "", (), submitted, errors)
        logger.debug(
            "Decoded %d fields into %s with %d errors",
            len(submitted),
            type(target).__name__,
            len(errors),
        )
        if errors:
            raise errors

    def _check_required(
        self,
        instance: Any,
        prefix: str,
        route: Route,
        submitted: set[Route],
        errors: MultiError,
    ) -> None:
        """
        Record EmptyFieldError for required fields that received no value.

        A field counts as filled when any submitted key resolved to it, however
        that key was spelled. Nested structs are checked when they exist on the
        instance, and list elements of struct lists are checked for every
        index that was submitted. Keys that already carry an error keep it.
        """
        shape = self.cache.shape(type(instance))
        for field_shape in shape.fields:
            key = join_key(prefix, field_shape.key)
            field_route = route + (field_shape.attr,)
            kind = field_shape.shape.kind

            if kind is FieldKind.STRUCT:
                nested = getattr(instance, field_shape.attr, None)
                if nested is not None:
                    nested_prefix = prefix if field_shape.embedded else key
                    self._check_required(
                        nested, nested_prefix, field_route, submitted, errors
                    )
                continue

            if kind is FieldKind.SEQUENCE and field_shape.shape.element.kind is FieldKind.STRUCT:
                items = getattr(instance, field_shape.attr, None) or []
                for index in _submitted_indices(field_route, submitted):
                    if index < len(items) and items[index] is not None:
                        self._check_required(
                            items[index],
                            join_key(key, index),
                            field_route + (index,),
                            submitted,
                            errors,
                        )
                continue

            if not field_shape.required or key in errors:
                continue
            if _reached(field_route, submitted):
                continue
            errors.add(key, EmptyFieldError(key))


def _reached(route: Route, submitted: set[Route]) -> bool:
    """True when a submitted route is route itself or lies below it."""
    size = len(route)
    return any(candidate[:size] == route for candidate in submitted)


def _submitted_indices(route: Route, submitted: set[Route]) -> list[int]:
    size = len(route)
    return sorted(
        {
            candidate[size]
            for candidate in submitted
            if len(candidate) > size and candidate[:size] == route
        }
    )
