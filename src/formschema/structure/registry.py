"""
Path parsing and the process-wide path cache.

A form key such as ``contributors.2.name`` is parsed against a model type
into a Path: the sequence of attribute selections and list indices the
walker follows to reach the field the value belongs to. Paths depend only
on the model's shape, so they are cached per (model, key) and shared by
every decode of that model, whether it decodes strings or uploaded files.
"""

import logging

from attrs import frozen

from formschema.core.path_utils import is_index, split_key
from formschema.exceptions import InvalidPathError
from formschema.structure.shape import (
    FieldKind,
    FieldShape,
    StructShape,
    TypeShape,
    describe,
)

logger = logging.getLogger(__name__)


@frozen
class Select:
    """Descend into the attribute of the current struct."""

    attr: str
    field: FieldShape


@frozen
class Index:
    """Descend into an element of the current list."""

    position: int
    shape: TypeShape


Segment = Select | Index

Route = tuple[str | int, ...]
"""Attribute names and list positions a path visits, independent of key spelling."""


@frozen
class Path:
    """
    A parsed form key.

    Params:
        key: The raw external key
        model: The model type the key was parsed against
        segments: Steps from the root instance to the leaf
        leaf: Shape of the value stored at the end of the path
    """

    key: str
    model: type
    segments: tuple[Segment, ...]
    leaf: TypeShape

    @property
    def route(self) -> Route:
        """
        Attribute names and list positions from the root to the leaf.

        Keys spelled differently (external key, attribute name, promoted
        embedded field) share one route when they address the same field.
        """
        return tuple(
            segment.attr if isinstance(segment, Select) else segment.position
            for segment in self.segments
        )


@frozen
class _Invalid:
    reason: str


class PathCache:
    """
    Memoizes struct shapes per model and parsed paths per (model, key).

    Both successful parses and failures are stored, so an unknown key sent
    on every request is only walked against the shape once. Population is
    unsynchronised: two threads missing on the same pair both compute the
    same immutable result and the last store wins.
    """

    def __init__(self):
        self._shapes: dict[type, StructShape] = {}
        self._paths: dict[tuple[type, str], Path | _Invalid] = {}

    def __len__(self) -> int:
        return len(self._paths)

    def clear(self) -> None:
        """Drop all cached shapes and paths."""
        self._shapes.clear()
        self._paths.clear()

    def shape(self, model: type) -> StructShape:
        """Return the cached StructShape of a model, describing it on first use."""
        shape = self._shapes.get(model)
        if shape is None:
            shape = describe(model)
            self._shapes[model] = shape
        return shape

    def parse_path(self, key: str, model: type) -> Path:
        """
        Resolve a form key against a model type.

        Params:
            key: Dotted form key, e.g. "readers.0.name"
            model: Model type the key addresses

        Returns:
            Parsed Path

        Raises:
            InvalidPathError: If the key does not address a bindable field
        """
        cached = self._paths.get((model, key))
        if cached is None:
            logger.debug("Path cache miss for %s on %s", key, model.__name__)
            try:
                cached = self._parse(key, model)
            except InvalidPathError as e:
                logger.debug("Invalid path %s on %s: %s", key, model.__name__, e.reason)
                cached = _Invalid(e.reason)
            self._paths[(model, key)] = cached

        if isinstance(cached, _Invalid):
            raise InvalidPathError(key, cached.reason)
        return cached

    def _lookup(self, struct: StructShape, token: str) -> tuple[FieldShape, ...] | None:
        """
        Find the field chain a token selects on a struct.

        Declared fields win; otherwise the fields of embedded structs are
        searched breadth first, so the shallowest promoted field is chosen.
        Returns the embedded fields traversed followed by the selected field.
        """
        direct = struct.direct(token)
        if direct is not None:
            return (direct,)

        queue: list[tuple[tuple[FieldShape, ...], StructShape]] = [
            ((embedded,), self.shape(embedded.shape.python_type))
            for embedded in struct.embedded
        ]
        seen = {struct.model}
        while queue:
            next_queue = []
            for chain, inner in queue:
                if inner.model in seen:
                    continue
                seen.add(inner.model)
                found = inner.direct(token)
                if found is not None:
                    return chain + (found,)
                next_queue.extend(
                    (chain + (embedded,), self.shape(embedded.shape.python_type))
                    for embedded in inner.embedded
                )
            queue = next_queue
        return None

    def _parse(self, key: str, model: type) -> Path:
        tokens = split_key(key)
        if not tokens or any(token == "" for token in tokens):
            raise InvalidPathError(key, "empty path segment")

        segments: list[Segment] = []
        current = TypeShape(FieldKind.STRUCT, model)
        last = len(tokens) - 1
        for i, token in enumerate(tokens):
            if current.kind is FieldKind.STRUCT:
                chain = self._lookup(self.shape(current.python_type), token)
                if chain is None:
                    raise InvalidPathError(
                        key, f"no field '{token}' on {current.python_type.__name__}"
                    )
                segments.extend(Select(f.attr, f) for f in chain)
                current = chain[-1].shape

            elif current.kind is FieldKind.SEQUENCE:
                if not is_index(token):
                    raise InvalidPathError(key, f"'{token}' is not a list index")
                element = current.element
                if element.kind is not FieldKind.STRUCT and i != last:
                    raise InvalidPathError(
                        key, "cannot descend into a list element that is not a struct"
                    )
                segments.append(Index(int(token), element))
                current = element

            else:
                raise InvalidPathError(
                    key, f"cannot descend into '{token}' of a {current.kind.value} field"
                )

        if not current.is_leaf:
            if current.kind is FieldKind.SEQUENCE:
                raise InvalidPathError(key, "a list of structs must be followed by an index")
            raise InvalidPathError(key, "path ends on a struct, not a value")

        return Path(key=key, model=model, segments=tuple(segments), leaf=current)


path_cache = PathCache()
