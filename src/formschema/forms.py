"""
Multipart form data: uploaded file handles and the parsed form container.

Request parsing itself belongs to the web layer; this module only provides
the value types the multipart decoder consumes, plus a small reader that
turns a raw ``multipart/form-data`` body into a MultipartForm using
python-multipart's streaming parser.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, BinaryIO

import attrs
from pydantic_core import core_schema
from python_multipart import MultipartParser
from python_multipart.exceptions import FormParserError
from python_multipart.multipart import parse_options_header

from formschema.exceptions import FormParseError

logger = logging.getLogger(__name__)

DEFAULT_MAX_FORM_SIZE = 32 * 1024 * 1024


@attrs.frozen
class FileHeader:
    """
    An uploaded file: its metadata and content.

    The decoders treat a FileHeader as an opaque, already converted value.
    Content is read by the caller after decoding, through ``open()``.
    """

    filename: str
    content: bytes = attrs.field(default=b"", repr=False)
    headers: dict[str, str] = attrs.field(factory=dict, eq=False)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "application/octet-stream")

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        """
        Open the file content as a binary stream.

        Usage:
            with header.open() as stream:
                data = stream.read()

        The stream is closed when the block exits.
        """
        stream = BytesIO(self.content)
        try:
            yield stream
        finally:
            stream.close()

    def read(self) -> bytes:
        """Read the whole content."""
        with self.open() as stream:
            return stream.read()

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.is_instance_schema(cls)


@dataclass
class MultipartForm:
    """
    A parsed multipart form.

    Params:
        value: Ordinary fields, key -> submitted strings in input order
        file: File fields, key -> uploaded files in input order
    """

    value: dict[str, list[str]] = field(default_factory=dict)
    file: dict[str, list[FileHeader]] = field(default_factory=dict)

    def add_value(self, key: str, value: str) -> None:
        self.value.setdefault(key, []).append(value)

    def add_file(self, key: str, header: FileHeader) -> None:
        self.file.setdefault(key, []).append(header)


def boundary_from_content_type(content_type: str) -> str:
    """
    Extract the boundary parameter from a multipart Content-Type header.

    Raises:
        FormParseError: If the header is not multipart or has no boundary
    """
    media_type, options = parse_options_header(content_type)
    if not media_type.startswith(b"multipart/"):
        raise FormParseError(f"expected multipart content type, got {content_type!r}")
    boundary = options.get(b"boundary")
    if not boundary:
        raise FormParseError("no boundary in content type")
    return boundary.decode("latin-1")


def read_multipart_form(
    body: bytes, boundary: str | bytes, max_size: int = DEFAULT_MAX_FORM_SIZE
) -> MultipartForm:
    """
    Parse a multipart/form-data body into a MultipartForm.

    Parts whose Content-Disposition carries a non-empty filename become
    FileHeader values; every other part is decoded as a UTF-8 string value.
    Keys keep the order in which parts appear.

    Params:
        body: The complete request body
        boundary: Boundary from the request's Content-Type header
        max_size: Largest body accepted

    Returns:
        MultipartForm with string values and file handles

    Raises:
        FormParseError: If the body exceeds max_size or is malformed
    """
    if len(body) > max_size:
        raise FormParseError(f"body of {len(body)} bytes exceeds limit of {max_size}")

    form = MultipartForm()
    state: dict[str, Any] = {}
    finished = False

    def on_part_begin() -> None:
        state.update(
            headers={}, header_field=bytearray(), header_value=bytearray(), data=bytearray()
        )

    def on_header_field(data: bytes, start: int, end: int) -> None:
        state["header_field"].extend(data[start:end])

    def on_header_value(data: bytes, start: int, end: int) -> None:
        state["header_value"].extend(data[start:end])

    def on_header_end() -> None:
        name = state["header_field"].decode("latin-1").lower()
        state["headers"][name] = state["header_value"].decode("latin-1")
        state["header_field"] = bytearray()
        state["header_value"] = bytearray()

    def on_part_data(data: bytes, start: int, end: int) -> None:
        state["data"].extend(data[start:end])

    def on_part_end() -> None:
        headers = state["headers"]
        _, options = parse_options_header(headers.get("content-disposition", ""))
        name = options.get(b"name")
        if name is None:
            logger.debug("Skipping multipart part without a name")
            return

        key = name.decode("utf-8", errors="replace")
        filename = options.get(b"filename", b"").decode("utf-8", errors="replace")
        if filename:
            form.add_file(
                key,
                FileHeader(filename=filename, content=bytes(state["data"]), headers=headers),
            )
        else:
            form.add_value(key, state["data"].decode("utf-8", errors="replace"))

    def on_end() -> None:
        nonlocal finished
        finished = True

    if isinstance(boundary, str):
        boundary = boundary.encode("latin-1")

    parser = MultipartParser(
        boundary,
        callbacks={
            "on_part_begin": on_part_begin,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
            "on_header_end": on_header_end,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
            "on_end": on_end,
        },
    )
    try:
        parser.write(body)
        parser.finalize()
    except FormParserError as e:
        raise FormParseError(str(e)) from e

    if not finished:
        raise FormParseError("unexpected end of body")
    return form
