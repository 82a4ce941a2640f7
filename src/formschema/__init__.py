"""
formschema - decode flat form data into nested pydantic models and dataclasses

Form keys address nested fields with dotted paths (``author.name``,
``readers.0.email``); repeated keys fill lists, and multipart uploads bind
to ``FileHeader`` fields.
"""

from importlib.metadata import version

from formschema.decoding import Decoder, DecoderConfig, MultipartDecoder
from formschema.exceptions import (
    ConversionError,
    EmptyFieldError,
    FormSchemaError,
    InvalidPathError,
    MultiError,
    TargetTypeError,
    UnknownFieldError,
)
from formschema.forms import FileHeader, MultipartForm, read_multipart_form
from formschema.structure import Form

__version__ = version("formschema")

__all__ = [
    "__version__",
    "Decoder",
    "DecoderConfig",
    "MultipartDecoder",
    "Form",
    "FileHeader",
    "MultipartForm",
    "read_multipart_form",
    "FormSchemaError",
    "TargetTypeError",
    "InvalidPathError",
    "UnknownFieldError",
    "ConversionError",
    "EmptyFieldError",
    "MultiError",
]
