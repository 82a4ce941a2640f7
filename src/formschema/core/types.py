"""
Core type definitions for formschema.

Type aliases for the flat inputs the decoders accept.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from formschema.forms import FileHeader

FormValues = Mapping[str, Sequence[str] | str]

FileValues = Mapping[str, Sequence[FileHeader] | FileHeader]

RawValues = Sequence[Any]
