"""
formschema decoders.

This package provides the path walker, the string decoder and the
multipart (file aware) decoder.
"""

from formschema.decoding.decoder import (
    Decoder,
    DecoderConfig,
    create_decoder_config,
    iter_form_items,
)
from formschema.decoding.multipart import MultipartDecoder
from formschema.decoding.walker import (
    DEFAULT_MAX_INDEX,
    SKIP,
    ConvertLeaf,
    FileLeaf,
    LeafStrategy,
    walk,
)

__all__ = [
    "Decoder",
    "DecoderConfig",
    "create_decoder_config",
    "iter_form_items",
    "MultipartDecoder",
    "DEFAULT_MAX_INDEX",
    "SKIP",
    "ConvertLeaf",
    "FileLeaf",
    "LeafStrategy",
    "walk",
]
