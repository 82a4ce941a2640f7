"""
MultipartDecoder: decodes multipart forms, uploaded files included.

The string half of the form goes through the ordinary Decoder machinery.
File uploads are then walked along the same cached paths, storing the
FileHeader handles directly instead of converting strings, and their
errors are merged into the same MultiError.
"""

import logging
from typing import Any

from formschema.decoding.decoder import Decoder, iter_form_items
from formschema.decoding.walker import FileLeaf
from formschema.exceptions import MultiError
from formschema.forms import MultipartForm

logger = logging.getLogger(__name__)


class MultipartDecoder(Decoder):
    """
    Decodes a MultipartForm into a model instance.

    File fields are annotated ``FileHeader`` (or ``FileHeader | None``) for a
    single upload and ``list[FileHeader]`` for several. A single file field
    keeps the last upload sent under its key; a list keeps all of them in
    the order they were sent.

    Usage:
        form = read_multipart_form(body, boundary)
        decoder = MultipartDecoder()
        decoder.ignore_unknown_keys = True
        decoder.decode(post, form)
        with post.header_image.open() as stream:
            data = stream.read()
    """

    def decode(self, target: Any, form: MultipartForm) -> None:
        """
        Decode string values and uploaded files into a model instance.

        Params:
            target: A pydantic model or dataclass instance, modified in place
            form: Parsed multipart form

        Raises:
            TargetTypeError: If target is not a model or dataclass instance;
                nothing is decoded
            MultiError: If any string or file key failed
        """
        self._check_target(target)
        errors = MultiError()
        submitted = self._decode_items(
            target, iter_form_items(form.value), self._string_strategy(), errors
        )
        logger.debug("Decoding %d file keys into %s", len(form.file), type(target).__name__)
        submitted |= self._decode_items(
            target, iter_form_items(form.file), FileLeaf(), errors
        )
        self._finish(target, submitted, errors)
