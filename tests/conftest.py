"""
Shared test fixtures for the formschema test suite.
"""

import pytest

from formschema import Decoder, MultipartDecoder
from formschema.structure.registry import PathCache


@pytest.fixture
def cache():
    """A private path cache, so tests observe cache population from empty."""
    return PathCache()


@pytest.fixture
def decoder(cache):
    return Decoder(cache=cache)


@pytest.fixture
def multipart_decoder(cache):
    return MultipartDecoder(cache=cache)
