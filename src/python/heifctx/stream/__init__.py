# heifctx/stream/__init__.py
"""Bridges between Python byte sources/sinks and libheif's callback tables."""
from .readers import Reader, StreamReader, ReaderSlot, HEIF_READER, as_reader
from .writers import ByteSink, new_writer
