# heifctx/__init__.py
"""
Resource-safe access to libheif contexts: reading, encoding and writing
HEIF/AVIF containers.
"""
import os
from typing import Any, Optional

from .context import HeifContext
from .image import Image, ImageHandle
from .encoder import Encoder, EncodingOptions
from .stream import Reader, StreamReader
from .types import CompressionFormat, ErrorCode, SubErrorCode, ColorSpace, Chroma, Channel
from .dataclasses import ImageInfo, EncoderInfo
from .exceptions import (
    HeifError,
    HeifLibraryError,
    HeifContextCreateError,
    HeifReadError,
    HeifWriteError,
    HeifEncodeError,
    HeifQueryError,
)
from .lowlevel import load_library, libheif_version, have_encoder_for_format, have_decoder_for_format
from .convenience import load_image, save_image

__version__ = "0.0.1"

def open(source: Optional[Any] = None) -> HeifContext:
    """
    Opens a container, or creates an empty context.
    This function is the primary entry point for the library.

    Args:
        source: What to read from:
            - None: an empty context, to encode images into.
            - bytes / bytearray / memoryview: an in-memory container
              (read without copying).
            - str or os.PathLike: a container file.
            - a heifctx.Reader, or a seekable binary file object.

    Returns:
        A HeifContext, typically used within a `with` statement.

    Raises:
        HeifReadError: If the source is not a valid container.
        TypeError: If the source type is not supported.
    """
    if source is None:
        return HeifContext.create_empty()
    if isinstance(source, (bytes, bytearray, memoryview)):
        return HeifContext.read_from_bytes(source)
    if isinstance(source, (str, os.PathLike)):
        return HeifContext.read_from_file(source)
    if isinstance(source, Reader) or hasattr(source, "read"):
        return HeifContext.read_from_reader(source)
    raise TypeError(f"Unsupported source type: {type(source).__name__}")


# Define what gets imported with 'from heifctx import *'
__all__ = [
    'open',
    'HeifContext',
    'Image',
    'ImageHandle',
    'Encoder',
    'EncodingOptions',
    'Reader',
    'StreamReader',
    'CompressionFormat',
    'ErrorCode',
    'SubErrorCode',
    'ColorSpace',
    'Chroma',
    'Channel',
    'ImageInfo',
    'EncoderInfo',
    'HeifError',
    'HeifLibraryError',
    'HeifContextCreateError',
    'HeifReadError',
    'HeifWriteError',
    'HeifEncodeError',
    'HeifQueryError',
    'load_library',
    'libheif_version',
    'have_encoder_for_format',
    'have_decoder_for_format',
    'load_image',
    'save_image',
    '__version__',
]
