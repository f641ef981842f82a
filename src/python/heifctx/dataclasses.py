# heifctx/dataclasses.py
"""
Dataclasses for structured data within the heifctx library.
"""
from dataclasses import dataclass

@dataclass(frozen=True, slots=True)
class ImageInfo:
    """A summary of one image item in a container."""
    item_id: int | None
    width: int
    height: int
    has_alpha: bool
    luma_bits_per_pixel: int
    is_primary: bool

@dataclass(frozen=True, slots=True)
class EncoderInfo:
    """Identification and settings of an encoder plugin instance."""
    name: str
    quality: int | None
    lossless: bool
