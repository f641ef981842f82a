# heifctx/_internal/format_selector.py

"""
Internal logic for choosing a compression format when the caller gives none.
"""

from ..lowlevel import have_decoder_for_format, have_encoder_for_format
from ..types import CompressionFormat

# Most widely decodable first.
PREFERRED_FORMATS: tuple[CompressionFormat, ...] = (
    CompressionFormat.HEVC,
    CompressionFormat.AV1,
    CompressionFormat.JPEG,
    CompressionFormat.JPEG2000,
    CompressionFormat.UNCOMPRESSED,
)

def available_encoder_formats() -> list[CompressionFormat]:
    """The preferred formats libheif can both encode and decode, in order."""
    return [
        fmt for fmt in PREFERRED_FORMATS
        if have_encoder_for_format(fmt) and have_decoder_for_format(fmt)
    ]

def recommend_format() -> CompressionFormat:
    """
    Recommends a compression format for `save_image()`.

    Returns:
        The first entry of `PREFERRED_FORMATS` libheif can encode and read back.

    Raises:
        RuntimeError: If libheif was built without any of them.
    """
    formats = available_encoder_formats()
    if not formats:
        raise RuntimeError(
            "libheif cannot both encode and decode any of: "
            + ", ".join(fmt.name for fmt in PREFERRED_FORMATS)
        )
    return formats[0]
