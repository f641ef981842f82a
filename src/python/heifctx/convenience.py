# heifctx/convenience.py
"""
High-level convenience functions for common single-image operations.
"""
from typing import Optional, Union
import numpy as np

from .context import HeifContext, PathLike
from .encoder import EncodingOptions
from .image import Image
from .types import ColorSpace, Chroma, CompressionFormat
from ._internal import format_selector

def save_image(
    filepath: PathLike,
    data: np.ndarray,
    *,
    format: Optional[Union[CompressionFormat, int]] = None,
    quality: Optional[int] = None,
    lossless: bool = False,
    options: Optional[EncodingOptions] = None,
) -> None:
    """
    Encodes a single 8-bit NumPy array into a new container file.

    Args:
        filepath: The path to the file to be created.
        data: A uint8 array of shape (H, W), (H, W, 3) or (H, W, 4).
        format: (Optional) The compression format. If None, the first
                format libheif can encode is chosen automatically.
        quality: (Optional) Lossy quality from 0 to 100.
        lossless: Request lossless compression, if the encoder supports it.
        options: (Optional) Encoding options; encoder defaults if None.
    """
    if format is None:
        format = format_selector.recommend_format()

    with HeifContext() as ctx, Image.from_array(data) as image:
        with ctx.encoder_for_format(format) as encoder:
            if quality is not None:
                encoder.set_quality(quality)
            if lossless:
                encoder.set_lossless(True)
            ctx.encode_image(image, encoder, options).close()
        ctx.write_to_file(filepath)


def load_image(filepath: PathLike, *, alpha: Optional[bool] = None) -> np.ndarray:
    """
    Decodes the primary image of a container file into an 8-bit NumPy array.

    Args:
        filepath: The path to the container file.
        alpha: Return RGBA instead of RGB. If None (default), RGBA is
               returned exactly when the image has an alpha channel.

    Returns:
        A uint8 array of shape (H, W, 3) or (H, W, 4).
    """
    with HeifContext.read_from_file(filepath) as ctx:
        with ctx.primary_image_handle() as handle:
            if alpha is None:
                alpha = handle.has_alpha_channel
            chroma = Chroma.INTERLEAVED_RGBA if alpha else Chroma.INTERLEAVED_RGB
            with handle.decode(ColorSpace.RGB, chroma) as image:
                return image.to_array()
