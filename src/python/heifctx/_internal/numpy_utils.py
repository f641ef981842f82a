# heifctx/_internal/numpy_utils.py

"""
Internal utilities for moving pixels between NumPy arrays and image planes.

libheif planes are rows of `stride` bytes, of which only the first
`width * channels` carry pixels. This module handles validation and the
conversion between that layout and dense NumPy arrays.
"""

from typing import Any, TypeAlias
import numpy as np

from ..types import Chroma, ColorSpace

# (colorspace, chroma, channels per pixel)
PlaneLayout: TypeAlias = tuple[ColorSpace, Chroma, int]

# Maps the number of samples per pixel to the libheif layout used for it.
_CHANNELS_TO_LAYOUT: dict[int, PlaneLayout] = {
    1: (ColorSpace.MONOCHROME, Chroma.MONOCHROME, 1),
    3: (ColorSpace.RGB, Chroma.INTERLEAVED_RGB, 3),
    4: (ColorSpace.RGB, Chroma.INTERLEAVED_RGBA, 4),
}

# Samples per pixel of the 8-bit chroma formats we can read back.
CHROMA_CHANNELS: dict[Chroma, int] = {
    Chroma.MONOCHROME: 1,
    Chroma.INTERLEAVED_RGB: 3,
    Chroma.INTERLEAVED_RGBA: 4,
}

# --- Functions ---

def validate_array_for_encoding(arr: np.ndarray) -> PlaneLayout:
    """
    Ensures a NumPy array can be copied into a new 8-bit image.

    Accepted shapes are (H, W) for monochrome, (H, W, 3) for RGB and
    (H, W, 4) for RGBA.

    Args:
        arr: The NumPy array to validate.

    Returns:
        The (colorspace, chroma, channels) layout to create the image with.

    Raises:
        TypeError: If the array's dtype is not uint8.
        ValueError: If the array's shape is not one of the accepted shapes.
    """
    if arr.dtype != np.uint8:
        raise TypeError(
            f"Unsupported NumPy dtype: '{arr.dtype.name}'. "
            "Only uint8 arrays can be encoded."
        )

    if arr.ndim == 2:
        channels = 1
    elif arr.ndim == 3 and arr.shape[2] in (3, 4):
        channels = arr.shape[2]
    else:
        raise ValueError(
            f"Unsupported array shape {arr.shape}. "
            "Expected (H, W), (H, W, 3) or (H, W, 4)."
        )

    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("Cannot encode an empty image.")

    return _CHANNELS_TO_LAYOUT[channels]

def plane_view(buffer: Any, stride: int, width_bytes: int, height: int) -> np.ndarray:
    """
    Wraps a native plane as a (height, width_bytes) uint8 view.

    The view aliases native memory: it is only valid while the image that
    owns the plane is alive.
    """
    rows = np.frombuffer(buffer, dtype=np.uint8, count=stride * height)
    return rows.reshape(height, stride)[:, :width_bytes]

def shape_for(height: int, width: int, channels: int) -> tuple[int, ...]:
    """Array shape for a plane with `channels` interleaved samples."""
    return (height, width) if channels == 1 else (height, width, channels)
