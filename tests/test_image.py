# tests/test_image.py
"""
Tests for NumPy <-> image plane conversion and the Image wrapper.
"""
import copy

import pytest
import numpy as np

from heifctx import Channel, Chroma, ColorSpace, Image
from heifctx._internal import numpy_utils

# --- Pure NumPy helpers (no libheif needed) ---

@pytest.mark.parametrize("shape, expected", [
    ((4, 6), (ColorSpace.MONOCHROME, Chroma.MONOCHROME, 1)),
    ((4, 6, 3), (ColorSpace.RGB, Chroma.INTERLEAVED_RGB, 3)),
    ((4, 6, 4), (ColorSpace.RGB, Chroma.INTERLEAVED_RGBA, 4)),
])
def test_layout_for_supported_shapes(shape, expected):
    assert numpy_utils.validate_array_for_encoding(np.zeros(shape, dtype=np.uint8)) == expected

def test_layout_rejects_wrong_dtype():
    with pytest.raises(TypeError, match="Only uint8"):
        numpy_utils.validate_array_for_encoding(np.zeros((4, 4, 3), dtype=np.float32))

@pytest.mark.parametrize("shape", [(4,), (4, 4, 2), (4, 4, 3, 1), (0, 4, 3)])
def test_layout_rejects_bad_shapes(shape):
    with pytest.raises(ValueError):
        numpy_utils.validate_array_for_encoding(np.zeros(shape, dtype=np.uint8))

def test_plane_view_strips_row_padding():
    # 3 rows of 2 RGB pixels (6 bytes) padded to a stride of 8.
    raw = bytearray()
    for row in range(3):
        raw += bytes(range(row * 10, row * 10 + 6)) + b"\xff\xff"
    view = numpy_utils.plane_view(raw, stride=8, width_bytes=6, height=3)

    assert view.shape == (3, 6)
    assert view[1, 0] == 10 and view[2, 5] == 25
    assert 0xff not in view

# --- Image wrapper ---

def test_rgb_array_roundtrip(libheif, sample_pixels):
    with Image.from_array(sample_pixels) as image:
        assert image.colorspace == ColorSpace.RGB
        assert image.chroma == Chroma.INTERLEAVED_RGB
        assert image.width() == 64
        assert image.height() == 48
        np.testing.assert_array_equal(image.to_array(), sample_pixels)

def test_rgba_and_monochrome_roundtrip(libheif):
    rgba = np.arange(5 * 7 * 4, dtype=np.uint8).reshape(5, 7, 4)
    with Image.from_array(rgba) as image:
        np.testing.assert_array_equal(image.to_array(), rgba)

    gray = np.arange(6 * 9, dtype=np.uint8).reshape(6, 9)
    with Image.from_array(gray) as image:
        assert image.chroma == Chroma.MONOCHROME
        np.testing.assert_array_equal(image.plane(Channel.Y), gray)

def test_missing_plane(libheif, sample_pixels):
    with Image.from_array(sample_pixels) as image:
        with pytest.raises(ValueError, match="no Y plane"):
            image.plane(Channel.Y)
        with pytest.raises(ValueError, match="no ALPHA plane"):
            image.plane(Channel.ALPHA)

    with Image.from_array(np.zeros((4, 4), dtype=np.uint8)) as gray:
        with pytest.raises(ValueError, match="no INTERLEAVED plane"):
            gray.plane(Channel.INTERLEAVED)

def test_closed_image(libheif, sample_pixels):
    image = Image.from_array(sample_pixels)
    image.close()
    image.close()  # idempotent
    assert image.closed
    with pytest.raises(ValueError, match="closed Image"):
        image.to_array()

def test_image_cannot_be_copied(libheif, sample_pixels):
    with Image.from_array(sample_pixels) as image:
        with pytest.raises(TypeError, match="cannot be copied"):
            copy.copy(image)
