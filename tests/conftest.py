# tests/conftest.py
"""
Pytest configuration and shared fixtures for the test suite.

Tests that talk to libheif request the `libheif` fixture (directly or via
another fixture) and are skipped when the shared library, or the encoder
plugin they need, is not installed.
"""
import pytest
from pathlib import Path
import numpy as np

import heifctx
from heifctx import CompressionFormat, HeifContext, HeifLibraryError, Image

@pytest.fixture(scope="session")
def libheif():
    """The loaded cffi library object, or skip."""
    try:
        return heifctx.load_library()
    except HeifLibraryError as e:
        pytest.skip(f"libheif is not available: {e}")

@pytest.fixture(scope="session")
def encoder_formats(libheif) -> list[CompressionFormat]:
    """Lossy formats this libheif build can both encode and decode."""
    candidates = [CompressionFormat.HEVC, CompressionFormat.AV1, CompressionFormat.JPEG]
    return [
        fmt for fmt in candidates
        if heifctx.have_encoder_for_format(fmt) and heifctx.have_decoder_for_format(fmt)
    ]

@pytest.fixture(scope="session")
def encode_format(encoder_formats) -> CompressionFormat:
    if not encoder_formats:
        pytest.skip("libheif has no usable encoder plugin")
    return encoder_formats[0]

@pytest.fixture(scope="session")
def sample_pixels() -> np.ndarray:
    """A smooth 64x48 RGB gradient, friendly to lossy codecs."""
    y, x = np.mgrid[0:48, 0:64]
    rgb = np.stack([x * 4, y * 5, (x + y) * 2], axis=-1)
    return np.ascontiguousarray(rgb.astype(np.uint8))

@pytest.fixture(scope="session")
def single_image_bytes(encode_format, sample_pixels) -> bytes:
    """
    A well-formed container holding exactly one image.
    This runs only once per test session.
    """
    with HeifContext() as ctx, Image.from_array(sample_pixels) as image:
        with ctx.encoder_for_format(encode_format) as encoder:
            encoder.set_quality(90)
            ctx.encode_image(image, encoder).close()
        return ctx.write_to_bytes()

@pytest.fixture(scope="session")
def single_image_file(tmp_path_factory, single_image_bytes) -> Path:
    filepath = tmp_path_factory.getbasetemp() / "single_image.heif"
    filepath.write_bytes(single_image_bytes)
    return filepath
