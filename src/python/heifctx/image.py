# heifctx/image.py
"""Decoded images and the handles that refer to image items in a context."""

import logging
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from .abc import ContextBound, NativeResource
from .dataclasses import ImageInfo
from .exceptions import HeifEncodeError, HeifLibraryError, HeifReadError, check_error
from .lowlevel import ffi, get_lib, libheif_version, optional_function
from .types import Channel, Chroma, ColorSpace, to_enum
from ._internal import numpy_utils

if TYPE_CHECKING:
    from .context import HeifContext

logger = logging.getLogger("heifctx")


class Image(NativeResource):
    """
    An uncompressed image held in libheif memory.

    Obtained from `ImageHandle.decode()`, or built with `Image.new()` and
    `add_plane()` (or `Image.from_array()`) to be passed to
    `HeifContext.encode_image()`. Images are independent of any context.
    """
    def __init__(self, handle: Any):
        self._handle = handle

    @classmethod
    def new(cls, width: int, height: int, colorspace: ColorSpace, chroma: Chroma) -> "Image":
        """Creates an image without planes; add them with `add_plane()`."""
        lib = get_lib()
        out = ffi.new("struct heif_image**")
        err = lib.heif_image_create(width, height, int(colorspace), int(chroma), out)
        check_error(err, HeifEncodeError)
        return cls(out[0])

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Image":
        """
        Copies an 8-bit NumPy array into a new image.

        (H, W) arrays become monochrome images; (H, W, 3) and (H, W, 4)
        arrays become interleaved RGB and RGBA images.
        """
        colorspace, chroma, channels = numpy_utils.validate_array_for_encoding(array)
        height, width = array.shape[:2]
        image = cls.new(width, height, colorspace, chroma)
        try:
            channel = Channel.Y if channels == 1 else Channel.INTERLEAVED
            image.add_plane(channel, width, height, 8)
            target = image._writable_plane(channel, width * channels, height)
            target[...] = array.reshape(height, width * channels)
        except BaseException:
            image.close()
            raise
        return image

    def add_plane(self, channel: Channel, width: int, height: int, bit_depth: int = 8) -> None:
        """Allocates a plane of the given size; its contents are undefined."""
        self._ensure_open()
        err = get_lib().heif_image_add_plane(self._handle, int(channel), width, height, bit_depth)
        check_error(err, HeifEncodeError)

    def _ensure_open(self) -> None:
        if self.closed:
            raise ValueError("Operation attempted on a closed Image.")

    def _primary_channel(self) -> Channel:
        chroma = self.chroma
        if Chroma.INTERLEAVED_RGB <= chroma <= Chroma.INTERLEAVED_RRGGBBAA_LE:
            return Channel.INTERLEAVED
        return Channel.Y

    def _writable_plane(self, channel: Channel, width_bytes: int, height: int) -> np.ndarray:
        stride = ffi.new("int*")
        ptr = get_lib().heif_image_get_plane(self._handle, int(channel), stride)
        if ptr == ffi.NULL:
            raise ValueError(f"Image has no {channel.name} plane.")
        buffer = ffi.buffer(ptr, stride[0] * height)
        return numpy_utils.plane_view(buffer, stride[0], width_bytes, height)

    @property
    def colorspace(self) -> ColorSpace | int:
        self._ensure_open()
        return to_enum(ColorSpace, get_lib().heif_image_get_colorspace(self._handle))

    @property
    def chroma(self) -> Chroma | int:
        self._ensure_open()
        return to_enum(Chroma, get_lib().heif_image_get_chroma_format(self._handle))

    def width(self, channel: Optional[Channel] = None) -> int:
        """Width of `channel`'s plane in pixels, -1 if the plane does not exist."""
        self._ensure_open()
        channel = self._primary_channel() if channel is None else channel
        return get_lib().heif_image_get_width(self._handle, int(channel))

    def height(self, channel: Optional[Channel] = None) -> int:
        """Height of `channel`'s plane in pixels, -1 if the plane does not exist."""
        self._ensure_open()
        channel = self._primary_channel() if channel is None else channel
        return get_lib().heif_image_get_height(self._handle, int(channel))

    def plane(self, channel: Channel) -> np.ndarray:
        """
        Returns a copy of one 8-bit plane.

        Interleaved planes are returned as (H, W, C) arrays, all others as
        (H, W).

        Raises:
            ValueError: If the plane is missing or deeper than 8 bits.
        """
        self._ensure_open()
        lib = get_lib()
        if not lib.heif_image_has_channel(self._handle, int(channel)):
            raise ValueError(f"Image has no {Channel(channel).name} plane.")
        bits = lib.heif_image_get_bits_per_pixel_range(self._handle, int(channel))
        if bits > 8:
            raise ValueError(f"Only 8-bit planes can be exported, this one has {bits} bits.")

        width = lib.heif_image_get_width(self._handle, int(channel))
        height = lib.heif_image_get_height(self._handle, int(channel))
        channels = 1
        if channel == Channel.INTERLEAVED:
            channels = numpy_utils.CHROMA_CHANNELS.get(self.chroma, 0)
            if not channels:
                raise ValueError(f"Cannot export interleaved chroma format {self.chroma!r}.")

        stride = ffi.new("int*")
        ptr = lib.heif_image_get_plane_readonly(self._handle, int(channel), stride)
        buffer = ffi.buffer(ptr, stride[0] * height)
        view = numpy_utils.plane_view(buffer, stride[0], width * channels, height)
        return view.copy().reshape(numpy_utils.shape_for(height, width, channels))

    def to_array(self) -> np.ndarray:
        """Copies the pixels of a monochrome, RGB or RGBA image into a NumPy array."""
        return self.plane(self._primary_channel())

    def close(self) -> None:
        handle = getattr(self, "_handle", None)
        if handle is not None:
            self._handle = None
            get_lib().heif_image_release(handle)

    @property
    def closed(self) -> bool:
        return getattr(self, "_handle", None) is None


class ImageHandle(ContextBound):
    """
    A reference to one image item of a `HeifContext`.

    Obtained from `HeifContext.primary_image_handle()`,
    `HeifContext.image_handle()` or `HeifContext.encode_image()`. It must
    not be used after its context is closed.

    `item_id` is the ID the handle was looked up by, if known. libheif
    releases that can report the ID of any handle make it redundant.
    """
    def __init__(self, context: "HeifContext", handle: Any, item_id: Optional[int] = None):
        self._context = context
        self._handle = handle
        self._item_id = item_id

    @property
    def width(self) -> int:
        self._ensure_usable()
        return get_lib().heif_image_handle_get_width(self._handle)

    @property
    def height(self) -> int:
        self._ensure_usable()
        return get_lib().heif_image_handle_get_height(self._handle)

    @property
    def has_alpha_channel(self) -> bool:
        self._ensure_usable()
        return bool(get_lib().heif_image_handle_has_alpha_channel(self._handle))

    @property
    def luma_bits_per_pixel(self) -> int:
        self._ensure_usable()
        return get_lib().heif_image_handle_get_luma_bits_per_pixel(self._handle)

    @property
    def is_primary(self) -> bool:
        self._ensure_usable()
        return bool(get_lib().heif_image_handle_is_primary_image(self._handle))

    def _lookup_item_id(self) -> Optional[int]:
        get_item_id = optional_function("heif_image_handle_get_item_id")
        if get_item_id is not None:
            return get_item_id(self._handle)
        return self._item_id

    @property
    def item_id(self) -> int:
        """
        Raises:
            HeifLibraryError: If libheif cannot report the ID of this handle.
        """
        self._ensure_usable()
        item_id = self._lookup_item_id()
        if item_id is None:
            raise HeifLibraryError(
                f"libheif {libheif_version()} cannot report the item ID of this handle; "
                "a newer libheif is required."
            )
        return item_id

    @property
    def info(self) -> ImageInfo:
        """All of the above as one frozen record. `item_id` is None where unknown."""
        self._ensure_usable()
        return ImageInfo(
            item_id=self._lookup_item_id(),
            width=self.width,
            height=self.height,
            has_alpha=self.has_alpha_channel,
            luma_bits_per_pixel=self.luma_bits_per_pixel,
            is_primary=self.is_primary,
        )

    def decode(
        self,
        colorspace: ColorSpace = ColorSpace.RGB,
        chroma: Chroma = Chroma.INTERLEAVED_RGB,
    ) -> Image:
        """
        Decodes the image item, converting it to the requested layout.

        For a context read through a custom reader, this is when libheif
        fetches the compressed data, so reader failures surface here.

        Raises:
            HeifReadError: If decoding or colour conversion fails.
        """
        self._ensure_usable()
        out = ffi.new("struct heif_image**")
        err = get_lib().heif_decode_image(self._handle, out, int(colorspace), int(chroma), ffi.NULL)
        error = HeifReadError.from_native(err)
        if error is not None:
            raise error from self._context._take_reader_error()
        return Image(out[0])

    def close(self) -> None:
        handle = getattr(self, "_handle", None)
        if handle is not None:
            self._handle = None
            get_lib().heif_image_handle_release(handle)
            logger.debug("Released image handle %s", handle)

    @property
    def closed(self) -> bool:
        return getattr(self, "_handle", None) is None
