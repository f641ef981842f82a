# heifctx/context.py
"""The HeifContext: owner of one libheif context and entry point for all I/O."""

import logging
import os
from typing import Any, Optional, Union

from .abc import NativeResource
from .encoder import Encoder, EncodingOptions
from .exceptions import (
    HeifContextCreateError,
    HeifEncodeError,
    HeifQueryError,
    HeifReadError,
    HeifWriteError,
    check_error,
)
from .image import Image, ImageHandle
from .lowlevel import ffi, get_lib
from .stream.readers import HEIF_READER, Reader, ReaderSlot, as_reader
from .stream.writers import ByteSink, new_writer
from .types import CompressionFormat, ErrorCode, SubErrorCode

logger = logging.getLogger("heifctx")

PathLike = Union[str, "os.PathLike[str]"]


def _encode_path(path: PathLike) -> bytes:
    encoded = os.fsencode(os.fspath(path))
    if b"\0" in encoded:
        raise ValueError("embedded null byte")
    return encoded


class HeifContext(NativeResource):
    """
    Owns one native `heif_context`.

    Create it empty, or read a container with `read_from_bytes()`,
    `read_from_file()` or `read_from_reader()`. The context is released
    exactly once, by `close()`, at the end of a `with` block or on garbage
    collection; handles and encoders obtained from it must not be used
    afterwards.

    A context may be handed to another thread, but must never be used
    from two threads at the same time. No locking is done here.

    Usage:
        with HeifContext.read_from_file("photo.heic") as ctx:
            with ctx.primary_image_handle() as handle:
                pixels = handle.decode().to_array()
    """
    def __init__(self):
        self._handle = None
        self._reader_slot: Optional[ReaderSlot] = None
        self._source: Any = None

        handle = get_lib().heif_context_alloc()
        if handle == ffi.NULL:
            raise HeifContextCreateError(
                "",
                code=ErrorCode.CONTEXT_CREATE_FAILED,
                sub_code=SubErrorCode.UNSPECIFIED,
            )
        self._handle = handle
        logger.debug("Allocated heif_context %s", handle)

    # --- Construction ---

    @classmethod
    def create_empty(cls) -> "HeifContext":
        """Creates a context with no images, e.g. to encode into."""
        return cls()

    @classmethod
    def read_from_bytes(cls, data: Any) -> "HeifContext":
        """
        Reads a container from an in-memory buffer without copying it.

        Args:
            data: Any object supporting the buffer protocol. The context
                  keeps a reference to it; a mutable buffer must not be
                  modified while the context is in use.

        Raises:
            HeifReadError: If the data is not a valid, supported container.
        """
        context = cls()
        try:
            source = ffi.from_buffer(data)
            context._source = source
            err = get_lib().heif_context_read_from_memory_without_copy(
                context._handle, source, len(source), ffi.NULL
            )
            check_error(err, HeifReadError)
        except BaseException:
            context.close()
            raise
        return context

    @classmethod
    def read_from_file(cls, path: PathLike) -> "HeifContext":
        """
        Opens and reads a container file.

        Raises:
            HeifReadError: If the file cannot be opened or is not a valid container.
            ValueError: If `path` contains a null byte.
        """
        filename = _encode_path(path)
        context = cls()
        try:
            err = get_lib().heif_context_read_from_file(context._handle, filename, ffi.NULL)
            check_error(err, HeifReadError)
        except BaseException:
            context.close()
            raise
        return context

    @classmethod
    def read_from_reader(cls, reader: Union[Reader, Any]) -> "HeifContext":
        """
        Reads a container through a custom `Reader` or a seekable binary stream.

        The reader is kept alive, and may be called again, until the
        context is closed: libheif fetches image data lazily when images
        are decoded.

        Raises:
            HeifReadError: If registration or parsing fails. An exception
                raised by the reader itself is chained as `__cause__`.
        """
        context = cls()
        try:
            slot = ReaderSlot(as_reader(reader))
            # Held before the call: libheif keeps `slot.handle` from here on.
            context._reader_slot = slot
            err = get_lib().heif_context_read_from_reader(context._handle, HEIF_READER, slot.handle, ffi.NULL)
            error = HeifReadError.from_native(err)
            if error is not None:
                raise error from slot.take_error()
        except BaseException:
            context.close()
            raise
        return context

    # --- Serialisation ---

    def write_to_bytes(self) -> bytes:
        """
        Serialises the context into a new bytes object.

        Raises:
            HeifWriteError: If libheif fails to serialise, or the output
                could not be buffered (the Python exception is chained).
        """
        self._ensure_open()
        sink = ByteSink()
        writer = new_writer()
        err = get_lib().heif_context_write(self._handle, writer, sink.handle)
        error = HeifWriteError.from_native(err)
        if error is not None:
            raise error from sink.error
        if sink.error is not None:
            raise HeifWriteError(
                str(sink.error),
                code=ErrorCode.ENCODING_ERROR,
                sub_code=SubErrorCode.CANNOT_WRITE_OUTPUT_DATA,
            ) from sink.error
        logger.debug("Serialised heif_context %s: %d bytes in %d writes", self._handle, len(sink.buffer), sink.calls)
        return sink.getvalue()

    def write_to_file(self, path: PathLike) -> None:
        """Serialises the context directly to `path`."""
        self._ensure_open()
        err = get_lib().heif_context_write_to_file(self._handle, _encode_path(path))
        check_error(err, HeifWriteError)

    # --- Queries ---

    def number_of_top_level_images(self) -> int:
        self._ensure_open()
        return get_lib().heif_context_get_number_of_top_level_images(self._handle)

    def __len__(self) -> int:
        return self.number_of_top_level_images()

    def top_level_image_ids(self) -> list[int]:
        """Item IDs of all top-level images, in file order."""
        self._ensure_open()
        lib = get_lib()
        count = lib.heif_context_get_number_of_top_level_images(self._handle)
        if count <= 0:
            return []
        ids = ffi.new("heif_item_id[]", count)
        filled = lib.heif_context_get_list_of_top_level_image_IDs(self._handle, ids, count)
        return [ids[i] for i in range(filled)]

    def primary_image_handle(self) -> ImageHandle:
        """
        Returns a handle to the container's primary image.

        Raises:
            HeifQueryError: If the container has no (valid) primary image.
        """
        self._ensure_open()
        lib = get_lib()
        out = ffi.new("struct heif_image_handle**")
        err = lib.heif_context_get_primary_image_handle(self._handle, out)
        check_error(err, HeifQueryError)
        primary_id = ffi.new("heif_item_id*")
        if lib.heif_context_get_primary_image_ID(self._handle, primary_id).code != 0:
            return ImageHandle(self, out[0])
        return ImageHandle(self, out[0], primary_id[0])

    def image_handle(self, item_id: int) -> ImageHandle:
        """Returns a handle to the image item with the given ID."""
        self._ensure_open()
        out = ffi.new("struct heif_image_handle**")
        err = get_lib().heif_context_get_image_handle(self._handle, item_id, out)
        check_error(err, HeifQueryError)
        return ImageHandle(self, out[0], item_id)

    def encoder_for_format(self, format: Union[CompressionFormat, int]) -> Encoder:
        """
        Returns an encoder for `format`, using libheif's preferred plugin.

        Raises:
            HeifQueryError: If no encoder plugin supports the format.
        """
        self._ensure_open()
        out = ffi.new("struct heif_encoder**")
        err = get_lib().heif_context_get_encoder_for_format(self._handle, int(format), out)
        check_error(err, HeifQueryError)
        return Encoder(self, out[0])

    # --- Encoding ---

    def encode_image(
        self,
        image: Image,
        encoder: Encoder,
        options: Optional[EncodingOptions] = None,
    ) -> ImageHandle:
        """
        Compresses `image` with `encoder` and adds it to this context.

        The new image is included by later `write_to_bytes()` /
        `write_to_file()` calls. The first image added becomes the primary
        image.

        Args:
            image: The uncompressed image.
            encoder: An encoder from an open context, usually this one.
            options: Encoding options, or None for the encoder's defaults.

        Returns:
            A handle to the newly added image item.

        Raises:
            HeifEncodeError: If the combination of image, encoder and
                options is not supported.
        """
        self._ensure_open()
        if image.closed:
            raise ValueError("Operation attempted on a closed Image.")
        encoder._ensure_usable()

        native_options = options.heif_encoding_options() if options is not None else ffi.NULL
        out = ffi.new("struct heif_image_handle**")
        err = get_lib().heif_context_encode_image(
            self._handle, image._handle, encoder._handle, native_options, out
        )
        check_error(err, HeifEncodeError)
        return ImageHandle(self, out[0])

    # --- Lifecycle ---

    def _ensure_open(self) -> None:
        if self.closed:
            raise ValueError("Operation attempted on a closed HeifContext.")

    def _take_reader_error(self) -> Optional[BaseException]:
        slot = getattr(self, "_reader_slot", None)
        return slot.take_error() if slot is not None else None

    def close(self) -> None:
        handle = getattr(self, "_handle", None)
        if handle is None:
            return
        self._handle = None
        get_lib().heif_context_free(handle)
        logger.debug("Freed heif_context %s", handle)
        # Only now may the reader and the zero-copy source go away.
        self._reader_slot = None
        self._source = None

    @property
    def closed(self) -> bool:
        return getattr(self, "_handle", None) is None

    def __repr__(self) -> str:
        if self.closed:
            return "<HeifContext closed>"
        return f"<HeifContext images={self.number_of_top_level_images()}>"
