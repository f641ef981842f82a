# heifctx/stream/readers.py
"""
Custom input sources for `HeifContext.read_from_reader()`.

libheif pulls bytes through a fixed table of C callbacks (`heif_reader`)
and hands each callback an opaque `userdata` pointer. Here that pointer is
the cffi handle of a `ReaderSlot`, which owns the application's `Reader`.
The slot is created once per context and lives exactly as long as the
context, so the address libheif keeps never dangles.
"""
import abc
import io
import logging
from typing import Any, BinaryIO, Optional

from ..lowlevel import ffi
from ..types import ReaderGrowStatus

logger = logging.getLogger("heifctx")

class Reader(abc.ABC):
    """
    A random-access byte source libheif can read a container from.

    libheif decides when and in which order the methods are called, both
    while the context is being constructed and later while images are
    decoded. Implementations must therefore keep their own position.
    """

    @abc.abstractmethod
    def position(self) -> int:
        """The current read offset from the start of the input."""
        raise NotImplementedError

    @abc.abstractmethod
    def read(self, size: int) -> bytes:
        """Reads exactly `size` bytes at the current position and advances it."""
        raise NotImplementedError

    @abc.abstractmethod
    def seek(self, position: int) -> bool:
        """Moves to the absolute offset `position`. Returns False on failure."""
        raise NotImplementedError

    @abc.abstractmethod
    def total_size(self) -> int:
        """Total number of bytes available."""
        raise NotImplementedError


class StreamReader(Reader):
    """
    A `Reader` over a seekable binary file-like object.

    The stream is not closed by the reader; the opener owns it.

    Usage:
        with open("photo.heic", "rb") as fh:
            with HeifContext.read_from_reader(StreamReader(fh)) as ctx:
                ...
    """
    def __init__(self, stream: BinaryIO, total_size: Optional[int] = None):
        required_methods = ['read', 'seek', 'tell']
        missing = [m for m in required_methods if not hasattr(stream, m)]
        if missing:
            raise TypeError(
                "Object must be a stream-like object with methods: {}. "
                "Missing: {}".format(", ".join(required_methods), ", ".join(missing))
            )
        self._stream = stream
        if total_size is None:
            current = stream.tell()
            total_size = stream.seek(0, io.SEEK_END)
            stream.seek(current, io.SEEK_SET)
        self._total_size = int(total_size)

    def position(self) -> int:
        return self._stream.tell()

    def read(self, size: int) -> bytes:
        return self._stream.read(size)

    def seek(self, position: int) -> bool:
        if position < 0 or position > self._total_size:
            return False
        self._stream.seek(position, io.SEEK_SET)
        return True

    def total_size(self) -> int:
        return self._total_size


class ReaderSlot:
    """
    The pinned box registered with libheif as callback `userdata`.

    `handle` is a cffi `void*` that resolves back to this object; it is
    valid only while the slot is referenced, which the owning context
    guarantees. The first exception raised by the reader is kept in
    `error` so the context can chain it to the error libheif reports.
    """
    __slots__ = ("reader", "handle", "error")

    def __init__(self, reader: Reader):
        if not isinstance(reader, Reader):
            raise TypeError(f"reader must be a heifctx.Reader, not {type(reader).__name__}")
        self.reader = reader
        self.error: Optional[BaseException] = None
        self.handle = ffi.new_handle(self)

    def record(self, exc: BaseException) -> None:
        if self.error is None:
            self.error = exc
        logger.error("Reader callback raised %s: %s", type(exc).__name__, exc)

    def take_error(self) -> Optional[BaseException]:
        error, self.error = self.error, None
        return error


def as_reader(source: Any) -> Reader:
    """Returns `source` if it is a Reader, otherwise wraps a file-like object."""
    if isinstance(source, Reader):
        return source
    if hasattr(source, "read"):
        return StreamReader(source)
    raise TypeError(f"Expected a heifctx.Reader or a binary stream, not {type(source).__name__}")


# --- Callback bodies ---
# Each returns libheif's convention: 0 for success, non-zero for failure.

def get_position(slot: ReaderSlot) -> int:
    try:
        return slot.reader.position()
    except Exception as e:
        slot.record(e)
        return -1

def read_into(slot: ReaderSlot, data: Any, size: int) -> int:
    reader = slot.reader
    try:
        # Never forward a request that would run past the end of the input.
        if reader.position() + size > reader.total_size():
            return 1
        chunk = reader.read(size)
        if len(chunk) != size:
            return 1
        ffi.memmove(data, chunk, size)
        return 0
    except Exception as e:
        slot.record(e)
        return 1

def seek_to(slot: ReaderSlot, position: int) -> int:
    try:
        return 0 if slot.reader.seek(position) else 1
    except Exception as e:
        slot.record(e)
        return 1

def wait_for_file_size(slot: ReaderSlot, target_size: int) -> int:
    try:
        if target_size <= slot.reader.total_size():
            return ReaderGrowStatus.SIZE_REACHED
        return ReaderGrowStatus.SIZE_BEYOND_EOF
    except Exception as e:
        slot.record(e)
        return ReaderGrowStatus.SIZE_BEYOND_EOF


# --- Native callback table ---
# Module-level so the function pointers outlive every context.

@ffi.callback("int64_t(void*)", error=-1)
def _get_position_cb(userdata):
    return get_position(ffi.from_handle(userdata))

@ffi.callback("int(void*, size_t, void*)", error=1)
def _read_cb(data, size, userdata):
    return read_into(ffi.from_handle(userdata), data, size)

@ffi.callback("int(int64_t, void*)", error=1)
def _seek_cb(position, userdata):
    return seek_to(ffi.from_handle(userdata), position)

@ffi.callback("int(int64_t, void*)", error=int(ReaderGrowStatus.SIZE_BEYOND_EOF))
def _wait_for_file_size_cb(target_size, userdata):
    return int(wait_for_file_size(ffi.from_handle(userdata), target_size))

HEIF_READER = ffi.new("struct heif_reader*", {
    "reader_api_version": 1,
    "get_position": _get_position_cb,
    "read": _read_cb,
    "seek": _seek_cb,
    "wait_for_file_size": _wait_for_file_size_cb,
})
