# heifctx/stream/writers.py
"""
In-memory output for `HeifContext.write_to_bytes()`.

libheif serialises a context by calling the `write` member of a
`heif_writer` table one or more times. The callback below appends every
chunk to the `ByteSink` passed as `userdata`.
"""
import logging
from typing import Any, Optional

from ..lowlevel import ffi
from ..types import ErrorCode, SubErrorCode

logger = logging.getLogger("heifctx")

# Message strings must stay valid after the callback returns.
_SUCCESS_MESSAGE = ffi.new("char[]", b"Success")
_WRITE_FAILED_MESSAGE = ffi.new("char[]", b"Could not append output data to the in-memory buffer")

_SUCCESS = ffi.new("struct heif_error*", {
    "code": int(ErrorCode.OK),
    "subcode": int(SubErrorCode.UNSPECIFIED),
    "message": _SUCCESS_MESSAGE,
})
_WRITE_FAILED = ffi.new("struct heif_error*", {
    "code": int(ErrorCode.ENCODING_ERROR),
    "subcode": int(SubErrorCode.CANNOT_WRITE_OUTPUT_DATA),
    "message": _WRITE_FAILED_MESSAGE,
})


class ByteSink:
    """
    A growable buffer that collects the chunks libheif writes.

    If appending fails (typically `MemoryError`), the exception is kept in
    `error` and libheif is told the write failed instead of being unwound
    through.
    """
    __slots__ = ("buffer", "handle", "error", "calls")

    def __init__(self):
        self.buffer = bytearray()
        self.error: Optional[BaseException] = None
        self.calls = 0
        self.handle = ffi.new_handle(self)

    def append(self, data: Any, size: int) -> None:
        self.buffer += ffi.buffer(data, size)
        self.calls += 1

    def getvalue(self) -> bytes:
        return bytes(self.buffer)


def write_chunk(sink: ByteSink, data: Any, size: int) -> Any:
    """Callback body: appends `size` bytes at `data`; returns a `struct heif_error`."""
    if size == 0:
        return _SUCCESS[0]
    try:
        sink.append(data, size)
    except Exception as e:
        sink.error = e
        logger.error("Writer callback failed after %d bytes: %s", len(sink.buffer), e)
        return _WRITE_FAILED[0]
    return _SUCCESS[0]


def _on_writer_error(exc_type, exc_value, tb):
    # Only reached if resolving the handle itself fails.
    logger.error("Writer callback raised %s: %s", exc_type.__name__, exc_value)
    return _WRITE_FAILED[0]


@ffi.callback("struct heif_error(struct heif_context*, const void*, size_t, void*)",
              onerror=_on_writer_error)
def _vector_writer(ctx, data, size, userdata):
    return write_chunk(ffi.from_handle(userdata), data, size)


def new_writer() -> Any:
    """Allocates a `heif_writer` table pointing at the in-memory callback."""
    return ffi.new("struct heif_writer*", {
        "writer_api_version": 1,
        "write": _vector_writer,
    })
