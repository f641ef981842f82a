# tests/test_stream.py
"""
Tests for the reader and writer callback bodies that libheif invokes.
They are driven directly with cffi buffers, without libheif.
"""
import io

import pytest

from heifctx.lowlevel import ffi
from heifctx.stream import HEIF_READER, ByteSink, Reader, ReaderSlot, StreamReader, as_reader
from heifctx.stream import readers, writers
from heifctx.types import ErrorCode, ReaderGrowStatus, SubErrorCode

class RecordingReader(Reader):
    """An in-memory Reader that logs every call it receives."""
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0
        self.reads: list[tuple[int, int]] = []

    def position(self) -> int:
        return self.pos

    def read(self, size: int) -> bytes:
        self.reads.append((self.pos, size))
        chunk = self.data[self.pos:self.pos + size]
        self.pos += len(chunk)
        return chunk

    def seek(self, position: int) -> bool:
        if not 0 <= position <= len(self.data):
            return False
        self.pos = position
        return True

    def total_size(self) -> int:
        return len(self.data)

class ExplodingReader(RecordingReader):
    def read(self, size: int) -> bytes:
        raise OSError("device unplugged")

# --- Reader bridge ---

def test_stream_reader_over_bytesio():
    stream = io.BytesIO(b"0123456789")
    stream.seek(3)
    reader = StreamReader(stream)

    assert reader.total_size() == 10
    assert reader.position() == 3  # construction does not move the stream
    assert reader.read(4) == b"3456"
    assert reader.seek(0)
    assert reader.read(2) == b"01"
    assert not reader.seek(11)

def test_stream_reader_rejects_non_streams():
    with pytest.raises(TypeError, match="Missing: read, seek, tell"):
        StreamReader(object())

def test_as_reader_wraps_file_objects():
    reader = RecordingReader(b"abc")
    assert as_reader(reader) is reader
    assert isinstance(as_reader(io.BytesIO(b"abc")), StreamReader)
    with pytest.raises(TypeError):
        as_reader(b"not a stream")

def test_slot_requires_reader():
    with pytest.raises(TypeError, match="heifctx.Reader"):
        ReaderSlot(io.BytesIO(b""))

def test_slot_handle_resolves_to_slot():
    slot = ReaderSlot(RecordingReader(b"abc"))
    assert ffi.from_handle(slot.handle) is slot

def test_read_into_copies_requested_bytes():
    slot = ReaderSlot(RecordingReader(b"hello world"))
    target = ffi.new("char[]", 5)

    assert readers.read_into(slot, target, 5) == 0
    assert ffi.buffer(target, 5)[:] == b"hello"
    assert readers.get_position(slot) == 5

def test_read_past_end_is_refused_without_calling_reader():
    reader = RecordingReader(b"0123456789")
    slot = ReaderSlot(reader)
    target = ffi.new("char[]", 16)

    assert readers.seek_to(slot, 6) == 0
    assert readers.read_into(slot, target, 5) != 0
    assert reader.reads == []
    assert readers.read_into(slot, target, 4) == 0
    assert reader.reads == [(6, 4)]

def test_seek_failure_is_reported():
    slot = ReaderSlot(RecordingReader(b"0123"))
    assert readers.seek_to(slot, 4) == 0
    assert readers.seek_to(slot, 5) != 0

def test_wait_for_file_size():
    slot = ReaderSlot(RecordingReader(b"x" * 100))
    assert readers.wait_for_file_size(slot, 100) == ReaderGrowStatus.SIZE_REACHED
    assert readers.wait_for_file_size(slot, 101) == ReaderGrowStatus.SIZE_BEYOND_EOF

def test_reader_exception_is_recorded_not_raised():
    slot = ReaderSlot(ExplodingReader(b"0123"))
    target = ffi.new("char[]", 4)

    assert readers.read_into(slot, target, 4) != 0
    error = slot.take_error()
    assert isinstance(error, OSError)
    assert slot.take_error() is None

def test_reader_table_is_populated():
    assert HEIF_READER.reader_api_version == 1
    assert HEIF_READER.read != ffi.NULL
    assert HEIF_READER.seek != ffi.NULL
    assert HEIF_READER.get_position != ffi.NULL
    assert HEIF_READER.wait_for_file_size != ffi.NULL

# --- Writer bridge ---

def test_write_chunk_appends_across_calls():
    sink = ByteSink()
    first = ffi.new("char[]", b"ftyp")
    second = ffi.new("char[]", b"meta-box")

    result = writers.write_chunk(sink, first, 4)
    assert result.code == ErrorCode.OK
    writers.write_chunk(sink, second, 8)

    assert sink.getvalue() == b"ftypmeta-box"
    assert sink.calls == 2
    assert sink.error is None

def test_write_chunk_of_zero_bytes_is_a_no_op():
    sink = ByteSink()
    assert writers.write_chunk(sink, ffi.NULL, 0).code == ErrorCode.OK
    assert sink.getvalue() == b""

def test_write_chunk_failure_is_reported_to_native_side():
    class FailingSink(ByteSink):
        def append(self, data, size):
            raise MemoryError("no room")

    sink = FailingSink()
    data = ffi.new("char[]", b"abc")
    result = writers.write_chunk(sink, data, 3)

    assert result.code == ErrorCode.ENCODING_ERROR
    assert result.subcode == SubErrorCode.CANNOT_WRITE_OUTPUT_DATA
    assert ffi.string(result.message)
    assert isinstance(sink.error, MemoryError)

def test_new_writer_table():
    writer = writers.new_writer()
    assert writer.writer_api_version == 1
    assert writer.write != ffi.NULL
