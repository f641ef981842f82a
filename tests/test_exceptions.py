# tests/test_exceptions.py
"""
Tests for translating native `struct heif_error` values.
These do not need libheif itself, only the cffi declarations.
"""
import pytest

from heifctx.exceptions import HeifError, HeifQueryError, HeifReadError, check_error
from heifctx.lowlevel import ffi
from heifctx.types import ErrorCode, SubErrorCode

def make_error(code: int, subcode: int = 0, message: bytes | None = None):
    message_buf = ffi.new("char[]", message) if message is not None else ffi.NULL
    err = ffi.new("struct heif_error*", {"code": code, "subcode": subcode, "message": message_buf})
    # Keep the message buffer alive for as long as the struct is used.
    return err[0], message_buf

def test_success_translates_to_none():
    err, _keep = make_error(0, 0, b"Success")
    assert HeifError.from_native(err) is None
    check_error(err, HeifReadError)  # does not raise

def test_error_fields_are_copied():
    err, _keep = make_error(2, 102, b"No ftyp box")
    error = HeifReadError.from_native(err)

    assert isinstance(error, HeifReadError)
    assert isinstance(error, HeifError)
    assert error.code == ErrorCode.INVALID_INPUT
    assert error.sub_code == SubErrorCode.NO_FTYP_BOX
    assert error.message == "No ftyp box"
    assert error.code_name == "INVALID_INPUT"
    assert "No ftyp box" in str(error)
    assert "code=2" in str(error)

def test_null_message_becomes_empty_string():
    err, _keep = make_error(5, 2001)
    error = HeifError.from_native(err)
    assert error.message == ""
    assert error.sub_code == SubErrorCode.NULL_POINTER_ARGUMENT

def test_unknown_codes_are_kept_as_ints():
    err, _keep = make_error(77, 9999, b"from the future")
    error = HeifError.from_native(err)
    assert error.code == 77 and not isinstance(error.code, ErrorCode)
    assert error.sub_code == 9999
    assert error.code_name == "UNKNOWN"

def test_check_error_raises_requested_kind():
    err, _keep = make_error(4, 3000, b"Unsupported codec")
    with pytest.raises(HeifQueryError, match="Unsupported codec") as excinfo:
        check_error(err, HeifQueryError)
    assert excinfo.value.sub_code == SubErrorCode.UNSUPPORTED_CODEC
