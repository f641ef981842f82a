# heifctx/exceptions.py
"""Exception types for the heifctx library, and the native error translator."""

from typing import Any, Optional, Union

from .types import ErrorCode, SubErrorCode, to_enum

class HeifLibraryError(ImportError):
    """The libheif shared library could not be found, opened or initialised."""
    pass

class HeifError(Exception):
    """
    Base exception for every error reported by libheif.

    Instances are built from a native `struct heif_error` by `from_native()`.
    Catch a subclass to react to one kind of failure only.

    Attributes:
        code (ErrorCode | int): The primary libheif error code.
        sub_code (SubErrorCode | int): The detailed libheif error code.
        message (str): libheif's description; may be empty.
    """
    def __init__(
        self,
        message: str = "",
        *,
        code: Union[ErrorCode, int],
        sub_code: Union[SubErrorCode, int] = SubErrorCode.UNSPECIFIED,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.sub_code = sub_code

    @property
    def code_name(self) -> str:
        """Symbolic name of `code`, or 'UNKNOWN' for values this version does not know."""
        return self.code.name if isinstance(self.code, ErrorCode) else "UNKNOWN"

    def __str__(self) -> str:
        sub_name = self.sub_code.name if isinstance(self.sub_code, SubErrorCode) else self.sub_code
        return f"{self.message or 'libheif error'} (code={int(self.code)}, name='{self.code_name}', sub_code={sub_name})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code!r}, sub_code={self.sub_code!r})"

    @classmethod
    def from_native(cls, err: Any) -> Optional["HeifError"]:
        """
        Translates a native `struct heif_error` value.

        Returns:
            None if `err.code` is zero (success), otherwise an instance of
            `cls` carrying the code, sub-code and copied message. The native
            message pointer is not retained.
        """
        if err.code == 0:
            return None
        # Imported here: lowlevel depends on this module for HeifLibraryError.
        from .lowlevel import decode_string
        return cls(
            decode_string(err.message),
            code=to_enum(ErrorCode, err.code),
            sub_code=to_enum(SubErrorCode, err.subcode),
        )

class HeifContextCreateError(HeifError):
    """heif_context_alloc() failed; no further detail is available."""
    pass

class HeifReadError(HeifError):
    """Input could not be opened, parsed or decoded."""
    pass

class HeifWriteError(HeifError):
    """Serialising a context to memory or to a file failed."""
    pass

class HeifEncodeError(HeifError):
    """The image, encoder and options could not be combined into an encoded image."""
    pass

class HeifQueryError(HeifError):
    """A handle or encoder could not be obtained from a context."""
    pass


def check_error(err: Any, kind: type[HeifError] = HeifError) -> None:
    """Raises `err` translated as `kind` unless it reports success."""
    error = kind.from_native(err)
    if error is not None:
        raise error
