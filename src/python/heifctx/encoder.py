# heifctx/encoder.py
"""Encoder plugin instances and per-call encoding options."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from .abc import ContextBound
from .dataclasses import EncoderInfo
from .exceptions import HeifEncodeError, check_error
from .lowlevel import decode_string, ffi, get_lib

if TYPE_CHECKING:
    from .context import HeifContext

logger = logging.getLogger("heifctx")


class Encoder(ContextBound):
    """
    An encoder plugin instance obtained from `HeifContext.encoder_for_format()`.

    Configure it, then pass it to `HeifContext.encode_image()`. It must not
    be used after its context is closed.
    """
    def __init__(self, context: "HeifContext", handle: Any):
        self._context = context
        self._handle = handle
        self._quality: Optional[int] = None
        self._lossless = False

    @property
    def name(self) -> str:
        """Human-readable plugin name, e.g. 'x265 HEVC encoder (3.5+1)'."""
        self._ensure_usable()
        return decode_string(get_lib().heif_encoder_get_name(self._handle))

    @property
    def info(self) -> EncoderInfo:
        return EncoderInfo(name=self.name, quality=self._quality, lossless=self._lossless)

    def set_quality(self, quality: int) -> None:
        """Sets lossy quality, 0 (smallest) to 100 (best)."""
        self._ensure_usable()
        if not 0 <= quality <= 100:
            raise ValueError(f"quality must be between 0 and 100, got {quality}")
        check_error(get_lib().heif_encoder_set_lossy_quality(self._handle, quality), HeifEncodeError)
        self._quality = quality

    def set_lossless(self, enable: bool) -> None:
        self._ensure_usable()
        check_error(get_lib().heif_encoder_set_lossless(self._handle, int(bool(enable))), HeifEncodeError)
        self._lossless = bool(enable)

    def set_parameter(self, name: str, value: Any) -> None:
        """
        Sets a plugin-specific parameter (e.g. 'preset', 'speed').

        Booleans are passed as 'true'/'false', everything else through str().
        """
        self._ensure_usable()
        if isinstance(value, bool):
            value = "true" if value else "false"
        err = get_lib().heif_encoder_set_parameter(
            self._handle, name.encode("utf-8"), str(value).encode("utf-8")
        )
        check_error(err, HeifEncodeError)

    def close(self) -> None:
        handle = getattr(self, "_handle", None)
        if handle is not None:
            self._handle = None
            get_lib().heif_encoder_release(handle)
            logger.debug("Released encoder %s", handle)

    @property
    def closed(self) -> bool:
        return getattr(self, "_handle", None) is None


@dataclass(frozen=True, slots=True)
class EncodingOptions:
    """
    Options for one `HeifContext.encode_image()` call.

    Passing None instead of an instance lets the encoder use libheif's
    defaults.
    """
    save_alpha_channel: bool = True
    macos_compatibility_workaround: bool = True

    def heif_encoding_options(self) -> Any:
        """
        Allocates the native record for these options.

        The returned cdata frees the record when it is garbage collected;
        keep it referenced for the duration of the native call.
        """
        lib = get_lib()
        ptr = lib.heif_encoding_options_alloc()
        if ptr == ffi.NULL:
            raise MemoryError("heif_encoding_options_alloc() returned NULL")
        options = ffi.gc(ptr, lib.heif_encoding_options_free)
        options.save_alpha_channel = int(self.save_alpha_channel)
        options.macOS_compatibility_workaround = int(self.macos_compatibility_workaround)
        return options
