# heifctx/types.py

"""
Type-safe enumerations mirroring the libheif C enums.
"""
from enum import IntEnum
from typing import TypeVar, Union

class CompressionFormat(IntEnum):
    """
    Compression formats libheif can encode to or decode from.

    These correspond directly to libheif's `heif_compression_format` enum.
    Which of them are usable depends on the plugins libheif was built with;
    see `heifctx.have_encoder_for_format()`.
    """
    UNDEFINED = 0
    HEVC = 1
    AVC = 2
    JPEG = 3
    AV1 = 4
    VVC = 5
    EVC = 6
    JPEG2000 = 7
    UNCOMPRESSED = 8
    MASK = 9
    HTJ2K = 10


class ErrorCode(IntEnum):
    """Primary error codes (`heif_error_code`)."""
    OK = 0
    INPUT_DOES_NOT_EXIST = 1
    INVALID_INPUT = 2
    UNSUPPORTED_FILETYPE = 3
    UNSUPPORTED_FEATURE = 4
    USAGE_ERROR = 5
    MEMORY_ALLOCATION_ERROR = 6
    DECODER_PLUGIN_ERROR = 7
    ENCODER_PLUGIN_ERROR = 8
    ENCODING_ERROR = 9
    COLOR_PROFILE_DOES_NOT_EXIST = 10
    PLUGIN_LOADING_ERROR = 11
    CANCELED = 12
    END_OF_SEQUENCE = 13

    # Not produced by libheif: heif_context_alloc() returned NULL.
    CONTEXT_CREATE_FAILED = 1000


class SubErrorCode(IntEnum):
    """Detailed error codes (`heif_suberror_code`)."""
    UNSPECIFIED = 0

    # Invalid input
    END_OF_DATA = 100
    INVALID_BOX_SIZE = 101
    NO_FTYP_BOX = 102
    NO_IDAT_BOX = 103
    NO_META_BOX = 104
    NO_HDLR_BOX = 105
    NO_HVCC_BOX = 106
    NO_PITM_BOX = 107
    NO_IPCO_BOX = 108
    NO_IPMA_BOX = 109
    NO_ILOC_BOX = 110
    NO_IINF_BOX = 111
    NO_IPRP_BOX = 112
    NO_IREF_BOX = 113
    NO_PICT_HANDLER = 114
    IPMA_BOX_REFERENCES_NONEXISTING_PROPERTY = 115
    NO_PROPERTIES_ASSIGNED_TO_ITEM = 116
    NO_ITEM_DATA = 117
    INVALID_GRID_DATA = 118
    MISSING_GRID_IMAGES = 119
    INVALID_CLEAN_APERTURE = 120
    INVALID_OVERLAY_DATA = 121
    OVERLAY_IMAGE_OUTSIDE_OF_CANVAS = 122
    AUXILIARY_IMAGE_TYPE_UNSPECIFIED = 123
    NO_OR_INVALID_PRIMARY_ITEM = 124
    NO_INFE_BOX = 125
    UNKNOWN_COLOR_PROFILE_TYPE = 126
    WRONG_TILE_IMAGE_CHROMA_FORMAT = 127
    INVALID_FRACTIONAL_NUMBER = 128
    INVALID_IMAGE_SIZE = 129
    INVALID_PIXI_BOX = 130
    NO_AV1C_BOX = 131
    WRONG_TILE_IMAGE_PIXEL_DEPTH = 132

    # Memory / security limits
    SECURITY_LIMIT_EXCEEDED = 1000

    # Usage errors
    NONEXISTING_ITEM_REFERENCED = 2000
    NULL_POINTER_ARGUMENT = 2001
    NONEXISTING_IMAGE_CHANNEL_REFERENCED = 2002
    UNSUPPORTED_PLUGIN_VERSION = 2003
    UNSUPPORTED_WRITER_VERSION = 2004
    UNSUPPORTED_PARAMETER = 2005
    INVALID_PARAMETER_VALUE = 2006
    INVALID_PROPERTY = 2007
    ITEM_REFERENCE_CYCLE = 2008

    # Unsupported features
    UNSUPPORTED_CODEC = 3000
    UNSUPPORTED_IMAGE_TYPE = 3001
    UNSUPPORTED_DATA_VERSION = 3002
    UNSUPPORTED_COLOR_CONVERSION = 3003
    UNSUPPORTED_ITEM_CONSTRUCTION_METHOD = 3004
    UNSUPPORTED_HEADER_COMPRESSION_METHOD = 3005

    # Encoder errors
    UNSUPPORTED_BIT_DEPTH = 4000
    CANNOT_WRITE_OUTPUT_DATA = 5000
    ENCODER_INITIALIZATION = 5001
    ENCODER_ENCODING = 5002
    ENCODER_CLEANUP = 5003
    TOO_MANY_REGIONS = 5004


class ColorSpace(IntEnum):
    """`heif_colorspace`"""
    YCBCR = 0
    RGB = 1
    MONOCHROME = 2
    UNDEFINED = 99


class Chroma(IntEnum):
    """`heif_chroma`"""
    MONOCHROME = 0
    C420 = 1
    C422 = 2
    C444 = 3
    INTERLEAVED_RGB = 10
    INTERLEAVED_RGBA = 11
    INTERLEAVED_RRGGBB_BE = 12
    INTERLEAVED_RRGGBBAA_BE = 13
    INTERLEAVED_RRGGBB_LE = 14
    INTERLEAVED_RRGGBBAA_LE = 15
    UNDEFINED = 99


class Channel(IntEnum):
    """`heif_channel`"""
    Y = 0
    CB = 1
    CR = 2
    R = 3
    G = 4
    B = 5
    ALPHA = 6
    INTERLEAVED = 10


class ReaderGrowStatus(IntEnum):
    """Answer of a reader when libheif asks whether the input is large enough."""
    SIZE_REACHED = 0
    TIMEOUT = 1
    SIZE_BEYOND_EOF = 2


_E = TypeVar("_E", bound=IntEnum)

def to_enum(enum_cls: type[_E], value: int) -> Union[_E, int]:
    """Returns the enum member for `value`, or the raw int if it is unknown."""
    try:
        return enum_cls(value)
    except ValueError:
        return value
