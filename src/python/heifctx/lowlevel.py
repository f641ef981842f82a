# heifctx/lowlevel.py
"""
A low-level binding to the libheif shared library.

This module isolates the C/Python boundary from the rest of the library.
Declarations are made in cffi's ABI mode, so nothing has to be compiled;
the shared library itself is located and opened lazily on first use.
"""

import ctypes.util
import logging
import os
import sys
from typing import Any, Optional

from cffi import FFI

from .exceptions import HeifLibraryError

logger = logging.getLogger("heifctx")
logger.addHandler(logging.NullHandler())

# Environment variable that overrides the shared library name or path.
LIBRARY_ENV_VAR = "HEIFCTX_LIBRARY"

_CDEF = """
typedef uint32_t heif_item_id;

struct heif_context;
struct heif_image_handle;
struct heif_image;
struct heif_encoder;
struct heif_decoding_options;
struct heif_reading_options;
struct heif_init_params;

struct heif_error {
    int code;
    int subcode;
    const char* message;
};

struct heif_reader {
    int reader_api_version;
    int64_t (*get_position)(void* userdata);
    int (*read)(void* data, size_t size, void* userdata);
    int (*seek)(int64_t position, void* userdata);
    int (*wait_for_file_size)(int64_t target_size, void* userdata);
};

struct heif_writer {
    int writer_api_version;
    struct heif_error (*write)(struct heif_context* ctx, const void* data,
                               size_t size, void* userdata);
};

/* Only the leading, version-1 fields are declared. The record is always
   allocated by libheif itself, so the remaining fields keep their defaults. */
struct heif_encoding_options {
    uint8_t version;
    uint8_t save_alpha_channel;
    uint8_t macOS_compatibility_workaround;
};

const char* heif_get_version(void);
struct heif_error heif_init(struct heif_init_params*);

int heif_have_decoder_for_format(int format);
int heif_have_encoder_for_format(int format);

struct heif_context* heif_context_alloc(void);
void heif_context_free(struct heif_context*);

struct heif_error heif_context_read_from_file(struct heif_context*, const char* filename,
                                              const struct heif_reading_options*);
struct heif_error heif_context_read_from_memory_without_copy(struct heif_context*, const void* mem,
                                                             size_t size,
                                                             const struct heif_reading_options*);
struct heif_error heif_context_read_from_reader(struct heif_context*, const struct heif_reader* reader,
                                                void* userdata, const struct heif_reading_options*);

struct heif_error heif_context_write(struct heif_context*, struct heif_writer* writer, void* userdata);
struct heif_error heif_context_write_to_file(struct heif_context*, const char* filename);

int heif_context_get_number_of_top_level_images(struct heif_context* ctx);
int heif_context_get_list_of_top_level_image_IDs(struct heif_context* ctx, heif_item_id* ID_array,
                                                 int count);
struct heif_error heif_context_get_primary_image_ID(struct heif_context* ctx, heif_item_id* id);
struct heif_error heif_context_get_primary_image_handle(struct heif_context* ctx,
                                                        struct heif_image_handle**);
struct heif_error heif_context_get_image_handle(struct heif_context* ctx, heif_item_id id,
                                                struct heif_image_handle**);
struct heif_error heif_context_get_encoder_for_format(struct heif_context* context, int format,
                                                      struct heif_encoder**);
struct heif_error heif_context_encode_image(struct heif_context*, const struct heif_image* image,
                                            struct heif_encoder* encoder,
                                            const struct heif_encoding_options* options,
                                            struct heif_image_handle** out_image_handle);

void heif_image_handle_release(const struct heif_image_handle*);
int heif_image_handle_is_primary_image(const struct heif_image_handle* handle);
heif_item_id heif_image_handle_get_item_id(const struct heif_image_handle* handle);
int heif_image_handle_get_width(const struct heif_image_handle* handle);
int heif_image_handle_get_height(const struct heif_image_handle* handle);
int heif_image_handle_has_alpha_channel(const struct heif_image_handle*);
int heif_image_handle_get_luma_bits_per_pixel(const struct heif_image_handle*);
struct heif_error heif_decode_image(const struct heif_image_handle* in_handle,
                                    struct heif_image** out_img, int colorspace, int chroma,
                                    const struct heif_decoding_options* options);

struct heif_error heif_image_create(int width, int height, int colorspace, int chroma,
                                    struct heif_image** out_image);
struct heif_error heif_image_add_plane(struct heif_image* image, int channel,
                                       int width, int height, int bit_depth);
void heif_image_release(const struct heif_image*);
int heif_image_get_colorspace(const struct heif_image*);
int heif_image_get_chroma_format(const struct heif_image*);
int heif_image_get_width(const struct heif_image* img, int channel);
int heif_image_get_height(const struct heif_image* img, int channel);
int heif_image_has_channel(const struct heif_image*, int channel);
int heif_image_get_bits_per_pixel_range(const struct heif_image*, int channel);
const uint8_t* heif_image_get_plane_readonly(const struct heif_image*, int channel, int* out_stride);
uint8_t* heif_image_get_plane(struct heif_image*, int channel, int* out_stride);

void heif_encoder_release(struct heif_encoder*);
const char* heif_encoder_get_name(const struct heif_encoder*);
struct heif_error heif_encoder_set_lossy_quality(struct heif_encoder*, int quality);
struct heif_error heif_encoder_set_lossless(struct heif_encoder*, int enable);
struct heif_error heif_encoder_set_parameter(struct heif_encoder* encoder, const char* parameter_name,
                                             const char* value);

struct heif_encoding_options* heif_encoding_options_alloc(void);
void heif_encoding_options_free(struct heif_encoding_options*);
"""

# This is the C binding. Declarations are shared by every loaded library.
ffi = FFI()
ffi.cdef(_CDEF)

# Functions the rest of the package calls unconditionally. Newer entry points
# are looked up with `optional_function()` instead.
_REQUIRED_FUNCTIONS = [
    'heif_get_version',
    'heif_context_alloc',
    'heif_context_free',
    'heif_context_read_from_file',
    'heif_context_read_from_memory_without_copy',
    'heif_context_read_from_reader',
    'heif_context_write',
    'heif_context_write_to_file',
    'heif_context_get_number_of_top_level_images',
    'heif_context_get_primary_image_handle',
    'heif_context_get_primary_image_ID',
    'heif_context_get_encoder_for_format',
    'heif_context_encode_image',
    'heif_image_handle_release',
    'heif_decode_image',
    'heif_image_create',
    'heif_image_add_plane',
    'heif_image_release',
    'heif_image_has_channel',
    'heif_encoder_release',
    'heif_encoding_options_alloc',
    'heif_encoding_options_free',
]

if sys.platform == "win32":  # pragma: no cover
    _DEFAULT_NAMES = ["heif.dll", "libheif.dll"]
elif sys.platform == "darwin":  # pragma: no cover
    _DEFAULT_NAMES = ["libheif.1.dylib", "libheif.dylib"]
else:  # pragma: no cover
    _DEFAULT_NAMES = ["libheif.so.1", "libheif.so"]

_lib: Optional[Any] = None


def _candidate_names(path: Optional[str]) -> list[str]:
    if path:
        return [path]
    env_name = os.environ.get(LIBRARY_ENV_VAR)
    if env_name:
        return [env_name]
    names = []
    found = ctypes.util.find_library("heif")
    if found:
        names.append(found)
    names.extend(n for n in _DEFAULT_NAMES if n not in names)
    return names


def _validate_library_exports(lib: Any, name: str) -> None:
    """Fails fast if the opened library is missing functions we rely on."""
    missing = []
    for func_name in _REQUIRED_FUNCTIONS:
        try:
            getattr(lib, func_name)
        except AttributeError:
            missing.append(func_name)
    if missing:
        raise HeifLibraryError(
            f"Library '{name}' is missing required function symbols: "
            f"{', '.join(missing)}. Is it an outdated libheif build?"
        )


def load_library(path: Optional[str] = None) -> Any:
    """
    Opens the libheif shared library and returns the cffi library object.

    The first successful load is cached; later calls return it regardless
    of `path`.

    Args:
        path: Explicit name or path of the shared library. When omitted,
              the `HEIFCTX_LIBRARY` environment variable is consulted,
              then `ctypes.util.find_library("heif")`, then platform
              defaults.

    Raises:
        HeifLibraryError: If no candidate could be opened or it lacks
                          required symbols.
    """
    global _lib
    if _lib is not None:
        return _lib

    errors = []
    for name in _candidate_names(path):
        try:
            lib = ffi.dlopen(name)
        except OSError as e:
            errors.append(f"{name}: {e}")
            continue
        _validate_library_exports(lib, name)
        try:
            init = lib.heif_init
        except AttributeError:
            # libheif < 1.13 initialises itself lazily.
            init = None
        if init is not None:
            err = init(ffi.NULL)
            if err.code != 0:
                raise HeifLibraryError(f"heif_init() failed with code {err.code}")
        logger.debug("Loaded libheif %s from %s", ffi.string(lib.heif_get_version()).decode(), name)
        _lib = lib
        return lib

    raise HeifLibraryError(
        "Could not load the libheif shared library. Install libheif or set "
        f"{LIBRARY_ENV_VAR} to its path. Tried: {'; '.join(errors) or 'nothing'}"
    )


def get_lib() -> Any:
    """Returns the loaded library, loading it on first use."""
    if _lib is not None:
        return _lib
    return load_library()


def libheif_version() -> str:
    """Version string reported by the loaded libheif, e.g. '1.17.6'."""
    return ffi.string(get_lib().heif_get_version()).decode("ascii")


def have_encoder_for_format(format: int) -> bool:
    """True if libheif has an encoder plugin for the compression format."""
    return bool(get_lib().heif_have_encoder_for_format(int(format)))


def have_decoder_for_format(format: int) -> bool:
    """True if libheif has a decoder plugin for the compression format."""
    return bool(get_lib().heif_have_decoder_for_format(int(format)))


def decode_string(ptr: Any) -> str:
    """Copies a NUL-terminated C string into a Python str; NULL gives ''."""
    if ptr == ffi.NULL:
        return ""
    return ffi.string(ptr).decode("utf-8", errors="replace")


def optional_function(name: str) -> Optional[Any]:
    """
    Looks up a libheif entry point that older releases do not export.

    Returns:
        The cffi function, or None if the loaded library lacks it.
    """
    return getattr(get_lib(), name, None)
