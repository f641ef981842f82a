# heifctx/abc.py
"""Abstract Base Classes for the heifctx library."""

import abc
import logging

logger = logging.getLogger("heifctx")

class NativeResource(abc.ABC):
    """
    Abstract base class for objects that exclusively own a libheif handle.

    A resource is released exactly once: by `close()`, by leaving a `with`
    block, or when it is garbage collected. Duplicating one would create a
    second owner of the same native handle, so copying and pickling are
    refused.
    """

    @abc.abstractmethod
    def close(self) -> None:
        """
        Releases the native handle. Calling it again is a no-op.
        Subsequent operations on the object will raise an error.
        """
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def closed(self) -> bool:
        """Returns True if the native handle has been released."""
        raise NotImplementedError

    def __enter__(self):
        if self.closed:
            raise ValueError(f"Cannot enter context with a closed {type(self).__name__}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self):
        try:
            self.close()
        except Exception:
            # Finalisers must not raise; the interpreter may be shutting down.
            logger.error("Failed to release %s during garbage collection", type(self).__name__)

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} owns a native handle and cannot be copied.")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} owns a native handle and cannot be copied.")

    def __reduce__(self):
        raise TypeError(f"{type(self).__name__} owns a native handle and cannot be pickled.")


class ContextBound(NativeResource):
    """
    A resource obtained from a `HeifContext` that must not outlive it.

    The owning context is referenced strongly, so it cannot be garbage
    collected first; an explicit `close()` of the context is detected at
    runtime instead.
    """
    _context = None

    def _ensure_usable(self) -> None:
        if self.closed:
            raise ValueError(f"Operation attempted on a closed {type(self).__name__}.")
        if self._context is not None and self._context.closed:
            raise ValueError("Operation attempted on a closed HeifContext.")

    @property
    def context(self):
        """The `HeifContext` this resource was obtained from."""
        return self._context
