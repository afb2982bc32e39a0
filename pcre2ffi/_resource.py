"""
Base class for wrappers that own exactly one native PCRE2 handle.

Lifecycle::

    Live ──close()/with-exit/__del__──▶ Freed ──close()──▶ Freed (no-op)

The handle is swapped out under a per-instance lock before the native free
runs, so explicit close, context-manager exit and the finalizer can race and
only one of them frees. ``__del__`` is a backstop; prefer ``with`` blocks.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

from ._logging import scoped_logger
from ._native import Pcre2Library
from .exceptions import StateError

logger = scoped_logger("resource")

R = TypeVar("R", bound="NativeResource")


class NativeResource:
    """
    Owns one native handle and frees it exactly once.

    Subclasses implement ``_release(ptr)`` with the matching free call.
    """

    _kind = "resource"

    def __init__(self, ptr: int, lib: Pcre2Library):
        self._lib = lib
        self._lock = threading.Lock()
        self._ptr: int | None = ptr

    @classmethod
    def _from_handle(cls: type[R], lib: Pcre2Library, ptr: int) -> R:
        """Adopt a handle produced by copy or decode, skipping ``__init__``."""
        instance = cls.__new__(cls)
        NativeResource.__init__(instance, ptr, lib)
        return instance

    @property
    def handle(self) -> int:
        """The native handle, raising StateError once freed."""
        ptr = self._ptr
        if ptr is None:
            raise StateError(f"{type(self).__name__} is closed")
        return ptr

    @property
    def lib(self) -> Pcre2Library:
        return self._lib

    @property
    def closed(self) -> bool:
        return getattr(self, "_ptr", None) is None

    def _release(self, ptr: int) -> None:
        raise NotImplementedError

    def _copy_handle(self, copy: Callable[[Pcre2Library, int], int]) -> int:
        """Run a native copy while holding the lock, so a concurrent close waits."""
        with self._lock:
            return copy(self._lib, self.handle)

    def _free_handle(self) -> bool:
        """Free the handle if still live. Returns True if this call freed it."""
        lock = getattr(self, "_lock", None)
        if lock is None:
            return False
        with lock:
            ptr = self._ptr
            self._ptr = None
        if not ptr:
            return False
        self._release(ptr)
        return True

    def close(self) -> None:
        """
        Release the native handle.

        After close() the wrapper cannot be used. Safe to call multiple
        times (idempotent).

        Raises
        ------
            None. This method never raises.
        """
        self._free_handle()

    free = close

    def __enter__(self: R) -> R:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit, calls close()."""
        self.close()

    def __del__(self):
        try:
            if self._free_handle():
                logger.debug("Finalizer released native handle", extra={"kind": self._kind})
        except Exception:
            pass

    def __repr__(self) -> str:
        ptr = getattr(self, "_ptr", None)
        state = "closed" if ptr is None else f"0x{ptr:x}"
        return f"{type(self).__name__}({state})"
