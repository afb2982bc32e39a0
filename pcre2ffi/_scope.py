"""
Scoped scratch memory for one native call (or a short call sequence).

Justification: ctypes buffers are released when the last Python reference
goes away, but native memory returned *by* PCRE2 (substring copies,
serialized blobs, converted patterns) has to be handed back to a specific
free function. ``NativeScope`` owns both: every buffer, cell and array it
creates stays referenced until the scope exits, and every native pointer
registered with :meth:`NativeScope.defer` is freed on exit, on the success
path and when an exception propagates.

Usage::

    with NativeScope(lib.width) as scope:
        pattern_buf, pattern_len = scope.text(pattern)
        error_code = scope.cell(ctypes.c_int)
        ...
        scope.defer(lib.pcre2_substring_free, ptr.value)

A scope is single-use and strictly call-local.
"""

from __future__ import annotations

import ctypes
from collections.abc import Callable, Sequence
from typing import Any

from .constants import Width
from .exceptions import StateError, ValidationError


def encode_text(value: Any, width: Width) -> bytes:
    """
    Encode text into native code units for ``width``.

    ``str`` is encoded with the width's codec (``surrogatepass`` so lone
    surrogates survive). Bytes-like input is taken as already encoded and
    must be a whole number of code units.
    """
    if isinstance(value, str):
        return value.encode(width.codec, "surrogatepass")
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        if len(data) % width.unit_size:
            raise ValidationError(
                f"Encoded text is {len(data)} bytes, not a whole number of "
                f"{width.unit_size}-byte code units",
                details={"length": len(data), "unit_size": width.unit_size},
            )
        return data
    if value is None:
        raise ValidationError("Text argument must not be None")
    raise ValidationError(
        f"Expected str or bytes, got {type(value).__name__}",
        details={"type": type(value).__name__},
    )


def decode_text(data: bytes, width: Width) -> str:
    """Decode native code units back into ``str``."""
    return data.decode(width.codec, "surrogatepass")


def read_units(address: int, units: int, width: Width) -> bytes:
    """Copy ``units`` code units starting at a native address into bytes."""
    if not address or units <= 0:
        return b""
    return ctypes.string_at(address, units * width.unit_size)


def read_zero_terminated(address: int, width: Width) -> bytes:
    """Copy a zero-terminated run of code units (e.g. a mark or group name)."""
    if not address:
        return b""
    if width is Width.UTF8:
        return ctypes.string_at(address)
    unit_type = ctypes.c_uint16 if width is Width.UTF16 else ctypes.c_uint32
    units = 0
    while unit_type.from_address(address + units * width.unit_size).value:
        units += 1
    return ctypes.string_at(address, units * width.unit_size)


class Subject:
    """
    A subject string marshaled once and kept alive past the match call.

    Match data records a pointer into the subject, and substring extraction
    reads through it later, so the encoded buffer must outlive the call that
    produced the match. MatchData keeps the Subject of its latest match.
    """

    __slots__ = ("source", "buffer", "length", "width")

    def __init__(self, source: Any, width: Width = Width.UTF8):
        data = encode_text(source, width)
        self.source = source
        self.width = width
        self.buffer = ctypes.create_string_buffer(data, len(data) + width.unit_size)
        self.length = len(data) // width.unit_size

    @classmethod
    def of(cls, value: Any, width: Width) -> "Subject":
        if isinstance(value, Subject) and value.width is width:
            return value
        if isinstance(value, Subject):
            return cls(value.source, width)
        return cls(value, width)

    @property
    def is_text(self) -> bool:
        return isinstance(self.source, str)

    def __repr__(self) -> str:
        return f"Subject({self.source!r}, length={self.length})"


class NativeScope:
    """
    Arena bracketing a native call.

    Args:
        width: Code-unit width used when encoding text and sizing output
            buffers.
    """

    __slots__ = ("width", "_objects", "_deferred", "_state")

    def __init__(self, width: Width = Width.UTF8):
        self.width = width
        self._objects: list[Any] = []
        self._deferred: list[tuple[Callable[[Any], Any], int]] = []
        self._state = "new"

    def __enter__(self) -> "NativeScope":
        if self._state != "new":
            raise StateError("NativeScope cannot be reused")
        self._state = "open"
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        # Every deferred free runs; the first failure is re-raised afterwards
        error: Exception | None = None
        while self._deferred:
            free, pointer = self._deferred.pop()
            try:
                free(pointer)
            except Exception as e:
                if error is None:
                    error = e
        self._objects.clear()
        self._state = "closed"
        if error is not None:
            raise error

    @property
    def active(self) -> bool:
        return self._state == "open"

    def _check(self) -> None:
        if self._state != "open":
            raise StateError("NativeScope is not active")

    # =========================================================================
    # Allocation
    # =========================================================================

    def text(self, value: Any) -> tuple[ctypes.Array, int]:
        """
        Marshal text as a zero-terminated native string.

        Returns:
            Tuple of (buffer, length in code units excluding the terminator).
            The length comes from the encoded size, never from ``len(value)``.
        """
        self._check()
        data = encode_text(value, self.width)
        buffer = ctypes.create_string_buffer(data, len(data) + self.width.unit_size)
        self._objects.append(buffer)
        return buffer, len(data) // self.width.unit_size

    def cell(self, ctype: Any, value: Any = 0) -> Any:
        """A single scratch cell standing in for a ``T*`` out-parameter."""
        self._check()
        cell = ctype(value)
        self._objects.append(cell)
        return cell

    def handles(self, values: Sequence[int]) -> ctypes.Array:
        """A ``void*[]`` array, e.g. the code list for serialization."""
        self._check()
        array = (ctypes.c_void_p * len(values))(*values)
        self._objects.append(array)
        return array

    def ints(self, count: int) -> ctypes.Array:
        """A zeroed ``int[]`` workspace."""
        self._check()
        if count <= 0:
            raise ValidationError(
                f"Workspace size must be positive, got {count}",
                details={"count": count},
            )
        array = (ctypes.c_int * count)()
        self._objects.append(array)
        return array

    def output(self, code_units: int) -> ctypes.Array:
        """A writable output buffer holding ``code_units`` code units."""
        self._check()
        if code_units < 0:
            raise ValidationError(
                f"Output size must not be negative, got {code_units}",
                details={"code_units": code_units},
            )
        buffer = ctypes.create_string_buffer(max(code_units, 1) * self.width.unit_size)
        self._objects.append(buffer)
        return buffer

    # =========================================================================
    # Lifetime
    # =========================================================================

    def defer(self, free: Callable[[Any], Any], pointer: int | None) -> None:
        """Run ``free(pointer)`` when the scope exits. NULL is ignored."""
        self._check()
        if pointer:
            self._deferred.append((free, pointer))

    def keep(self, *objects: Any) -> None:
        """Hold wrapper objects reachable until the scope exits."""
        self._check()
        self._objects.extend(obj for obj in objects if obj is not None)
