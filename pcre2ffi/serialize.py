"""
Serialize compiled patterns to bytes and back.

The blob format belongs to the engine: it is only valid for the same PCRE2
version, code-unit width and host architecture. Decoded patterns behave
exactly like the originals (same options, same name table, same matches)
but have no source pattern attached, and are not JIT-compiled.

Usage::

    blob = serialize.encode([Code.compile("a+"), Code.compile("(?<n>b)")])
    codes = serialize.decode(blob)
"""

from __future__ import annotations

from collections.abc import Sequence

from ._bindings import (
    _lib,
    call_serialize_decode,
    call_serialize_encode,
    call_serialize_get_number_of_codes,
)
from ._logging import scoped_logger
from ._native import Pcre2Library
from ._scope import NativeScope
from .code import Code
from .contexts import GeneralContext, _general_handle, _resolve
from .exceptions import ValidationError

__all__ = ["encode", "decode", "get_number_of_codes"]

logger = scoped_logger("serialize")


def encode(codes: Sequence[Code] | None, general: GeneralContext | None = None) -> bytes:
    """
    Serialize one or more compiled patterns into a single blob.

    All patterns must come from the same library.

    Raises:
        ValidationError: If ``codes`` is None or empty, or mixes libraries.
        SerializationError: If the engine refuses (e.g. mixed character tables).
    """
    if not codes:
        raise ValidationError("At least one compiled pattern is required for serialization")
    lib = codes[0].lib
    if any(code.lib is not lib for code in codes):
        raise ValidationError("All patterns must be compiled with the same library")

    with NativeScope(lib.width) as scope:
        scope.keep(*codes, general)
        blob = call_serialize_encode(
            lib, [code.handle for code in codes], _general_handle(general)
        )
    logger.debug("Serialized patterns", extra={"count": len(codes), "size": len(blob)})
    return blob


def decode(
    blob: bytes,
    count: int | None = None,
    general: GeneralContext | None = None,
    lib: Pcre2Library | None = None,
) -> list[Code]:
    """
    Rebuild compiled patterns from a blob.

    Args:
        blob: Bytes produced by :func:`encode`.
        count: How many patterns to decode; defaults to all of them.
        general: Optional general context for the allocations.

    Raises:
        SerializationError: For a structurally invalid blob (bad magic,
            wrong width or version, corrupted data).
    """
    lib, general_ptr = _resolve(general, lib)
    if count is None:
        count = get_number_of_codes(blob, lib)
    with NativeScope(lib.width) as scope:
        scope.keep(general)
        handles = call_serialize_decode(lib, blob, count, general_ptr)
    logger.debug("Deserialized patterns", extra={"count": len(handles), "size": len(blob)})
    return [Code._adopt(lib, handle) for handle in handles]


def get_number_of_codes(blob: bytes, lib: Pcre2Library | None = None) -> int:
    """Number of patterns in a blob, read from its header only."""
    return call_serialize_get_number_of_codes(_lib(lib), blob)
