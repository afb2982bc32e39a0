"""
Handle-level invokers for the PCRE2 C API.

Justification: every native call goes through one function here that
marshals its inputs (via NativeScope), invokes the bound entry point and
unmarshals the outputs. Handles are plain ints (0 = NULL), text is ``str``
or already-encoded ``bytes``, and outputs come back as Python values. The
resource wrappers (contexts, Code, MatchData, JitStack) are built on these
functions; nothing else calls the library directly.

Also owns the process-default library (``get_lib`` / ``configure``).
"""

from __future__ import annotations

import ctypes
import os
import sys
import threading
from collections.abc import Sequence
from typing import Any

from ._logging import scoped_logger
from ._native import Pcre2Library
from ._scope import NativeScope, Subject, decode_text, read_units, read_zero_terminated
from .constants import (
    CONFIG_JITTARGET,
    CONFIG_UNICODE_VERSION,
    CONFIG_VERSION,
    ERROR_BADOPTION,
    ERROR_BADSERIALIZEDDATA,
    ERROR_NOMEMORY,
    ERROR_UNSET,
    INFO_FIRSTBITMAP,
    INFO_FRAMESIZE,
    INFO_JITSIZE,
    INFO_NAMECOUNT,
    INFO_NAMEENTRYSIZE,
    INFO_NAMETABLE,
    INFO_SIZE,
    SUBSTITUTE_OVERFLOW_LENGTH,
    Width,
    error_name,
)
from .exceptions import (
    CompileError,
    ConvertError,
    InternalError,
    Pcre2Error,
    ResourceError,
    SerializationError,
    SubstituteError,
    SubstringError,
    ValidationError,
)

logger = scoped_logger("binding")
substitute_logger = scoped_logger("substitute")

# Initial buffer for pcre2_get_error_message, doubled on ERROR_NOMEMORY
ERROR_MESSAGE_BUFFER = 256
ERROR_MESSAGE_BUFFER_MAX = 64 * 1024

# Minimum initial substitution output buffer, in code units
SUBSTITUTE_BUFFER_MIN = 1024

# Serialized blob header: magic, version, config, number of codes
SERIALIZED_HEADER_SIZE = 16

# Default DFA workspace, in ints
DFA_WORKSPACE_DEFAULT = 1000

# PCRE2_UNSET: all bits of a PCRE2_SIZE set
_SIZE_UNSET = ctypes.c_size_t(-1).value

# Largest values of the native scalar types; ctypes masks wider ints silently
UINT32_MAX = 0xFFFFFFFF
SIZE_MAX = _SIZE_UNSET

# Pattern-info selectors whose output is PCRE2_SIZE / a pointer
_INFO_SIZE_T = frozenset({INFO_SIZE, INFO_JITSIZE, INFO_FRAMESIZE})
_INFO_POINTER = frozenset({INFO_NAMETABLE, INFO_FIRSTBITMAP})

# Config selectors whose output is a string
_CONFIG_STRINGS = frozenset({CONFIG_JITTARGET, CONFIG_UNICODE_VERSION, CONFIG_VERSION})

_CONTEXT_KINDS = ("general", "compile", "match", "convert")

# Setters whose value is a PCRE2_SIZE; the rest take a uint32_t
_SIZE_SETTERS = frozenset({"max_pattern_length", "offset_limit"})

_SETTERS = {
    "newline": "pcre2_set_newline",
    "bsr": "pcre2_set_bsr",
    "parens_nest_limit": "pcre2_set_parens_nest_limit",
    "max_pattern_length": "pcre2_set_max_pattern_length",
    "compile_extra_options": "pcre2_set_compile_extra_options",
    "character_tables": "pcre2_set_character_tables",
    "match_limit": "pcre2_set_match_limit",
    "depth_limit": "pcre2_set_depth_limit",
    "heap_limit": "pcre2_set_heap_limit",
    "offset_limit": "pcre2_set_offset_limit",
    "glob_escape": "pcre2_set_glob_escape",
    "glob_separator": "pcre2_set_glob_separator",
}

# =============================================================================
# Process-default Library
# =============================================================================

_lib_lock = threading.Lock()
_default_lib: Pcre2Library | None = None
_configured: dict[str, Any] = {"library": None, "suffix": None}


def load(library: str | None = None, suffix: str | None = None) -> Pcre2Library:
    """
    Load a PCRE2 library and bind every entry point.

    Unlike :func:`get_lib`, this always builds a new, independent binding
    table. Use it to work with several widths side by side::

        lib16 = pcre2ffi.load("pcre2-16")
        code = Code.compile("caf\\u00e9", lib=lib16)
    """
    return Pcre2Library(library, suffix)


def get_lib() -> Pcre2Library:
    """
    Return the process-default library, loading it on first use.

    The library comes from :func:`configure`, else ``PCRE2FFI_LIBRARY`` /
    ``PCRE2FFI_SUFFIX``, else the 8-bit library.
    """
    global _default_lib
    lib = _default_lib
    if lib is not None:
        return lib
    with _lib_lock:
        if _default_lib is None:
            library = _configured["library"] or os.environ.get("PCRE2FFI_LIBRARY") or None
            suffix = _configured["suffix"] or os.environ.get("PCRE2FFI_SUFFIX") or None
            _default_lib = Pcre2Library(library, suffix)
        return _default_lib


def configure(
    library: str | None = None,
    suffix: str | None = None,
    lib: Pcre2Library | None = None,
) -> None:
    """
    Replace the process-default library.

    Args:
        library: Library name or path used on the next :func:`get_lib`.
        suffix: Symbol suffix used on the next :func:`get_lib`.
        lib: An already built library to install as the default directly.

    Wrappers created earlier keep the library they were created with.
    """
    global _default_lib
    with _lib_lock:
        _configured["library"] = library
        _configured["suffix"] = suffix
        _default_lib = lib
    logger.debug(
        "Default library reconfigured",
        extra={"library": library or (lib.path if lib else None), "suffix": suffix},
    )


def _lib(lib: Pcre2Library | None) -> Pcre2Library:
    return lib if lib is not None else get_lib()


# =============================================================================
# Helpers
# =============================================================================


def _require(handle: int | None, what: str) -> int:
    if not handle:
        raise ValidationError(f"{what} handle must not be NULL", details={"argument": what})
    return handle


def _non_negative(value: int, what: str) -> int:
    if value < 0:
        raise ValidationError(
            f"{what} must not be negative, got {value}", details={"argument": what}
        )
    return value


def _in_range(value: int, what: str, maximum: int) -> int:
    if value < 0 or value > maximum:
        raise ValidationError(
            f"{what} must be between 0 and {maximum}, got {value}",
            details={"argument": what, "value": value, "maximum": maximum},
        )
    return value


def _uint32(value: int, what: str) -> int:
    """Check a value bound to a uint32_t parameter."""
    return _in_range(value, what, UINT32_MAX)


def _size(value: int, what: str) -> int:
    """Check a value bound to a PCRE2_SIZE parameter."""
    return _in_range(value, what, SIZE_MAX)


def _created(handle: int | None, what: str) -> int:
    if not handle:
        raise ResourceError(f"Failed to create {what}: out of memory", details={"resource": what})
    return handle


def _start_offset(subject: Subject, start_offset: int) -> int:
    if start_offset < 0 or start_offset > subject.length:
        raise ValidationError(
            f"Start offset {start_offset} outside subject of {subject.length} code units",
            code="INVALID_OFFSET",
            details={"start_offset": start_offset, "length": subject.length},
        )
    return start_offset


def _engine_error(
    lib: Pcre2Library, cls: type[Pcre2Error], rc: int, operation: str, **details: Any
) -> Pcre2Error:
    message = call_get_error_message(lib, rc)
    return cls(
        f"{operation} failed: {message}",
        code=error_name(rc),
        details={"operation": operation, **details},
        original_code=rc,
    )


def _output(data: bytes, width: Width, as_text: bool) -> str | bytes:
    return decode_text(data, width) if as_text else data


# =============================================================================
# Build Configuration / Error Messages
# =============================================================================


def call_config(lib: Pcre2Library | None, what: int) -> int | str | None:
    """
    Query ``pcre2_config``.

    Returns an int for numeric selectors, a str for the version strings and
    the JIT target, and None when the build does not support the selector
    (e.g. the JIT target of a build without JIT).
    """
    lib = _lib(lib)
    _uint32(what, "what")
    if what in _CONFIG_STRINGS:
        needed = lib.pcre2_config(what, None)
        if needed < 0:
            return None
        with NativeScope(lib.width) as scope:
            buffer = scope.output(needed)
            rc = lib.pcre2_config(what, buffer)
            if rc < 0:
                return None
            data = read_units(ctypes.addressof(buffer), rc - 1, lib.width)
            return decode_text(data, lib.width)

    value = ctypes.c_uint32()
    rc = lib.pcre2_config(what, ctypes.byref(value))
    if rc == ERROR_BADOPTION:
        return None
    if rc < 0:
        raise ValidationError(
            f"pcre2_config({what}) failed with {error_name(rc)}",
            code=error_name(rc),
            original_code=rc,
        )
    return value.value


def call_get_error_message(lib: Pcre2Library | None, error_code: int) -> str:
    """Engine message for an error number; grows the buffer on ERROR_NOMEMORY."""
    lib = _lib(lib)
    size = ERROR_MESSAGE_BUFFER
    while True:
        with NativeScope(lib.width) as scope:
            buffer = scope.output(size)
            rc = lib.pcre2_get_error_message(error_code, buffer, size)
            if rc >= 0:
                data = read_units(ctypes.addressof(buffer), rc, lib.width)
                return decode_text(data, lib.width)
        if rc != ERROR_NOMEMORY or size >= ERROR_MESSAGE_BUFFER_MAX:
            return f"unknown error {error_code}"
        size *= 2


def error_message(error_code: int, lib: Pcre2Library | None = None) -> str:
    """
    The engine's human-readable message for an error number.

    >>> error_message(-47)
    'match limit exceeded'
    """
    return call_get_error_message(lib, error_code)


# =============================================================================
# Contexts
# =============================================================================


def _context_fn(lib: Pcre2Library, kind: str, op: str) -> Any:
    if kind not in _CONTEXT_KINDS:
        raise ValidationError(
            f"Unknown context kind {kind!r}", details={"kind": kind, "valid": _CONTEXT_KINDS}
        )
    return getattr(lib, f"pcre2_{kind}_context_{op}")


def call_context_create(lib: Pcre2Library | None, kind: str, general: int = 0) -> int:
    """Create a ``kind`` context; ``general`` is ignored for a general context."""
    lib = _lib(lib)
    create = _context_fn(lib, kind, "create")
    if kind == "general":
        return _created(create(None, None, None), "general context")
    return _created(create(general or None), f"{kind} context")


def call_context_copy(lib: Pcre2Library | None, kind: str, handle: int) -> int:
    lib = _lib(lib)
    copy = _context_fn(lib, kind, "copy")
    return _created(copy(_require(handle, f"{kind} context")), f"{kind} context copy")


def call_context_free(lib: Pcre2Library | None, kind: str, handle: int) -> None:
    lib = _lib(lib)
    free = _context_fn(lib, kind, "free")
    if handle:
        free(handle)


def call_set(lib: Pcre2Library | None, setting: str, context: int, value: int) -> int:
    """
    Apply a context setter (``"newline"``, ``"match_limit"``, ...).

    Returns the engine's return code: 0 on success, ``ERROR_BADDATA`` for an
    out-of-range value.
    """
    lib = _lib(lib)
    try:
        setter = getattr(lib, _SETTERS[setting])
    except KeyError:
        raise ValidationError(
            f"Unknown context setting {setting!r}",
            details={"setting": setting, "valid": sorted(_SETTERS)},
        ) from None
    _require(context, "context")
    if setting == "character_tables":
        return setter(context, value or None)
    if setting in _SIZE_SETTERS:
        return setter(context, _size(value, setting))
    return setter(context, _uint32(value, setting))


def call_maketables(lib: Pcre2Library | None, general: int = 0) -> int:
    """Build locale-specific character tables; free with call_maketables_free."""
    lib = _lib(lib)
    return _created(lib.pcre2_maketables(general or None), "character tables")


def call_maketables_free(lib: Pcre2Library | None, general: int, tables: int) -> None:
    lib = _lib(lib)
    if tables:
        lib.pcre2_maketables_free(general or None, tables)


# =============================================================================
# Compile
# =============================================================================


def call_compile(
    lib: Pcre2Library | None, pattern: Any, options: int = 0, context: int = 0
) -> int:
    """
    Compile a pattern and return the code handle.

    Raises:
        CompileError: With the engine's error code, the offset in code
            units and the engine's message.
    """
    lib = _lib(lib)
    _uint32(options, "options")
    with NativeScope(lib.width) as scope:
        buffer, length = scope.text(pattern)
        error_code = scope.cell(ctypes.c_int)
        error_offset = scope.cell(ctypes.c_size_t)
        code = lib.pcre2_compile(
            buffer,
            length,
            options,
            ctypes.byref(error_code),
            ctypes.byref(error_offset),
            context or None,
        )
        if code:
            return code
        rc = error_code.value
        offset = error_offset.value

    raise CompileError(
        pattern, offset, call_get_error_message(lib, rc), rc, width=lib.width
    )


def call_code_copy(lib: Pcre2Library | None, code: int) -> int:
    lib = _lib(lib)
    return _created(lib.pcre2_code_copy(_require(code, "code")), "code copy")


def call_code_free(lib: Pcre2Library | None, code: int) -> None:
    lib = _lib(lib)
    if code:
        lib.pcre2_code_free(code)


def call_pattern_info(lib: Pcre2Library | None, code: int, what: int) -> int | None:
    """
    Query ``pcre2_pattern_info``.

    Sizes and pointers are returned as ints. Returns None for ``ERROR_UNSET``
    (a limit that was never set in the pattern).
    """
    lib = _lib(lib)
    _require(code, "code")
    _uint32(what, "what")
    if what in _INFO_SIZE_T:
        cell: Any = ctypes.c_size_t()
    elif what in _INFO_POINTER:
        cell = ctypes.c_void_p()
    else:
        cell = ctypes.c_uint32()
    rc = lib.pcre2_pattern_info(code, what, ctypes.byref(cell))
    if rc == ERROR_UNSET:
        return None
    if rc < 0:
        raise ValidationError(
            f"pcre2_pattern_info({what}) failed with {error_name(rc)}",
            code=error_name(rc),
            original_code=rc,
        )
    return cell.value or 0


def call_name_table(lib: Pcre2Library | None, code: int) -> list[tuple[int, str]]:
    """
    Decode the pattern's name table into ``(group_number, name)`` pairs.

    Entries are fixed-size. In the 8-bit library the group number takes the
    first two bytes (big-endian); in the 16/32-bit libraries it takes the
    first code unit. The name follows, zero-terminated.
    """
    lib = _lib(lib)
    count = call_pattern_info(lib, code, INFO_NAMECOUNT) or 0
    if count == 0:
        return []
    entry_size = call_pattern_info(lib, code, INFO_NAMEENTRYSIZE) or 0
    table = call_pattern_info(lib, code, INFO_NAMETABLE) or 0
    unit = lib.width.unit_size
    raw = ctypes.string_at(table, count * entry_size * unit)

    entries = []
    for i in range(count):
        entry = raw[i * entry_size * unit : (i + 1) * entry_size * unit]
        number, name = _name_entry(entry, lib.width)
        entries.append((number, decode_text(name, lib.width)))
    return entries


def _name_entry(entry: bytes, width: Width) -> tuple[int, bytes]:
    """Split one name-table entry into (group number, encoded name)."""
    if width is Width.UTF8:
        return (entry[0] << 8) | entry[1], _until_zero_unit(entry[2:], 1)
    unit = width.unit_size
    number = int.from_bytes(entry[:unit], sys.byteorder)
    return number, _until_zero_unit(entry[unit:], unit)


def _until_zero_unit(data: bytes, unit: int) -> bytes:
    zero = b"\x00" * unit
    for i in range(0, len(data), unit):
        if data[i : i + unit] == zero:
            return data[:i]
    return data


# =============================================================================
# JIT
# =============================================================================


def call_jit_compile(lib: Pcre2Library | None, code: int, options: int) -> int:
    """JIT-compile a pattern. Returns 0 or a negative error (e.g. JIT unsupported)."""
    lib = _lib(lib)
    return lib.pcre2_jit_compile(_require(code, "code"), _uint32(options, "options"))


def call_jit_stack_create(
    lib: Pcre2Library | None, start_size: int, max_size: int, general: int = 0
) -> int:
    lib = _lib(lib)
    _size(start_size, "start_size")
    _size(max_size, "max_size")
    if start_size <= 0 or max_size < start_size:
        raise ValidationError(
            f"JIT stack sizes must satisfy 0 < start_size <= max_size, "
            f"got {start_size} and {max_size}",
            details={"start_size": start_size, "max_size": max_size},
        )
    return _created(
        lib.pcre2_jit_stack_create(start_size, max_size, general or None), "JIT stack"
    )


def call_jit_stack_free(lib: Pcre2Library | None, stack: int) -> None:
    lib = _lib(lib)
    if stack:
        lib.pcre2_jit_stack_free(stack)


def call_jit_stack_assign(lib: Pcre2Library | None, match_context: int, stack: int) -> None:
    """Assign a JIT stack to a match context; 0 restores the default stack."""
    lib = _lib(lib)
    lib.pcre2_jit_stack_assign(_require(match_context, "match context"), None, stack or None)


def call_jit_free_unused_memory(lib: Pcre2Library | None, general: int = 0) -> None:
    lib = _lib(lib)
    lib.pcre2_jit_free_unused_memory(general or None)


# =============================================================================
# Match Data
# =============================================================================


def call_match_data_create(lib: Pcre2Library | None, pairs: int, general: int = 0) -> int:
    lib = _lib(lib)
    if pairs <= 0:
        raise ValidationError(
            f"Match data needs at least one ovector pair, got {pairs}",
            details={"pairs": pairs},
        )
    _uint32(pairs, "pairs")
    return _created(lib.pcre2_match_data_create(pairs, general or None), "match data")


def call_match_data_create_from_pattern(
    lib: Pcre2Library | None, code: int, general: int = 0
) -> int:
    lib = _lib(lib)
    return _created(
        lib.pcre2_match_data_create_from_pattern(_require(code, "code"), general or None),
        "match data",
    )


def call_match_data_free(lib: Pcre2Library | None, match_data: int) -> None:
    lib = _lib(lib)
    if match_data:
        lib.pcre2_match_data_free(match_data)


def call_get_ovector_count(lib: Pcre2Library | None, match_data: int) -> int:
    lib = _lib(lib)
    return lib.pcre2_get_ovector_count(_require(match_data, "match data"))


def call_get_ovector(
    lib: Pcre2Library | None, match_data: int, pairs: int | None = None
) -> list[int]:
    """
    Flat ``[start0, end0, start1, end1, ...]`` in code units.

    Unset groups read as -1. ``pairs`` limits how many pairs are read.
    """
    lib = _lib(lib)
    count = call_get_ovector_count(lib, match_data)
    if pairs is not None:
        count = min(count, _non_negative(pairs, "pairs"))
    pointer = lib.pcre2_get_ovector_pointer(match_data)
    return [-1 if pointer[i] == _SIZE_UNSET else pointer[i] for i in range(count * 2)]


def call_get_startchar(lib: Pcre2Library | None, match_data: int) -> int:
    lib = _lib(lib)
    return lib.pcre2_get_startchar(_require(match_data, "match data"))


def call_get_mark(lib: Pcre2Library | None, match_data: int) -> str | None:
    """The last ``(*MARK)`` name seen by the latest match, or None."""
    lib = _lib(lib)
    pointer = lib.pcre2_get_mark(_require(match_data, "match data"))
    if not pointer:
        return None
    return decode_text(read_zero_terminated(pointer, lib.width), lib.width)


# =============================================================================
# Match
# =============================================================================


def _match_call(
    fn: Any,
    lib: Pcre2Library,
    code: int,
    subject: Any,
    start_offset: int,
    options: int,
    match_data: int,
    match_context: int,
) -> int:
    subject = Subject.of(subject, lib.width)
    _require(code, "code")
    _require(match_data, "match data")
    _start_offset(subject, start_offset)
    _uint32(options, "options")
    return fn(
        code,
        subject.buffer,
        subject.length,
        start_offset,
        options,
        match_data,
        match_context or None,
    )


def call_match(
    lib: Pcre2Library | None,
    code: int,
    subject: Any,
    start_offset: int = 0,
    options: int = 0,
    match_data: int = 0,
    match_context: int = 0,
) -> int:
    """
    Run ``pcre2_match``.

    Returns the raw result: > 0 pairs set, 0 ovector too small, < 0 engine
    code (no match, partial, limit, or error). ``start_offset`` is in code
    units; see :mod:`pcre2ffi.offsets` to convert from a str index.

    Match data points into the subject afterwards. Pass a
    :class:`~pcre2ffi._scope.Subject` and keep it alive to extract
    substrings.
    """
    lib = _lib(lib)
    return _match_call(
        lib.pcre2_match, lib, code, subject, start_offset, options, match_data, match_context
    )


def call_jit_match(
    lib: Pcre2Library | None,
    code: int,
    subject: Any,
    start_offset: int = 0,
    options: int = 0,
    match_data: int = 0,
    match_context: int = 0,
) -> int:
    """``pcre2_jit_match``: same contract as :func:`call_match`, no option checks."""
    lib = _lib(lib)
    return _match_call(
        lib.pcre2_jit_match, lib, code, subject, start_offset, options, match_data, match_context
    )


def call_dfa_match(
    lib: Pcre2Library | None,
    code: int,
    subject: Any,
    start_offset: int = 0,
    options: int = 0,
    match_data: int = 0,
    match_context: int = 0,
    workspace: Any = None,
    workspace_size: int | None = None,
) -> int:
    """
    Run ``pcre2_dfa_match``.

    Args:
        workspace: A ctypes ``c_int`` array to use (e.g. for
            ``DFA_RESTART``). When None, a scratch workspace of
            ``workspace_size`` ints (default 1000) is allocated per call.
        workspace_size: Number of ints the engine may use; must satisfy
            ``0 < workspace_size <= len(workspace)``.

    Returns the raw result; a positive count is the number of alternative
    matches found (longest first in the ovector).
    """
    lib = _lib(lib)
    if workspace is None:
        size = DFA_WORKSPACE_DEFAULT if workspace_size is None else workspace_size
        capacity = size
    else:
        capacity = len(workspace)
        size = capacity if workspace_size is None else workspace_size
    if size <= 0 or size > capacity:
        raise ValidationError(
            f"DFA workspace size must satisfy 0 < size <= {capacity}, got {size}",
            details={"workspace_size": size, "capacity": capacity},
        )

    subject = Subject.of(subject, lib.width)
    _require(code, "code")
    _require(match_data, "match data")
    _start_offset(subject, start_offset)
    _uint32(options, "options")
    with NativeScope(lib.width) as scope:
        if workspace is None:
            workspace = scope.ints(size)
        return lib.pcre2_dfa_match(
            code,
            subject.buffer,
            subject.length,
            start_offset,
            options,
            match_data,
            match_context or None,
            workspace,
            size,
        )


# =============================================================================
# Substitute
# =============================================================================


def call_substitute(
    lib: Pcre2Library | None,
    code: int,
    subject: Any,
    replacement: Any,
    start_offset: int = 0,
    options: int = 0,
    match_data: int = 0,
    match_context: int = 0,
    buffer_size: int | None = None,
) -> tuple[int, str | bytes]:
    """
    Run ``pcre2_substitute`` with the buffer-growth protocol.

    ``SUBSTITUTE_OVERFLOW_LENGTH`` is always added so that an undersized
    buffer reports the size it needs. The call is retried exactly once with a
    buffer of that size; overflowing again raises InternalError.

    Args:
        buffer_size: Initial output buffer in code units. Defaults to
            ``max(1024, 2 * subject length)``.

    Returns:
        Tuple of (number of substitutions, output). The output is ``str``
        when the subject is ``str``, ``bytes`` otherwise. With no match the
        output is the unchanged subject.

    Raises:
        SubstituteError: For any other negative engine code.
    """
    lib = _lib(lib)
    subject = Subject.of(subject, lib.width)
    _require(code, "code")
    _start_offset(subject, start_offset)
    if buffer_size is None:
        buffer_size = max(SUBSTITUTE_BUFFER_MIN, subject.length * 2)
    _size(buffer_size, "buffer_size")
    options = _uint32(options, "options") | SUBSTITUTE_OVERFLOW_LENGTH

    with NativeScope(lib.width) as scope:
        replacement_buffer, replacement_length = scope.text(replacement)

        def attempt(size: int) -> tuple[int, Any, Any]:
            output = scope.output(size)
            length = scope.cell(ctypes.c_size_t, size)
            rc = lib.pcre2_substitute(
                code,
                subject.buffer,
                subject.length,
                start_offset,
                options,
                match_data or None,
                match_context or None,
                replacement_buffer,
                replacement_length,
                output,
                ctypes.byref(length),
            )
            return rc, output, length

        rc, output, length = attempt(buffer_size)
        if rc == ERROR_NOMEMORY:
            required = length.value
            substitute_logger.debug(
                "Substitution output buffer too small, retrying",
                extra={"initial": buffer_size, "required": required},
            )
            rc, output, length = attempt(required)
            if rc == ERROR_NOMEMORY:
                raise InternalError(
                    f"Substitution overflowed a buffer of the reported size "
                    f"({required} code units, engine now asks for {length.value})",
                    code="SUBSTITUTE_REGROW_FAILED",
                    details={"initial": buffer_size, "required": required, "reported": length.value},
                    original_code=rc,
                )
        if rc < 0:
            raise _engine_error(lib, SubstituteError, rc, "Substitution")

        data = read_units(ctypes.addressof(output), length.value, lib.width)
    return rc, _output(data, lib.width, subject.is_text)


# =============================================================================
# Substrings
# =============================================================================


def _check_substring(lib: Pcre2Library, rc: int, group: int | str) -> None:
    if rc < 0:
        raise _engine_error(lib, SubstringError, rc, f"Substring {group!r}", group=group)


def call_substring_length(lib: Pcre2Library | None, match_data: int, group: int | str) -> int:
    """Length in code units of a captured group, by number or name."""
    lib = _lib(lib)
    _require(match_data, "match data")
    with NativeScope(lib.width) as scope:
        length = scope.cell(ctypes.c_size_t)
        if isinstance(group, str):
            name, _ = scope.text(group)
            rc = lib.pcre2_substring_length_byname(match_data, name, ctypes.byref(length))
        else:
            rc = lib.pcre2_substring_length_bynumber(
                match_data, _uint32(group, "group"), ctypes.byref(length)
            )
        _check_substring(lib, rc, group)
        return length.value


def call_substring_copy(lib: Pcre2Library | None, match_data: int, group: int | str) -> bytes:
    """Copy a captured group into a caller-owned buffer and return its code units."""
    lib = _lib(lib)
    units = call_substring_length(lib, match_data, group)
    with NativeScope(lib.width) as scope:
        buffer = scope.output(units + 1)
        length = scope.cell(ctypes.c_size_t, units + 1)
        if isinstance(group, str):
            name, _ = scope.text(group)
            rc = lib.pcre2_substring_copy_byname(match_data, name, buffer, ctypes.byref(length))
        else:
            rc = lib.pcre2_substring_copy_bynumber(
                match_data, group, buffer, ctypes.byref(length)
            )
        _check_substring(lib, rc, group)
        return read_units(ctypes.addressof(buffer), length.value, lib.width)


def call_substring_get(lib: Pcre2Library | None, match_data: int, group: int | str) -> bytes:
    """Fetch a captured group into engine-allocated memory, copy it out and free it."""
    lib = _lib(lib)
    _require(match_data, "match data")
    with NativeScope(lib.width) as scope:
        pointer = scope.cell(ctypes.c_void_p)
        length = scope.cell(ctypes.c_size_t)
        if isinstance(group, str):
            name, _ = scope.text(group)
            rc = lib.pcre2_substring_get_byname(
                match_data, name, ctypes.byref(pointer), ctypes.byref(length)
            )
        else:
            rc = lib.pcre2_substring_get_bynumber(
                match_data,
                _uint32(group, "group"),
                ctypes.byref(pointer),
                ctypes.byref(length),
            )
        _check_substring(lib, rc, group)
        scope.defer(lib.pcre2_substring_free, pointer.value)
        return read_units(pointer.value or 0, length.value, lib.width)


def call_substring_list(lib: Pcre2Library | None, match_data: int) -> list[bytes]:
    """Every captured group of the latest match; unset groups are empty."""
    lib = _lib(lib)
    _require(match_data, "match data")
    count = call_get_ovector_count(lib, match_data)
    with NativeScope(lib.width) as scope:
        list_pointer = scope.cell(ctypes.c_void_p)
        lengths_pointer = scope.cell(ctypes.c_void_p)
        rc = lib.pcre2_substring_list_get(
            match_data, ctypes.byref(list_pointer), ctypes.byref(lengths_pointer)
        )
        if rc < 0:
            raise _engine_error(lib, SubstringError, rc, "Substring list")
        scope.defer(lib.pcre2_substring_list_free, list_pointer.value)

        pointers = ctypes.cast(list_pointer.value, ctypes.POINTER(ctypes.c_void_p))
        lengths = ctypes.cast(lengths_pointer.value, ctypes.POINTER(ctypes.c_size_t))
        result = []
        for i in range(count):
            if not pointers[i]:
                break
            result.append(read_units(pointers[i], lengths[i], lib.width))
        return result


def call_substring_number_from_name(lib: Pcre2Library | None, code: int, name: str) -> int:
    lib = _lib(lib)
    _require(code, "code")
    with NativeScope(lib.width) as scope:
        buffer, _ = scope.text(name)
        rc = lib.pcre2_substring_number_from_name(code, buffer)
    if rc < 0:
        raise _engine_error(lib, SubstringError, rc, f"Group name {name!r}", name=name)
    return rc


def call_substring_nametable_scan(lib: Pcre2Library | None, code: int, name: str) -> list[int]:
    """All group numbers carrying ``name`` (several with ``DUPNAMES``)."""
    lib = _lib(lib)
    _require(code, "code")
    with NativeScope(lib.width) as scope:
        buffer, _ = scope.text(name)
        first = scope.cell(ctypes.c_void_p)
        last = scope.cell(ctypes.c_void_p)
        rc = lib.pcre2_substring_nametable_scan(
            code, buffer, ctypes.byref(first), ctypes.byref(last)
        )
        if rc < 0:
            raise _engine_error(lib, SubstringError, rc, f"Group name {name!r}", name=name)

        # rc is the entry size in code units when first/last are requested
        step = rc * lib.width.unit_size
        numbers = []
        address = first.value
        while address and address <= last.value:
            number, _ = _name_entry(ctypes.string_at(address, step), lib.width)
            numbers.append(number)
            address += step
        return numbers


# =============================================================================
# Serialization
# =============================================================================


def call_serialize_encode(
    lib: Pcre2Library | None, codes: Sequence[int], general: int = 0
) -> bytes:
    """Serialize compiled patterns into one blob."""
    lib = _lib(lib)
    if not codes:
        raise ValidationError("At least one compiled pattern is required for serialization")
    for handle in codes:
        _require(handle, "code")
    with NativeScope(lib.width) as scope:
        array = scope.handles(list(codes))
        blob = scope.cell(ctypes.c_void_p)
        size = scope.cell(ctypes.c_size_t)
        rc = lib.pcre2_serialize_encode(
            array, len(codes), ctypes.byref(blob), ctypes.byref(size), general or None
        )
        if rc < 0:
            raise _engine_error(lib, SerializationError, rc, "Serialization")
        scope.defer(lib.pcre2_serialize_free, blob.value)
        return ctypes.string_at(blob.value, size.value)


def _check_blob(blob: bytes) -> None:
    """Reject blobs the engine would read past the end of while checking the header."""
    if not blob:
        raise ValidationError("Serialized blob must not be empty")
    if len(blob) < SERIALIZED_HEADER_SIZE:
        raise SerializationError(
            f"Serialized blob of {len(blob)} bytes is shorter than its "
            f"{SERIALIZED_HEADER_SIZE}-byte header",
            code="ERROR_BADSERIALIZEDDATA",
            details={"size": len(blob), "header_size": SERIALIZED_HEADER_SIZE},
            original_code=ERROR_BADSERIALIZEDDATA,
        )


def call_serialize_decode(
    lib: Pcre2Library | None, blob: bytes, count: int, general: int = 0
) -> list[int]:
    """Rebuild ``count`` compiled patterns from a blob; returns their handles."""
    lib = _lib(lib)
    _check_blob(blob)
    if count <= 0:
        raise ValidationError(
            f"Number of codes to decode must be positive, got {count}", details={"count": count}
        )
    with NativeScope(lib.width) as scope:
        data = ctypes.create_string_buffer(bytes(blob), len(blob))
        scope.keep(data)
        codes = scope.handles([0] * count)
        rc = lib.pcre2_serialize_decode(codes, count, data, general or None)
        if rc < 0:
            raise _engine_error(lib, SerializationError, rc, "Deserialization")
        return [codes[i] for i in range(rc)]


def call_serialize_get_number_of_codes(lib: Pcre2Library | None, blob: bytes) -> int:
    lib = _lib(lib)
    _check_blob(blob)
    rc = lib.pcre2_serialize_get_number_of_codes(bytes(blob))
    if rc < 0:
        raise _engine_error(lib, SerializationError, rc, "Reading serialized header")
    return rc


# =============================================================================
# Pattern Conversion
# =============================================================================


def call_pattern_convert(
    lib: Pcre2Library | None, pattern: Any, options: int, context: int = 0
) -> str | bytes:
    """Convert a glob or POSIX pattern into PCRE2 syntax."""
    lib = _lib(lib)
    _uint32(options, "options")
    with NativeScope(lib.width) as scope:
        buffer, length = scope.text(pattern)
        output = scope.cell(ctypes.c_void_p)
        output_length = scope.cell(ctypes.c_size_t)
        rc = lib.pcre2_pattern_convert(
            buffer,
            length,
            options,
            ctypes.byref(output),
            ctypes.byref(output_length),
            context or None,
        )
        if rc != 0:
            # On failure the length cell holds the error offset
            raise _engine_error(
                lib, ConvertError, rc, "Pattern conversion", offset=output_length.value
            )
        scope.defer(lib.pcre2_converted_pattern_free, output.value)
        data = read_units(output.value or 0, output_length.value, lib.width)
    return _output(data, lib.width, isinstance(pattern, str))
