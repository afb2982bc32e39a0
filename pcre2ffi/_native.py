"""
Typed call-binding table for the PCRE2 C API.

Every entry point the package calls is declared exactly once in
``SIGNATURES`` as ``(name, restype, argtypes)``. ``Pcre2Library`` resolves
the whole table against one shared library (all symbols, eagerly) and applies
each signature when it is constructed. Call sites never set ``argtypes`` or
``restype`` themselves.

Type mapping (``pcre2.h`` → ctypes):

    uint32_t            c_uint32
    int32_t             c_int32
    int                 c_int
    PCRE2_SIZE          c_size_t
    PCRE2_SPTR, void*   c_void_p  (ctypes buffers and ints both accepted)
    T *out              POINTER(T), passed with ctypes.byref
"""

from __future__ import annotations

import ctypes
from typing import Any

from ._loader import infer_width, load_library, resolve_symbols
from .constants import Width
from .exceptions import ValidationError

# Short aliases keep the table readable
_int = ctypes.c_int
_i32 = ctypes.c_int32
_u32 = ctypes.c_uint32
_size = ctypes.c_size_t
_ptr = ctypes.c_void_p
_out_int = ctypes.POINTER(ctypes.c_int)
_out_size = ctypes.POINTER(ctypes.c_size_t)
_out_ptr = ctypes.POINTER(ctypes.c_void_p)

# =============================================================================
# Signature Table
# =============================================================================

SIGNATURES: tuple[tuple[str, Any, tuple[Any, ...]], ...] = (
    # Build configuration
    ("pcre2_config", _int, (_u32, _ptr)),
    # General context: (malloc, free, memory_data); all NULL selects the defaults
    ("pcre2_general_context_create", _ptr, (_ptr, _ptr, _ptr)),
    ("pcre2_general_context_copy", _ptr, (_ptr,)),
    ("pcre2_general_context_free", None, (_ptr,)),
    # Compile context
    ("pcre2_compile_context_create", _ptr, (_ptr,)),
    ("pcre2_compile_context_copy", _ptr, (_ptr,)),
    ("pcre2_compile_context_free", None, (_ptr,)),
    ("pcre2_set_newline", _int, (_ptr, _u32)),
    ("pcre2_set_bsr", _int, (_ptr, _u32)),
    ("pcre2_set_parens_nest_limit", _int, (_ptr, _u32)),
    ("pcre2_set_max_pattern_length", _int, (_ptr, _size)),
    ("pcre2_set_compile_extra_options", _int, (_ptr, _u32)),
    ("pcre2_set_character_tables", _int, (_ptr, _ptr)),
    ("pcre2_maketables", _ptr, (_ptr,)),
    ("pcre2_maketables_free", None, (_ptr, _ptr)),
    # Match context
    ("pcre2_match_context_create", _ptr, (_ptr,)),
    ("pcre2_match_context_copy", _ptr, (_ptr,)),
    ("pcre2_match_context_free", None, (_ptr,)),
    ("pcre2_set_match_limit", _int, (_ptr, _u32)),
    ("pcre2_set_depth_limit", _int, (_ptr, _u32)),
    ("pcre2_set_heap_limit", _int, (_ptr, _u32)),
    ("pcre2_set_offset_limit", _int, (_ptr, _size)),
    # Convert context
    ("pcre2_convert_context_create", _ptr, (_ptr,)),
    ("pcre2_convert_context_copy", _ptr, (_ptr,)),
    ("pcre2_convert_context_free", None, (_ptr,)),
    ("pcre2_set_glob_escape", _int, (_ptr, _u32)),
    ("pcre2_set_glob_separator", _int, (_ptr, _u32)),
    # Compiled pattern
    ("pcre2_compile", _ptr, (_ptr, _size, _u32, _out_int, _out_size, _ptr)),
    ("pcre2_code_copy", _ptr, (_ptr,)),
    ("pcre2_code_free", None, (_ptr,)),
    ("pcre2_get_error_message", _int, (_int, _ptr, _size)),
    ("pcre2_pattern_info", _int, (_ptr, _u32, _ptr)),
    # JIT
    ("pcre2_jit_compile", _int, (_ptr, _u32)),
    ("pcre2_jit_match", _int, (_ptr, _ptr, _size, _size, _u32, _ptr, _ptr)),
    ("pcre2_jit_stack_create", _ptr, (_size, _size, _ptr)),
    ("pcre2_jit_stack_free", None, (_ptr,)),
    # (match context, callback, callback data); NULL callback means data is the stack
    ("pcre2_jit_stack_assign", None, (_ptr, _ptr, _ptr)),
    ("pcre2_jit_free_unused_memory", None, (_ptr,)),
    # Match data
    ("pcre2_match_data_create", _ptr, (_u32, _ptr)),
    ("pcre2_match_data_create_from_pattern", _ptr, (_ptr, _ptr)),
    ("pcre2_match_data_free", None, (_ptr,)),
    ("pcre2_get_ovector_count", _u32, (_ptr,)),
    ("pcre2_get_ovector_pointer", _out_size, (_ptr,)),
    ("pcre2_get_startchar", _size, (_ptr,)),
    ("pcre2_get_mark", _ptr, (_ptr,)),
    # Matching
    ("pcre2_match", _int, (_ptr, _ptr, _size, _size, _u32, _ptr, _ptr)),
    (
        "pcre2_dfa_match",
        _int,
        (_ptr, _ptr, _size, _size, _u32, _ptr, _ptr, _out_int, _size),
    ),
    # Substitution
    (
        "pcre2_substitute",
        _int,
        (_ptr, _ptr, _size, _size, _u32, _ptr, _ptr, _ptr, _size, _ptr, _out_size),
    ),
    # Substring extraction
    ("pcre2_substring_copy_bynumber", _int, (_ptr, _u32, _ptr, _out_size)),
    ("pcre2_substring_copy_byname", _int, (_ptr, _ptr, _ptr, _out_size)),
    ("pcre2_substring_get_bynumber", _int, (_ptr, _u32, _out_ptr, _out_size)),
    ("pcre2_substring_get_byname", _int, (_ptr, _ptr, _out_ptr, _out_size)),
    ("pcre2_substring_length_bynumber", _int, (_ptr, _u32, _out_size)),
    ("pcre2_substring_length_byname", _int, (_ptr, _ptr, _out_size)),
    ("pcre2_substring_free", None, (_ptr,)),
    ("pcre2_substring_list_get", _int, (_ptr, _out_ptr, _out_ptr)),
    ("pcre2_substring_list_free", None, (_ptr,)),
    ("pcre2_substring_number_from_name", _int, (_ptr, _ptr)),
    ("pcre2_substring_nametable_scan", _int, (_ptr, _ptr, _out_ptr, _out_ptr)),
    # Serialization
    ("pcre2_serialize_encode", _i32, (_out_ptr, _i32, _out_ptr, _out_size, _ptr)),
    ("pcre2_serialize_decode", _i32, (_out_ptr, _i32, _ptr, _ptr)),
    ("pcre2_serialize_get_number_of_codes", _i32, (_ptr,)),
    ("pcre2_serialize_free", None, (_ptr,)),
    # Pattern conversion
    ("pcre2_pattern_convert", _int, (_ptr, _size, _u32, _out_ptr, _out_size, _ptr)),
    ("pcre2_converted_pattern_free", None, (_ptr,)),
)

SYMBOL_NAMES: tuple[str, ...] = tuple(name for name, _, _ in SIGNATURES)


# =============================================================================
# Bound Library
# =============================================================================


class Pcre2Library:
    """
    One PCRE2 shared library with every entry point bound and typed.

    Functions are exposed under their unsuffixed C names::

        lib = Pcre2Library("pcre2-8")
        lib.pcre2_compile(...)      # calls pcre2_compile_8

    Construction either succeeds with the complete table or raises
    (LibraryNotFoundError, SymbolNotFoundError). The instance is read-only
    afterwards and safe to share between threads.

    Args:
        library: Library name (``"pcre2-16"``) or path. Defaults to the
            8-bit library.
        suffix: Symbol suffix. Defaults to the one implied by the library
            name, or ``"_8"``.
        handle: An already opened library object. When given, ``library``
            is only used for naming.
    """

    __slots__ = ("path", "suffix", "width", "_functions")

    def __init__(
        self,
        library: str | None = None,
        suffix: str | None = None,
        handle: Any = None,
    ):
        if suffix and not suffix.startswith("_"):
            raise ValidationError(
                f"Symbol suffix must start with '_', got {suffix!r}",
                details={"suffix": suffix},
            )

        width = infer_width(suffix) if suffix else None
        if width is None and library:
            width = infer_width(library)
        if width is None:
            width = Width.UTF8
        if library is None:
            library = width.library
        if suffix is None:
            suffix = width.suffix

        if handle is None:
            handle, path = load_library(library)
        else:
            path = library

        functions = resolve_symbols(handle, SYMBOL_NAMES, suffix, path)
        for name, restype, argtypes in SIGNATURES:
            fn = functions[name]
            fn.restype = restype
            fn.argtypes = list(argtypes)

        object.__setattr__(self, "path", path)
        object.__setattr__(self, "suffix", suffix)
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "_functions", functions)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._functions[name]
        except KeyError:
            raise AttributeError(f"PCRE2 entry point {name!r} is not bound") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Pcre2Library is read-only (cannot set {name!r})")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Pcre2Library is read-only (cannot delete {name!r})")

    def __repr__(self) -> str:
        return f"Pcre2Library({self.path!r}, suffix={self.suffix!r})"
