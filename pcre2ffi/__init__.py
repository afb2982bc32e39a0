"""
pcre2ffi - PCRE2 from Python over ctypes, without leaks or double frees.

pcre2ffi binds the PCRE2 C library (``libpcre2-8``, ``-16``, ``-32``) and
wraps every native resource (contexts, compiled patterns, match data, JIT
stacks) in an object that frees it exactly once. No compiler, no extension
modules, no dependencies beyond the standard library.

Quick Start
-----------

    >>> from pcre2ffi import Code
    >>>
    >>> with Code.compile(r"(\\d+)-(\\d+)") as code:
    ...     result = code.match("pages 12-19")
    ...     result.group(2)
    '19'

Limits instead of hangs:

    >>> from pcre2ffi import NO_START_OPTIMIZE, MatchContext
    >>>
    >>> ctx = MatchContext()
    >>> ctx.set_match_limit(1000)
    >>> Code.compile("(a+)+b", NO_START_OPTIMIZE).match("a" * 40, context=ctx).status
    <MatchStatus.LIMIT_EXCEEDED: 'limit_exceeded'>

Substitution:

    >>> from pcre2ffi import SUBSTITUTE_GLOBAL
    >>> Code.compile("o").substitute("foo", "0", options=SUBSTITUTE_GLOBAL)
    (2, 'f00')


Core Classes
------------

Patterns:
- `Code` - Compiled pattern (immutable, thread-safe)
- `MatchData` - Capture vector (one per concurrent match)
- `MatchResult` / `DfaMatchResult` - Match outcomes as values

Contexts:
- `GeneralContext`, `CompileContext`, `MatchContext`, `ConvertContext`
- `JitStack` - Larger stack for JIT matching

Utilities:
- `serialize` - Save compiled patterns as bytes
- `offsets` - Convert between str indices and code-unit offsets
- `config` - Engine build information


Library Selection
-----------------

The 8-bit library is used by default. Override with ``PCRE2FFI_LIBRARY`` /
``PCRE2FFI_SUFFIX``, with :func:`configure`, or per object by passing
``lib=pcre2ffi.load("pcre2-16")``.
"""

from pcre2ffi import config, offsets, serialize
from pcre2ffi._bindings import configure, error_message, get_lib, load
from pcre2ffi._logging import logger as _logger
from pcre2ffi._logging import setup_logging
from pcre2ffi._native import Pcre2Library
from pcre2ffi._version import __version__ as __version__
from pcre2ffi.code import Code
from pcre2ffi.constants import *  # noqa: F403
from pcre2ffi.constants import Width, error_name
from pcre2ffi.contexts import (
    CharacterTables,
    CompileContext,
    ConvertContext,
    GeneralContext,
    MatchContext,
    convert_pattern,
)
from pcre2ffi.exceptions import (
    CompileError,
    ConvertError,
    InternalError,
    LibraryError,
    LibraryNotFoundError,
    MatchError,
    OffsetOutOfRangeError,
    Pcre2Error,
    ResourceError,
    SerializationError,
    StateError,
    SubstituteError,
    SubstringError,
    SymbolNotFoundError,
    ValidationError,
)
from pcre2ffi.jit import JitStack, jit_free_unused_memory
from pcre2ffi.match_data import MatchData
from pcre2ffi.offsets import (
    byte_offset_to_char_index,
    byte_ovector_to_char_indices,
    char_index_to_byte_offset,
    encoded_length,
)
from pcre2ffi.results import DfaMatchResult, MatchResult, MatchStatus


def set_log_level(level: str) -> None:
    """Set logging verbosity level.

    Args:
        level: One of 'trace', 'debug', 'info', 'warn', 'error', 'off'.
               Default is 'warn' (silent operation).

    Example:
        >>> import pcre2ffi
        >>> pcre2ffi.set_log_level('debug')  # Library discovery, regrows, finalizers
        >>> pcre2ffi.set_log_level('warn')   # Back to silent (default)
    """
    from pcre2ffi._logging import _NAME_TO_LEVEL

    _logger.setLevel(_NAME_TO_LEVEL.get(level.lower(), _NAME_TO_LEVEL["warn"]))


# =============================================================================
# Public API
# =============================================================================
#
# Option bits, error numbers and selectors are re-exported from
# pcre2ffi.constants (``pcre2ffi.CASELESS``) but not listed here.
#
__all__ = [
    # Patterns
    "Code",
    "MatchData",
    "MatchResult",
    "DfaMatchResult",
    "MatchStatus",
    # Contexts
    "GeneralContext",
    "CompileContext",
    "MatchContext",
    "ConvertContext",
    "CharacterTables",
    "JitStack",
    "jit_free_unused_memory",
    "convert_pattern",
    # Serialization
    "serialize",
    # Offsets
    "offsets",
    "char_index_to_byte_offset",
    "byte_offset_to_char_index",
    "byte_ovector_to_char_indices",
    "encoded_length",
    # Library
    "Pcre2Library",
    "Width",
    "load",
    "get_lib",
    "configure",
    "config",
    "error_message",
    "error_name",
    # Logging
    "setup_logging",
    "set_log_level",
    # Exceptions
    "Pcre2Error",
    "ValidationError",
    "OffsetOutOfRangeError",
    "LibraryError",
    "LibraryNotFoundError",
    "SymbolNotFoundError",
    "CompileError",
    "MatchError",
    "SubstituteError",
    "SubstringError",
    "SerializationError",
    "ConvertError",
    "InternalError",
    "ResourceError",
    "StateError",
]
