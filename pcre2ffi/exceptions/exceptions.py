"""
pcre2ffi exceptions.

This module defines the exception hierarchy for pcre2ffi:

    Pcre2Error (base)
    ├── ValidationError - Invalid argument caught before any native call
    │   └── OffsetOutOfRangeError - Character index outside the subject
    ├── LibraryError - The PCRE2 shared library could not be bound
    │   ├── LibraryNotFoundError - No loadable library file
    │   └── SymbolNotFoundError - A required entry point is missing
    ├── CompileError - Pattern rejected by the engine
    ├── MatchError - Genuine engine error while matching
    ├── SubstituteError - Substitution failed
    ├── SubstringError - Captured substring could not be extracted
    ├── SerializationError - Encode/decode of compiled patterns failed
    ├── ConvertError - Pattern conversion failed
    ├── InternalError - Engine contract violated (e.g. wrong reported size)
    ├── ResourceError - Native allocation returned NULL
    └── StateError - Wrapper used after it was freed

Usage:
    try:
        code = Code.compile("(unclosed")
    except pcre2ffi.CompileError as e:
        print(f"{e.error_code} at offset {e.offset}: {e.reason}")
    except pcre2ffi.Pcre2Error as e:
        print(f"Error {e.code}: {e}")
        print(f"Details: {e.details}")

Note that no-match, partial match and match-limit outcomes are *results*
(see :class:`pcre2ffi.MatchResult`), never exceptions.
"""

from typing import Any

__all__ = [
    # Base
    "Pcre2Error",
    # Validation
    "ValidationError",
    "OffsetOutOfRangeError",
    # Library
    "LibraryError",
    "LibraryNotFoundError",
    "SymbolNotFoundError",
    # Engine
    "CompileError",
    "MatchError",
    "SubstituteError",
    "SubstringError",
    "SerializationError",
    "ConvertError",
    "InternalError",
    # Lifecycle
    "ResourceError",
    "StateError",
]


class Pcre2Error(Exception):
    """
    Base exception for all pcre2ffi errors.

    Attributes
    ----------
    message : str
        Human-readable error description.
    code : str
        Stable, string-based error code (e.g., "ERROR_BADMAGIC").
        Use this for programmatic error handling.
    details : dict[str, Any]
        Structured context (e.g., {"symbol": "pcre2_compile_8"}).
    original_code : int | None
        The PCRE2 integer error code, when the error came from the engine.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.original_code = original_code

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(Pcre2Error, ValueError):
    """
    Invalid argument value.

    Raised before any native call when an argument is missing, has the wrong
    size or is out of range. Always recoverable by correcting the input;
    nothing has been handed to native code yet.

    This exception inherits from both Pcre2Error and ValueError, so both work::

        except pcre2ffi.Pcre2Error:   # catches all pcre2ffi errors
        except ValueError:            # catches validation errors (Pythonic)
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_ARGUMENT",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class OffsetOutOfRangeError(ValidationError, IndexError):
    """
    Character index outside ``[0, len(subject)]``.

    Raised by the offset translator. Catchable as IndexError.
    """

    def __init__(
        self,
        message: str,
        code: str = "INDEX_OUT_OF_RANGE",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


# =============================================================================
# Library Errors
# =============================================================================


class LibraryError(Pcre2Error, OSError):
    """
    The PCRE2 shared library could not be bound.

    Raised at construction time of a binding table, never lazily on first
    use of an entry point.
    """

    def __init__(
        self,
        message: str,
        code: str = "LIBRARY_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class LibraryNotFoundError(LibraryError, FileNotFoundError):
    """
    No candidate library file could be loaded.

    ``details["candidates"]`` lists every name or path that was tried.

    Solutions:
    - Install the PCRE2 runtime (``libpcre2-8-0`` on Debian/Ubuntu,
      ``pcre2`` on Homebrew)
    - Point ``PCRE2FFI_LIBRARY`` at the library file
    """

    def __init__(
        self,
        message: str,
        code: str = "LIBRARY_NOT_FOUND",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class SymbolNotFoundError(LibraryError, LookupError):
    """
    A required entry point is missing from the loaded library.

    Usually means the symbol suffix does not match the library width
    (``_16`` against ``libpcre2-8``) or the library is too old.
    """

    def __init__(
        self,
        symbol: str,
        library: str | None = None,
        code: str = "SYMBOL_NOT_FOUND",
        original_code: int | None = None,
    ):
        self.symbol = symbol
        self.library = library
        where = f" in {library}" if library else ""
        super().__init__(
            f"Required symbol {symbol!r} not found{where}",
            code,
            {"symbol": symbol, "library": library},
            original_code,
        )


# =============================================================================
# Engine Errors
# =============================================================================


class CompileError(Pcre2Error, ValueError):
    """
    Pattern rejected by the engine.

    The message points at the offending region of the pattern::

        Error in pattern at 5 (…abc(…): missing closing parenthesis

    Attributes
    ----------
    pattern : str | bytes | None
        The pattern text that failed to compile.
    offset : int
        Code-unit offset into the encoded pattern where the error was detected.
    reason : str
        The engine's message, without the location prefix.
    error_code : int
        The numeric PCRE2 compile error (100-199, or negative for context
        setter failures).
    """

    PATTERN_REGION_SIZE = 3

    def __init__(
        self,
        pattern: "str | bytes | None",
        offset: int,
        reason: str,
        error_code: int,
        code: str | None = None,
        width: Any = None,
    ):
        self.pattern = pattern
        self.offset = offset
        self.reason = reason
        self.error_code = error_code
        if pattern is None:
            message = reason
        else:
            region = self.pattern_region(pattern, offset, width)
            message = f"Error in pattern at {offset} ({region}): {reason}"
        if code is None:
            from ..constants import error_name

            code = error_name(error_code)
        super().__init__(
            message,
            code,
            {"offset": offset, "reason": reason, "pattern": pattern},
            error_code,
        )

    @classmethod
    def pattern_region(cls, pattern: "str | bytes", offset: int, width: Any = None) -> str:
        """
        Slice of the pattern around ``offset``, with ellipses where clipped.

        ``offset`` is in code units of ``width`` (UTF-8 by default). For a
        ``str`` pattern it is mapped to the character it falls in; a
        ``bytes`` pattern is sliced in code units and decoded for display.
        """
        from ..constants import Width
        from ..offsets import byte_offset_to_char_index, encoded_length

        if width is None:
            width = Width.UTF8
        if isinstance(pattern, str):
            offset = min(max(offset, 0), encoded_length(pattern, width))
            while True:
                try:
                    index = byte_offset_to_char_index(pattern, offset, width)
                    break
                except ValidationError:
                    # Inside a multi-unit character: step back to its start
                    offset -= 1
            since = max(0, index - cls.PATTERN_REGION_SIZE)
            total = len(pattern)
            until = min(total, index + cls.PATTERN_REGION_SIZE)
            region = pattern[since:until]
        else:
            unit = width.unit_size
            total = len(pattern) // unit
            index = min(max(offset, 0), total)
            since = max(0, index - cls.PATTERN_REGION_SIZE)
            until = min(total, index + cls.PATTERN_REGION_SIZE)
            data = bytes(pattern[since * unit : until * unit])
            region = data.decode(width.codec, errors="replace")
        if since > 0:
            region = "…" + region
        if until < total:
            region = region + "…"
        return region


class MatchError(Pcre2Error, RuntimeError):
    """
    Genuine engine error during matching.

    Only raised for conditions that indicate a defect or corrupted input
    (bad magic, bad option, bad UTF, JIT misuse, DFA workspace misuse).
    No-match, partial match and limit-exceeded are returned as results.
    """

    def __init__(
        self,
        message: str,
        code: str = "MATCH_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class SubstituteError(Pcre2Error, RuntimeError):
    """
    Substitution failed.

    Common causes:
    - Malformed replacement string (``ERROR_BADREPLACEMENT``)
    - Reference to a group that does not exist (``ERROR_NOSUBSTRING``)
    - Unset group referenced without ``SUBSTITUTE_UNSET_EMPTY``
    """

    def __init__(
        self,
        message: str,
        code: str = "SUBSTITUTE_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class SubstringError(Pcre2Error, LookupError):
    """
    A captured substring could not be extracted.

    ``original_code`` is one of ``ERROR_NOSUBSTRING`` (no such group),
    ``ERROR_UNAVAILABLE`` (ovector too small), ``ERROR_UNSET`` (group did not
    participate) or ``ERROR_NOUNIQUESUBSTRING``.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUBSTRING_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class SerializationError(Pcre2Error, RuntimeError):
    """
    Encoding or decoding of compiled patterns failed.

    A structurally invalid blob surfaces here (``ERROR_BADMAGIC``,
    ``ERROR_BADMODE``, ``ERROR_BADSERIALIZEDDATA``), not as a
    ValidationError: the blob format is opaque to this layer.
    """

    def __init__(
        self,
        message: str,
        code: str = "SERIALIZATION_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class ConvertError(Pcre2Error, RuntimeError):
    """Pattern conversion (glob/POSIX) rejected by the engine."""

    def __init__(
        self,
        message: str,
        code: str = "CONVERT_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class InternalError(Pcre2Error, RuntimeError):
    """
    The engine broke its own contract.

    Example: substitution reported a required buffer size, and the retry
    with a buffer of exactly that size overflowed again. This indicates a
    defect, not a sizing race; please report it.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


# =============================================================================
# Lifecycle Errors
# =============================================================================


class ResourceError(Pcre2Error, MemoryError):
    """
    A native create call returned NULL.

    PCRE2 create functions only fail when memory cannot be obtained.
    """

    def __init__(
        self,
        message: str,
        code: str = "RESOURCE_EXHAUSTED",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class StateError(Pcre2Error, RuntimeError):
    """
    Wrapper used after it was freed.

    Raised when a closed context, pattern, match-data block or JIT stack is
    used or copied. Closing twice is not an error.
    """

    def __init__(
        self,
        message: str,
        code: str = "STATE_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)
