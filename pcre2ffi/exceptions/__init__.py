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
    ├── InternalError - Engine contract violated
    ├── ResourceError - Native allocation returned NULL
    └── StateError - Wrapper used after it was freed
"""

from .exceptions import (
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

# =============================================================================
# Public API - See pcre2ffi/__init__.py for documentation mapping guidelines
# =============================================================================
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
