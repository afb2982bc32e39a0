"""
Compile-time and match-time configuration contexts.

A context is configured once, then passed to any number of compile or match
calls. Contexts are not safe to mutate while another thread is using them.

A child context created with a ``general`` context remembers it by weak
reference only. Freeing the general context while children still use it is
undefined behaviour in the engine; keeping it alive is the caller's job.
"""

from __future__ import annotations

import weakref
from typing import Any

from ._bindings import (
    _lib,
    call_context_copy,
    call_context_create,
    call_context_free,
    call_get_error_message,
    call_jit_stack_assign,
    call_maketables,
    call_maketables_free,
    call_pattern_convert,
    call_set,
)
from ._native import Pcre2Library
from ._resource import NativeResource
from ._scope import NativeScope
from .constants import CONVERT_GLOB, error_name
from .exceptions import CompileError, ValidationError

__all__ = [
    "GeneralContext",
    "CompileContext",
    "MatchContext",
    "ConvertContext",
    "CharacterTables",
    "convert_pattern",
]


def _general_handle(general: "GeneralContext | None") -> int:
    if general is None:
        return 0
    if not isinstance(general, GeneralContext):
        raise ValidationError(
            f"Expected GeneralContext, got {type(general).__name__}",
            details={"type": type(general).__name__},
        )
    return general.handle


def _resolve(
    general: "GeneralContext | None", lib: Pcre2Library | None
) -> tuple[Pcre2Library, int]:
    """Library and general-context handle for a create call; lib defaults to the context's."""
    general_ptr = _general_handle(general)
    if lib is None and general is not None:
        lib = general.lib
    return _lib(lib), general_ptr


class GeneralContext(NativeResource):
    """
    Allocation context shared by other contexts, patterns and match data.

    Only the engine's default allocator is supported.
    """

    _kind = "general"

    def __init__(self, lib: Pcre2Library | None = None):
        lib = _lib(lib)
        super().__init__(call_context_create(lib, "general"), lib)

    def copy(self) -> "GeneralContext":
        ptr = self._copy_handle(lambda lib, h: call_context_copy(lib, "general", h))
        return GeneralContext._from_handle(self._lib, ptr)

    def _release(self, ptr: int) -> None:
        call_context_free(self._lib, "general", ptr)


class _ChildContext(NativeResource):
    """Context created under an optional GeneralContext."""

    def __init__(self, general: GeneralContext | None = None, lib: Pcre2Library | None = None):
        lib, general_ptr = _resolve(general, lib)
        ptr = call_context_create(lib, self._kind, general_ptr)
        super().__init__(ptr, lib)
        self._general = weakref.ref(general) if general is not None else None

    @property
    def general(self) -> GeneralContext | None:
        """The general context this one was created with, if still alive."""
        return self._general() if self._general is not None else None

    def _copy(self) -> Any:
        ptr = self._copy_handle(lambda lib, h: call_context_copy(lib, self._kind, h))
        copied = type(self)._from_handle(self._lib, ptr)
        copied._general = self._general
        return copied

    def _release(self, ptr: int) -> None:
        call_context_free(self._lib, self._kind, ptr)

    def _set(self, setting: str, value: int) -> int:
        with NativeScope(self._lib.width) as scope:
            scope.keep(self)
            return call_set(self._lib, setting, self.handle, value)


# =============================================================================
# Character Tables
# =============================================================================


class CharacterTables(NativeResource):
    """
    Character tables built for the current C locale (``pcre2_maketables``).

    Patterns compiled with these tables point into them, so CompileContext
    and Code keep a reference for as long as they need it.
    """

    _kind = "tables"

    def __init__(self, general: GeneralContext | None = None, lib: Pcre2Library | None = None):
        lib, self._general_ptr = _resolve(general, lib)
        super().__init__(call_maketables(lib, self._general_ptr), lib)

    def _release(self, ptr: int) -> None:
        call_maketables_free(self._lib, self._general_ptr, ptr)


# =============================================================================
# Compile Context
# =============================================================================


class CompileContext(_ChildContext):
    """
    Options applied at compile time (newline convention, limits, tables).

    Setter failures raise CompileError with offset 0, the same exception a
    pattern rejected for breaking the limit raises at compile time.
    """

    _kind = "compile"

    def __init__(self, general: GeneralContext | None = None, lib: Pcre2Library | None = None):
        super().__init__(general, lib)
        self._tables: CharacterTables | None = None

    def copy(self) -> "CompileContext":
        copied = self._copy()
        copied._tables = self._tables
        return copied

    def _apply(self, setting: str, value: int) -> None:
        rc = self._set(setting, value)
        if rc != 0:
            reason = f"{setting} = {value} rejected: {call_get_error_message(self._lib, rc)}"
            raise CompileError(None, 0, reason, rc, code=error_name(rc))

    def set_newline(self, newline: int) -> None:
        """Newline convention, one of ``NEWLINE_*``."""
        self._apply("newline", newline)

    def set_bsr(self, bsr: int) -> None:
        """What ``\\R`` matches, one of ``BSR_*``."""
        self._apply("bsr", bsr)

    def set_parens_nest_limit(self, limit: int) -> None:
        self._apply("parens_nest_limit", limit)

    def set_max_pattern_length(self, length: int) -> None:
        """Maximum pattern length in code units."""
        self._apply("max_pattern_length", length)

    def set_compile_extra_options(self, options: int) -> None:
        """Extra compile options, ``EXTRA_*`` bits."""
        self._apply("compile_extra_options", options)

    def set_character_tables(self, tables: CharacterTables | None) -> None:
        """Use locale tables for patterns compiled with this context; None restores the defaults."""
        handle = tables.handle if tables is not None else 0
        self._apply("character_tables", handle)
        self._tables = tables


# =============================================================================
# Match Context
# =============================================================================


class MatchContext(_ChildContext):
    """
    Options applied at match time.

    The limits are how runaway backtracking is bounded: a match call cannot
    be interrupted once started. A match that hits a limit returns a
    ``LIMIT_EXCEEDED`` result.
    """

    _kind = "match"

    def __init__(self, general: GeneralContext | None = None, lib: Pcre2Library | None = None):
        super().__init__(general, lib)
        self._jit_stack: Any = None

    def copy(self) -> "MatchContext":
        copied = self._copy()
        copied._jit_stack = self._jit_stack
        return copied

    def _apply(self, setting: str, value: int) -> None:
        rc = self._set(setting, value)
        if rc != 0:
            raise ValidationError(
                f"{setting} = {value} rejected: {call_get_error_message(self._lib, rc)}",
                code=error_name(rc),
                details={"setting": setting, "value": value},
                original_code=rc,
            )

    def set_match_limit(self, limit: int) -> None:
        """Maximum number of internal match() calls (backtracking steps)."""
        self._apply("match_limit", limit)

    def set_depth_limit(self, limit: int) -> None:
        """Maximum backtracking depth."""
        self._apply("depth_limit", limit)

    def set_heap_limit(self, kibibytes: int) -> None:
        """Maximum heap memory for backtracking, in KiB."""
        self._apply("heap_limit", kibibytes)

    def set_offset_limit(self, offset: int) -> None:
        """Furthest start offset; needs a pattern compiled with ``USE_OFFSET_LIMIT``."""
        self._apply("offset_limit", offset)

    def assign_jit_stack(self, stack: Any) -> None:
        """
        Use ``stack`` for JIT matches run with this context.

        The context does not take ownership; close the stack only after
        every context using it is done. None restores the engine's default
        stack.
        """
        stack_handle = stack.handle if stack is not None else 0
        with NativeScope(self._lib.width) as scope:
            scope.keep(self, stack)
            call_jit_stack_assign(self._lib, self.handle, stack_handle)
        self._jit_stack = stack


# =============================================================================
# Convert Context
# =============================================================================


def _code_point(char: int | str) -> int:
    if isinstance(char, str):
        if len(char) != 1:
            raise ValidationError(
                f"Expected a single character, got {char!r}", details={"value": char}
            )
        return ord(char)
    return char


class ConvertContext(_ChildContext):
    """Options for glob/POSIX pattern conversion."""

    _kind = "convert"

    def copy(self) -> "ConvertContext":
        return self._copy()

    def _apply(self, setting: str, value: int) -> None:
        rc = self._set(setting, value)
        if rc != 0:
            raise ValidationError(
                f"{setting} = {value!r} rejected: {call_get_error_message(self._lib, rc)}",
                code=error_name(rc),
                details={"setting": setting, "value": value},
                original_code=rc,
            )

    def set_glob_escape(self, char: int | str) -> None:
        """Escape character for globs; 0 disables escaping."""
        self._apply("glob_escape", _code_point(char))

    def set_glob_separator(self, char: int | str) -> None:
        """Path separator for globs: ``/``, ``\\`` or ``.``."""
        self._apply("glob_separator", _code_point(char))


def convert_pattern(
    pattern: str | bytes,
    options: int = CONVERT_GLOB,
    context: ConvertContext | None = None,
    lib: Pcre2Library | None = None,
) -> str | bytes:
    """
    Convert a glob or POSIX pattern into PCRE2 syntax.

    Example::

        regex = convert_pattern("*.py")   # e.g. '(?s)\\A[^/]*?\\.py\\z'

    The exact output is the engine's business and may differ between
    PCRE2 releases.
    """
    if context is not None:
        lib = lib or context.lib
        with NativeScope(context.lib.width) as scope:
            scope.keep(context)
            return call_pattern_convert(lib, pattern, options, context.handle)
    return call_pattern_convert(lib, pattern, options)
