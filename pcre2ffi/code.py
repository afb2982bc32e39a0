"""
Compiled patterns.

A :class:`Code` is immutable once compiled and may be shared by any number
of threads, provided each concurrent match uses its own MatchData.

Example::

    from pcre2ffi import Code, MatchData

    with Code.compile(r"(?<year>\\d{4})-(?<month>\\d{2})") as code:
        result = code.match("released 2024-06")
        result.group(1)        # '2024'
        result.char_span(0)    # (9, 16)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ._bindings import (
    DFA_WORKSPACE_DEFAULT,
    _lib,
    call_code_copy,
    call_code_free,
    call_compile,
    call_dfa_match,
    call_get_error_message,
    call_get_ovector,
    call_jit_compile,
    call_jit_match,
    call_match,
    call_name_table,
    call_pattern_info,
    call_substitute,
    call_substring_nametable_scan,
    call_substring_number_from_name,
)
from ._native import Pcre2Library
from ._resource import NativeResource
from ._scope import NativeScope, Subject
from .constants import (
    INFO_ALLOPTIONS,
    INFO_ARGOPTIONS,
    INFO_BACKREFMAX,
    INFO_BSR,
    INFO_CAPTURECOUNT,
    INFO_DEPTHLIMIT,
    INFO_EXTRAOPTIONS,
    INFO_FRAMESIZE,
    INFO_HASBACKSLASHC,
    INFO_HASCRORLF,
    INFO_HEAPLIMIT,
    INFO_JCHANGED,
    INFO_JITSIZE,
    INFO_MATCHEMPTY,
    INFO_MATCHLIMIT,
    INFO_MAXLOOKBEHIND,
    INFO_MINLENGTH,
    INFO_NAMECOUNT,
    INFO_NEWLINE,
    INFO_SIZE,
    JIT_DEFAULT,
    error_name,
)
from .contexts import CompileContext, MatchContext
from .exceptions import CompileError, ValidationError
from .match_data import MatchData
from .results import DfaMatchResult, MatchResult, classify, pairs_set

__all__ = ["Code"]

# Ovector pairs for match data created implicitly by dfa_match
DFA_DEFAULT_PAIRS = 32


class Code(NativeResource):
    """
    A compiled pattern.

    Args:
        pattern: Pattern text. ``str`` is encoded for the library width;
            ``bytes`` must already be encoded.
        options: Compile option bits (``CASELESS``, ``UTF``, ...).
        context: Optional compile context.
        lib: Library to compile with; defaults to the context's library,
            then the process default.

    Raises:
        CompileError: If the engine rejects the pattern.
    """

    _kind = "code"

    def __init__(
        self,
        pattern: str | bytes,
        options: int = 0,
        context: CompileContext | None = None,
        lib: Pcre2Library | None = None,
    ):
        if context is not None:
            lib = lib or context.lib
        lib = _lib(lib)
        with NativeScope(lib.width) as scope:
            scope.keep(context)
            ptr = call_compile(lib, pattern, options, context.handle if context else 0)
        super().__init__(ptr, lib)
        self._pattern = pattern
        # Patterns compiled with custom tables point into them
        self._tables = context._tables if context is not None else None

    @classmethod
    def compile(
        cls,
        pattern: str | bytes,
        options: int = 0,
        context: CompileContext | None = None,
        lib: Pcre2Library | None = None,
    ) -> "Code":
        """Compile ``pattern``. Same as calling the constructor."""
        return cls(pattern, options, context, lib)

    @classmethod
    def _adopt(cls, lib: Pcre2Library, ptr: int, pattern: Any = None, tables: Any = None) -> "Code":
        code = cls._from_handle(lib, ptr)
        code._pattern = pattern
        code._tables = tables
        return code

    def copy(self) -> "Code":
        """
        Independent copy of the compiled pattern (``pcre2_code_copy``).

        JIT code is not copied; call :meth:`jit_compile` on the copy if needed.
        """
        return Code._adopt(self._lib, self._copy_handle(call_code_copy), self._pattern, self._tables)

    def _release(self, ptr: int) -> None:
        call_code_free(self._lib, ptr)

    @property
    def pattern(self) -> str | bytes | None:
        """Source pattern; None for patterns restored by deserialization."""
        return self._pattern

    def __repr__(self) -> str:
        if self.closed:
            return "Code(closed)"
        return f"Code({self._pattern!r})"

    # =========================================================================
    # Pattern Info
    # =========================================================================

    def info(self, what: int) -> int | None:
        """Raw ``pcre2_pattern_info`` value for an ``INFO_*`` selector."""
        with NativeScope(self._lib.width) as scope:
            scope.keep(self)
            return call_pattern_info(self._lib, self.handle, what)

    @property
    def capture_count(self) -> int:
        return self.info(INFO_CAPTURECOUNT) or 0

    @property
    def name_count(self) -> int:
        return self.info(INFO_NAMECOUNT) or 0

    @property
    def name_table(self) -> list[tuple[int, str]]:
        """``(group_number, name)`` pairs in the engine's (alphabetical) order."""
        with NativeScope(self._lib.width) as scope:
            scope.keep(self)
            return call_name_table(self._lib, self.handle)

    def group_names(self) -> dict[str, int]:
        """Name to group number; with duplicate names the lowest number wins."""
        names: dict[str, int] = {}
        for number, name in self.name_table:
            names.setdefault(name, number)
        return names

    @property
    def arg_options(self) -> int:
        """Options passed to compile."""
        return self.info(INFO_ARGOPTIONS) or 0

    @property
    def all_options(self) -> int:
        """Compile options after in-pattern settings such as ``(*UTF)``."""
        return self.info(INFO_ALLOPTIONS) or 0

    @property
    def extra_options(self) -> int:
        return self.info(INFO_EXTRAOPTIONS) or 0

    @property
    def size(self) -> int:
        return self.info(INFO_SIZE) or 0

    @property
    def jit_size(self) -> int:
        """Size of the JIT code, 0 if not JIT-compiled."""
        return self.info(INFO_JITSIZE) or 0

    @property
    def frame_size(self) -> int:
        return self.info(INFO_FRAMESIZE) or 0

    @property
    def min_length(self) -> int:
        return self.info(INFO_MINLENGTH) or 0

    @property
    def max_lookbehind(self) -> int:
        return self.info(INFO_MAXLOOKBEHIND) or 0

    @property
    def newline(self) -> int:
        return self.info(INFO_NEWLINE) or 0

    @property
    def bsr(self) -> int:
        return self.info(INFO_BSR) or 0

    @property
    def back_ref_max(self) -> int:
        return self.info(INFO_BACKREFMAX) or 0

    @property
    def match_empty(self) -> bool:
        return bool(self.info(INFO_MATCHEMPTY))

    @property
    def has_cr_or_lf(self) -> bool:
        return bool(self.info(INFO_HASCRORLF))

    @property
    def j_changed(self) -> bool:
        return bool(self.info(INFO_JCHANGED))

    @property
    def has_backslash_c(self) -> bool:
        return bool(self.info(INFO_HASBACKSLASHC))

    @property
    def match_limit(self) -> int | None:
        """Limit set in the pattern with ``(*LIMIT_MATCH=n)``, else None."""
        return self.info(INFO_MATCHLIMIT)

    @property
    def depth_limit(self) -> int | None:
        return self.info(INFO_DEPTHLIMIT)

    @property
    def heap_limit(self) -> int | None:
        return self.info(INFO_HEAPLIMIT)

    def substring_number_from_name(self, name: str) -> int:
        """Group number for ``name`` (raises SubstringError if unknown or not unique)."""
        with NativeScope(self._lib.width) as scope:
            scope.keep(self)
            return call_substring_number_from_name(self._lib, self.handle, name)

    def group_numbers(self, name: str) -> list[int]:
        """Every group number carrying ``name``; several with ``DUPNAMES``."""
        with NativeScope(self._lib.width) as scope:
            scope.keep(self)
            return call_substring_nametable_scan(self._lib, self.handle, name)

    # =========================================================================
    # JIT
    # =========================================================================

    def jit_compile(self, options: int = JIT_DEFAULT) -> None:
        """
        JIT-compile the pattern for the ``JIT_*`` modes in ``options``.

        Raises:
            CompileError: If the library was built without JIT or the options
                are invalid.
        """
        with NativeScope(self._lib.width) as scope:
            scope.keep(self)
            rc = call_jit_compile(self._lib, self.handle, options)
        if rc != 0:
            reason = f"JIT compilation failed: {call_get_error_message(self._lib, rc)}"
            raise CompileError(None, 0, reason, rc, code=error_name(rc))

    # =========================================================================
    # Matching
    # =========================================================================

    def _run(
        self,
        invoke: Callable[..., int],
        subject: Any,
        start: int,
        options: int,
        match_data: MatchData | None,
        context: MatchContext | None,
        **extra: Any,
    ) -> tuple[int, MatchData, Subject]:
        if match_data is None:
            match_data = MatchData.from_pattern(self)
        elif match_data.lib is not self._lib:
            raise ValidationError("MatchData was created with a different library")
        subject = Subject.of(subject, self._lib.width)
        with NativeScope(self._lib.width) as scope:
            # Everything the native call dereferences stays reachable until it returns
            scope.keep(self, match_data, context, subject)
            rc = invoke(
                self._lib,
                self.handle,
                subject,
                start,
                options,
                match_data.handle,
                context.handle if context is not None else 0,
                **extra,
            )
            match_data._bind_subject(subject)
        return rc, match_data, subject

    def _result(
        self, rc: int, match_data: MatchData, subject: Subject, cls: type = MatchResult
    ) -> Any:
        status = classify(rc, self._lib)
        pairs = pairs_set(status, rc, match_data.ovector_count)
        ovector = tuple(call_get_ovector(self._lib, match_data.handle, pairs)) if pairs else ()
        return cls(status, rc, ovector, subject)

    def match(
        self,
        subject: str | bytes,
        start: int = 0,
        options: int = 0,
        match_data: MatchData | None = None,
        context: MatchContext | None = None,
    ) -> MatchResult:
        """
        Match with the interpreter (or JIT code, if compiled and applicable).

        Args:
            subject: Text to match. ``str`` or already-encoded ``bytes``.
            start: Start offset in code units; convert a ``str`` index with
                :func:`pcre2ffi.offsets.char_index_to_byte_offset`.
            options: Match option bits (``NOTBOL``, ``PARTIAL_SOFT``, ...).
            match_data: Match data to write; one is created per call if None.
            context: Optional match context (limits, JIT stack).

        Returns:
            MatchResult. No match, partial match and exceeded limits are
            statuses, not exceptions.

        Raises:
            MatchError: For genuine engine errors.
        """
        return self._result(*self._run(call_match, subject, start, options, match_data, context))

    def jit_match(
        self,
        subject: str | bytes,
        start: int = 0,
        options: int = 0,
        match_data: MatchData | None = None,
        context: MatchContext | None = None,
    ) -> MatchResult:
        """Fast path through ``pcre2_jit_match``; requires :meth:`jit_compile` first."""
        return self._result(
            *self._run(call_jit_match, subject, start, options, match_data, context)
        )

    def dfa_match(
        self,
        subject: str | bytes,
        start: int = 0,
        options: int = 0,
        match_data: MatchData | None = None,
        context: MatchContext | None = None,
        workspace_size: int = DFA_WORKSPACE_DEFAULT,
    ) -> DfaMatchResult:
        """
        Match with the DFA algorithm, finding every match length at the first position.

        Args:
            workspace_size: Number of ints of DFA workspace.
        """
        if match_data is None:
            match_data = MatchData(DFA_DEFAULT_PAIRS, lib=self._lib)
        rc, match_data, subject = self._run(
            call_dfa_match,
            subject,
            start,
            options,
            match_data,
            context,
            workspace_size=workspace_size,
        )
        return self._result(rc, match_data, subject, DfaMatchResult)

    # =========================================================================
    # Substitution
    # =========================================================================

    def substitute(
        self,
        subject: str | bytes,
        replacement: str | bytes,
        start: int = 0,
        options: int = 0,
        match_data: MatchData | None = None,
        context: MatchContext | None = None,
        buffer_size: int | None = None,
    ) -> tuple[int, str | bytes]:
        """
        Replace matches of the pattern in ``subject``.

        Pass ``SUBSTITUTE_GLOBAL`` to replace every match and
        ``SUBSTITUTE_LITERAL`` to take the replacement verbatim.

        Returns:
            Tuple of (number of replacements, output text).

        Raises:
            SubstituteError: For a malformed replacement or other engine error.
        """
        subject = Subject.of(subject, self._lib.width)
        with NativeScope(self._lib.width) as scope:
            scope.keep(self, match_data, context, subject)
            rc, output = call_substitute(
                self._lib,
                self.handle,
                subject,
                replacement,
                start,
                options,
                match_data.handle if match_data is not None else 0,
                context.handle if context is not None else 0,
                buffer_size,
            )
            if match_data is not None:
                match_data._bind_subject(subject)
        return rc, output
