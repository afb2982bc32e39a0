"""Match data: the capture vector written by every match and substitute call."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._bindings import (
    call_get_mark,
    call_get_ovector,
    call_get_ovector_count,
    call_get_startchar,
    call_match_data_create,
    call_match_data_create_from_pattern,
    call_match_data_free,
    call_substring_copy,
    call_substring_get,
    call_substring_length,
    call_substring_list,
)
from ._native import Pcre2Library
from ._resource import NativeResource
from ._scope import NativeScope, Subject, decode_text
from .contexts import GeneralContext, _general_handle, _resolve
from .exceptions import StateError

if TYPE_CHECKING:
    from .code import Code

__all__ = ["MatchData"]


class MatchData(NativeResource):
    """
    Capture vector for one match at a time.

    Not thread-safe: give every concurrent match its own MatchData. The
    number of ovector pairs is fixed at creation.

    Substring accessors read through the subject of the latest match, which
    this object keeps alive until the next match replaces it.

    Args:
        pairs: Number of (start, end) pairs the ovector can hold.
        general: Optional general context used for the allocation.
    """

    _kind = "match_data"

    def __init__(
        self,
        pairs: int,
        general: GeneralContext | None = None,
        lib: Pcre2Library | None = None,
    ):
        lib, general_ptr = _resolve(general, lib)
        super().__init__(call_match_data_create(lib, pairs, general_ptr), lib)
        self._pairs = call_get_ovector_count(lib, self._ptr)
        self._subject: Subject | None = None

    @classmethod
    def from_pattern(cls, code: "Code", general: GeneralContext | None = None) -> "MatchData":
        """Match data sized for ``code``: one pair per capture group plus the whole match."""
        lib = code.lib
        with NativeScope(lib.width) as scope:
            scope.keep(code, general)
            ptr = call_match_data_create_from_pattern(lib, code.handle, _general_handle(general))
        instance = cls._from_handle(lib, ptr)
        instance._pairs = call_get_ovector_count(lib, ptr)
        instance._subject = None
        return instance

    def _release(self, ptr: int) -> None:
        call_match_data_free(self._lib, ptr)
        self._subject = None

    def _bind_subject(self, subject: Subject) -> None:
        self._subject = subject

    def _require_subject(self) -> Subject:
        if self._subject is None:
            raise StateError("MatchData has not been used for a match yet")
        return self._subject

    def _text(self, data: bytes) -> str | bytes:
        subject = self._require_subject()
        return decode_text(data, self._lib.width) if subject.is_text else data

    @property
    def ovector_count(self) -> int:
        """Number of ovector pairs; never changes."""
        return self._pairs

    def ovector(self, pairs: int | None = None) -> list[int]:
        """Raw code-unit ovector of the latest match; -1 marks unset groups."""
        return call_get_ovector(self._lib, self.handle, pairs)

    @property
    def startchar(self) -> int:
        """Code-unit offset where the latest successful or partial match started."""
        return call_get_startchar(self._lib, self.handle)

    @property
    def mark(self) -> str | None:
        """Name of the last ``(*MARK)`` passed, or None."""
        return call_get_mark(self._lib, self.handle)

    # =========================================================================
    # Substrings
    # =========================================================================

    def substring_length(self, group: int | str) -> int:
        """Length of a group in code units, by number or name."""
        self._require_subject()
        return call_substring_length(self._lib, self.handle, group)

    def substring_copy(self, group: int | str) -> str | bytes:
        """Group text via ``pcre2_substring_copy_*`` (caller-owned buffer)."""
        return self._text(call_substring_copy(self._lib, self._live(), group))

    def substring_get(self, group: int | str) -> str | bytes:
        """Group text via ``pcre2_substring_get_*`` (engine-allocated, freed here)."""
        return self._text(call_substring_get(self._lib, self._live(), group))

    def substring_list(self) -> list[str | bytes]:
        """Text of every group of the latest match; unset groups are empty."""
        return [self._text(data) for data in call_substring_list(self._lib, self._live())]

    def _live(self) -> int:
        self._require_subject()
        return self.handle
