"""
Match outcomes as values.

The engine's integer return code is folded into a closed set of statuses.
No-match, partial match and hitting a match/depth/heap/JIT-stack limit are
expected outcomes and come back as results; only genuine engine errors
(bad option, bad UTF, corrupted pattern, DFA workspace misuse, ...) raise
:class:`~pcre2ffi.exceptions.MatchError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ._bindings import call_get_error_message
from ._native import Pcre2Library
from ._scope import Subject, decode_text
from .constants import ERROR_NOMATCH, ERROR_PARTIAL, LIMIT_ERRORS, error_name
from .exceptions import MatchError
from .offsets import byte_ovector_to_char_indices

__all__ = ["MatchStatus", "MatchResult", "DfaMatchResult", "classify"]


class MatchStatus(Enum):
    """Outcome of one match call."""

    MATCHED = "matched"
    # Matched, but the match data had fewer pairs than the pattern has groups
    OVECTOR_TOO_SMALL = "ovector_too_small"
    NO_MATCH = "no_match"
    PARTIAL = "partial"
    LIMIT_EXCEEDED = "limit_exceeded"


def classify(return_code: int, lib: Pcre2Library | None = None) -> MatchStatus:
    """
    Map a raw match return code to a status.

    Raises:
        MatchError: For any negative code that is not an expected outcome.
    """
    if return_code > 0:
        return MatchStatus.MATCHED
    if return_code == 0:
        return MatchStatus.OVECTOR_TOO_SMALL
    if return_code == ERROR_NOMATCH:
        return MatchStatus.NO_MATCH
    if return_code == ERROR_PARTIAL:
        return MatchStatus.PARTIAL
    if return_code in LIMIT_ERRORS:
        return MatchStatus.LIMIT_EXCEEDED
    raise MatchError(
        f"Match failed: {call_get_error_message(lib, return_code)}",
        code=error_name(return_code),
        details={"return_code": return_code},
        original_code=return_code,
    )


def pairs_set(status: MatchStatus, return_code: int, ovector_count: int) -> int:
    """How many ovector pairs hold valid data after a match."""
    if status is MatchStatus.MATCHED:
        return min(return_code, ovector_count)
    if status is MatchStatus.OVECTOR_TOO_SMALL:
        return ovector_count
    if status is MatchStatus.PARTIAL:
        return 1
    return 0


@dataclass(frozen=True)
class MatchResult:
    """
    Snapshot of one match.

    Offsets in ``ovector`` are code units of the library width. The
    ``char_*`` accessors translate them to ``str`` indices. The snapshot does
    not depend on the match data afterwards, so reusing the match data for
    the next match does not change it.

    Attributes
    ----------
    status : MatchStatus
    return_code : int
        Raw engine result. For LIMIT_EXCEEDED, which limit was hit
        (see :attr:`error`).
    ovector : tuple[int, ...]
        ``(start0, end0, start1, end1, ...)``; -1 for unset groups.
    """

    status: MatchStatus
    return_code: int
    ovector: tuple[int, ...] = ()
    subject: Subject | None = field(default=None, repr=False, compare=False)

    @property
    def matched(self) -> bool:
        return self.status in (MatchStatus.MATCHED, MatchStatus.OVECTOR_TOO_SMALL)

    def __bool__(self) -> bool:
        return self.matched

    @property
    def error(self) -> str | None:
        """Symbolic name of the engine code for non-matches (e.g. ``ERROR_MATCHLIMIT``)."""
        return error_name(self.return_code) if self.return_code < 0 else None

    @property
    def pair_count(self) -> int:
        return len(self.ovector) // 2

    def span(self, group: int = 0) -> tuple[int, int]:
        """Code-unit ``(start, end)`` of a group, ``(-1, -1)`` if unset."""
        if group < 0 or group >= self.pair_count:
            return (-1, -1)
        return (self.ovector[2 * group], self.ovector[2 * group + 1])

    def char_span(self, group: int = 0) -> tuple[int, int]:
        """``str``-index ``(start, end)`` of a group."""
        span = self.span(group)
        if self.subject is None or not self.subject.is_text:
            return span
        start, end = byte_ovector_to_char_indices(self.subject.source, span, self.subject.width)
        return (start, end)

    def char_ovector(self) -> list[int]:
        if self.subject is None or not self.subject.is_text:
            return list(self.ovector)
        return byte_ovector_to_char_indices(self.subject.source, self.ovector, self.subject.width)

    def group(self, group: int = 0) -> str | bytes | None:
        """Text of a group, or None if it did not participate."""
        start, end = self.span(group)
        if start < 0 or self.subject is None:
            return None
        return _slice(self.subject, start, end)

    def groups(self) -> list[str | bytes | None]:
        """Text of every captured group (excluding group 0)."""
        return [self.group(i) for i in range(1, self.pair_count)]


@dataclass(frozen=True)
class DfaMatchResult:
    """
    Every match the DFA algorithm found at the first matching position.

    All alternatives share a start offset; ``ends`` lists their end offsets
    longest first, as the engine orders them.
    """

    status: MatchStatus
    return_code: int
    ovector: tuple[int, ...] = ()
    subject: Subject | None = field(default=None, repr=False, compare=False)

    @property
    def matched(self) -> bool:
        return self.status in (MatchStatus.MATCHED, MatchStatus.OVECTOR_TOO_SMALL)

    def __bool__(self) -> bool:
        return self.matched

    @property
    def count(self) -> int:
        return len(self.ovector) // 2

    @property
    def start(self) -> int:
        return self.ovector[0] if self.ovector else -1

    @property
    def ends(self) -> list[int]:
        return [self.ovector[2 * i + 1] for i in range(self.count)]

    @property
    def char_ends(self) -> list[int]:
        if self.subject is None or not self.subject.is_text:
            return self.ends
        return byte_ovector_to_char_indices(self.subject.source, self.ends, self.subject.width)

    @property
    def matches(self) -> list[str | bytes]:
        """Matched text of every alternative, longest first."""
        if self.subject is None:
            return []
        return [_slice(self.subject, self.start, end) for end in self.ends]


def _slice(subject: Subject, start: int, end: int) -> str | bytes:
    unit = subject.width.unit_size
    data = subject.buffer.raw[start * unit : end * unit]
    return decode_text(data, subject.width) if subject.is_text else data
