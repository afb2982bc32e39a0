"""
Convert between ``str`` indices and the engine's code-unit offsets.

The engine reports and accepts offsets in code units of the library width
(bytes for the 8-bit library). Python ``str`` indexes code points, so any
character outside ASCII (8-bit) or outside the BMP (16-bit) makes the two
disagree:

    ========================  =====  ======  ======
    character                 UTF-8  UTF-16  UTF-32
    ========================  =====  ======  ======
    U+0000..U+007F            1      1       1
    U+0080..U+07FF            2      1       1
    U+0800..U+FFFF            3      1       1
    U+10000..U+10FFFF         4      2       1
    lone surrogate            3      1       1
    ========================  =====  ======  ======

``-1`` (an unset capture group) passes through every conversion unchanged.
``bytes`` subjects are already in code units and are passed through after
range checks.
"""

from __future__ import annotations

from collections.abc import Sequence

from .constants import Width
from .exceptions import OffsetOutOfRangeError, ValidationError

__all__ = [
    "char_index_to_byte_offset",
    "byte_offset_to_char_index",
    "byte_ovector_to_char_indices",
    "encoded_length",
]

UNSET = -1


def _units(char: str, width: Width) -> int:
    cp = ord(char)
    if width is Width.UTF8:
        if cp < 0x80:
            return 1
        if cp < 0x800:
            return 2
        if cp < 0x10000:
            return 3
        return 4
    if width is Width.UTF16:
        return 2 if cp > 0xFFFF else 1
    return 1


def _is_identity(subject: str | bytes, width: Width) -> bool:
    if isinstance(subject, (bytes, bytearray)):
        return True
    if width is Width.UTF32:
        return True
    return subject.isascii()


def _total_units(subject: str | bytes, width: Width) -> int:
    if isinstance(subject, (bytes, bytearray)):
        return len(subject) // width.unit_size
    return len(subject)


def encoded_length(subject: str | bytes, width: Width = Width.UTF8) -> int:
    """
    Length of ``subject`` in code units.

    >>> encoded_length("héllo")
    6
    >>> encoded_length("😀", Width.UTF16)
    2
    """
    if _is_identity(subject, width):
        return _total_units(subject, width)
    return sum(_units(c, width) for c in subject)


def char_index_to_byte_offset(
    subject: str | bytes, index: int, width: Width = Width.UTF8
) -> int:
    """
    Code-unit offset of character ``index``.

    >>> char_index_to_byte_offset("héllo", 2)
    3
    >>> char_index_to_byte_offset("", 0)
    0

    Raises:
        OffsetOutOfRangeError: If ``index`` is outside ``[0, len(subject)]``.
    """
    size = _total_units(subject, width)
    if index < 0 or index > size:
        raise OffsetOutOfRangeError(
            f"Index {index} outside subject of length {size}",
            details={"index": index, "length": size},
        )
    if _is_identity(subject, width):
        return index
    return sum(_units(c, width) for c in subject[:index])


def _boundaries(subject: str, width: Width) -> dict[int, int]:
    """Map each character boundary's code-unit offset to its str index."""
    table = {0: 0}
    offset = 0
    for i, char in enumerate(subject, 1):
        offset += _units(char, width)
        table[offset] = i
    return table


def _lookup(table: dict[int, int] | None, total: int, offset: int) -> int:
    if offset == UNSET:
        return UNSET
    if offset < 0 or offset > total:
        raise OffsetOutOfRangeError(
            f"Offset {offset} outside subject of {total} code units",
            details={"offset": offset, "length": total},
        )
    if table is None:
        return offset
    try:
        return table[offset]
    except KeyError:
        raise ValidationError(
            f"Offset {offset} falls inside a multi-unit character",
            code="INVALID_OFFSET",
            details={"offset": offset},
        ) from None


def byte_offset_to_char_index(
    subject: str | bytes, offset: int, width: Width = Width.UTF8
) -> int:
    """
    Character index at code-unit ``offset``.

    >>> byte_offset_to_char_index("héllo", 3)
    2
    >>> byte_offset_to_char_index("héllo", -1)
    -1

    Raises:
        OffsetOutOfRangeError: If ``offset`` is past the end of the subject.
        ValidationError: If ``offset`` points into the middle of a character.
    """
    if _is_identity(subject, width):
        return _lookup(None, _total_units(subject, width), offset)
    return _lookup(_boundaries(subject, width), encoded_length(subject, width), offset)


def byte_ovector_to_char_indices(
    subject: str | bytes, ovector: Sequence[int], width: Width = Width.UTF8
) -> list[int]:
    """
    Translate a whole ovector (``[start0, end0, start1, end1, ...]``).

    The subject is scanned once regardless of the ovector's length.

    >>> byte_ovector_to_char_indices("añb", [1, 3, -1, -1])
    [1, 2, -1, -1]
    """
    if _is_identity(subject, width):
        total = _total_units(subject, width)
        return [_lookup(None, total, value) for value in ovector]
    table = _boundaries(subject, width)
    total = max(table)
    return [_lookup(table, total, value) for value in ovector]
