"""
Build-time configuration of the loaded PCRE2 library (``pcre2_config``).

Example::

    >>> from pcre2ffi import config
    >>> config.build_info().version       # doctest: +SKIP
    '10.42 2022-12-11'
"""

from __future__ import annotations

from dataclasses import dataclass

from ._bindings import _lib, call_config
from ._native import Pcre2Library
from .constants import (
    CONFIG_BSR,
    CONFIG_COMPILED_WIDTHS,
    CONFIG_DEPTHLIMIT,
    CONFIG_HEAPLIMIT,
    CONFIG_JIT,
    CONFIG_JITTARGET,
    CONFIG_LINKSIZE,
    CONFIG_MATCHLIMIT,
    CONFIG_NEVER_BACKSLASH_C,
    CONFIG_NEWLINE,
    CONFIG_PARENSLIMIT,
    CONFIG_TABLES_LENGTH,
    CONFIG_UNICODE,
    CONFIG_UNICODE_VERSION,
    CONFIG_VERSION,
    Width,
)

__all__ = ["BuildInfo", "build_info", "version", "jit_supported", "compiled_widths"]


@dataclass(frozen=True)
class BuildInfo:
    """Snapshot of every ``CONFIG_*`` value."""

    version: str
    unicode: bool
    unicode_version: str | None
    jit: bool
    jit_target: str | None
    newline: int
    bsr: int
    link_size: int
    match_limit: int
    depth_limit: int
    heap_limit: int
    parens_limit: int
    never_backslash_c: bool
    compiled_widths: frozenset[Width]
    tables_length: int | None


def _int(lib: Pcre2Library, what: int) -> int:
    value = call_config(lib, what)
    return value if isinstance(value, int) else 0


def version(lib: Pcre2Library | None = None) -> str:
    """Engine version, e.g. ``'10.42 2022-12-11'``."""
    return str(call_config(_lib(lib), CONFIG_VERSION) or "")


def jit_supported(lib: Pcre2Library | None = None) -> bool:
    return bool(_int(_lib(lib), CONFIG_JIT))


def compiled_widths(lib: Pcre2Library | None = None) -> frozenset[Width]:
    """Widths the library build was configured with (usually reported as all three)."""
    mask = _int(_lib(lib), CONFIG_COMPILED_WIDTHS)
    return frozenset(width for width in Width if mask & width.config_bit)


def build_info(lib: Pcre2Library | None = None) -> BuildInfo:
    lib = _lib(lib)
    jit_target = call_config(lib, CONFIG_JITTARGET)
    unicode_version = call_config(lib, CONFIG_UNICODE_VERSION)
    tables_length = call_config(lib, CONFIG_TABLES_LENGTH)
    return BuildInfo(
        version=version(lib),
        unicode=bool(_int(lib, CONFIG_UNICODE)),
        unicode_version=unicode_version if isinstance(unicode_version, str) else None,
        jit=jit_supported(lib),
        jit_target=jit_target if isinstance(jit_target, str) else None,
        newline=_int(lib, CONFIG_NEWLINE),
        bsr=_int(lib, CONFIG_BSR),
        link_size=_int(lib, CONFIG_LINKSIZE),
        match_limit=_int(lib, CONFIG_MATCHLIMIT),
        depth_limit=_int(lib, CONFIG_DEPTHLIMIT),
        heap_limit=_int(lib, CONFIG_HEAPLIMIT),
        parens_limit=_int(lib, CONFIG_PARENSLIMIT),
        never_backslash_c=bool(_int(lib, CONFIG_NEVER_BACKSLASH_C)),
        compiled_widths=compiled_widths(lib),
        tables_length=tables_length if isinstance(tables_length, int) else None,
    )
