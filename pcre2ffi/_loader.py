"""
Locate and open the PCRE2 shared library, then resolve its entry points.

Justification: ctypes only knows how to open one exact file name or path.
PCRE2 ships as three libraries (one per code-unit width) under names that
differ per platform and per distribution, so discovery is done here, once,
before any binding table is built.

Discovery order for a bare library name (``"pcre2-8"``):

1. ``ctypes.util.find_library`` (the platform's own search path)
2. The platform's mapped file names (``libpcre2-8.so.0``, ``libpcre2-8.dylib``,
   ``pcre2-8.dll``), opened through the dynamic loader
3. ``pcre2-config --libs8`` and ``pkg-config --variable=libdir libpcre2-8``
4. Well-known install directories (multiarch, Homebrew, MacPorts)

A name containing a path separator is opened as an explicit file and never
searched for.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import os
import subprocess
import sys
from collections.abc import Iterable
from typing import Any

from ._logging import scoped_logger
from .constants import Width
from .exceptions import LibraryNotFoundError, SymbolNotFoundError, ValidationError

logger = scoped_logger("loader")

# Seconds to wait for pcre2-config / pkg-config
SUBPROCESS_TIMEOUT = 5

LINUX_WELL_KNOWN_PATHS = (
    "/usr/lib/x86_64-linux-gnu",
    "/usr/lib/aarch64-linux-gnu",
    "/usr/lib64",
    "/usr/lib",
    "/usr/local/lib",
)

MACOS_WELL_KNOWN_PATHS = (
    "/opt/homebrew/lib",
    "/usr/local/lib",
    "/opt/local/lib",
)


# =============================================================================
# Width Inference
# =============================================================================


def infer_width(name_or_suffix: str) -> Width | None:
    """
    Infer the code-unit width from a library name, path or symbol suffix.

    >>> infer_width("pcre2-16")
    <Width.UTF16: 2>
    >>> infer_width("_32")
    <Width.UTF32: 4>
    >>> infer_width("/opt/lib/libpcre2-8.so.0")
    <Width.UTF8: 1>

    Returns None when nothing width-specific appears in the string.
    """
    text = os.path.basename(name_or_suffix)
    for width in (Width.UTF16, Width.UTF32, Width.UTF8):
        if text == width.suffix or width.library in text:
            return width
    return None


# =============================================================================
# Library Discovery
# =============================================================================


def is_path(name: str) -> bool:
    """True if ``name`` names a file rather than a library to search for."""
    return os.sep in name or (os.altsep is not None and os.altsep in name)


def mapped_names(name: str) -> list[str]:
    """Platform file names for a bare library name (``System.mapLibraryName`` style)."""
    if sys.platform == "win32":
        return [f"{name}.dll", f"lib{name}.dll"]
    if sys.platform == "darwin":
        return [f"lib{name}.0.dylib", f"lib{name}.dylib"]
    return [f"lib{name}.so.0", f"lib{name}.so"]


def well_known_dirs() -> tuple[str, ...]:
    if sys.platform == "darwin":
        return MACOS_WELL_KNOWN_PATHS
    if sys.platform.startswith("linux"):
        return LINUX_WELL_KNOWN_PATHS
    return ()


def _run(*args: str) -> str | None:
    """Run a helper tool, returning stdout or None if it is unavailable."""
    try:
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=SUBPROCESS_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Helper unavailable", extra={"command": args[0], "reason": str(e)})
        return None
    if completed.returncode != 0:
        return None
    return completed.stdout.strip() or None


def parse_lib_dir(flags: str) -> str | None:
    """
    Extract the first ``-L`` directory from linker flags.

    >>> parse_lib_dir("-L/opt/pcre2/lib -lpcre2-8")
    '/opt/pcre2/lib'
    >>> parse_lib_dir("-L /usr/lib -lpcre2-8")
    '/usr/lib'
    """
    parts = flags.split()
    for i, part in enumerate(parts):
        if part.startswith("-L") and len(part) > 2:
            return part[2:]
        if part == "-L" and i + 1 < len(parts):
            return parts[i + 1]
    return None


def _tool_dirs(name: str) -> list[str]:
    """Library directories reported by pcre2-config and pkg-config."""
    width = infer_width(name)
    if width is None:
        return []

    dirs = []
    flags = _run("pcre2-config", f"--libs{width.bits}")
    if flags:
        lib_dir = parse_lib_dir(flags)
        if lib_dir:
            dirs.append(lib_dir)
    lib_dir = _run("pkg-config", "--variable=libdir", f"lib{name}")
    if lib_dir:
        dirs.append(lib_dir)
    return dirs


def candidates(name: str) -> list[str]:
    """
    Ordered, de-duplicated list of names/paths to try for ``name``.

    An explicit path is returned as the only candidate.
    """
    if is_path(name):
        return [name]

    ordered: list[str] = []
    found = ctypes.util.find_library(name)
    if found:
        ordered.append(found)
    ordered.extend(mapped_names(name))
    for directory in [*_tool_dirs(name), *well_known_dirs()]:
        for mapped in mapped_names(name):
            ordered.append(os.path.join(directory, mapped))

    return list(dict.fromkeys(ordered))


def load_library(name: str) -> tuple[Any, str]:
    """
    Open a PCRE2 shared library.

    Args:
        name: Bare library name (``"pcre2-8"``) or a path to the library file.

    Returns:
        Tuple of (ctypes library handle, the name or path that was opened).

    Raises:
        ValidationError: If ``name`` is empty.
        LibraryNotFoundError: If no candidate could be opened.
    """
    if not name:
        raise ValidationError("Library name must not be empty")

    tried = candidates(name)
    errors: dict[str, str] = {}
    for candidate in tried:
        if os.path.isabs(candidate) and not os.path.exists(candidate):
            continue
        logger.debug("Probing library", extra={"path": candidate})
        try:
            handle = ctypes.CDLL(candidate)
        except OSError as e:
            errors[candidate] = str(e)
            continue
        logger.info("Loaded PCRE2 library", extra={"path": candidate})
        return handle, candidate

    raise LibraryNotFoundError(
        f"Could not load PCRE2 library {name!r}",
        details={"name": name, "candidates": tried, "errors": errors},
    )


# =============================================================================
# Symbol Resolution
# =============================================================================


def resolve_symbols(
    handle: Any, names: Iterable[str], suffix: str, library: str | None = None
) -> dict[str, Any]:
    """
    Resolve ``<name><suffix>`` for every name.

    The whole table is resolved eagerly. The first missing symbol raises
    SymbolNotFoundError; a partial table is never returned.

    Args:
        handle: Opened library (anything exposing symbols as attributes).
        names: Unsuffixed entry-point names, e.g. ``"pcre2_compile"``.
        suffix: Width suffix such as ``"_8"``; may be empty.
        library: Library path, used only in the error message.

    Returns:
        Mapping from unsuffixed name to the resolved foreign function.
    """
    resolved: dict[str, Any] = {}
    for name in names:
        symbol = f"{name}{suffix}"
        try:
            resolved[name] = getattr(handle, symbol)
        except AttributeError:
            raise SymbolNotFoundError(symbol, library) from None
    return resolved
