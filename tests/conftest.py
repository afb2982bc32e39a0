"""
Global pytest fixtures for pcre2ffi tests.

This module provides:
- Native library discovery (skip when PCRE2 is not installed)
- Fault handling for native crashes
- A fake library handle for lifecycle tests that must not touch PCRE2

=============================================================================
Skip vs Xfail Policy
=============================================================================

pytest.skip(): Infrastructure/environmental issues - NOT test failures:
  - PCRE2 shared library not installed
  - Library built without JIT (JIT tests only)
  - A code-unit width the installed library was not built for
  These are prerequisites, not pcre2ffi bugs.

pytest.xfail(): Known pcre2ffi limitations we want to track.
  These appear in CI reports and alert when fixed (XPASS).

Tests marked ``requires_lib`` need a real PCRE2; everything else runs
against pure Python or the fake handle below.
"""

import faulthandler
import gc

import pytest

# Enable faulthandler to trace native crashes (segfaults)
faulthandler.enable()


# =============================================================================
# Native Library Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def pcre2():
    """
    Import pcre2ffi with the default 8-bit library loaded.

    Raises:
        pytest.skip: If the PCRE2 shared library cannot be bound
    """
    import pcre2ffi

    try:
        pcre2ffi.get_lib()
    except pcre2ffi.LibraryError as e:
        pytest.skip(f"PCRE2 library not available: {e}")
    return pcre2ffi


@pytest.fixture(autouse=True)
def _skip_without_library(request):
    """Skip tests marked requires_lib / requires_jit when prerequisites are missing."""
    if request.node.get_closest_marker("requires_lib"):
        request.getfixturevalue("pcre2")
    if request.node.get_closest_marker("requires_jit"):
        request.getfixturevalue("jit")


@pytest.fixture(scope="session")
def lib(pcre2):
    """The process-default Pcre2Library."""
    return pcre2.get_lib()


@pytest.fixture(scope="session")
def jit(pcre2, lib):
    """Skip unless the library was built with JIT support."""
    if not pcre2.config.jit_supported(lib):
        pytest.skip("PCRE2 built without JIT support")
    return lib


@pytest.fixture(scope="session")
def lib16(pcre2):
    """The 16-bit library, loaded side by side with the default one."""
    try:
        return pcre2.load("pcre2-16")
    except pcre2.LibraryError as e:
        pytest.skip(f"16-bit PCRE2 library not available: {e}")


@pytest.fixture(scope="session")
def lib32(pcre2):
    """The 32-bit library, loaded side by side with the default one."""
    try:
        return pcre2.load("pcre2-32")
    except pcre2.LibraryError as e:
        pytest.skip(f"32-bit PCRE2 library not available: {e}")


# =============================================================================
# Fake Library
# =============================================================================


class FakeFunction:
    """Stand-in for a ctypes foreign function that records its calls."""

    def __init__(self, name, result=0x1000):
        self.__name__ = name
        self.result = result
        self.calls = []
        self.restype = None
        self.argtypes = None

    def __call__(self, *args):
        self.calls.append(args)
        if callable(self.result):
            return self.result(*args)
        return self.result


class FakeHandle:
    """
    Stand-in for an opened shared library.

    Every ``pcre2_*<suffix>`` symbol resolves to a FakeFunction returning a
    non-NULL handle, except those listed in ``missing``.
    """

    def __init__(self, suffix="_8", missing=()):
        self._suffix = suffix
        self._missing = set(missing)
        self._functions = {}

    def __getattr__(self, symbol):
        if symbol.startswith("_") or symbol in self._missing:
            raise AttributeError(symbol)
        if not symbol.endswith(self._suffix):
            raise AttributeError(symbol)
        return self._functions.setdefault(symbol, FakeFunction(symbol))

    def function(self, name):
        """FakeFunction for an unsuffixed entry point name."""
        return getattr(self, f"{name}{self._suffix}")


@pytest.fixture
def fake_handle():
    return FakeHandle()


@pytest.fixture
def fake_lib(fake_handle):
    """A Pcre2Library bound to the fake handle (8-bit, ``_8`` suffix)."""
    from pcre2ffi import Pcre2Library

    return Pcre2Library("fake/libpcre2-8.so", handle=fake_handle)


# =============================================================================
# Cleanup
# =============================================================================


@pytest.fixture
def collect():
    """Run a full garbage collection so finalizers execute deterministically."""

    def _collect():
        for _ in range(3):
            gc.collect()

    return _collect


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "requires_lib: marks tests requiring the PCRE2 library")
    config.addinivalue_line("markers", "requires_jit: marks tests requiring PCRE2 JIT support")
    config.addinivalue_line("markers", "memory: marks lifecycle/leak detection tests")
