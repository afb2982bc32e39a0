"""
Handle lifecycle tests.

Verifies that every wrapper frees its native handle exactly once, whichever
of close(), context-manager exit and the finalizer gets there first. Runs
against the fake library so the free calls can be counted.
"""

import threading

import pytest

from pcre2ffi import (
    CharacterTables,
    Code,
    CompileContext,
    GeneralContext,
    JitStack,
    MatchContext,
    MatchData,
    StateError,
)

THREAD_TIMEOUT = 30


def _frees(fake_handle, name):
    return len(fake_handle.function(name).calls)


@pytest.mark.memory
class TestFreeExactlyOnce:
    """Every close path converges on a single native free."""

    def test_double_close(self, fake_lib, fake_handle):
        """close() twice frees once."""
        ctx = GeneralContext(lib=fake_lib)
        ctx.close()
        ctx.close()

        assert _frees(fake_handle, "pcre2_general_context_free") == 1
        assert ctx.closed

    def test_close_then_finalizer(self, fake_lib, fake_handle, collect):
        """The finalizer does nothing after an explicit close."""
        code = Code("a+", lib=fake_lib)
        code.close()
        del code
        collect()

        assert _frees(fake_handle, "pcre2_code_free") == 1

    def test_finalizer_frees_live_handle(self, fake_lib, fake_handle, collect):
        """An abandoned wrapper is freed by its finalizer."""
        MatchData(4, lib=fake_lib)
        collect()

        assert _frees(fake_handle, "pcre2_match_data_free") == 1

    def test_context_manager(self, fake_lib, fake_handle):
        with MatchContext(lib=fake_lib) as ctx:
            assert not ctx.closed

        assert ctx.closed
        assert _frees(fake_handle, "pcre2_match_context_free") == 1

    def test_context_manager_on_exception(self, fake_lib, fake_handle):
        with pytest.raises(RuntimeError):
            with JitStack(lib=fake_lib):
                raise RuntimeError("boom")

        assert _frees(fake_handle, "pcre2_jit_stack_free") == 1

    def test_free_alias(self, fake_lib, fake_handle):
        ctx = CompileContext(lib=fake_lib)
        ctx.free()
        ctx.close()

        assert _frees(fake_handle, "pcre2_compile_context_free") == 1

    def test_frees_the_created_handle(self, fake_lib, fake_handle):
        """The pointer passed to free is the one create returned."""
        fake_handle.function("pcre2_code_copy").result = 0x2000
        code = Code("a", lib=fake_lib)
        copy = code.copy()
        code.close()
        copy.close()

        freed = [args[0] for args in fake_handle.function("pcre2_code_free").calls]
        assert sorted(freed) == [0x1000, 0x2000]

    def test_tables_free_with_general(self, fake_lib, fake_handle):
        general = GeneralContext(lib=fake_lib)
        tables = CharacterTables(general)
        tables.close()

        assert fake_handle.function("pcre2_maketables_free").calls == [(0x1000, 0x1000)]

    def test_concurrent_close(self, fake_lib, fake_handle):
        """Threads racing to close one wrapper free it once."""
        code = Code("a", lib=fake_lib)
        barrier = threading.Barrier(8)

        def close():
            barrier.wait(timeout=THREAD_TIMEOUT)
            code.close()

        threads = [threading.Thread(target=close) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=THREAD_TIMEOUT)  # DEADLOCK_GUARD

        assert not any(t.is_alive() for t in threads)
        assert _frees(fake_handle, "pcre2_code_free") == 1


@pytest.mark.memory
class TestUseAfterClose:
    """A closed wrapper refuses to hand out its handle."""

    def test_handle_after_close(self, fake_lib):
        ctx = GeneralContext(lib=fake_lib)
        ctx.close()

        with pytest.raises(StateError, match="GeneralContext is closed"):
            ctx.handle

    def test_copy_after_close(self, fake_lib):
        code = Code("a", lib=fake_lib)
        code.close()

        with pytest.raises(StateError):
            code.copy()

    def test_repr(self, fake_lib):
        code = Code("a+", lib=fake_lib)
        assert repr(code) == "Code('a+')"
        code.close()
        assert repr(code) == "Code(closed)"


@pytest.mark.memory
class TestFailedConstruction:
    """Construction that fails leaves nothing to free."""

    def test_null_from_create(self, fake_lib, fake_handle, collect):
        """A NULL from the allocator raises ResourceError and frees nothing."""
        from pcre2ffi import ResourceError

        fake_handle.function("pcre2_match_context_create").result = None

        with pytest.raises(ResourceError):
            MatchContext(lib=fake_lib)
        collect()

        assert _frees(fake_handle, "pcre2_match_context_free") == 0

    def test_invalid_pairs(self, fake_lib, fake_handle):
        from pcre2ffi import ValidationError

        with pytest.raises(ValidationError):
            MatchData(0, lib=fake_lib)

        assert fake_handle.function("pcre2_match_data_create").calls == []

    @pytest.mark.parametrize(
        ("create", "native"),
        [
            (lambda lib, general: MatchData(4, general=general, lib=lib), "pcre2_match_data_create"),
            (lambda lib, general: JitStack(general=general, lib=lib), "pcre2_jit_stack_create"),
            (lambda lib, general: CharacterTables(general=general, lib=lib), "pcre2_maketables"),
            (
                lambda lib, general: MatchContext(general=general, lib=lib),
                "pcre2_match_context_create",
            ),
        ],
    )
    def test_general_must_be_a_context(self, fake_lib, fake_handle, create, native):
        """A non-context general argument is rejected before any native call."""
        from pcre2ffi import ValidationError

        with pytest.raises(ValidationError):
            create(fake_lib, object())

        assert fake_handle.function(native).calls == []
