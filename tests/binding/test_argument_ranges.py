"""
Argument range tests.

ctypes masks an int that does not fit a uint32_t or PCRE2_SIZE parameter
instead of raising, so 2**32 would reach the engine as 0. Every such
argument must be rejected with ValidationError before the native call.
Serialized blobs too short to hold a header are rejected the same way.
Runs against the fake library so the (absent) native calls can be checked.
"""

import pytest

from pcre2ffi import (
    Code,
    CompileContext,
    ConvertContext,
    JitStack,
    MatchContext,
    MatchData,
    ValidationError,
)
from pcre2ffi._bindings import SIZE_MAX, UINT32_MAX, call_config, call_set

TOO_BIG = UINT32_MAX + 1


class TestContextSetters:
    """Setter values are checked against the parameter's native type."""

    @pytest.mark.parametrize(
        ("setter", "native"),
        [
            ("set_match_limit", "pcre2_set_match_limit"),
            ("set_depth_limit", "pcre2_set_depth_limit"),
            ("set_heap_limit", "pcre2_set_heap_limit"),
        ],
    )
    def test_match_limits_above_uint32(self, fake_lib, fake_handle, setter, native):
        """2**32 is rejected rather than installed as a limit of 0."""
        ctx = MatchContext(lib=fake_lib)

        with pytest.raises(ValidationError) as exc_info:
            getattr(ctx, setter)(TOO_BIG)

        assert exc_info.value.details["maximum"] == UINT32_MAX
        assert fake_handle.function(native).calls == []

    def test_uint32_max_is_accepted(self, fake_lib, fake_handle):
        ctx = MatchContext(lib=fake_lib)
        fake_handle.function("pcre2_set_match_limit").result = 0

        ctx.set_match_limit(UINT32_MAX)

        (args,) = fake_handle.function("pcre2_set_match_limit").calls
        assert args[1] == UINT32_MAX

    def test_negative_limit(self, fake_lib, fake_handle):
        with pytest.raises(ValidationError):
            MatchContext(lib=fake_lib).set_match_limit(-1)
        assert fake_handle.function("pcre2_set_match_limit").calls == []

    def test_compile_setters_above_uint32(self, fake_lib, fake_handle):
        ctx = CompileContext(lib=fake_lib)

        with pytest.raises(ValidationError):
            ctx.set_parens_nest_limit(TOO_BIG)
        with pytest.raises(ValidationError):
            ctx.set_newline(TOO_BIG)
        with pytest.raises(ValidationError):
            ctx.set_compile_extra_options(TOO_BIG)

        assert fake_handle.function("pcre2_set_parens_nest_limit").calls == []
        assert fake_handle.function("pcre2_set_newline").calls == []
        assert fake_handle.function("pcre2_set_compile_extra_options").calls == []

    def test_size_setters_take_wide_values(self, fake_lib, fake_handle):
        """PCRE2_SIZE setters accept values above 2**32 but not above SIZE_MAX."""
        fake_handle.function("pcre2_set_max_pattern_length").result = 0
        ctx = CompileContext(lib=fake_lib)

        ctx.set_max_pattern_length(TOO_BIG)
        with pytest.raises(ValidationError):
            ctx.set_max_pattern_length(SIZE_MAX + 1)

        assert len(fake_handle.function("pcre2_set_max_pattern_length").calls) == 1

    def test_glob_separator_above_uint32(self, fake_lib, fake_handle):
        with pytest.raises(ValidationError):
            ConvertContext(lib=fake_lib).set_glob_separator(TOO_BIG)
        assert fake_handle.function("pcre2_set_glob_separator").calls == []

    def test_raw_setter(self, fake_lib, fake_handle):
        with pytest.raises(ValidationError):
            call_set(fake_lib, "offset_limit", 0x1000, SIZE_MAX + 1)
        assert fake_handle.function("pcre2_set_offset_limit").calls == []


class TestCreateArguments:
    def test_match_data_pairs_above_uint32(self, fake_lib, fake_handle):
        """2**32 + 1 pairs is rejected, not turned into a 1-pair block."""
        with pytest.raises(ValidationError):
            MatchData(TOO_BIG + 1, lib=fake_lib)
        assert fake_handle.function("pcre2_match_data_create").calls == []

    def test_jit_stack_size_above_size_max(self, fake_lib, fake_handle):
        with pytest.raises(ValidationError):
            JitStack(32 * 1024, SIZE_MAX + 1, lib=fake_lib)
        assert fake_handle.function("pcre2_jit_stack_create").calls == []

    def test_config_selector_above_uint32(self, fake_lib, fake_handle):
        with pytest.raises(ValidationError):
            call_config(fake_lib, TOO_BIG)
        assert fake_handle.function("pcre2_config").calls == []


class TestOptionWords:
    """Option bits are a uint32_t in every entry point that takes them."""

    def test_compile_options(self, fake_lib, fake_handle):
        with pytest.raises(ValidationError):
            Code("a", TOO_BIG, lib=fake_lib)
        assert fake_handle.function("pcre2_compile").calls == []

    @pytest.mark.parametrize(
        ("method", "native"),
        [
            ("match", "pcre2_match"),
            ("jit_match", "pcre2_jit_match"),
            ("dfa_match", "pcre2_dfa_match"),
        ],
    )
    def test_match_options(self, fake_lib, fake_handle, method, native):
        code = Code("a", lib=fake_lib)
        md = MatchData(4, lib=fake_lib)

        with pytest.raises(ValidationError):
            getattr(code, method)("a", options=TOO_BIG, match_data=md)

        assert fake_handle.function(native).calls == []

    def test_substitute_options(self, fake_lib, fake_handle):
        code = Code("a", lib=fake_lib)

        with pytest.raises(ValidationError):
            code.substitute("a", "b", options=TOO_BIG)

        assert fake_handle.function("pcre2_substitute").calls == []

    def test_jit_compile_options(self, fake_lib, fake_handle):
        code = Code("a", lib=fake_lib)

        with pytest.raises(ValidationError):
            code.jit_compile(TOO_BIG)

        assert fake_handle.function("pcre2_jit_compile").calls == []


class TestBlobSize:
    """Serialized blobs shorter than the header never reach the engine."""

    def test_decode(self, fake_lib, fake_handle):
        from pcre2ffi import SerializationError
        from pcre2ffi._bindings import SERIALIZED_HEADER_SIZE, call_serialize_decode

        with pytest.raises(SerializationError):
            call_serialize_decode(fake_lib, b"\x00" * (SERIALIZED_HEADER_SIZE - 1), 1)

        assert fake_handle.function("pcre2_serialize_decode").calls == []

    def test_number_of_codes(self, fake_lib, fake_handle):
        from pcre2ffi import SerializationError
        from pcre2ffi._bindings import call_serialize_get_number_of_codes

        with pytest.raises(SerializationError):
            call_serialize_get_number_of_codes(fake_lib, b"\x50\x32")

        assert fake_handle.function("pcre2_serialize_get_number_of_codes").calls == []
