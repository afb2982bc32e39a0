"""
Compile, match and convert context tests.
"""

import gc

import pytest

from pcre2ffi import (
    CASELESS,
    CONVERT_GLOB,
    CONVERT_POSIX_EXTENDED,
    EXTRA_MATCH_WORD,
    NEWLINE_CRLF,
    USE_OFFSET_LIMIT,
    CharacterTables,
    Code,
    CompileContext,
    CompileError,
    ConvertContext,
    ConvertError,
    GeneralContext,
    MatchContext,
    MatchStatus,
    ValidationError,
    convert_pattern,
)

pytestmark = pytest.mark.requires_lib


class TestGeneralContext:
    def test_children_remember_general(self):
        general = GeneralContext()
        ctx = CompileContext(general)

        assert ctx.general is general
        assert ctx.lib is general.lib

    def test_general_held_weakly(self):
        """A child context does not keep its general context alive."""
        general = GeneralContext()
        ctx = MatchContext(general)
        general.close()
        del general
        gc.collect()

        assert ctx.general is None

    def test_copy(self):
        general = GeneralContext()
        copy = general.copy()
        general.close()

        assert not copy.closed
        assert copy.handle

    def test_wrong_type(self):
        with pytest.raises(ValidationError):
            CompileContext(general=object())


class TestCompileContext:
    def test_newline(self):
        ctx = CompileContext()
        ctx.set_newline(NEWLINE_CRLF)

        assert Code.compile("a$", context=ctx).newline == NEWLINE_CRLF

    def test_bad_newline(self):
        ctx = CompileContext()
        with pytest.raises(CompileError) as exc_info:
            ctx.set_newline(99)

        assert exc_info.value.code == "ERROR_BADDATA"
        assert exc_info.value.offset == 0
        assert exc_info.value.pattern is None

    def test_bad_bsr(self):
        with pytest.raises(CompileError):
            CompileContext().set_bsr(99)

    def test_max_pattern_length(self):
        ctx = CompileContext()
        ctx.set_max_pattern_length(3)

        Code.compile("abc", context=ctx)
        with pytest.raises(CompileError):
            Code.compile("abcd", context=ctx)

    def test_parens_nest_limit(self):
        ctx = CompileContext()
        ctx.set_parens_nest_limit(2)

        with pytest.raises(CompileError):
            Code.compile("(((a)))", context=ctx)

    def test_extra_options(self):
        ctx = CompileContext()
        ctx.set_compile_extra_options(EXTRA_MATCH_WORD)
        code = Code.compile("cat", context=ctx)

        assert not code.match("concatenate").matched
        assert code.match("a cat sat").matched

    def test_negative_value(self):
        with pytest.raises(ValidationError):
            CompileContext().set_parens_nest_limit(-1)

    def test_character_tables(self):
        tables = CharacterTables()
        ctx = CompileContext()
        ctx.set_character_tables(tables)
        code = Code.compile("abc", CASELESS, context=ctx)
        del tables, ctx
        gc.collect()

        assert code.match("xABC").matched

    def test_copy_keeps_settings(self):
        ctx = CompileContext()
        ctx.set_newline(NEWLINE_CRLF)
        copy = ctx.copy()
        ctx.close()

        assert Code.compile("a", context=copy).newline == NEWLINE_CRLF

    def test_closed_context(self):
        from pcre2ffi import StateError

        ctx = CompileContext()
        ctx.close()
        with pytest.raises(StateError):
            Code.compile("a", context=ctx)


class TestMatchContext:
    def test_limits_accepted(self):
        ctx = MatchContext()
        ctx.set_match_limit(10_000)
        ctx.set_depth_limit(1_000)
        ctx.set_heap_limit(1_024)

        assert Code.compile("a+").match("aaa", context=ctx).matched

    def test_negative_limit(self):
        with pytest.raises(ValidationError):
            MatchContext().set_match_limit(-1)

    def test_limit_too_wide_leaves_context_unchanged(self):
        """A limit that does not fit 32 bits is rejected; the old limit stays in force."""
        ctx = MatchContext()
        with pytest.raises(ValidationError):
            ctx.set_match_limit(2**32)

        result = Code.compile("abc").match("abc", context=ctx)
        assert result.status is MatchStatus.MATCHED

    def test_match_data_pairs_too_wide(self):
        from pcre2ffi import MatchData

        with pytest.raises(ValidationError):
            MatchData(2**32 + 1)

    def test_offset_limit(self):
        """The offset limit bounds where a match may start."""
        code = Code.compile("x", USE_OFFSET_LIMIT)
        ctx = MatchContext()
        ctx.set_offset_limit(2)

        assert code.match("ax", context=ctx).matched
        assert code.match("aaax", context=ctx).status is MatchStatus.NO_MATCH

    def test_copy_is_independent(self):
        ctx = MatchContext()
        ctx.set_match_limit(1)
        copy = ctx.copy()
        ctx.close()

        assert not copy.closed


class TestConvert:
    def test_glob(self):
        regex = convert_pattern("*.py")
        code = Code.compile(regex)

        assert isinstance(regex, str)
        assert code.match("main.py").matched
        assert not code.match("main.pyc").matched

    def test_glob_bytes(self):
        assert isinstance(convert_pattern(b"*.py", CONVERT_GLOB), bytes)

    def test_posix_extended(self):
        code = Code.compile(convert_pattern("^a.c$", CONVERT_POSIX_EXTENDED))
        assert code.match("abc").matched

    def test_with_context(self):
        ctx = ConvertContext()
        ctx.set_glob_separator("/")
        ctx.set_glob_escape("\\")
        code = Code.compile(convert_pattern("src/*.c", context=ctx))

        assert code.match("src/main.c").matched

    def test_bad_separator(self):
        with pytest.raises(ValidationError):
            ConvertContext().set_glob_separator("x")

    def test_separator_must_be_one_character(self):
        with pytest.raises(ValidationError):
            ConvertContext().set_glob_separator("//")

    def test_syntax_error(self):
        with pytest.raises(ConvertError):
            convert_pattern("[a", CONVERT_GLOB)
