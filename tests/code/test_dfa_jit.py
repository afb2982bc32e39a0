"""
DFA and JIT matching tests.

JIT tests are skipped when the library was built without JIT support.
"""

import pytest

from pcre2ffi import (
    DFA_SHORTEST,
    JIT_COMPLETE,
    Code,
    CompileError,
    JitStack,
    MatchContext,
    MatchData,
    MatchStatus,
    ValidationError,
    jit_free_unused_memory,
)

pytestmark = pytest.mark.requires_lib


class TestDfaMatch:
    """pcre2_dfa_match: every match length at the first matching position."""

    def test_all_alternatives_longest_first(self):
        result = Code.compile("<.*>").dfa_match("<a> <bb> <c>")

        assert result.status is MatchStatus.MATCHED
        assert result.count == 3
        assert result.start == 0
        assert result.ends == [12, 8, 3]
        assert result.matches == ["<a> <bb> <c>", "<a> <bb>", "<a>"]

    def test_shortest(self):
        result = Code.compile("<.*>").dfa_match("<a> <bb> <c>", options=DFA_SHORTEST)

        assert result.count == 1
        assert result.matches == ["<a>"]

    def test_no_match(self):
        result = Code.compile("z").dfa_match("abc")

        assert result.status is MatchStatus.NO_MATCH
        assert result.count == 0
        assert result.start == -1
        assert result.matches == []

    def test_ovector_too_small_keeps_longest(self):
        result = Code.compile("<.*>").dfa_match("<a> <bb> <c>", match_data=MatchData(2))

        assert result.status is MatchStatus.OVECTOR_TOO_SMALL
        assert result.ends == [12, 8]

    def test_char_ends(self):
        result = Code.compile("é.*z").dfa_match("éaz z")

        assert result.ends == [6, 4]
        assert result.char_ends == [5, 3]

    def test_workspace_size_validated(self):
        with pytest.raises(ValidationError):
            Code.compile("a").dfa_match("a", workspace_size=0)


@pytest.mark.requires_jit
class TestJit:
    """JIT compilation and the JIT fast path."""

    def test_jit_compile_and_match(self):
        code = Code.compile(r"(\w+)@(\w+)")
        code.jit_compile()

        assert code.jit_size > 0
        result = code.jit_match("mail bob@example now")
        assert result.group(1) == "bob"
        assert result.group(2) == "example"

    def test_jit_and_interpreter_agree(self):
        code = Code.compile(r"\d+")
        copy = code.copy()
        code.jit_compile(JIT_COMPLETE)

        for subject in ("abc", "a1", "12 34", ""):
            assert code.jit_match(subject) == copy.match(subject)

    def test_jit_no_match(self):
        code = Code.compile("z")
        code.jit_compile()
        assert code.jit_match("abc").status is MatchStatus.NO_MATCH

    def test_jit_invalid_options(self):
        code = Code.compile("a")
        with pytest.raises(CompileError):
            code.jit_compile(0x80000000)

    def test_jit_stack(self):
        """A larger JIT stack assigned through a match context."""
        code = Code.compile(r"(?:a|b)*c")
        code.jit_compile()
        ctx = MatchContext()

        with JitStack(32 * 1024, 1024 * 1024) as stack:
            ctx.assign_jit_stack(stack)
            result = code.jit_match("ab" * 1000 + "c", context=ctx)
            ctx.assign_jit_stack(None)

        assert result.span() == (0, 2001)

    def test_jit_stack_sizes_validated(self):
        with pytest.raises(ValidationError):
            JitStack(1024, 512)

    def test_free_unused_memory(self):
        jit_free_unused_memory()
