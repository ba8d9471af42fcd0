"""Unit tests for glob-like source patterns."""

from pathlib import Path

import pytest

from abuild.patterns import SourcePattern, compile_pattern


class TestCompilePattern:
    """Glob to regex translation."""

    @pytest.mark.parametrize("candidate", ["foo.c", "dir/foo.c", ".c", "a/b/c/d.c"])
    def test_star_matches_any_substring(self, candidate):
        """* spans any characters including separators and the empty string."""
        assert compile_pattern("*.c").fullmatch(candidate)

    def test_star_suffix_is_anchored(self):
        """*.c does not match foo.cpp."""
        assert compile_pattern("*.c").fullmatch("foo.cpp") is None

    def test_question_mark_matches_exactly_one(self):
        """a?c matches abc but not ac or abbc."""
        regex = compile_pattern("a?c")
        assert regex.fullmatch("abc")
        assert regex.fullmatch("ac") is None
        assert regex.fullmatch("abbc") is None

    def test_dot_is_literal(self):
        """A dot only matches a dot."""
        regex = compile_pattern("a.c")
        assert regex.fullmatch("a.c")
        assert regex.fullmatch("abc") is None

    def test_regex_metacharacters_are_literal(self):
        """Characters such as + and ( are matched literally."""
        regex = compile_pattern("lib(x)+.a")
        assert regex.fullmatch("lib(x)+.a")
        assert regex.fullmatch("libxx.a") is None


class TestSourcePattern:
    """Matching files by relative or absolute path."""

    def test_matches_relative_path(self, tmp_path: Path):
        pattern = SourcePattern("src/*.c")
        assert pattern.matches(tmp_path / "src" / "a.c", tmp_path)

    def test_relative_pattern_rejects_other_directory(self, tmp_path: Path):
        pattern = SourcePattern("src/*.c")
        assert not pattern.matches(tmp_path / "lib" / "a.c", tmp_path)

    def test_matches_absolute_path(self, tmp_path: Path):
        """A pattern written against the absolute path also matches."""
        target = tmp_path / "src" / "a.c"
        pattern = SourcePattern(target.as_posix())
        assert pattern.matches(target, tmp_path / "elsewhere")

    def test_file_outside_root_uses_absolute_form(self, tmp_path: Path):
        """Files outside the root still match patterns with a leading *."""
        pattern = SourcePattern("*/vendor/x.h")
        assert pattern.matches(tmp_path / "vendor" / "x.h", tmp_path / "project")

    def test_identity_equality(self):
        """Two patterns with the same glob are distinct matchers."""
        a = SourcePattern("*.c")
        b = SourcePattern("*.c")
        assert a != b
        assert a == a
        assert len({a, b}) == 2

    def test_matches_text(self):
        assert SourcePattern("*.h").matches_text("include/x.h")
        assert not SourcePattern("*.h").matches_text("include/x.hpp")
