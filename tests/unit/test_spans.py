"""Tests for code-aware scanning and text surgery helpers."""
import re
import pytest
from cjs2esm.spans import (Edit, apply_edits, bracket_depth, code_matches, drop_block, find_closing,
                           find_statement_end, insert_before, line_end, line_start, split_top_level,
                           strip_comments)


class TestScanning:
    def test_find_closing_skips_strings_and_comments(self):
        text = 'a("(", /* ) */ b) // c'
        assert find_closing(text, 1) == text.index("b)") + 1

    def test_find_closing_unbalanced(self):
        assert find_closing("f(a", 1) == -1

    def test_strip_comments_keeps_line_breaks_and_strings(self):
        assert strip_comments("a // x\nb /* y */ c") == "a \nb  c"
        assert strip_comments('x = "//not a comment"') == 'x = "//not a comment"'

    def test_split_top_level(self):
        parts = split_top_level("a, f(b, c), {d, e}, 'x,y'")
        assert parts == ["a", " f(b, c)", " {d, e}", " 'x,y'"]

    def test_bracket_depth(self):
        assert bracket_depth("foo({") == 2
        assert bracket_depth("})") == -2
        assert bracket_depth("'{'") == 0

    def test_code_matches_skip_strings_and_comments(self):
        text = "a(require('x')); // require('y')\nconst s = 'require(z)';\n"
        assert [m.start() for m in code_matches(text, re.compile(r"require\s*\("))] == [2]

    def test_line_bounds(self):
        text = "one\ntwo\n"
        assert (line_start(text, 5), line_end(text, 5)) == (4, 7)
        assert (line_start(text, 0), line_end(text, 0)) == (0, 3)


class TestStatementEnd:
    def test_semicolon(self):
        assert find_statement_end("x = 1;\ny", 0) == (5, 6)

    def test_operator_continues_the_statement(self):
        assert find_statement_end("a +\n b\nc", 0) == (6, 6)

    def test_newlines_inside_brackets(self):
        assert find_statement_end("foo(\n1\n)\nnext", 0) == (8, 8)

    def test_end_of_text(self):
        assert find_statement_end("value", 0) == (5, 5)


class TestSurgery:
    def test_apply_edits_back_to_front(self):
        assert apply_edits("hello world", [Edit(0, 5, "bye"), Edit(6, 11, "all")]) == "bye all"

    def test_apply_edits_rejects_overlap(self):
        with pytest.raises(ValueError):
            apply_edits("hello world", [Edit(0, 5, "x"), Edit(3, 7, "y")])

    def test_insert_before_limits_line_breaks(self):
        assert insert_before("a\n\n\nmodule", "module", "X", limit_linebreak=True) == "a\n\nX\n\nmodule"
        assert insert_before("module", "module", "X\n", limit_linebreak=True) == "X\n\nmodule"

    def test_insert_before_missing_search(self):
        with pytest.raises(ValueError):
            insert_before("abc", "zzz", "X")

    def test_drop_block_normalizes_blank_lines(self):
        assert drop_block("a\n\nBLOCK\n\nb\n", "BLOCK") == "a\n\nb\n"
        assert drop_block("BLOCK\nb", "BLOCK") == "b"
        assert drop_block("a\nBLOCK\n", "BLOCK") == "a\n"
        assert drop_block("BLOCK", "BLOCK") == ""
