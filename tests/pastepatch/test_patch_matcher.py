"""Tests for hunk matchers."""

import pytest

from pastepatch.patch_buffer import StringTextBuffer
from pastepatch.patch_matcher import CaretAnchorMatcher, LineNumberMatcher
from pastepatch.patch_settings import PatchSettings


@pytest.fixture
def line_matcher():
    """Create a line number matcher with default settings."""
    return LineNumberMatcher()


@pytest.fixture
def caret_matcher():
    """Create a caret anchor matcher with default settings."""
    return CaretAnchorMatcher()


class TestLineNumberMatcherDeclared:
    """Test matching at the declared position."""

    def test_match_at_declared_line(self, line_matcher, helpers):
        """Test an exact match where the hunk says it belongs."""
        buffer = StringTextBuffer("a\nb\nc\n")
        hunk = helpers.make_hunk(2, '-b', '+B')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert (result.start_offset, result.end_offset) == (2, 3)
        assert result.replacement == "B"
        assert result.strategy == "declared position"
        assert result.fallback is False
        assert result.start_line == 2
        assert helpers.apply_match(buffer, result) == "a\nB\nc\n"

    def test_first_line_match_ignores_surrounding_whitespace(self, line_matcher, helpers):
        """Test that indentation differences do not prevent a match."""
        buffer = StringTextBuffer("    x = 1\n")
        hunk = helpers.make_hunk(1, '-x = 1', '+    x = 2')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert helpers.apply_match(buffer, result) == "    x = 2\n"

    def test_first_line_is_enough_by_default(self, line_matcher, helpers):
        """Test that only the first line has to line up without strict alignment."""
        buffer = StringTextBuffer("a\nb\nc")
        hunk = helpers.make_hunk(1, ' a', ' X', '-c', '+C')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert helpers.apply_match(buffer, result) == "a\nX\nC"

    def test_range_clamped_to_buffer(self, line_matcher, helpers):
        """Test a hunk running past the end of the buffer."""
        buffer = StringTextBuffer("a\nb")
        hunk = helpers.make_hunk(2, ' b', ' c', '+d')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert helpers.apply_match(buffer, result) == "a\nb\nc\nd"


class TestLineNumberMatcherStrict:
    """Test strict alignment."""

    def test_strict_requires_every_line(self, helpers):
        """Test that strict alignment rejects a partial match."""
        matcher = LineNumberMatcher(PatchSettings(strict_alignment=True))
        buffer = StringTextBuffer("a\nb\nc")
        hunk = helpers.make_hunk(1, ' a', ' X', '-c', '+C')

        result = matcher.find_match(hunk, buffer)

        assert result.success is False
        assert result.reason == "could not align hunk"

    def test_strict_rejects_truncated_range(self, helpers):
        """Test that strict alignment rejects a hunk running past the end."""
        matcher = LineNumberMatcher(PatchSettings(strict_alignment=True))
        buffer = StringTextBuffer("a\nb")
        hunk = helpers.make_hunk(2, ' b', ' c', '+d')

        result = matcher.find_match(hunk, buffer)

        assert result.success is False

    def test_strict_full_match(self, helpers):
        """Test that strict alignment accepts a complete match."""
        matcher = LineNumberMatcher(PatchSettings(strict_alignment=True))
        buffer = StringTextBuffer("a\nb\nc")
        hunk = helpers.make_hunk(2, ' b', '-c', '+C')

        result = matcher.find_match(hunk, buffer)

        assert result.success is True
        assert helpers.apply_match(buffer, result) == "a\nb\nC"


class TestLineNumberMatcherFuzzy:
    """Test fuzzy single-line re-anchoring."""

    def test_reanchor_on_drifted_content(self, line_matcher, helpers):
        """Test locating a hunk whose line number is off by a few lines."""
        buffer = StringTextBuffer("one\ntwo\nthree\nfour\nfive\n")
        hunk = helpers.make_hunk(1, ' four', '-five', '+FIVE')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert result.fallback is True
        assert result.strategy == "fuzzy re-anchor"
        assert result.start_line == 4
        assert helpers.apply_match(buffer, result) == "one\ntwo\nthree\nfour\nFIVE\n"

    def test_reanchor_uses_first_matching_line(self, line_matcher, helpers):
        """Test that the lowest matching line wins."""
        buffer = StringTextBuffer("x\ndup\ny\ndup\n")
        hunk = helpers.make_hunk(3, '-dup', '+DUP')

        result = line_matcher.find_match(hunk, buffer)

        assert result.start_line == 2
        assert helpers.apply_match(buffer, result) == "x\nDUP\ny\ndup\n"

    def test_declared_line_outside_buffer_reanchors(self, line_matcher, helpers):
        """Test that a declared line past the end still falls back to searching."""
        buffer = StringTextBuffer("a\nb\n")
        hunk = helpers.make_hunk(40, '-b', '+c')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert result.fallback is True
        assert helpers.apply_match(buffer, result) == "a\nc\n"

    def test_reanchor_skips_blank_first_line_elsewhere(self, line_matcher, helpers):
        """Test that a blank leading context line does not anchor on the first blank line."""
        buffer = StringTextBuffer("a\n\nb\nc\n\ndef f():\n    return 1\n")
        hunk = helpers.make_hunk(40, ' ', ' def f():', '-    return 1', '+    return 2')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert result.strategy == "fuzzy re-anchor"
        assert result.start_line == 5
        assert helpers.apply_match(buffer, result) == "a\n\nb\nc\n\ndef f():\n    return 2\n"

    def test_reanchor_needs_every_original_line(self, line_matcher, helpers):
        """Test that matching only the first line is not enough to re-anchor."""
        buffer = StringTextBuffer("start\nother\nstart\nelse\n")
        hunk = helpers.make_hunk(9, ' start', '-missing', '+new')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is False
        assert result.reason == "could not align hunk"

    def test_no_match_anywhere(self, line_matcher, helpers):
        """Test that a hunk is never applied without a content match."""
        buffer = StringTextBuffer("a\nb\nc\n")
        hunk = helpers.make_hunk(2, '-missing', '+new')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is False
        assert result.reason == "could not align hunk"


class TestLineNumberMatcherInsertDelete:
    """Test pure insertions and deletions."""

    def test_insertion_before_declared_line(self, line_matcher, helpers):
        """Test inserting lines so they start at the declared line."""
        buffer = StringTextBuffer("a\nb\n")
        hunk = helpers.make_hunk(2, '+x')

        result = line_matcher.find_match(hunk, buffer)

        assert result.success is True
        assert result.start_offset == result.end_offset == 2
        assert helpers.apply_match(buffer, result) == "a\nx\nb\n"

    def test_insertion_past_end_appends(self, line_matcher, helpers):
        """Test appending when the declared line is past the end."""
        buffer = StringTextBuffer("a\nb")
        hunk = helpers.make_hunk(10, '+x')

        result = line_matcher.find_match(hunk, buffer)

        assert helpers.apply_match(buffer, result) == "a\nb\nx"

    def test_insertion_past_end_keeps_final_newline(self, line_matcher, helpers):
        """Test appending to text that ends with a newline."""
        buffer = StringTextBuffer("a\n")
        hunk = helpers.make_hunk(10, '+x')

        result = line_matcher.find_match(hunk, buffer)

        assert helpers.apply_match(buffer, result) == "a\nx\n"

    def test_insertion_into_empty_buffer(self, line_matcher, helpers):
        """Test inserting into an empty buffer."""
        buffer = StringTextBuffer("")
        hunk = helpers.make_hunk(1, '+x', '+y')

        result = line_matcher.find_match(hunk, buffer)

        assert helpers.apply_match(buffer, result) == "x\ny"

    def test_deletion_removes_whole_line(self, line_matcher, helpers):
        """Test that deleting a line removes its newline too."""
        buffer = StringTextBuffer("a\nb\nc")
        hunk = helpers.make_hunk(2, '-b')

        result = line_matcher.find_match(hunk, buffer)

        assert result.replacement == ""
        assert helpers.apply_match(buffer, result) == "a\nc"

    def test_deletion_of_last_line(self, line_matcher, helpers):
        """Test deleting the final line removes the newline before it."""
        buffer = StringTextBuffer("a\nb")
        hunk = helpers.make_hunk(2, '-b')

        result = line_matcher.find_match(hunk, buffer)

        assert helpers.apply_match(buffer, result) == "a"


class TestCaretAnchorMatcher:
    """Test caret-relative matching."""

    def test_pure_insertion_after_caret_line(self, caret_matcher, helpers):
        """Test that added lines go on the line after the caret."""
        buffer = StringTextBuffer("foo();\nbaz();\n")
        hunk = helpers.make_hunk(1, '+bar();', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=2)

        assert result.success is True
        assert result.strategy == "caret line insert"
        assert result.fallback is False
        assert helpers.apply_match(buffer, result) == "foo();\nbar();\nbaz();\n"

    def test_pure_deletion_forward_from_caret(self, caret_matcher, helpers):
        """Test deleting the next occurrence of the removed text."""
        buffer = StringTextBuffer("one\ntwo\nthree\n")
        hunk = helpers.make_hunk(1, '-two', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.success is True
        assert result.strategy == "caret forward delete"
        assert helpers.apply_match(buffer, result) == "one\nthree\n"

    def test_pure_deletion_not_found_after_caret(self, caret_matcher, helpers):
        """Test that text before the caret is not deleted."""
        buffer = StringTextBuffer("one\ntwo\nthree\n")
        hunk = helpers.make_hunk(1, '-two', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=8)

        assert result.success is False
        assert result.reason == "text to delete not found after caret"

    def test_context_block_replaced(self, caret_matcher, helpers):
        """Test replacing the whole original block when it is found."""
        buffer = StringTextBuffer("x\nkeep\nremove me\ny\n")
        hunk = helpers.make_hunk(1, ' keep', '-remove me', '+add me', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "context block"
        assert result.fallback is False
        assert helpers.apply_match(buffer, result) == "x\nkeep\nadd me\ny\n"

    def test_context_block_found_behind_caret(self, caret_matcher, helpers):
        """Test the widened window finds a block just before the caret."""
        buffer = StringTextBuffer("keep\nold\ntail\n")
        hunk = helpers.make_hunk(1, ' keep', '-old', '+new', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=14)

        assert result.strategy == "context block"
        assert helpers.apply_match(buffer, result) == "keep\nnew\ntail\n"

    def test_removed_text_window(self, caret_matcher, helpers):
        """Test replacing removed text found near the caret."""
        buffer = StringTextBuffer("a\nold\nb")
        hunk = helpers.make_hunk(1, ' missing context', '-old', '+new', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "removed text window"
        assert result.fallback is True
        assert helpers.apply_match(buffer, result) == "a\nnew\nb"

    def test_removed_text_outside_window_falls_back_to_insert(self, caret_matcher, helpers):
        """Test that removed text beyond the window is not touched."""
        text = "start\n" + "x" * 500 + "\nold\n"
        buffer = StringTextBuffer(text)
        hunk = helpers.make_hunk(1, ' nowhere', '-old', '+new', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "insert after anchor"
        assert result.fallback is True
        assert helpers.apply_match(buffer, result) == "start\nnew\n" + "x" * 500 + "\nold\n"

    def test_insert_after_context_anchor(self, caret_matcher, helpers):
        """Test that insertion follows the line where the context was found."""
        buffer = StringTextBuffer("header\nanchor line\nfooter\n")
        hunk = helpers.make_hunk(1, ' anchor line', '-gone', '+added', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "insert after anchor"
        assert helpers.apply_match(buffer, result) == "header\nanchor line\nadded\nfooter\n"

    def test_anchor_found_in_window_behind_caret(self, caret_matcher, helpers):
        """Test that context before the caret is found by the window search."""
        buffer = StringTextBuffer("alpha\nbeta\ngamma\n")
        hunk = helpers.make_hunk(1, ' beta', '-zzz', '+new', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=17)

        assert result.strategy == "insert after anchor"
        assert helpers.apply_match(buffer, result) == "alpha\nbeta\nnew\ngamma\n"

    def test_removal_without_additions_not_found(self, caret_matcher, helpers):
        """Test that a removal with nothing to add is skipped when not found."""
        buffer = StringTextBuffer("abc")
        hunk = helpers.make_hunk(1, ' ctx', '-gone', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.success is False
        assert result.reason == "removed text not found near caret"

    def test_small_removal_window(self, helpers):
        """Test that the removal window size comes from the settings."""
        matcher = CaretAnchorMatcher(PatchSettings(removal_window=3, context_window=3))
        buffer = StringTextBuffer("abcdefgh\nold\n")
        hunk = helpers.make_hunk(1, ' nowhere', '-old', '+new', has_header=False)

        result = matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "insert after anchor"

    def test_context_free_removal_outside_window(self, caret_matcher, helpers):
        """Test that removed text past the removal window is not replaced without context."""
        filler = ("x" * 60 + "\n") * 100
        buffer = StringTextBuffer("foo();\n" + filler + "old\n")
        hunk = helpers.make_hunk(1, '-old', '+new', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "insert after anchor"
        assert result.fallback is True
        assert helpers.apply_match(buffer, result) == "foo();\nnew\n" + filler + "old\n"

    def test_context_free_removal_inside_window(self, caret_matcher, helpers):
        """Test that removed text near the caret is replaced as a window fallback."""
        buffer = StringTextBuffer("one\ntwo\nthree\n")
        hunk = helpers.make_hunk(1, '-two', '+TWO', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "removed text window"
        assert result.fallback is True
        assert helpers.apply_match(buffer, result) == "one\nTWO\nthree\n"

    def test_context_block_outside_context_window(self, helpers):
        """Test that a block beyond the context window is not replaced."""
        matcher = CaretAnchorMatcher(PatchSettings(context_window=10, removal_window=10))
        text = "start\n" + "y" * 50 + "\nkeep\nold\n"
        buffer = StringTextBuffer(text)
        hunk = helpers.make_hunk(1, ' keep', '-old', '+new', has_header=False)

        result = matcher.find_match(hunk, buffer, caret_offset=0)

        assert result.strategy == "insert after anchor"
        assert helpers.apply_match(buffer, result) == "start\n" + "y" * 50 + "\nkeep\nnew\nold\n"

    def test_caret_clamped_to_buffer(self, caret_matcher, helpers):
        """Test that a caret past the end is treated as the end."""
        buffer = StringTextBuffer("last")
        hunk = helpers.make_hunk(1, '+next', has_header=False)

        result = caret_matcher.find_match(hunk, buffer, caret_offset=999)

        assert helpers.apply_match(buffer, result) == "last\nnext"
