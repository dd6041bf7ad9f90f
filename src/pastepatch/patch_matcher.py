"""Strategies for locating a hunk's target region in a text buffer."""

from abc import ABC, abstractmethod
import logging
from typing import List

from pastepatch.patch_buffer import TextBuffer
from pastepatch.patch_settings import PatchSettings
from pastepatch.patch_types import Hunk, MatchResult


class HunkMatcher(ABC):
    """Abstract base class for hunk matching."""

    def __init__(self, settings: PatchSettings | None = None):
        """
        Initialize the matcher.

        Args:
            settings: Patch settings; defaults are used if omitted
        """
        self._settings = settings or PatchSettings()
        self._logger = logging.getLogger(type(self).__name__)

    @abstractmethod
    def find_match(self, hunk: Hunk, buffer: TextBuffer, caret_offset: int = 0) -> MatchResult:
        """
        Find where, and with what, a hunk should be applied.

        Args:
            hunk: The hunk to locate
            buffer: The buffer to search, in its current state
            caret_offset: Caret position, for strategies that anchor on it

        Returns:
            MatchResult with the range to replace and its replacement text
        """


class LineNumberMatcher(HunkMatcher):
    """
    Locates hunks by their declared line number.

    The declared position is tried first. If the hunk's first original line is not
    there, the buffer is scanned for the first line where all of its original lines
    appear and the hunk is re-anchored at that line.
    """

    def find_match(self, hunk: Hunk, buffer: TextBuffer, caret_offset: int = 0) -> MatchResult:
        if hunk.is_pure_insertion:
            return self._insertion_match(hunk, buffer)

        declared_match = self._try_declared_match(hunk, buffer, "declared position", False)
        if declared_match.success:
            return declared_match

        self._logger.debug(
            "hunk does not align at line %d: %s", hunk.declared_start_line, declared_match.reason
        )
        return self._fuzzy_reanchor(hunk, buffer)

    def _try_declared_match(
        self,
        hunk: Hunk,
        buffer: TextBuffer,
        strategy: str,
        fallback: bool
    ) -> MatchResult:
        """
        Try to match the hunk at its declared start line.

        Args:
            hunk: The hunk to match
            buffer: Buffer to search
            strategy: Name to report if this succeeds
            fallback: Whether success counts as a fallback

        Returns:
            MatchResult indicating success or failure
        """
        original = hunk.original_lines
        line_count = buffer.line_count()
        start = hunk.declared_start_line - 1

        if start < 0 or start >= line_count:
            return MatchResult.not_found(f"line {hunk.declared_start_line} is outside the buffer")

        end = min(start + len(original), line_count)
        actual = buffer.lines()[start:end]

        if self._settings.strict_alignment:
            if not self._lines_match(original, actual):
                return MatchResult.not_found(f"lines do not match at line {hunk.declared_start_line}")

        elif actual[0].strip() != original[0].strip():
            return MatchResult.not_found(f"first line does not match at line {hunk.declared_start_line}")

        return self._replacement_match(hunk, buffer, start, end, strategy, fallback)

    def _fuzzy_reanchor(self, hunk: Hunk, buffer: TextBuffer) -> MatchResult:
        """
        Re-anchor the hunk on the first buffer line where all its original lines match.

        Args:
            hunk: The hunk to re-anchor
            buffer: Buffer to search

        Returns:
            MatchResult for the re-anchored hunk, or a failure if nothing aligns
        """
        original = hunk.original_lines
        lines = buffer.lines()
        target = original[0].strip()

        for line_num, line in enumerate(lines):
            if line.strip() != target:
                continue

            # The whole original range must be present, not just its first line
            if not self._lines_match(original, lines[line_num:line_num + len(original)]):
                continue

            reanchored = hunk.with_start_line(line_num + 1)
            self._logger.debug(
                "re-anchoring hunk from line %d to line %d", hunk.declared_start_line, line_num + 1
            )
            return self._try_declared_match(reanchored, buffer, "fuzzy re-anchor", True)

        return MatchResult.not_found("could not align hunk")

    def _lines_match(self, expected: List[str], actual: List[str]) -> bool:
        """
        Check if lines match exactly (after trimming whitespace).

        Args:
            expected: Expected line contents
            actual: Actual line contents

        Returns:
            True if all lines match
        """
        if len(expected) != len(actual):
            return False

        for exp, act in zip(expected, actual):
            if exp.strip() != act.strip():
                return False

        return True

    def _replacement_match(
        self,
        hunk: Hunk,
        buffer: TextBuffer,
        start: int,
        end: int,
        strategy: str,
        fallback: bool
    ) -> MatchResult:
        """
        Build the match that replaces lines [start, end) with the hunk's modified lines.

        Args:
            hunk: The hunk being applied
            buffer: Buffer being modified
            start: First line to replace (0-indexed)
            end: Line after the last one to replace (0-indexed)
            strategy: Name of the strategy that located the lines
            fallback: Whether that strategy is a fallback

        Returns:
            Successful MatchResult
        """
        start_offset = buffer.line_start_offset(start)
        end_offset = buffer.line_end_offset(end - 1)
        modified = hunk.modified_lines

        if modified:
            replacement = '\n'.join(modified)

        else:
            # Removing whole lines also removes one of the newlines around them
            replacement = ''
            if end < buffer.line_count():
                end_offset = buffer.line_start_offset(end)

            elif start > 0:
                start_offset = buffer.line_end_offset(start - 1)

        return MatchResult(
            success=True,
            start_offset=start_offset,
            end_offset=end_offset,
            replacement=replacement,
            strategy=strategy,
            fallback=fallback,
            start_line=start + 1
        )

    def _insertion_match(self, hunk: Hunk, buffer: TextBuffer) -> MatchResult:
        """Insert a hunk with no original lines before its declared line."""
        added = '\n'.join(hunk.modified_lines)
        text = buffer.text()
        index = hunk.declared_start_line - 1

        if index < buffer.line_count():
            offset = buffer.line_start_offset(index)
            replacement = added + '\n' if text else added

        else:
            # Past the end of the buffer - append
            index = buffer.line_count()
            offset = len(text)
            prefix = '\n' if text and not text.endswith('\n') else ''
            suffix = '\n' if text.endswith('\n') else ''
            replacement = prefix + added + suffix

        return MatchResult(
            success=True,
            start_offset=offset,
            end_offset=offset,
            replacement=replacement,
            strategy="declared position",
            start_line=index + 1
        )


class CaretAnchorMatcher(HunkMatcher):
    """
    Locates hunks relative to the caret.

    This suits snippets pasted without usable headers. Searches are bounded by the
    configured windows around the caret, and a hunk that adds text always produces an
    edit, falling back to inserting after the best anchor found.
    """

    def find_match(self, hunk: Hunk, buffer: TextBuffer, caret_offset: int = 0) -> MatchResult:
        text = buffer.text()
        caret = max(0, min(caret_offset, len(text)))

        if hunk.is_pure_insertion:
            line = buffer.line_of_offset(caret)
            offset = buffer.line_end_offset(line)
            return MatchResult(
                success=True,
                start_offset=offset,
                end_offset=offset,
                replacement='\n' + '\n'.join(hunk.added_lines),
                strategy="caret line insert",
                start_line=line + 2
            )

        if hunk.is_pure_deletion:
            return self._forward_delete(hunk, buffer, caret)

        return self._mixed_match(hunk, buffer, caret)

    def _forward_delete(self, hunk: Hunk, buffer: TextBuffer, caret: int) -> MatchResult:
        """Delete the first occurrence of the removed text at or after the caret."""
        text = buffer.text()
        removed = '\n'.join(hunk.removed_lines)

        idx = text.find(removed, caret)
        if idx < 0:
            return MatchResult.not_found("text to delete not found after caret")

        start, end = self._whole_line_span(text, idx, idx + len(removed))
        return MatchResult(
            success=True,
            start_offset=start,
            end_offset=end,
            replacement='',
            strategy="caret forward delete",
            start_line=buffer.line_of_offset(start) + 1
        )

    def _mixed_match(self, hunk: Hunk, buffer: TextBuffer, caret: int) -> MatchResult:
        text = buffer.text()
        block = '\n'.join(hunk.original_lines)

        # A block without context is just the removed text, left to the removal window
        block_idx = -1
        if hunk.context_lines:
            block_idx = self._search_window(text, block, caret, self._settings.context_window)

        if block_idx >= 0:
            end = block_idx + len(block)
            return MatchResult(
                success=True,
                start_offset=block_idx,
                end_offset=end,
                replacement='\n'.join(hunk.modified_lines),
                strategy="context block",
                start_line=buffer.line_of_offset(block_idx) + 1
            )

        anchor = self._find_anchor(text, hunk, caret)
        added = '\n'.join(hunk.added_lines)

        if hunk.removed_lines:
            removed = '\n'.join(hunk.removed_lines)
            window = self._settings.removal_window
            window_start = max(0, caret - window)
            window_end = min(len(text), caret + window)
            removed_idx = text.find(removed, window_start, window_end)

            if removed_idx >= 0:
                start, end = removed_idx, removed_idx + len(removed)
                if not added:
                    start, end = self._whole_line_span(text, start, end)

                return MatchResult(
                    success=True,
                    start_offset=start,
                    end_offset=end,
                    replacement=added,
                    strategy="removed text window",
                    fallback=True,
                    start_line=buffer.line_of_offset(start) + 1
                )

        if not hunk.added_lines:
            return MatchResult.not_found("removed text not found near caret")

        line = buffer.line_of_offset(anchor)
        offset = buffer.line_end_offset(line)
        return MatchResult(
            success=True,
            start_offset=offset,
            end_offset=offset,
            replacement='\n' + added,
            strategy="insert after anchor",
            fallback=True,
            start_line=line + 2
        )

    def _find_anchor(self, text: str, hunk: Hunk, caret: int) -> int:
        """
        Find the offset of the hunk's context lines, or the caret if they are absent.

        Args:
            text: Buffer text
            hunk: Hunk whose context should be located
            caret: Caret offset

        Returns:
            Offset to anchor insertions on
        """
        context = hunk.context_lines
        if not context:
            return caret

        idx = self._search(text, '\n'.join(context), caret, self._settings.context_window)
        return idx if idx >= 0 else caret

    def _search(self, text: str, needle: str, caret: int, window: int) -> int:
        """
        Search forward from the caret, then within a window either side of it.

        Returns:
            Offset of the match, or -1
        """
        idx = text.find(needle, caret)
        if idx >= 0:
            return idx

        return self._search_window(text, needle, caret, window)

    def _search_window(self, text: str, needle: str, caret: int, window: int) -> int:
        """
        Search within a window either side of the caret, preferring matches after it.

        Returns:
            Offset of a match lying wholly inside the window, or -1
        """
        window_start = max(0, caret - window)
        window_end = min(len(text), caret + window)

        idx = text.find(needle, caret, window_end)
        if idx >= 0:
            return idx

        return text.find(needle, window_start, window_end)

    def _whole_line_span(self, text: str, start: int, end: int) -> tuple[int, int]:
        """Extend a span covering whole lines to include its trailing newline."""
        at_line_start = start == 0 or text[start - 1] == '\n'
        if at_line_start and end < len(text) and text[end] == '\n':
            return start, end + 1

        return start, end
