"""Text buffer abstraction that patches are applied to."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List

from pastepatch.patch_exceptions import PatchBufferError


class TextBuffer(ABC):
    """
    Abstract base class for a mutable text buffer owned by the host.

    Lines are 0-indexed and follow the editor convention that text ending in a newline
    has an empty last line, so an empty buffer still has one line. Line start and end
    offsets never include the line's newline character.
    """

    @abstractmethod
    def text(self) -> str:
        """Get the full buffer text."""

    @abstractmethod
    def line_count(self) -> int:
        """Get the number of lines in the buffer."""

    @abstractmethod
    def line_start_offset(self, line: int) -> int:
        """
        Get the character offset at which a line starts.

        Args:
            line: Line number (0-indexed)

        Returns:
            Offset of the first character of the line

        Raises:
            PatchBufferError: If the line does not exist
        """

    @abstractmethod
    def line_end_offset(self, line: int) -> int:
        """
        Get the character offset at which a line ends (before its newline).

        Args:
            line: Line number (0-indexed)

        Returns:
            Offset just past the last character of the line

        Raises:
            PatchBufferError: If the line does not exist
        """

    @abstractmethod
    def line_of_offset(self, offset: int) -> int:
        """
        Get the line containing a character offset.

        Args:
            offset: Character offset, clamped to the buffer

        Returns:
            Line number (0-indexed)
        """

    @abstractmethod
    def replace(self, start_offset: int, end_offset: int, text: str) -> None:
        """
        Replace the characters in [start_offset, end_offset) with text.

        Raises:
            PatchBufferError: If the range is outside the buffer
        """

    def insert(self, offset: int, text: str) -> None:
        """Insert text at an offset."""
        self.replace(offset, offset, text)

    def line_text(self, line: int) -> str:
        """Get the text of a single line, without its newline."""
        return self.text()[self.line_start_offset(line):self.line_end_offset(line)]

    def lines(self) -> List[str]:
        """Get every line in the buffer."""
        return self.text().split('\n')

    def length(self) -> int:
        return len(self.text())

    @contextmanager
    def edit_batch(self) -> Iterator[None]:
        """
        Group a series of edits into one atomic change.

        The default does nothing; hosts with undo stacks override this so a whole patch
        is undone in one step.
        """
        yield


class StringTextBuffer(TextBuffer):
    """In-memory text buffer backed by a string."""

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._line_starts: List[int] = []
        self._index_lines()

    def _index_lines(self) -> None:
        self._line_starts = [0]
        for i, char in enumerate(self._text):
            if char == '\n':
                self._line_starts.append(i + 1)

    def _check_line(self, line: int) -> None:
        if line < 0 or line >= len(self._line_starts):
            raise PatchBufferError(
                f"Line {line} is outside the buffer",
                {'line': line, 'line_count': len(self._line_starts)}
            )

    def text(self) -> str:
        return self._text

    def line_count(self) -> int:
        return len(self._line_starts)

    def line_start_offset(self, line: int) -> int:
        self._check_line(line)
        return self._line_starts[line]

    def line_end_offset(self, line: int) -> int:
        self._check_line(line)
        if line + 1 < len(self._line_starts):
            return self._line_starts[line + 1] - 1

        return len(self._text)

    def line_of_offset(self, offset: int) -> int:
        offset = max(0, min(offset, len(self._text)))

        # Binary search for the last line starting at or before the offset
        low = 0
        high = len(self._line_starts) - 1
        while low < high:
            mid = (low + high + 1) // 2
            if self._line_starts[mid] <= offset:
                low = mid

            else:
                high = mid - 1

        return low

    def lines(self) -> List[str]:
        return self._text.split('\n')

    def replace(self, start_offset: int, end_offset: int, text: str) -> None:
        if start_offset < 0 or end_offset > len(self._text) or start_offset > end_offset:
            raise PatchBufferError(
                f"Invalid range {start_offset}-{end_offset} for buffer of length {len(self._text)}",
                {'start_offset': start_offset, 'end_offset': end_offset, 'length': len(self._text)}
            )

        self._text = self._text[:start_offset] + text + self._text[end_offset:]
        self._index_lines()
