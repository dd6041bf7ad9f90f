"""Tolerant unified diff parsing."""

import logging
import re
from typing import List

from pastepatch.patch_types import Hunk, HunkLine


class PatchParser:
    """
    Parser for unified-diff-like text.

    Unlike a strict unified diff parser this never rejects its input. Missing or garbled
    hunk headers fall back to a declared start line of 1, and any line without a
    recognised marker is kept as context so nothing pasted is lost.
    """

    HUNK_HEADER_PATTERN = re.compile(r'^@@\s*-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s*@@')
    INDEX_PATTERN = re.compile(r'^index [0-9a-fA-F]+\.\.[0-9a-fA-F]+')

    # Git extended header lines, only treated as noise outside a hunk body
    EXTENDED_HEADER_PREFIXES = (
        'new file mode ',
        'deleted file mode ',
        'old mode ',
        'new mode ',
        'similarity index ',
        'dissimilarity index ',
        'rename from ',
        'rename to ',
        'copy from ',
        'copy to ',
    )

    def __init__(self) -> None:
        """Initialize the parser."""
        self._logger = logging.getLogger("PatchParser")

    def parse(self, diff_text: str) -> List[Hunk]:
        """
        Parse patch text into hunks.

        Args:
            diff_text: Patch text, ideally in unified diff format

        Returns:
            Hunks in the order they appear in the text, possibly empty
        """
        if not isinstance(diff_text, str) or not diff_text.strip():
            return []

        lines = [line[:-1] if line.endswith('\r') else line for line in diff_text.split('\n')]
        hunks: List[Hunk] = []

        current_lines: List[HunkLine] = []
        current_start = 1
        current_has_header = False
        in_body = False
        trailing_blanks = 0

        i = 0
        while i < len(lines):
            line = lines[i]

            if self._is_file_header_pair(lines, i):
                # Skip both the --- and the +++ line; a new file's headers may follow
                in_body = False
                i += 2
                continue

            if line.startswith('diff --git '):
                in_body = False
                i += 1
                continue

            if self._is_noise(line, in_body):
                i += 1
                continue

            if line.startswith('@@'):
                self._close_hunk(hunks, current_lines, trailing_blanks, current_start, current_has_header)
                current_lines = []
                trailing_blanks = 0
                current_start, current_has_header = self._parse_header(line)
                in_body = True
                i += 1
                continue

            current_lines.append(self._parse_body_line(line))
            trailing_blanks = trailing_blanks + 1 if line == '' else 0
            i += 1

        self._close_hunk(hunks, current_lines, trailing_blanks, current_start, current_has_header)

        self._logger.debug("parsed %d hunk(s) from %d line(s)", len(hunks), len(lines))
        return hunks

    def _is_file_header_pair(self, lines: List[str], idx: int) -> bool:
        """
        Check for a conventional `---`/`+++` file header pair at the given index.

        A lone `---` or `+++` line is indistinguishable from a removed `--` line or an
        added `++` line, so both are only dropped when they appear together.
        """
        if idx + 1 >= len(lines):
            return False

        return lines[idx].startswith('---') and lines[idx + 1].startswith('+++')

    def _is_noise(self, line: str, in_body: bool) -> bool:
        """Check whether a line is diff metadata rather than hunk content."""
        # "\ No newline at end of file"
        if line.startswith('\\'):
            return True

        if self.INDEX_PATTERN.match(line):
            return True

        # Context diff file headers
        if line.startswith('*** ') and not in_body:
            return True

        if not in_body and line.startswith(self.EXTENDED_HEADER_PREFIXES):
            return True

        return False

    def _parse_header(self, header: str) -> tuple[int, bool]:
        """
        Extract the declared start line from a hunk header.

        Args:
            header: The `@@` line

        Returns:
            Tuple of (1-indexed start line in the new file, whether the header parsed)
        """
        match = self.HUNK_HEADER_PATTERN.match(header)
        if not match:
            self._logger.debug("unparseable hunk header, defaulting to line 1: %s", header)
            return 1, False

        return max(1, int(match.group(3))), True

    def _parse_body_line(self, line: str) -> HunkLine:
        if line.startswith('-'):
            return HunkLine('-', line[1:])

        if line.startswith('+'):
            return HunkLine('+', line[1:])

        if line.startswith(' '):
            return HunkLine(' ', line[1:])

        # Anything else is treated as context, which covers the common case of a
        # pasted diff that lost its leading spaces
        return HunkLine(' ', line)

    def _close_hunk(
        self,
        hunks: List[Hunk],
        hunk_lines: List[HunkLine],
        trailing_blanks: int,
        start_line: int,
        has_header: bool
    ) -> None:
        """
        Append a hunk built from the accumulated lines, if there are any.

        Args:
            hunks: Hunks parsed so far
            hunk_lines: Lines accumulated for the open hunk
            trailing_blanks: Number of completely empty input lines ending the hunk
            start_line: Declared start line of the open hunk
            has_header: Whether the start line came from a parsed header
        """
        # Empty lines separating pasted hunks are not content
        if trailing_blanks:
            hunk_lines = hunk_lines[:-trailing_blanks]

        if not hunk_lines:
            return

        hunks.append(Hunk(start_line, tuple(hunk_lines), has_header))
