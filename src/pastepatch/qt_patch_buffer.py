"""Qt-specific text buffer for applying patches to editor documents."""

from contextlib import contextmanager
import logging
from typing import Iterator

from PySide6.QtGui import QGuiApplication, QTextCursor, QTextDocument

from pastepatch.patch_applier import PatchApplier
from pastepatch.patch_buffer import TextBuffer
from pastepatch.patch_exceptions import PatchBufferError
from pastepatch.patch_types import PatchReport


class QtTextBuffer(TextBuffer):
    """Text buffer backed by a Qt text document, one block per line."""

    def __init__(self, document: QTextDocument, cursor: QTextCursor | None = None) -> None:
        """
        Initialize the buffer.

        Args:
            document: Qt text document to read and modify
            cursor: The editor's cursor; its position is used as the caret
        """
        self._document = document
        self._cursor = cursor if cursor is not None else QTextCursor(document)
        self._logger = logging.getLogger("QtTextBuffer")

    def caret_offset(self) -> int:
        """Get the position of the editor's cursor."""
        return self._cursor.position()

    def set_caret_offset(self, offset: int) -> None:
        self._cursor.setPosition(max(0, min(offset, self.length())))

    def _block(self, line: int):  # type: ignore[no-untyped-def]
        block = self._document.findBlockByNumber(line)
        if not block.isValid():
            raise PatchBufferError(
                f"Line {line} is outside the document",
                {'line': line, 'line_count': self._document.blockCount()}
            )

        return block

    def text(self) -> str:
        return self._document.toPlainText()

    def length(self) -> int:
        # characterCount() includes the document's final paragraph separator
        return self._document.characterCount() - 1

    def line_count(self) -> int:
        return self._document.blockCount()

    def line_start_offset(self, line: int) -> int:
        return self._block(line).position()

    def line_end_offset(self, line: int) -> int:
        block = self._block(line)

        # A block's length includes its trailing separator
        return block.position() + block.length() - 1

    def line_text(self, line: int) -> str:
        return self._block(line).text()

    def line_of_offset(self, offset: int) -> int:
        offset = max(0, min(offset, self.length()))
        return self._document.findBlock(offset).blockNumber()

    def replace(self, start_offset: int, end_offset: int, text: str) -> None:
        length = self.length()
        if start_offset < 0 or end_offset > length or start_offset > end_offset:
            raise PatchBufferError(
                f"Invalid range {start_offset}-{end_offset} for document of length {length}",
                {'start_offset': start_offset, 'end_offset': end_offset, 'length': length}
            )

        self._logger.debug("replacing %d-%d with %d character(s)", start_offset, end_offset, len(text))
        edit_cursor = QTextCursor(self._document)
        edit_cursor.setPosition(start_offset)
        edit_cursor.setPosition(end_offset, QTextCursor.MoveMode.KeepAnchor)
        edit_cursor.insertText(text)

    @contextmanager
    def edit_batch(self) -> Iterator[None]:
        """Group edits so the whole patch is a single undo step."""
        self._cursor.beginEditBlock()
        try:
            yield

        finally:
            self._cursor.endEditBlock()


def apply_patch_to_document(
    applier: PatchApplier,
    patch_text: str,
    document: QTextDocument,
    cursor: QTextCursor
) -> PatchReport:
    """
    Apply a patch to a Qt text document as one undoable edit.

    The cursor's position is used as the caret for header-less hunks. Once the patch
    is applied the cursor is moved to the end of the bottommost applied hunk.

    Args:
        applier: Patch applier to use
        patch_text: Patch text, ideally in unified diff format
        document: Qt text document to modify
        cursor: The editor's cursor

    Returns:
        PatchReport with one outcome per hunk
    """
    buffer = QtTextBuffer(document, cursor)
    report = applier.apply_patch(patch_text, buffer, caret_offset=buffer.caret_offset())

    applied_ends = [
        outcome.applied_range[1] for outcome in report.outcomes
        if outcome.applied_range is not None
    ]
    if applied_ends:
        buffer.set_caret_offset(max(applied_ends))

    return report


def read_clipboard_text() -> str:
    """
    Read plain text from the system clipboard.

    A QGuiApplication is created if the caller does not already have one.

    Returns:
        Clipboard text, empty if the clipboard holds no text
    """
    app = QGuiApplication.instance()
    if app is None:
        app = QGuiApplication([])

    return QGuiApplication.clipboard().text()
