"""Shared fixtures and utilities for patch tests."""

from contextlib import contextmanager
from typing import Iterator, List

import pytest

from pastepatch.patch_applier import PatchApplier
from pastepatch.patch_buffer import StringTextBuffer
from pastepatch.patch_exceptions import PatchBufferError
from pastepatch.patch_parser import PatchParser
from pastepatch.patch_settings import ApplyMode, PatchSettings
from pastepatch.patch_types import Hunk, HunkLine


class RecordingTextBuffer(StringTextBuffer):
    """String buffer that records edit batches and replacements."""

    def __init__(self, text: str = "") -> None:
        super().__init__(text)
        self.batches = 0
        self.replacements: List[tuple[int, int, str]] = []

    def replace(self, start_offset: int, end_offset: int, text: str) -> None:
        self.replacements.append((start_offset, end_offset, text))
        super().replace(start_offset, end_offset, text)

    @contextmanager
    def edit_batch(self) -> Iterator[None]:
        self.batches += 1
        yield


class ReadOnlyTextBuffer(StringTextBuffer):
    """String buffer that rejects every edit."""

    def replace(self, start_offset: int, end_offset: int, text: str) -> None:
        raise PatchBufferError("Buffer is read-only", {'read_only': True})


@pytest.fixture
def recording_buffer():
    """Factory for buffers that record edit batches."""
    return RecordingTextBuffer


@pytest.fixture
def read_only_buffer():
    """Factory for buffers that reject edits."""
    return ReadOnlyTextBuffer


@pytest.fixture
def parser():
    """Create a patch parser for testing."""
    return PatchParser()


@pytest.fixture
def applier():
    """Create a patch applier with default settings."""
    return PatchApplier()


@pytest.fixture
def applier_custom():
    """Factory for patch appliers with custom configuration."""
    def _create_applier(
        mode: ApplyMode = ApplyMode.AUTO,
        strict_alignment: bool = False,
        context_window: int = 1000,
        removal_window: int = 200
    ):
        return PatchApplier(PatchSettings(
            mode=mode,
            strict_alignment=strict_alignment,
            context_window=context_window,
            removal_window=removal_window
        ))
    return _create_applier


class PatchTestHelpers:
    """Helper utilities for patch testing."""

    @staticmethod
    def make_hunk(start_line: int, *lines: str, has_header: bool = True) -> Hunk:
        """Build a hunk from marker-prefixed lines such as ' ctx', '-old', '+new'."""
        return Hunk(start_line, tuple(HunkLine(line[0], line[1:]) for line in lines), has_header)

    @staticmethod
    def numbered_lines(count: int) -> str:
        """Create buffer text with lines 'line 1' to 'line N', newline terminated."""
        return ''.join(f"line {i}\n" for i in range(1, count + 1))

    @staticmethod
    def apply_match(buffer: StringTextBuffer, match) -> str:  # type: ignore[no-untyped-def]
        """Apply a successful match result to a buffer and return the new text."""
        buffer.replace(match.start_offset, match.end_offset, match.replacement)
        return buffer.text()


@pytest.fixture
def helpers():
    """Provide test helper utilities."""
    return PatchTestHelpers
