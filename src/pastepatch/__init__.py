"""
Tolerant patch parsing and application.

This package applies pasted, possibly malformed, unified diffs to text buffers
(Qt text documents, strings, etc.), locating each hunk by line number or by
content around the caret rather than trusting the diff's line numbers.
"""

from pastepatch.patch_applier import PatchApplier
from pastepatch.patch_buffer import StringTextBuffer, TextBuffer
from pastepatch.patch_exceptions import (
    PatchApplicationError,
    PatchBufferError,
    PatchError,
    PatchSettingsError,
)
from pastepatch.patch_matcher import CaretAnchorMatcher, HunkMatcher, LineNumberMatcher
from pastepatch.patch_parser import PatchParser
from pastepatch.patch_settings import ApplyMode, PatchSettings
from pastepatch.patch_types import (
    ApplyOutcome,
    ApplyOutcomeKind,
    Hunk,
    HunkLine,
    MatchResult,
    PatchReport,
    RangeReplace,
)

__version__ = "0.1.0"

__all__ = [
    # Exceptions
    'PatchError',
    'PatchBufferError',
    'PatchApplicationError',
    'PatchSettingsError',
    # Types
    'HunkLine',
    'Hunk',
    'MatchResult',
    'RangeReplace',
    'ApplyOutcomeKind',
    'ApplyOutcome',
    'PatchReport',
    # Settings
    'ApplyMode',
    'PatchSettings',
    # Core classes
    'TextBuffer',
    'StringTextBuffer',
    'PatchParser',
    'HunkMatcher',
    'LineNumberMatcher',
    'CaretAnchorMatcher',
    'PatchApplier',
]
