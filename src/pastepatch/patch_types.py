"""Shared dataclasses for patch operations."""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import List, Tuple


@dataclass(frozen=True)
class HunkLine:
    """Represents a single line in a patch hunk."""

    type: str  # ' ' for context, '-' for removal, '+' for addition
    content: str  # The actual line content (without the prefix character)


@dataclass(frozen=True)
class Hunk:
    """
    A single localized change parsed from a patch.

    `declared_start_line` is the 1-indexed line the hunk claims to start at. It comes
    from the hunk header when one could be parsed and is otherwise 1, so it is only
    ever a hint.
    """

    declared_start_line: int
    lines: Tuple[HunkLine, ...]
    has_header: bool = False

    @property
    def original_lines(self) -> List[str]:
        """Lines the hunk expects to find (context and removals, in order)."""
        return [line.content for line in self.lines if line.type in (' ', '-')]

    @property
    def modified_lines(self) -> List[str]:
        """Lines the hunk leaves behind (context and additions, in order)."""
        return [line.content for line in self.lines if line.type in (' ', '+')]

    @property
    def removed_lines(self) -> List[str]:
        return [line.content for line in self.lines if line.type == '-']

    @property
    def added_lines(self) -> List[str]:
        return [line.content for line in self.lines if line.type == '+']

    @property
    def context_lines(self) -> List[str]:
        return [line.content for line in self.lines if line.type == ' ']

    @property
    def is_pure_insertion(self) -> bool:
        return not self.original_lines

    @property
    def is_pure_deletion(self) -> bool:
        return not self.modified_lines

    def with_start_line(self, start_line: int) -> "Hunk":
        """Return a copy of this hunk re-anchored at a different declared line."""
        return replace(self, declared_start_line=start_line)


@dataclass
class MatchResult:
    """Result of attempting to locate a hunk's target region in a buffer."""

    success: bool
    start_offset: int = 0
    end_offset: int = 0
    replacement: str = ""
    strategy: str = ""
    fallback: bool = False
    start_line: int = 0  # 1-indexed line where the match begins, 0 if unknown
    reason: str = ""

    @classmethod
    def not_found(cls, reason: str) -> "MatchResult":
        return cls(success=False, reason=reason)


@dataclass(frozen=True)
class RangeReplace:
    """Replace the characters in [start_offset, end_offset) with `text`."""

    start_offset: int
    end_offset: int
    text: str

    @property
    def delta(self) -> int:
        """Change in buffer length once this edit is applied."""
        return len(self.text) - (self.end_offset - self.start_offset)


class ApplyOutcomeKind(Enum):
    """How a hunk fared when it was applied."""
    APPLIED = auto()
    APPLIED_BY_FALLBACK = auto()
    SKIPPED = auto()


@dataclass
class ApplyOutcome:
    """Per-hunk result of a patch application."""

    kind: ApplyOutcomeKind
    strategy: str = ""
    reason: str = ""
    hunk_index: int = 0  # 1-indexed position of the hunk in the patch
    applied_range: Tuple[int, int] | None = None  # Offsets of the new text once applied

    @classmethod
    def applied(cls, strategy: str = "") -> "ApplyOutcome":
        return cls(ApplyOutcomeKind.APPLIED, strategy=strategy)

    @classmethod
    def applied_by_fallback(cls, strategy: str) -> "ApplyOutcome":
        return cls(ApplyOutcomeKind.APPLIED_BY_FALLBACK, strategy=strategy)

    @classmethod
    def skipped(cls, reason: str) -> "ApplyOutcome":
        return cls(ApplyOutcomeKind.SKIPPED, reason=reason)

    @property
    def was_applied(self) -> bool:
        return self.kind != ApplyOutcomeKind.SKIPPED

    def describe(self) -> str:
        """Human-readable one-line description of this outcome."""
        if self.kind == ApplyOutcomeKind.APPLIED:
            return "Applied"

        if self.kind == ApplyOutcomeKind.APPLIED_BY_FALLBACK:
            return f"Applied by fallback ({self.strategy})"

        return f"Skipped - {self.reason}"


@dataclass
class PatchReport:
    """Aggregated outcomes for every hunk in one patch application."""

    outcomes: List[ApplyOutcome] = field(default_factory=list)
    dry_run: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.outcomes

    @property
    def applied_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.was_applied)

    @property
    def fallback_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind == ApplyOutcomeKind.APPLIED_BY_FALLBACK)

    @property
    def skipped_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind == ApplyOutcomeKind.SKIPPED)

    @property
    def success(self) -> bool:
        """True if there was at least one hunk and none were skipped."""
        return bool(self.outcomes) and self.skipped_count == 0

    def summary(self) -> str:
        """
        Render the report as one line per hunk.

        Returns:
            Summary text, e.g. "Hunk #1: Applied\\nHunk #2: Skipped - could not align hunk"
        """
        if not self.outcomes:
            return "No hunks found in patch"

        return "\n".join(f"Hunk #{outcome.hunk_index}: {outcome.describe()}" for outcome in self.outcomes)
