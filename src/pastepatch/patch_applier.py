"""Patch application against a text buffer."""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pastepatch.patch_buffer import StringTextBuffer, TextBuffer
from pastepatch.patch_exceptions import PatchApplicationError, PatchBufferError
from pastepatch.patch_matcher import CaretAnchorMatcher, HunkMatcher, LineNumberMatcher
from pastepatch.patch_parser import PatchParser
from pastepatch.patch_settings import ApplyMode, PatchSettings
from pastepatch.patch_types import ApplyOutcome, Hunk, PatchReport, RangeReplace


class PatchApplier:
    """
    Applies parsed hunks to a text buffer.

    Each hunk is located independently, so a hunk that cannot be aligned is skipped
    and reported rather than stopping the rest of the patch.
    """

    def __init__(self, settings: PatchSettings | None = None):
        """
        Initialize the patch applier.

        Args:
            settings: Patch settings; defaults are used if omitted
        """
        self._settings = settings or PatchSettings()
        self._parser = PatchParser()
        self._line_matcher = LineNumberMatcher(self._settings)
        self._caret_matcher = CaretAnchorMatcher(self._settings)
        self._logger = logging.getLogger("PatchApplier")

    def parse(self, patch_text: str) -> List[Hunk]:
        """Parse patch text into hunks."""
        return self._parser.parse(patch_text)

    def select_matcher(self, hunk: Hunk, caret_offset: int | None) -> HunkMatcher:
        """
        Pick the matching strategy for a hunk.

        In AUTO mode hunks with a usable header are matched by line number, and
        header-less hunks are matched around the caret if there is one.

        Args:
            hunk: Hunk about to be applied
            caret_offset: Caret offset, or None if the host has no caret

        Returns:
            Matcher to use
        """
        mode = self._settings.mode
        if mode == ApplyMode.LINE_NUMBER:
            return self._line_matcher

        if mode == ApplyMode.CARET_ANCHOR:
            return self._caret_matcher

        if hunk.has_header or caret_offset is None:
            return self._line_matcher

        return self._caret_matcher

    def apply_hunk(
        self,
        buffer: TextBuffer,
        hunk: Hunk,
        caret_offset: int | None = None
    ) -> Tuple[Optional[RangeReplace], ApplyOutcome]:
        """
        Work out the edit for one hunk without modifying the buffer.

        Args:
            buffer: Buffer in its current state
            hunk: Hunk to apply
            caret_offset: Caret offset, or None if the host has no caret

        Returns:
            Tuple of (edit, or None if the hunk is skipped, and the outcome)
        """
        matcher = self.select_matcher(hunk, caret_offset)
        match = matcher.find_match(hunk, buffer, caret_offset or 0)

        if not match.success:
            return None, ApplyOutcome.skipped(match.reason)

        self._logger.debug(
            "hunk at line %d located by %s at line %d",
            hunk.declared_start_line, match.strategy, match.start_line
        )
        edit = RangeReplace(match.start_offset, match.end_offset, match.replacement)

        if match.fallback:
            return edit, ApplyOutcome.applied_by_fallback(match.strategy)

        return edit, ApplyOutcome.applied(match.strategy)

    def apply_patch(
        self,
        patch_text: str,
        buffer: TextBuffer,
        caret_offset: int | None = None,
        dry_run: bool = False
    ) -> PatchReport:
        """
        Parse patch text and apply every hunk in it.

        Args:
            patch_text: Patch text, ideally in unified diff format
            buffer: Buffer to modify
            caret_offset: Caret offset, or None if the host has no caret
            dry_run: If True, work on a copy and leave the buffer untouched

        Returns:
            PatchReport with one outcome per hunk
        """
        return self.apply_hunks(self._parser.parse(patch_text), buffer, caret_offset, dry_run)

    def apply_hunks(
        self,
        hunks: Sequence[Hunk],
        buffer: TextBuffer,
        caret_offset: int | None = None,
        dry_run: bool = False
    ) -> PatchReport:
        """
        Apply hunks to a buffer as one batch.

        Hunks are applied from the bottom of the buffer up, so each edit only moves text
        below the hunks still waiting to be located. A hunk whose edit would touch text
        already changed by this batch is skipped.

        Args:
            hunks: Hunks in patch order
            buffer: Buffer to modify
            caret_offset: Caret offset, or None if the host has no caret
            dry_run: If True, work on a copy and leave the buffer untouched

        Returns:
            PatchReport with one outcome per hunk, in patch order

        Raises:
            PatchApplicationError: If the buffer rejects an edit
        """
        report = PatchReport(dry_run=dry_run)
        if not hunks:
            self._logger.info("no hunks to apply")
            return report

        target: TextBuffer = StringTextBuffer(buffer.text()) if dry_run else buffer
        outcomes: Dict[int, ApplyOutcome] = {}

        # Regions written by this batch, in current buffer coordinates
        regions: Dict[int, List[int]] = {}

        with target.edit_batch():
            for index, hunk in self.order_for_application(hunks):
                edit, outcome = self.apply_hunk(target, hunk, caret_offset)

                if edit is not None and self._overlaps(edit, regions.values()):
                    edit = None
                    outcome = ApplyOutcome.skipped("target region already modified")

                outcome.hunk_index = index
                outcomes[index] = outcome

                if edit is None:
                    self._logger.warning("skipping hunk %d: %s", index, outcome.reason)
                    continue

                self._write_edit(target, edit, index)
                self._shift_regions(regions, edit)
                regions[index] = [edit.start_offset, edit.start_offset + len(edit.text)]

                if caret_offset is not None and edit.end_offset <= caret_offset:
                    caret_offset += edit.delta

        for index, region in regions.items():
            outcomes[index].applied_range = (region[0], region[1])

        report.outcomes = [outcomes[index] for index in sorted(outcomes)]
        self._logger.info(
            "applied %d of %d hunk(s), %d skipped",
            report.applied_count, len(report.outcomes), report.skipped_count
        )
        return report

    @staticmethod
    def order_for_application(hunks: Sequence[Hunk]) -> List[Tuple[int, Hunk]]:
        """
        Order hunks by descending declared start line.

        Hunks declaring the same line keep their relative patch order reversed, so the
        later one is applied first.

        Args:
            hunks: Hunks in patch order

        Returns:
            List of (1-indexed patch position, hunk) tuples in application order
        """
        return sorted(
            enumerate(hunks, 1),
            key=lambda item: (item[1].declared_start_line, item[0]),
            reverse=True
        )

    def _overlaps(self, edit: RangeReplace, regions: Iterable[List[int]]) -> bool:
        """
        Check whether an edit touches the inside of any already-modified region.

        Edits that only meet a region at its boundary do not overlap it.
        """
        for start, end in regions:
            if edit.start_offset < end and start < edit.end_offset:
                return True

        return False

    def _shift_regions(self, regions: Dict[int, List[int]], edit: RangeReplace) -> None:
        """Move regions that lie after an edit by the edit's change in length."""
        for region in regions.values():
            if region[0] >= edit.end_offset:
                region[0] += edit.delta
                region[1] += edit.delta

    def _write_edit(self, buffer: TextBuffer, edit: RangeReplace, index: int) -> None:
        try:
            buffer.replace(edit.start_offset, edit.end_offset, edit.text)

        except PatchBufferError as e:
            self._logger.exception("Failed to apply hunk %d: %s", index, str(e))
            raise PatchApplicationError(
                f"Failed to apply hunk {index}: {str(e)}",
                {
                    'phase': 'application',
                    'failed_hunk': index,
                    'range': [edit.start_offset, edit.end_offset],
                    'buffer_error': e.error_details,
                }
            ) from e
