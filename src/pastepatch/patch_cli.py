#!/usr/bin/env python3
"""
pastepatch - Command-line tool for applying pasted diffs to a file.

Hunks are located by their declared line numbers with a fuzzy fallback, or around a
caret line for snippets without usable headers, so diffs that would not apply
cleanly with `patch` can still be applied.

Usage:
    python -m pastepatch --file <source_file> [--patch <diff_file> | --clipboard] [options]

Options:
    --file PATH         Source file to patch (required)
    --patch PATH        Diff file (default: read from stdin)
    --clipboard         Read the diff from the system clipboard
    --apply             Actually apply the patch (default is dry-run)
    --backup            Keep the unpatched text in <file>.bak when applying
    --mode MODE         auto, line or caret (default: from settings, else auto)
    --caret-line N      1-indexed line to anchor header-less hunks on
    --strict            Require every original line to match
    --settings PATH     JSON settings file
    --log-file PATH     Write a debug log to this file
    --verbose           Show detailed output
    --no-color          Disable colored output
"""

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
from typing import Dict, List, Optional

from pastepatch.patch_applier import PatchApplier
from pastepatch.patch_buffer import StringTextBuffer
from pastepatch.patch_exceptions import PatchError
from pastepatch.patch_settings import ApplyMode, PatchSettings
from pastepatch.patch_types import ApplyOutcomeKind, Hunk, PatchReport


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_SKIPPED = 2

ANSI_RESET = '\033[0m'
ANSI_STYLES: Dict[str, str] = {
    'bold': '\033[1m',
    'red': '\033[91m',
    'green': '\033[92m',
    'yellow': '\033[93m',
    'blue': '\033[94m',
    'cyan': '\033[96m',
}

OUTCOME_STYLES: Dict[ApplyOutcomeKind, str] = {
    ApplyOutcomeKind.APPLIED: 'green',
    ApplyOutcomeKind.APPLIED_BY_FALLBACK: 'yellow',
    ApplyOutcomeKind.SKIPPED: 'red',
}


def setup_logging(verbose: bool, log_file: str | None) -> None:
    """Configure logging, optionally to a rotating log file."""
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handlers: List[logging.Handler] = [console]

    if log_file:
        # Keep up to 5 log files, max 1MB each
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=1024*1024,  # 1MB
            backupCount=4,
            encoding='utf-8'
        ))

    logging.basicConfig(
        level=logging.DEBUG if verbose or log_file else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


class PastePatcher:
    """
    Applies a patch to one file from the command line.

    Reads the source file and the patch text, runs the hunks through a `PatchApplier`
    on an in-memory copy, reports every hunk's outcome and, with --apply, writes the
    patched text back.
    """

    def __init__(self, args: argparse.Namespace):
        """
        Initialize patcher with command-line arguments.

        Args:
            args: Parsed command-line arguments
        """
        self.args = args
        self.source_file = Path(args.file)
        self.verbose = args.verbose
        self._use_color = sys.stdout.isatty() and not args.no_color
        self._logger = logging.getLogger("PastePatcher")

    def run(self) -> int:
        """
        Run the patcher.

        Returns:
            Exit code (0 if every hunk applied, 2 if any were skipped, 1 on error)
        """
        try:
            settings = self._load_settings()
            if settings is None:
                return EXIT_ERROR

            if not self._validate_inputs():
                return EXIT_ERROR

            source_text = self.source_file.read_text(encoding='utf-8')
            patch_text = self._read_patch()
            if patch_text is None:
                return EXIT_ERROR

            applier = PatchApplier(settings)
            hunks = applier.parse(patch_text)
            if not hunks:
                self._notice("Warning:", 'yellow', "No hunks found in patch, nothing to do")
                return EXIT_OK

            self._show_patch_info(hunks, settings)

            buffer = StringTextBuffer(source_text)
            caret_offset = self._caret_offset(buffer)
            report = applier.apply_hunks(hunks, buffer, caret_offset, dry_run=not self.args.apply)
            self._show_report(report)

            if not self.args.apply:
                print(f"\n{self._paint('Dry-run mode: No changes were made', 'yellow')}")
                print(f"  Re-run with {self._paint('--apply', 'bold')} to write {self.source_file}")

            elif report.applied_count:
                self._write_result(source_text, buffer)

            return EXIT_OK if report.success else EXIT_SKIPPED

        except KeyboardInterrupt:
            self._notice("Error:", 'red', "Interrupted by user", to_stderr=True)
            return 130

        except (OSError, UnicodeDecodeError, PatchError) as e:
            self._logger.exception("Patch failed")
            self._notice("Error:", 'red', str(e), to_stderr=True)
            return EXIT_ERROR

    def _load_settings(self) -> Optional[PatchSettings]:
        """Load settings from file, then apply command-line overrides."""
        settings = PatchSettings()
        if self.args.settings:
            try:
                settings = PatchSettings.load(self.args.settings)

            except PatchError as e:
                self._notice("Error:", 'red', str(e), to_stderr=True)
                return None

        if self.args.mode:
            settings.mode = ApplyMode(self.args.mode)

        if self.args.strict:
            settings.strict_alignment = True

        return settings

    def _validate_inputs(self) -> bool:
        """Validate that input files exist."""
        if not self.source_file.is_file():
            self._notice("Error:", 'red', f"Source file not found: {self.source_file}", to_stderr=True)
            return False

        if self.args.patch and not Path(self.args.patch).is_file():
            self._notice("Error:", 'red', f"Patch file not found: {self.args.patch}", to_stderr=True)
            return False

        return True

    def _read_patch(self) -> Optional[str]:
        """Read the patch text from a file, the clipboard or stdin."""
        if self.args.patch:
            return Path(self.args.patch).read_text(encoding='utf-8')

        if self.args.clipboard:
            # Imported here so Qt is only loaded when the clipboard is used
            from pastepatch.qt_patch_buffer import read_clipboard_text  # pylint: disable=import-outside-toplevel

            text = read_clipboard_text()
            if not text.strip():
                self._notice("Error:", 'red', "Clipboard is empty or not text", to_stderr=True)
                return None

            return text

        return sys.stdin.read()

    def _caret_offset(self, buffer: StringTextBuffer) -> int | None:
        """Convert --caret-line into an offset in the buffer."""
        if self.args.caret_line is None:
            return None

        line = max(0, min(self.args.caret_line - 1, buffer.line_count() - 1))
        return buffer.line_start_offset(line)

    def _show_patch_info(self, hunks: List[Hunk], settings: PatchSettings) -> None:
        """Display the file, hunk count and mode, plus per-hunk details when verbose."""
        print(f"\n{self._paint('Patch Information:', 'bold')}")
        print(f"  Source file: {self._paint(str(self.source_file), 'cyan')}")
        print(f"  Hunks:       {self._paint(str(len(hunks)), 'cyan')}")
        print(f"  Mode:        {self._paint(settings.mode.value, 'cyan')}")

        if not self.verbose:
            return

        print(f"\n{self._paint('Hunk Details:', 'bold')}")
        for i, hunk in enumerate(hunks, 1):
            header = "header" if hunk.has_header else "no header"
            print(f"  Hunk {i}: line {hunk.declared_start_line} ({header})")
            print(
                f"    Context: {len(hunk.context_lines)}, "
                f"Removals: {len(hunk.removed_lines)}, Additions: {len(hunk.added_lines)}"
            )

    def _show_report(self, report: PatchReport) -> None:
        """Display the outcome of every hunk."""
        print(f"\n{self._paint('Results:', 'bold')}")
        for outcome in report.outcomes:
            line = f"Hunk #{outcome.hunk_index}: {outcome.describe()}"
            print(f"  {self._paint(line, OUTCOME_STYLES[outcome.kind])}")

        print(
            f"\n  {report.applied_count} applied "
            f"({report.fallback_count} by fallback), {report.skipped_count} skipped"
        )

    def _write_result(self, source_text: str, buffer: StringTextBuffer) -> None:
        """
        Write the patched text, keeping the text it replaces in a .bak file if asked.

        Raises:
            OSError: If either file cannot be written
        """
        if self.args.backup:
            backup_file = self.source_file.with_name(self.source_file.name + '.bak')
            backup_file.write_text(source_text, encoding='utf-8')
            print(f"  Backup:      {self._paint(str(backup_file), 'cyan')}")

        self.source_file.write_text(buffer.text(), encoding='utf-8')
        if self.verbose:
            print(f"{self._paint('[verbose]', 'blue')} Wrote {buffer.line_count()} lines to {self.source_file}")

    def _paint(self, text: str, style: str) -> str:
        """Wrap text in an ANSI style when writing to a terminal."""
        if not self._use_color:
            return text

        return f"{ANSI_STYLES[style]}{text}{ANSI_RESET}"

    def _notice(self, label: str, style: str, message: str, to_stderr: bool = False) -> None:
        print(f"{self._paint(label, style)} {message}", file=sys.stderr if to_stderr else sys.stdout)


def parse_arguments(argv: List[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pastepatch",
        description="Apply pasted, possibly malformed, diffs to a file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Dry run (default) - show what would happen
  python -m pastepatch --file src/example.py --patch changes.diff

  # Apply the patch
  python -m pastepatch --file src/example.py --patch changes.diff --apply

  # Apply a header-less snippet from the clipboard around line 42
  python -m pastepatch --file src/example.py --clipboard --caret-line 42 --apply
        """
    )

    parser.add_argument('--file', required=True, help='Source file to patch')

    source = parser.add_mutually_exclusive_group()
    source.add_argument('--patch', help='Diff file (default: read from stdin)')
    source.add_argument('--clipboard', action='store_true', help='Read the diff from the clipboard')

    parser.add_argument('--apply', action='store_true', help='Actually apply the patch (default is dry-run)')
    parser.add_argument('--backup', action='store_true', help='Keep the unpatched text in <file>.bak when applying')
    parser.add_argument(
        '--mode',
        choices=[mode.value for mode in ApplyMode],
        help='How hunks are located (default: from settings, else auto)'
    )
    parser.add_argument('--caret-line', type=int, help='1-indexed line to anchor header-less hunks on')
    parser.add_argument('--strict', action='store_true', help='Require every original line to match')
    parser.add_argument('--settings', help='JSON settings file')
    parser.add_argument('--log-file', help='Write a debug log to this file')
    parser.add_argument('--verbose', action='store_true', help='Show detailed output')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')

    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging(args.verbose, args.log_file)
    patcher = PastePatcher(args)
    return patcher.run()


if __name__ == "__main__":
    sys.exit(main())
