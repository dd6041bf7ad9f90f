"""
CLI entry point for pastepatch.

This allows the tool to be run as:
    python -m pastepatch --file myfile.py --patch changes.diff
"""

import sys

from pastepatch.patch_cli import main

if __name__ == "__main__":
    sys.exit(main())
