#!/usr/bin/env python3
"""Entry point script for subtranslator.

This script allows running subtranslator without installing it:
    python run.py [args...]

It delegates to the CLI module for argument parsing and command execution.
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_dir = Path(__file__).parent / "src"
sys.path.insert(0, str(src_dir))

from subtranslator.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
