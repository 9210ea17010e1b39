"""Utility modules for subtranslator.

This package contains utility functions and classes:
- encoding: Byte-order mark and text encoding detection
- common: Common utility functions shared across modules
"""

from typing import List

from .common import find_subtitle_files, setup_logging
from .encoding import decode_subtitle_bytes, detect_encoding, encode_subtitle_text

__all__: List[str] = [
    "decode_subtitle_bytes",
    "detect_encoding",
    "encode_subtitle_text",
    "find_subtitle_files",
    "setup_logging",
]
