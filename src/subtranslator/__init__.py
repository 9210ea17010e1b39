"""subtranslator: batch translation of SRT subtitle files.

This package walks a folder of subtitle files, translates the dialogue of each
file with a pluggable translation service and writes the files back in their
original format, encoding and line endings.

Main components:
- core.entry / core.parser / core.serializer: Subtitle document round trip
- core.translation: Translation backends and batched document translation
- core.subtitle: Subtitle file reading and writing
- core.workflow: Concurrent batch processing of files
- utils: Encoding detection and common helpers
"""

from typing import List

__version__ = "1.0.0"

from .core.entry import Document, Entry
from .core.subtitle import SubtitleProcessor
from .core.translation import SubtitleTranslator
from .core.workflow import SubtitleWorkflow

# Public API exports
__all__: List[str] = [
    "__version__",
    "Document",
    "Entry",
    "SubtitleProcessor",
    "SubtitleTranslator",
    "SubtitleWorkflow",
]
