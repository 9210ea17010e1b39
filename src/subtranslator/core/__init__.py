"""Core functionality modules for subtranslator.

This package contains the main processing modules:
- entry: Subtitle cue and document model
- parser: SRT text to document
- serializer: Document to SRT text
- subtitle: Subtitle file reading, writing and inspection
- translation: Translation backends and batched document translation
- workflow: Batch file pipeline
"""

from typing import List

from .entry import Document, Entry, InvalidFormat, MalformedSubtitle, SubtitleError
from .parser import parse
from .serializer import compose
from .subtitle import SubtitleProcessor
from .translation import (
    BackendFailure,
    SubtitleTranslator,
    TranslationArityMismatch,
    TranslationError,
    translate_document,
)
from .workflow import SubtitleWorkflow, WorkflowError

__all__: List[str] = [
    "BackendFailure",
    "Document",
    "Entry",
    "InvalidFormat",
    "MalformedSubtitle",
    "SubtitleError",
    "SubtitleProcessor",
    "SubtitleTranslator",
    "SubtitleWorkflow",
    "TranslationArityMismatch",
    "TranslationError",
    "WorkflowError",
    "compose",
    "parse",
    "translate_document",
]
