"""Subtitle file processing module for subtranslator.

This module reads subtitle files from disk into documents (detecting the
encoding on the way), writes documents back with the encoding they came in,
and reports statistics and consistency issues.
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..config.settings import DEFAULT_ENCODING
from ..utils.common import ensure_directory, validate_file_exists
from ..utils.encoding import (
    candidate_encodings,
    decode_subtitle_bytes,
    encode_subtitle_text,
)
from .entry import Document, SubtitleError
from .parser import parse
from .serializer import compose

logger = logging.getLogger(__name__)


class SubtitleProcessor:
    """Process subtitle files for reading, writing and inspection."""

    def __init__(self, fallback_encoding: str = DEFAULT_ENCODING) -> None:
        """Initialize the processor.

        Args:
            fallback_encoding: Encoding used for output when translated text
                cannot be represented in the file's original encoding
        """
        self.fallback_encoding = fallback_encoding
        logger.debug("Initialized SubtitleProcessor")

    def parse_file(
        self,
        file_path: Union[str, Path],
        encoding: Optional[str] = None,
        language_code: Optional[str] = None,
    ) -> Document:
        """Parse an SRT file into a document.

        Args:
            file_path: Path to the SRT file
            encoding: File encoding; detected when None
            language_code: Source language, used to order encoding candidates

        Returns:
            Parsed document carrying the encoding that was used

        Raises:
            SubtitleError: If the file can't be decoded
            MalformedSubtitle: If the content is not valid SRT
        """
        file_path_obj = validate_file_exists(file_path)

        try:
            data = file_path_obj.read_bytes()
        except OSError as e:
            raise SubtitleError(f"Error reading subtitle file {file_path_obj}: {e}") from e

        try:
            text, used_encoding, bom = decode_subtitle_bytes(
                data, encoding, candidate_encodings(language_code)
            )
        except (UnicodeDecodeError, LookupError) as e:
            raise SubtitleError(
                f"Failed to decode subtitle file {file_path_obj} with encoding {encoding or 'auto'}: {e}"
            ) from e

        document = parse(text, encoding=used_encoding, bom=bom, source=file_path_obj)
        logger.info(
            "Parsed %d subtitles from %s (%s%s)",
            len(document),
            file_path_obj,
            used_encoding,
            ", BOM" if bom else "",
        )

        if not document.entries:
            logger.warning("No subtitles found in %s", file_path_obj)

        return document

    def encode_document(
        self, document: Document, newline: Optional[str] = None
    ) -> Tuple[bytes, str]:
        """Serialize and encode a document.

        Args:
            document: Document to encode
            newline: Optional line ending to force

        Returns:
            Tuple of (encoded bytes, encoding used)
        """
        text = compose(document, newline)
        try:
            return encode_subtitle_text(text, document.encoding, document.bom), document.encoding
        except UnicodeEncodeError as e:
            logger.warning(
                "Text of %s cannot be written as %s (%s), using %s instead",
                document.source or "document",
                document.encoding,
                e.reason,
                self.fallback_encoding,
            )
            return encode_subtitle_text(text, self.fallback_encoding), self.fallback_encoding

    def save_file(
        self,
        document: Document,
        file_path: Union[str, Path],
        newline: Optional[str] = None,
    ) -> str:
        """Save a document to an SRT file.

        Args:
            document: Document to save
            file_path: Output file path
            newline: Optional line ending to force

        Returns:
            The encoding the file was written with

        Raises:
            SubtitleError: If file can't be saved
        """
        file_path_obj = Path(file_path)
        data, used_encoding = self.encode_document(document, newline)

        try:
            ensure_directory(file_path_obj.parent)
            file_path_obj.write_bytes(data)
        except OSError as e:
            raise SubtitleError(f"Error saving subtitle file {file_path_obj}: {e}") from e

        logger.info("Saved %d subtitles to %s", len(document), file_path_obj)
        return used_encoding

    def extract_text(self, document: Document) -> List[str]:
        """Extract every text line of a document, in order.

        Args:
            document: Parsed document

        Returns:
            List of text lines
        """
        return document.flatten()

    def get_statistics(self, document: Document) -> Dict[str, Union[int, float]]:
        """Get statistics about a subtitle document.

        Args:
            document: Parsed document

        Returns:
            Dictionary with statistics
        """
        if not document.entries:
            return {
                "count": 0,
                "lines": 0,
                "total_duration": 0.0,
                "average_duration": 0.0,
                "total_characters": 0,
                "average_characters": 0.0,
                "longest_subtitle": 0,
                "shortest_subtitle": 0,
            }

        durations = [entry.duration.total_seconds() for entry in document]
        char_counts = [len(entry.content) for entry in document]

        total_duration = sum(durations)
        total_characters = sum(char_counts)
        count = len(document)

        return {
            "count": count,
            "lines": sum(document.line_counts()),
            "total_duration": round(total_duration, 2),
            "average_duration": round(total_duration / count, 2),
            "total_characters": total_characters,
            "average_characters": round(total_characters / count, 2),
            "longest_subtitle": max(char_counts),
            "shortest_subtitle": min(char_counts),
            "longest_duration": round(max(durations), 2),
            "shortest_duration": round(min(durations), 2),
        }

    def validate_subtitles(self, document: Document) -> List[str]:
        """Report consistency issues of a document.

        Nothing here stops a file from being translated; entries are written
        back exactly as they were read.

        Args:
            document: Parsed document

        Returns:
            List of validation issues (empty if no issues)
        """
        issues: List[str] = []

        if not document.entries:
            issues.append("No subtitles found")
            return issues

        prev_end = timedelta(0)

        for i, entry in enumerate(document, 1):
            if entry.index != i:
                issues.append(f"Subtitle {i}: Index mismatch (expected {i}, got {entry.index})")

            if entry.start_time >= entry.end_time:
                issues.append(f"Subtitle {i}: Invalid timing (start >= end)")

            if entry.start_time < prev_end:
                issues.append(f"Subtitle {i}: Overlaps with previous subtitle")

            prev_end = entry.end_time

        logger.info("Validated %d subtitles, found %d issues", len(document), len(issues))
        return issues
