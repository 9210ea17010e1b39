"""SRT parser for subtranslator.

Turns decoded subtitle text into a :class:`~subtranslator.core.entry.Document`.
Every line ending and every blank separator line is recorded on the entries so
that :func:`subtranslator.core.serializer.compose` can reproduce the input
exactly.
"""

import logging
from collections import Counter
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..config.settings import DEFAULT_ENCODING, DEFAULT_NEWLINE
from .entry import CueLayout, Document, Entry, InvalidFormat, MalformedSubtitle

logger = logging.getLogger(__name__)

# (line text without terminator, terminator)
Line = Tuple[str, str]


def split_lines(text: str) -> List[Line]:
    """Split text into lines, keeping each line's terminator.

    Only ``\\n`` and ``\\r\\n`` end a line. The last line has an empty
    terminator when the text does not end with a newline.
    """
    lines: List[Line] = []
    pieces = text.split("\n")
    for piece in pieces[:-1]:
        if piece.endswith("\r"):
            lines.append((piece[:-1], "\r\n"))
        else:
            lines.append((piece, "\n"))
    if pieces[-1]:
        lines.append((pieces[-1], ""))
    return lines


def detect_newline(lines: Sequence[Line], default: str = DEFAULT_NEWLINE) -> str:
    """Most common line terminator among the lines."""
    counts = Counter(terminator for _, terminator in lines if terminator)
    if not counts:
        return default
    return counts.most_common(1)[0][0]


def _is_blank(line: Line) -> bool:
    return not line[0].strip()


def _join(lines: Sequence[Line]) -> str:
    return "".join(text + terminator for text, terminator in lines)


def _parse_block(block: Sequence[Line], separator: str, first_line_number: int) -> Entry:
    """Build one entry from the non-blank lines of a cue."""
    index_text, index_terminator = block[0]
    stripped = index_text.strip()

    if stripped.isdecimal():
        index = int(stripped)
        body = block[1:]
        timing_line_number = first_line_number + 1
        terminators = [index_terminator]
    elif "-->" in index_text:
        # Cue without a sequence number; it gets one when written back
        logger.debug("Cue at line %d has no index line", first_line_number)
        index = 0
        index_text = ""
        body = block
        timing_line_number = first_line_number
        terminators = [""]
    else:
        raise MalformedSubtitle(
            f"Expected a cue number, found {index_text!r}", first_line_number
        )

    if not body:
        raise MalformedSubtitle("Cue has no timing line", first_line_number)

    timing_text, timing_terminator = body[0]
    if "-->" not in timing_text:
        raise MalformedSubtitle(
            f"Expected 'start --> end', found {timing_text!r}", timing_line_number
        )

    text_lines = [text for text, _ in body[1:]]
    terminators.append(timing_terminator)
    terminators.extend(terminator for _, terminator in body[1:])
    layout = CueLayout(index_text=index_text, terminators=terminators, separator=separator)

    try:
        return Entry.from_timing_line(index, timing_text, text_lines, layout=layout)
    except InvalidFormat as e:
        raise InvalidFormat(str(e), timing_line_number) from e


def parse(
    text: str,
    encoding: str = DEFAULT_ENCODING,
    bom: bool = False,
    source: Optional[Path] = None,
) -> Document:
    """Parse SRT text into a document.

    Cues are separated by one or more blank lines. The first line of a cue is
    its number (the value is not checked against the position), the second
    is the time range and every further line up to the next blank line is a
    line of dialogue.

    Args:
        text: Decoded subtitle text, without byte-order mark
        encoding: Encoding the text was decoded with, kept for writing back
        bom: Whether the file started with a byte-order mark
        source: Optional path of the file, for messages

    Returns:
        Parsed document; empty when the text holds no cues

    Raises:
        MalformedSubtitle: If a cue cannot be recovered
    """
    lines = split_lines(text)
    total = len(lines)

    position = 0
    while position < total and _is_blank(lines[position]):
        position += 1
    preamble = _join(lines[:position])

    entries: List[Entry] = []
    while position < total:
        block_start = position
        while position < total and not _is_blank(lines[position]):
            position += 1
        block = lines[block_start:position]

        separator_start = position
        while position < total and _is_blank(lines[position]):
            position += 1
        separator = _join(lines[separator_start:position])

        entries.append(_parse_block(block, separator, block_start + 1))

    document = Document(
        entries=entries,
        encoding=encoding,
        bom=bom,
        newline=detect_newline(lines),
        preamble=preamble,
        source=source,
    )
    logger.debug(
        "Parsed %d cues (%s, newline=%r) from %s",
        len(entries),
        encoding,
        document.newline,
        source or "text",
    )
    return document
