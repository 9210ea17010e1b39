"""SRT serializer for subtranslator.

:func:`compose` is the inverse of :func:`subtranslator.core.parser.parse`:
for any well-formed, sequentially numbered input ``compose(parse(text)) ==
text``. Entries are always renumbered from 1 in document order.
"""

import re
from typing import List, Optional

from .entry import Document, Entry

_NEWLINE_RE = re.compile(r"\r?\n")


def _denotes(index_text: str, number: int) -> bool:
    stripped = index_text.strip()
    return stripped.isdecimal() and int(stripped) == number


def _entry_terminators(entry: Entry, newline: str, last: bool) -> List[str]:
    count = len(entry.text_lines) + 2
    layout = entry.layout
    if layout is None:
        return [newline] * count

    recorded = layout.terminators
    if len(recorded) == count:
        terminators = list(recorded)
    else:
        # Text lines were added or removed after parsing
        terminators = recorded[:2] + [newline] * (count - 3) + recorded[-1:]
    if not terminators[0]:
        terminators[0] = newline
    if not last and not terminators[-1]:
        terminators[-1] = newline
    return terminators


def _entry_separator(entry: Entry, newline: str, last: bool) -> str:
    if entry.layout is None:
        return "" if last else newline
    separator = entry.layout.separator
    if not last and not separator:
        return newline
    return separator


def compose_entry(entry: Entry, number: int, newline: str = "\n", last: bool = False) -> str:
    """Serialize one entry under the given sequence number.

    Args:
        entry: Entry to write
        number: Sequence number written on the index line
        newline: Line ending for lines without a recorded one
        last: Whether this is the final entry of the document

    Returns:
        The cue text including its trailing separator
    """
    if entry.layout is not None and _denotes(entry.layout.index_text, number):
        index_text = entry.layout.index_text
    else:
        index_text = str(number)

    lines = [index_text, entry.timing_line] + entry.text_lines
    terminators = _entry_terminators(entry, newline, last)
    body = "".join(line + terminator for line, terminator in zip(lines, terminators))
    return body + _entry_separator(entry, newline, last)


def compose(document: Document, newline: Optional[str] = None) -> str:
    """Serialize a document to SRT text.

    Args:
        document: Document to write
        newline: Line ending to force on every line. When None the endings
            recorded by the parser are reproduced, and ``document.newline``
            is used for anything without a recorded ending.

    Returns:
        SRT text, without byte-order mark
    """
    default_newline = newline or document.newline
    total = len(document.entries)

    parts = [document.preamble]
    for number, entry in enumerate(document.entries, 1):
        parts.append(compose_entry(entry, number, default_newline, number == total))
    text = "".join(parts)

    if newline is not None:
        text = _NEWLINE_RE.sub(newline, text)
    return text
