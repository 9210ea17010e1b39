"""Subtitle document model for subtranslator.

An :class:`Entry` is one cue of an SRT file: a sequence number, a time range
and one or more lines of dialogue. A :class:`Document` is the ordered list of
entries read from one file, together with everything needed to write the file
back byte for byte (encoding, byte-order mark, line endings, blank lines).

Timestamps are kept as the exact text found in the file and parsed with the
``srt`` library for validation and arithmetic.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

import srt

from ..config.settings import DEFAULT_ENCODING, DEFAULT_NEWLINE

TIMING_RE = re.compile(
    r"^(?P<start>\s*\S+?)(?P<arrow>\s*-->\s*)(?P<end>\S+)(?P<proprietary>.*)$"
)


class SubtitleError(Exception):
    """Exception raised for subtitle processing errors."""


class MalformedSubtitle(SubtitleError):
    """Subtitle text does not follow the cue grammar."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class InvalidFormat(MalformedSubtitle):
    """A cue could not be built: no text lines or an unparseable timestamp."""


def parse_timestamp(text: str) -> timedelta:
    """Parse an SRT timestamp such as ``00:01:02,345``.

    Raises:
        InvalidFormat: If the text is not a timestamp
    """
    try:
        return srt.srt_timestamp_to_timedelta(text.strip())
    except srt.TimestampParseError as e:
        raise InvalidFormat(f"Unparseable timestamp: {text!r}") from e


def format_timestamp(value: timedelta) -> str:
    """Format a timedelta as a canonical ``HH:MM:SS,mmm`` timestamp."""
    return str(srt.timedelta_to_srt_timestamp(value))


@dataclass
class CueLayout:
    """How one cue was laid out in the source text.

    ``terminators`` holds the line ending of every physical line of the cue
    (index line, timing line, then each text line); the last one is empty
    when the file ends without a newline. ``separator`` is the blank text
    that followed the cue, verbatim.
    """

    index_text: str = ""
    terminators: List[str] = field(default_factory=list)
    separator: str = ""


@dataclass
class Entry:
    """One subtitle cue."""

    index: int
    start: str
    end: str
    text_lines: List[str]
    arrow: str = " --> "
    proprietary: str = ""
    layout: Optional[CueLayout] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        self.text_lines = list(self.text_lines)
        if not self.text_lines:
            raise InvalidFormat("Cue has no text lines")
        for line in self.text_lines:
            if not line.strip():
                raise InvalidFormat("Cue text lines cannot be blank")
            if "\n" in line:
                raise InvalidFormat(f"Cue text line contains a line break: {line!r}")
        if "-->" not in self.arrow:
            raise InvalidFormat(f"Timing separator must contain '-->': {self.arrow!r}")
        self._start_time = parse_timestamp(self.start)
        self._end_time = parse_timestamp(self.end)

    @classmethod
    def from_timing_line(
        cls,
        index: int,
        timing_line: str,
        text_lines: Iterable[str],
        layout: Optional[CueLayout] = None,
    ) -> "Entry":
        """Build an entry from a raw ``start --> end`` line.

        Raises:
            InvalidFormat: If the timing line cannot be split or parsed
        """
        match = TIMING_RE.match(timing_line)
        if match is None:
            raise InvalidFormat(f"Invalid timing line: {timing_line!r}")
        return cls(
            index=index,
            start=match.group("start"),
            end=match.group("end"),
            text_lines=list(text_lines),
            arrow=match.group("arrow"),
            proprietary=match.group("proprietary"),
            layout=layout,
        )

    @classmethod
    def from_times(
        cls, index: int, start: timedelta, end: timedelta, text_lines: Iterable[str]
    ) -> "Entry":
        """Build an entry from timedeltas, using canonical timestamp formatting."""
        return cls(
            index=index,
            start=format_timestamp(start),
            end=format_timestamp(end),
            text_lines=list(text_lines),
        )

    @classmethod
    def from_subtitle(cls, subtitle: srt.Subtitle) -> "Entry":
        """Convert an ``srt.Subtitle`` into an entry."""
        return cls(
            index=subtitle.index,
            start=format_timestamp(subtitle.start),
            end=format_timestamp(subtitle.end),
            text_lines=subtitle.content.splitlines(),
            proprietary=f" {subtitle.proprietary}" if subtitle.proprietary else "",
        )

    def to_subtitle(self) -> srt.Subtitle:
        """Convert the entry into an ``srt.Subtitle``."""
        return srt.Subtitle(
            index=self.index,
            start=self.start_time,
            end=self.end_time,
            content=self.content,
            proprietary=self.proprietary.strip(),
        )

    @property
    def start_time(self) -> timedelta:
        return self._start_time

    @property
    def end_time(self) -> timedelta:
        return self._end_time

    @property
    def duration(self) -> timedelta:
        return self._end_time - self._start_time

    @property
    def timing_line(self) -> str:
        return f"{self.start}{self.arrow}{self.end}{self.proprietary}"

    @property
    def content(self) -> str:
        return "\n".join(self.text_lines)

    def with_text(self, text_lines: Iterable[str]) -> "Entry":
        """Copy of this entry with different text lines and the same timing and layout."""
        return replace(self, text_lines=list(text_lines))


@dataclass
class Document:
    """All cues of one subtitle file plus the details needed to write it back."""

    entries: List[Entry] = field(default_factory=list)
    encoding: str = DEFAULT_ENCODING
    bom: bool = False
    newline: str = DEFAULT_NEWLINE
    preamble: str = ""
    source: Optional[Path] = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def flatten(self) -> List[str]:
        """All text lines of all entries, in document order."""
        return [line for entry in self.entries for line in entry.text_lines]

    def line_counts(self) -> List[int]:
        """Number of text lines of each entry."""
        return [len(entry.text_lines) for entry in self.entries]

    def with_entries(self, entries: Iterable[Entry]) -> "Document":
        """Copy of this document with the entries replaced."""
        return replace(self, entries=list(entries))
