"""Tests for core.parser module."""

from pathlib import Path

import pytest

from subtranslator.core.entry import InvalidFormat, MalformedSubtitle
from subtranslator.core.parser import detect_newline, parse, split_lines


class TestSplitLines:
    """Test the split_lines helper."""

    def test_unix_lines(self) -> None:
        """Test splitting LF text."""
        assert split_lines("a\nb\n") == [("a", "\n"), ("b", "\n")]

    def test_windows_lines(self) -> None:
        """Test splitting CRLF text."""
        assert split_lines("a\r\nb\r\n") == [("a", "\r\n"), ("b", "\r\n")]

    def test_no_trailing_newline(self) -> None:
        """Test that the last line gets an empty terminator."""
        assert split_lines("a\nb") == [("a", "\n"), ("b", "")]

    def test_empty_text(self) -> None:
        """Test splitting empty text."""
        assert split_lines("") == []

    def test_lines_join_back(self) -> None:
        """Test that joining lines and terminators gives the input back."""
        text = "x\r\ny\n\nz  \r\n\r\nlast"
        assert "".join(t + e for t, e in split_lines(text)) == text

    def test_lone_carriage_return_is_content(self) -> None:
        """Only LF and CRLF end a line."""
        assert split_lines("a\rb\n") == [("a\rb", "\n")]


class TestDetectNewline:
    """Test the detect_newline helper."""

    def test_most_common_wins(self) -> None:
        """Test majority vote."""
        lines = [("a", "\r\n"), ("b", "\r\n"), ("c", "\n")]
        assert detect_newline(lines) == "\r\n"

    def test_default_without_terminators(self) -> None:
        """Test default when no line has a terminator."""
        assert detect_newline([("a", "")]) == "\n"
        assert detect_newline([], default="\r\n") == "\r\n"


class TestParse:
    """Test the parse function."""

    def test_parse_sample(self, sample_srt_content: str) -> None:
        """Test parsing a valid SRT text."""
        document = parse(sample_srt_content)

        assert len(document) == 3
        assert document.entries[0].text_lines == ["Introduction to subtitles"]
        assert document.entries[0].timing_line == "00:00:01,600 --> 00:00:04,200"
        assert document.entries[2].text_lines == ["With multiple lines", "and formatting"]
        assert document.newline == "\n"
        assert document.encoding == "utf-8"

    def test_parse_records_encoding_and_source(self) -> None:
        """Test that the decoding details are kept on the document."""
        document = parse("", encoding="cp1252", bom=False, source=Path("a.srt"))
        assert document.encoding == "cp1252"
        assert document.source == Path("a.srt")

    def test_empty_input(self) -> None:
        """A file with zero cues is an empty document, not an error."""
        assert len(parse("")) == 0

    def test_blank_input(self) -> None:
        """Test that blank text becomes the preamble."""
        document = parse("\n\n  \n")
        assert len(document) == 0
        assert document.preamble == "\n\n  \n"

    def test_crlf_and_lf_parse_identically(self, sample_srt_content: str) -> None:
        """Windows and Unix line endings give the same entries."""
        unix = parse(sample_srt_content)
        windows = parse(sample_srt_content.replace("\n", "\r\n"))

        assert unix.entries == windows.entries
        assert windows.newline == "\r\n"

    def test_final_cue_without_newline(self) -> None:
        """A last cue with no separator before end of input is valid."""
        document = parse("1\n00:00:01,000 --> 00:00:02,000\nEnd")

        assert len(document) == 1
        assert document.entries[0].text_lines == ["End"]
        assert document.entries[0].layout is not None
        assert document.entries[0].layout.terminators == ["\n", "\n", ""]
        assert document.entries[0].layout.separator == ""

    def test_multiple_blank_lines_between_cues(self) -> None:
        """Test that several blank lines separate cues."""
        text = "1\n00:00:01,000 --> 00:00:02,000\nA\n\n\n\n2\n00:00:03,000 --> 00:00:04,000\nB\n"
        document = parse(text)

        assert [e.text_lines for e in document] == [["A"], ["B"]]
        assert document.entries[0].layout is not None
        assert document.entries[0].layout.separator == "\n\n\n"

    def test_whitespace_only_line_is_separator(self) -> None:
        """Test that a line of spaces separates cues."""
        text = "1\n00:00:01,000 --> 00:00:02,000\nA\n   \n2\n00:00:03,000 --> 00:00:04,000\nB\n"
        document = parse(text)
        assert len(document) == 2

    def test_trailing_blank_lines_tolerated(self) -> None:
        """Trailing blank lines are kept on the last cue."""
        document = parse("1\n00:00:01,000 --> 00:00:02,000\nA\n\n\n")
        assert len(document) == 1
        assert document.entries[0].layout is not None
        assert document.entries[0].layout.separator == "\n\n"

    def test_leading_blank_lines(self) -> None:
        """Test that blank lines before the first cue are the preamble."""
        document = parse("\r\n\r\n1\r\n00:00:01,000 --> 00:00:02,000\r\nA\r\n")
        assert document.preamble == "\r\n\r\n"
        assert len(document) == 1

    def test_out_of_order_indices_are_ignored(self) -> None:
        """Input numbering is read but not checked."""
        text = "7\n00:00:01,000 --> 00:00:02,000\nA\n\n3\n00:00:03,000 --> 00:00:04,000\nB\n"
        document = parse(text)
        assert [e.index for e in document] == [7, 3]

    def test_missing_index_line(self) -> None:
        """A cue that starts with its timing line is accepted."""
        text = "00:00:01,000 --> 00:00:02,000\nA\n\n2\n00:00:03,000 --> 00:00:04,000\nB\n"
        document = parse(text)

        assert len(document) == 2
        assert document.entries[0].index == 0
        assert document.entries[0].text_lines == ["A"]

    def test_text_whitespace_preserved(self) -> None:
        """Significant whitespace inside dialogue lines is kept."""
        document = parse("1\n00:00:01,000 --> 00:00:02,000\n  - Hi there  \n")
        assert document.entries[0].text_lines == ["  - Hi there  "]

    def test_non_numeric_index(self) -> None:
        """Test that garbage instead of a cue number is rejected."""
        with pytest.raises(MalformedSubtitle, match="line 1: Expected a cue number"):
            parse("This is not valid SRT content")

    @pytest.mark.parametrize("index_text", ["²", "①", "3²"])
    def test_digit_like_index_rejected(self, index_text: str) -> None:
        """Superscripts and circled numbers are not cue numbers."""
        with pytest.raises(MalformedSubtitle, match="line 1: Expected a cue number"):
            parse(f"{index_text}\n00:00:01,000 --> 00:00:02,000\nHi\n")

    def test_non_ascii_decimal_index(self) -> None:
        """Decimal digits of other scripts are read as numbers."""
        document = parse("٣\n00:00:01,000 --> 00:00:02,000\nHi\n")
        assert document.entries[0].index == 3

    def test_missing_timing_line(self) -> None:
        """Test a cue made of only a number."""
        with pytest.raises(MalformedSubtitle, match="no timing line"):
            parse("1\n\n")

    def test_invalid_timing_line(self, malformed_srt_content: str) -> None:
        """Test a timing line without arrow."""
        with pytest.raises(MalformedSubtitle, match="line 2: Expected 'start --> end'"):
            parse(malformed_srt_content)

    def test_invalid_timestamp(self) -> None:
        """Test an arrow with a bad timestamp."""
        text = "1\n00:00:04,000 --> INVALID_END\nThis is broken\n"
        with pytest.raises(InvalidFormat) as exc_info:
            parse(text)
        assert exc_info.value.line_number == 2

    def test_cue_without_text(self) -> None:
        """A cue needs at least one text line."""
        text = "1\n00:00:01,000 --> 00:00:02,000\n\n2\n00:00:03,000 --> 00:00:04,000\nB\n"
        with pytest.raises(InvalidFormat, match="no text lines"):
            parse(text)

    def test_error_line_number_later_in_file(self) -> None:
        """Test that errors point at the right line."""
        text = "1\n00:00:01,000 --> 00:00:02,000\nA\n\noops\n00:00:03,000 --> 00:00:04,000\nB\n"
        with pytest.raises(MalformedSubtitle) as exc_info:
            parse(text)
        assert exc_info.value.line_number == 5
