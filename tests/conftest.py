"""Test configuration and fixtures for subtranslator tests."""

import tempfile
from pathlib import Path
from typing import Callable, Generator, List, Optional, Tuple

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def sample_srt_content() -> str:
    """Sample SRT content for testing."""
    return """1
00:00:01,600 --> 00:00:04,200
Introduction to subtitles

2
00:00:05,900 --> 00:00:07,999
This is a test subtitle

3
00:00:10,000 --> 00:00:14,000
With multiple lines
and formatting
"""


@pytest.fixture
def sample_srt_file(temp_dir: Path, sample_srt_content: str) -> Path:  # pylint: disable=redefined-outer-name
    """Create a sample SRT file for testing."""
    srt_file = temp_dir / "test.srt"
    srt_file.write_bytes(sample_srt_content.encode("utf-8"))
    return srt_file


@pytest.fixture
def latin1_srt_bytes() -> bytes:
    """SRT content with accented letters in a legacy single-byte encoding."""
    content = (
        "1\r\n"
        "00:00:01,600 --> 00:00:04,200\r\n"
        "Inglés para principiantes\r\n"
        "\r\n"
        "2\r\n"
        "00:00:05,000 --> 00:00:06,500\r\n"
        "Iñtërnâtiônàlizætiøn\r\n"
        "\r\n"
    )
    return content.encode("cp1252")


@pytest.fixture
def malformed_srt_content() -> str:
    """Malformed SRT content for error testing."""
    return """1
INVALID_TIMESTAMP
Hello world

2
00:00:04,000 --> INVALID_END
This is broken
"""


class StubBackend:
    """Translation backend double that records its calls."""

    def __init__(self, mapping: Optional[Callable[[List[str]], List[str]]] = None):
        self.mapping = mapping or (lambda lines: [line.upper() for line in lines])
        self.calls: List[Tuple[str, str, List[str], Optional[str]]] = []

    def __call__(
        self, target_lang: str, src_lang: str, lines: List[str], api_key: Optional[str] = None
    ) -> List[str]:
        self.calls.append((target_lang, src_lang, list(lines), api_key))
        return self.mapping(list(lines))


@pytest.fixture
def stub_backend() -> StubBackend:
    """Backend that upper-cases every line."""
    return StubBackend()


@pytest.fixture
def make_backend() -> Callable[..., StubBackend]:
    """Factory for backends with a custom line mapping."""
    return StubBackend
