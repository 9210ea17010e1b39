"""Common utility functions shared across subtranslator modules."""

import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional, Union

from ..config.settings import DEFAULT_FILE_PATTERN, SUPPORTED_SUBTITLE_FORMATS


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Set up logging configuration.

    Args:
        level: Logging level
        log_file: Optional log file path
        format_string: Optional custom format string

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    return logging.getLogger(__name__)


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        Path object for the directory
    """
    path_obj = Path(path)
    path_obj.mkdir(parents=True, exist_ok=True)
    return path_obj


def is_subtitle_file(path: Union[str, Path]) -> bool:
    """Check if a file is a subtitle file based on extension.

    Args:
        path: File path

    Returns:
        True if file appears to be a subtitle file
    """
    extension = Path(path).suffix.lower().lstrip(".")
    return extension in SUPPORTED_SUBTITLE_FORMATS


def validate_file_exists(path: Union[str, Path]) -> Path:
    """Validate that a file exists and return Path object.

    Args:
        path: File path to validate

    Returns:
        Path object for the file

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If path is empty or invalid
    """
    if not path:
        raise ValueError("File path cannot be empty")

    path_obj = Path(path)
    if not path_obj.exists():
        raise FileNotFoundError(f"File does not exist: {path_obj}")

    if not path_obj.is_file():
        raise ValueError(f"Path is not a file: {path_obj}")

    return path_obj


def validate_directory_exists(path: Union[str, Path]) -> Path:
    """Validate that a directory exists and return Path object.

    Args:
        path: Directory path to validate

    Returns:
        Path object for the directory

    Raises:
        FileNotFoundError: If directory doesn't exist
        ValueError: If path is empty or invalid
    """
    if not path:
        raise ValueError("Directory path cannot be empty")

    path_obj = Path(path)
    if not path_obj.exists():
        raise FileNotFoundError(f"Directory does not exist: {path_obj}")

    if not path_obj.is_dir():
        raise ValueError(f"Path is not a directory: {path_obj}")

    return path_obj


def find_subtitle_files(
    directory: Union[str, Path], pattern: str = DEFAULT_FILE_PATTERN
) -> List[Path]:
    """List the subtitle files directly inside a directory.

    Args:
        directory: Folder to scan (not recursive)
        pattern: Glob pattern the file names must match

    Returns:
        Matching files sorted by name

    Raises:
        FileNotFoundError: If the directory doesn't exist
        ValueError: If the path is not a directory
    """
    directory_obj = validate_directory_exists(directory)
    return sorted(p for p in directory_obj.glob(pattern) if p.is_file())


class ThreadSafeCounter:
    """Thread-safe counter for tracking progress."""

    def __init__(self, initial_value: int = 0):
        """Initialize counter.

        Args:
            initial_value: Initial counter value
        """
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Increment counter and return new value."""
        with self._lock:
            self._value += 1
            return self._value

    def get(self) -> int:
        """Get current counter value."""
        with self._lock:
            return self._value

    def reset(self) -> None:
        """Reset counter to zero."""
        with self._lock:
            self._value = 0
