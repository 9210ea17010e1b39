"""Configuration modules for subtranslator.

This package contains configuration settings and constants:
- settings: Application settings, runtime configuration and credential lookup
"""

from typing import List

from .settings import (
    DEFAULT_ENCODING,
    DEFAULT_MAX_WORKERS,
    DEFAULT_TIMEOUT,
    SUPPORTED_SUBTITLE_FORMATS,
    SUPPORTED_TRANSLATION_SERVICES,
    get_config,
    resolve_api_key,
    set_config,
)

__all__: List[str] = [
    "DEFAULT_ENCODING",
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_TIMEOUT",
    "SUPPORTED_SUBTITLE_FORMATS",
    "SUPPORTED_TRANSLATION_SERVICES",
    "get_config",
    "resolve_api_key",
    "set_config",
]
