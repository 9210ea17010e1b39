"""Configuration settings for subtranslator."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULT_ENCODING = "utf-8"
DEFAULT_NEWLINE = "\n"
DEFAULT_SRC_LANGUAGE = "en"
DEFAULT_TARGET_LANGUAGE = "es"
DEFAULT_SERVICE = "google"
DEFAULT_OUTPUT_FOLDER = "sub_output"
DEFAULT_FILE_PATTERN = "*.srt"
DEFAULT_MAX_WORKERS = 4

# HTTP backends
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_BACKOFF = 2.0
DEFAULT_MAX_BACKOFF = 60.0
DEFAULT_BACKOFF_JITTER = 0.1

# Service endpoints
GOOGLE_API_URL = "https://translation.googleapis.com/language/translate/v2"
GOOGLE_WEB_URL = "https://translate.googleapis.com/translate_a/single"
MICROSOFT_API_URL = "https://api.cognitive.microsofttranslator.com/translate"
IBM_DEFAULT_SERVICE_URL = "https://api.us-south.language-translator.watson.cloud.ibm.com"
IBM_API_VERSION = "2018-05-01"
DEFAULT_AWS_REGION = "us-east-1"

SUPPORTED_SUBTITLE_FORMATS = ["srt"]

# Translation service configurations
SUPPORTED_TRANSLATION_SERVICES = [
    "google", "microsoft", "ibm", "amazon", "identity"
]

# Environment variable holding the credential for a service, e.g.
# SUBTRANSLATOR_GOOGLE_KEY="value#abc123" or "file#/path/to/key.txt"
API_KEY_ENV_TEMPLATE = "SUBTRANSLATOR_{service}_KEY"

# Names read by earlier releases (qsubtranslator_google_key etc.), still honoured
LEGACY_API_KEY_ENV_TEMPLATE = "qsubtranslator_{service}_key"

# Trial order for files without a byte-order mark. iso-8859-1 maps every
# byte, so it must stay last.
DETECTION_ENCODINGS = ["utf-8", "cp1252", "iso-8859-1"]

# Language-specific encoding recommendations
LANGUAGE_ENCODINGS: Dict[str, List[str]] = {
    "en": ["utf-8", "cp1252", "iso-8859-1"],
    "fr": ["utf-8", "cp1252", "iso-8859-15", "iso-8859-1"],
    "de": ["utf-8", "cp1252", "iso-8859-15", "iso-8859-1"],
    "es": ["utf-8", "cp1252", "iso-8859-15", "iso-8859-1"],
    "it": ["utf-8", "cp1252", "iso-8859-15", "iso-8859-1"],
    "pt": ["utf-8", "cp1252", "iso-8859-15", "iso-8859-1"],
    "pl": ["utf-8", "cp1250", "iso-8859-2"],
    "cs": ["utf-8", "cp1250", "iso-8859-2"],
    "hu": ["utf-8", "cp1250", "iso-8859-2"],
    "ru": ["utf-8", "cp1251", "koi8-r", "iso-8859-5"],
    "uk": ["utf-8", "cp1251", "koi8-r"],
    "zh": ["utf-8", "gb2312", "cp936"],
    "zh-CN": ["utf-8", "gb2312", "cp936"],
    "zh-TW": ["utf-8", "big5", "cp950"],
    "ja": ["utf-8", "cp932", "euc-jp"],
    "ko": ["utf-8", "cp949", "euc-kr"],
    "th": ["utf-8", "cp874", "tis-620"],
    "ar": ["utf-8", "cp1256", "iso-8859-6"],
    "he": ["utf-8", "cp1255", "iso-8859-8"],
    "tr": ["utf-8", "cp1254", "iso-8859-9"],
    "el": ["utf-8", "cp1253", "iso-8859-7"],
    "vi": ["utf-8", "cp1258"],
}


# Global configuration storage
_config: Dict[str, Union[str, int, float, bool]] = {}


def get_config(key: str, default: Optional[Union[str, int, float, bool]] = None) -> Optional[Union[str, int, float, bool]]:
    """Get a configuration value.

    Args:
        key: Configuration key
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    return _config.get(key, default)


def set_config(key: str, value: Union[str, int, float, bool]) -> None:
    """Set a configuration value.

    Args:
        key: Configuration key
        value: Configuration value
    """
    _config[key] = value


def get_all_config() -> Dict[str, Any]:
    """Get all configuration values.

    Returns:
        Dictionary of all configuration values
    """
    return _config.copy()


def reset_config() -> None:
    """Reset configuration to empty state."""
    _config.clear()


def api_key_env_var(service: str) -> str:
    """Name of the environment variable that holds the credential for a service."""
    return API_KEY_ENV_TEMPLATE.format(service=service.upper())


def resolve_api_key(service: str, api_key: Optional[str] = None) -> Optional[str]:
    """Resolve the credential for a translation service.

    An explicit key always wins. Otherwise the service's environment variable
    is read, falling back to the older ``qsubtranslator_<service>_key`` name;
    its value is either ``value#<key>``, ``file#<path to key file>`` or a
    bare key.

    Args:
        service: Translation service name
        api_key: Key given on the command line, if any

    Returns:
        The credential string, or None if nothing is configured

    Raises:
        ValueError: If the environment variable points at an unreadable file
    """
    if api_key:
        return api_key

    env_name = api_key_env_var(service)
    raw = os.environ.get(env_name)
    if not raw:
        legacy_name = LEGACY_API_KEY_ENV_TEMPLATE.format(service=service.lower())
        raw = os.environ.get(legacy_name)
        if not raw:
            logger.debug("No credential configured in %s or %s", env_name, legacy_name)
            return None
        env_name = legacy_name

    kind, sep, rest = raw.partition("#")
    if not sep:
        return raw.strip()

    kind = kind.strip().lower()
    if kind == "file":
        key_path = Path(rest.strip())
        try:
            return key_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise ValueError(f"Cannot read API key file {key_path} from {env_name}: {e}") from e
    if kind == "value":
        return rest.strip()

    # Not one of the known prefixes, treat the whole thing as the key
    return raw.strip()
