"""Encoding utilities for subtranslator.

Subtitle files in the wild come as UTF-8 (with or without a byte-order mark),
UTF-16/32 with a BOM, or in a legacy single-byte code page. This module finds
the encoding actually present so that the same bytes can be written back.
"""

import codecs
import logging
import sys
from typing import List, Optional, Tuple

from ..config.settings import DETECTION_ENCODINGS, LANGUAGE_ENCODINGS

logger = logging.getLogger(__name__)

# Longest marks first: the UTF-32-LE mark starts with the UTF-16-LE one.
_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

_BOM_FOR_CODEC = {name: bom for bom, name in _BOMS}

# Codecs whose byte order comes from a BOM; without one Python uses native order
_BYTE_ORDER_CODECS = ("utf-16", "utf-32")


def with_byte_order(codec: str) -> str:
    """Pin ``utf-16``/``utf-32`` to the byte order Python decodes them with.

    Other codec names are returned unchanged.
    """
    if codec in _BYTE_ORDER_CODECS:
        return f"{codec}-{'le' if sys.byteorder == 'little' else 'be'}"
    return codec


def detect_bom(data: bytes) -> Optional[str]:
    """Return the codec announced by a leading byte-order mark, if any.

    Args:
        data: Raw file content

    Returns:
        Codec name (without BOM handling, e.g. ``utf-16-le``) or None
    """
    for bom, codec in _BOMS:
        if data.startswith(bom):
            return codec
    return None


def bom_for(encoding: str) -> bytes:
    """Get the byte-order mark written for an encoding.

    Raises:
        LookupError: If the encoding has no byte-order mark
    """
    codec = normalize_encoding_name(encoding)
    if codec == "utf-8-sig":
        codec = "utf-8"
    try:
        return _BOM_FOR_CODEC[codec]
    except KeyError:
        raise LookupError(f"Encoding {encoding} has no byte-order mark") from None


def candidate_encodings(language_code: Optional[str] = None) -> List[str]:
    """Build the ordered list of encodings tried on files without a BOM.

    Args:
        language_code: Optional source language hint

    Returns:
        Encoding names, UTF-8 first and iso-8859-1 last
    """
    candidates: List[str] = []
    if language_code:
        candidates.extend(get_recommended_encodings(language_code))
    candidates.extend(DETECTION_ENCODINGS)

    ordered: List[str] = []
    for name in candidates:
        name = normalize_encoding_name(name)
        if name == "utf-8-sig" or name in ordered:
            continue
        ordered.append(name)

    # iso-8859-1 decodes anything, so it has to be the final fallback
    if "iso-8859-1" in ordered:
        ordered.remove("iso-8859-1")
        ordered.append("iso-8859-1")
    if "utf-8" in ordered:
        ordered.remove("utf-8")
        ordered.insert(0, "utf-8")
    return ordered


def detect_encoding(
    data: bytes, encodings_to_try: Optional[List[str]] = None
) -> Optional[str]:
    """Detect the encoding of subtitle file content.

    A byte-order mark decides the encoding outright. Otherwise each candidate
    is tried with strict decoding and the first one that succeeds is used.

    Args:
        data: Raw file content
        encodings_to_try: List of encodings to try, defaults to DETECTION_ENCODINGS

    Returns:
        Detected encoding or None if detection fails
    """
    bom_codec = detect_bom(data)
    if bom_codec is not None:
        logger.debug("Detected byte-order mark for %s", bom_codec)
        return bom_codec

    if encodings_to_try is None:
        encodings_to_try = DETECTION_ENCODINGS

    for encoding_name in encodings_to_try:
        try:
            data.decode(encoding_name)
        except UnicodeDecodeError:
            continue
        except LookupError as e:
            logger.debug("Skipping unknown encoding %s: %s", encoding_name, e)
            continue
        logger.debug("Detected encoding: %s", encoding_name)
        return encoding_name

    logger.error("Could not detect encoding")
    return None


def decode_subtitle_bytes(
    data: bytes,
    encoding: Optional[str] = None,
    encodings_to_try: Optional[List[str]] = None,
) -> Tuple[str, str, bool]:
    """Decode subtitle file content.

    Args:
        data: Raw file content
        encoding: Explicit encoding; detected when None. A BOM always wins.
        encodings_to_try: Candidates for detection

    Returns:
        Tuple of (text, encoding used, whether a BOM was present)

    Raises:
        UnicodeDecodeError: If the content does not decode with the explicit encoding
        LookupError: If no encoding could be found
    """
    bom_codec = detect_bom(data)
    if bom_codec is not None:
        requested = normalize_encoding_name(encoding) if encoding else None
        if requested and requested not in (bom_codec, "utf-8-sig") and not bom_codec.startswith(
            f"{requested}-"
        ):
            logger.warning(
                "Byte-order mark says %s, ignoring requested encoding %s",
                bom_codec,
                encoding,
            )
        bom_length = len(_BOM_FOR_CODEC[bom_codec])
        return data[bom_length:].decode(bom_codec), bom_codec, True

    if encoding:
        codec = normalize_encoding_name(encoding)
        if codec == "utf-8-sig":
            codec = "utf-8"
        codec = with_byte_order(codec)
        return data.decode(codec), codec, False

    detected = detect_encoding(data, encodings_to_try)
    if detected is None:
        raise LookupError("None of the candidate encodings could decode the content")
    return data.decode(detected), detected, False


def encode_subtitle_text(
    text: str, encoding: str, bom: bool = False, errors: str = "strict"
) -> bytes:
    """Encode subtitle text, re-adding the byte-order mark when requested.

    Args:
        text: Serialized subtitle text
        encoding: Target encoding
        bom: Whether to prefix the encoding's byte-order mark
        errors: Codec error handler

    Returns:
        Encoded bytes

    Raises:
        UnicodeEncodeError: If the text cannot be represented in the encoding
    """
    codec = normalize_encoding_name(encoding)
    if codec == "utf-8-sig":
        codec, bom = "utf-8", True
    # The mark is only written when asked for
    codec = with_byte_order(codec)
    payload = text.encode(codec, errors=errors)
    if bom:
        return bom_for(codec) + payload
    return payload


def get_recommended_encodings(language_code: str) -> List[str]:
    """Get recommended encodings for a specific language.

    Args:
        language_code: ISO language code (e.g., 'th', 'zh-CN', 'ja')

    Returns:
        List of recommended encodings for the language
    """
    # Default to UTF-8 and common Western encodings
    default_encodings = ["utf-8", "cp1252", "iso-8859-15", "iso-8859-1"]

    # Get language code without region
    base_lang = language_code.split("-")[0]

    # Return recommended encodings or default
    return LANGUAGE_ENCODINGS.get(
        language_code, LANGUAGE_ENCODINGS.get(base_lang, default_encodings)
    )


def validate_encoding(encoding: str) -> bool:
    """Validate that an encoding is known to Python.

    Args:
        encoding: Encoding name to validate

    Returns:
        True if encoding is supported
    """
    try:
        codecs.lookup(normalize_encoding_name(encoding))
        return True
    except (LookupError, TypeError):
        return False


def normalize_encoding_name(encoding: str) -> str:
    """Normalize encoding name to a standard format.

    Args:
        encoding: Encoding name to normalize

    Returns:
        Normalized encoding name
    """
    # Common aliases and their standard names
    aliases = {
        "utf8": "utf-8",
        "utf16": "utf-16",
        "utf32": "utf-32",
        "utf-8-bom": "utf-8-sig",
        "utf-8-with-bom": "utf-8-sig",
        "utf8-sig": "utf-8-sig",
        "utf-16le": "utf-16-le",
        "utf-16be": "utf-16-be",
        "utf-32le": "utf-32-le",
        "utf-32be": "utf-32-be",
        "latin-1": "iso-8859-1",
        "latin1": "iso-8859-1",
        "windows-1252": "cp1252",
        "windows-1251": "cp1251",
        "windows-1250": "cp1250",
        "windows-874": "cp874",
        "thai": "tis-620",
        "shift-jis": "shift_jis",
        "shiftjis": "shift_jis",
        "euc_jp": "euc-jp",
        "euc_kr": "euc-kr",
        "gbk": "cp936",
        "big-5": "big5",
    }

    normalized = encoding.lower().strip()
    if normalized.startswith("utf"):
        normalized = normalized.replace("_", "-")
    return aliases.get(normalized, normalized)
