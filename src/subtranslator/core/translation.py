"""Translation module for subtranslator.

A translation backend is anything callable as
``translate(target_lang, src_lang, lines, api_key) -> lines`` that returns
exactly one translated line per input line, in order. Concrete backends for
Google, Microsoft, IBM and Amazon implement the :class:`Translator` interface;
:func:`translate_document` sends all lines of a document to a backend in a
single call and puts the results back on the cues they came from.
"""

import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type, Union

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError

from ..config.settings import (
    DEFAULT_AWS_REGION,
    DEFAULT_BACKOFF_JITTER,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_MAX_RETRIES,
    DEFAULT_SERVICE,
    DEFAULT_SRC_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    DEFAULT_TIMEOUT,
    GOOGLE_API_URL,
    GOOGLE_WEB_URL,
    IBM_API_VERSION,
    IBM_DEFAULT_SERVICE_URL,
    MICROSOFT_API_URL,
    resolve_api_key,
)
from .entry import Document, InvalidFormat

logger = logging.getLogger(__name__)

TranslateFn = Callable[[str, str, List[str], Optional[str]], List[str]]


class TranslationError(Exception):
    """Exception raised for translation errors."""


class BackendFailure(TranslationError):
    """The translation service failed: network, authentication, quota or a bad response."""


class RateLimitError(BackendFailure):
    """Exception raised specifically for rate limiting errors."""


class TranslationArityMismatch(TranslationError):
    """The backend returned a different number of lines than it was given."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Translation returned {actual} lines for {expected} submitted lines"
        )


def chunk_lines(
    lines: Sequence[str], max_items: int, max_chars: int
) -> Iterator[List[str]]:
    """Group consecutive lines into request-sized chunks.

    A chunk never holds more than ``max_items`` lines, and never more than
    ``max_chars`` characters counting one newline per line, unless a single
    line is longer than that on its own.

    Args:
        lines: Lines to group
        max_items: Maximum number of lines per chunk
        max_chars: Maximum characters per chunk

    Yields:
        Lists of lines, in order
    """
    current: List[str] = []
    current_length = 0

    for line in lines:
        line_length = len(line) + 1  # +1 for newline

        if current and (
            len(current) >= max_items or current_length + line_length > max_chars
        ):
            yield current
            current = []
            current_length = 0

        current.append(line)
        current_length += line_length

    if current:
        yield current


class Translator(ABC):
    """Abstract base class for translation services."""

    name = "base"

    @abstractmethod
    def translate(
        self,
        target_lang: str,
        src_lang: str,
        lines: List[str],
        api_key: Optional[str] = None,
    ) -> List[str]:
        """Translate lines from source language to target language.

        Must return exactly one line per input line, in the same order.
        """

    def __call__(
        self,
        target_lang: str,
        src_lang: str,
        lines: List[str],
        api_key: Optional[str] = None,
    ) -> List[str]:
        return self.translate(target_lang, src_lang, lines, api_key)


class IdentityTranslator(Translator):
    """Returns every line unchanged. Used for dry runs."""

    name = "identity"

    def translate(
        self,
        target_lang: str,
        src_lang: str,
        lines: List[str],
        api_key: Optional[str] = None,
    ) -> List[str]:
        return list(lines)


class HTTPTranslator(Translator):
    """Base class for translators that call a REST endpoint."""

    max_segments = 100
    max_chars = 10000

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

        # Retry configuration
        self.max_retries = max_retries
        self.initial_backoff = DEFAULT_INITIAL_BACKOFF
        self.max_backoff = DEFAULT_MAX_BACKOFF
        self.jitter = DEFAULT_BACKOFF_JITTER

    def _calculate_backoff(self, retry_count: int) -> float:
        """Calculate exponential backoff time with jitter."""
        backoff_time = min(
            self.initial_backoff * (2 ** retry_count),
            self.max_backoff
        )
        jitter = backoff_time * self.jitter * random.random()
        return float(backoff_time + jitter)

    def _wait(self, attempt: int, reason: str) -> None:
        backoff_time = self._calculate_backoff(attempt)
        logger.warning(
            "%s: %s (attempt %d/%d). Waiting %.2f seconds...",
            self.name,
            reason,
            attempt + 1,
            self.max_retries,
            backoff_time,
        )
        time.sleep(backoff_time)

    def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Make an HTTP request, retrying on rate limiting and server errors.

        Raises:
            RateLimitError: If the service keeps answering 429
            BackendFailure: On any other failure
        """
        last_attempt = self.max_retries - 1

        for attempt in range(self.max_retries):
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                if attempt < last_attempt:
                    self._wait(attempt, f"request failed: {e}")
                    continue
                raise BackendFailure(
                    f"Request failed after {self.max_retries} attempts: {e}"
                ) from e

            status = response.status_code
            if status == 429:  # Too Many Requests
                if attempt < last_attempt:
                    self._wait(attempt, "rate limited")
                    continue
                raise RateLimitError(
                    f"Rate limit exceeded after {self.max_retries} attempts"
                )
            if 500 <= status < 600:
                if attempt < last_attempt:
                    self._wait(attempt, f"server error {status}")
                    continue
                raise BackendFailure(
                    f"Server error {status} after {self.max_retries} attempts"
                )
            if status >= 400:
                raise BackendFailure(f"HTTP error {status}: {response.text[:200]}")

            return response

        raise BackendFailure("Maximum retry attempts exceeded")

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise BackendFailure(f"{self.name}: response is not valid JSON") from e


class GoogleTranslator(HTTPTranslator):
    """Google Translate implementation.

    With an API key the Cloud Translation v2 REST API is used. Without one the
    public web endpoint is used, which takes newline-joined text.
    """

    name = "google"
    max_segments = 128
    max_chars = 5000

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.headers = {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
            )
        }
        self.max_limited = 3500

    def translate(
        self,
        target_lang: str,
        src_lang: str,
        lines: List[str],
        api_key: Optional[str] = None,
    ) -> List[str]:
        """Translate lines using Google Translate."""
        if not lines:
            return []

        # Use cloud API if available
        if api_key:
            return self._translate_with_api(lines, src_lang, target_lang, api_key)

        # Use web interface
        return self._translate_with_web(lines, src_lang, target_lang)

    def _translate_with_api(
        self, lines: List[str], src_lang: str, target_lang: str, api_key: str
    ) -> List[str]:
        """Translate using Google Cloud Translation API."""
        translated: List[str] = []

        for chunk in chunk_lines(lines, self.max_segments, self.max_chars):
            response = self._request_with_retry(
                "POST",
                GOOGLE_API_URL,
                params={"key": api_key},
                json={
                    "q": chunk,
                    "source": src_lang,
                    "target": target_lang,
                    "format": "text",
                },
            )
            result = self._json(response)

            try:
                translations = result["data"]["translations"]
                translated.extend(str(item["translatedText"]) for item in translations)
            except (KeyError, TypeError) as e:
                raise BackendFailure("Invalid API response format") from e

        return translated

    def _translate_with_web(
        self, lines: List[str], src_lang: str, target_lang: str
    ) -> List[str]:
        """Translate using Google Translate web interface."""
        translated: List[str] = []

        for chunk in chunk_lines(lines, len(lines), self.max_limited):
            params = {
                "client": "gtx",
                "sl": src_lang,
                "tl": target_lang,
                "dt": "t",
                "ie": "UTF-8",
                "oe": "UTF-8",
                "q": "\n".join(chunk),
            }
            response = self._request_with_retry(
                "GET", GOOGLE_WEB_URL, params=params, headers=self.headers
            )
            response_data = self._json(response)

            try:
                parts = [part[0] for part in response_data[0] if part and part[0]]
            except (IndexError, TypeError) as e:
                raise BackendFailure(f"Failed to parse translation response: {e}") from e

            if not parts:
                raise BackendFailure("Empty translation response")

            translated.extend("".join(parts).split("\n"))

        return translated


class MicrosoftTranslator(HTTPTranslator):
    """Microsoft Translator Text API v3.

    The credential is the subscription key, optionally followed by
    ``|region`` for regional resources.
    """

    name = "microsoft"

    def translate(
        self,
        target_lang: str,
        src_lang: str,
        lines: List[str],
        api_key: Optional[str] = None,
    ) -> List[str]:
        if not lines:
            return []
        if not api_key:
            raise BackendFailure("Microsoft Translator requires an API key")

        key, _, region = api_key.partition("|")
        headers = {
            "Ocp-Apim-Subscription-Key": key.strip(),
            "Content-Type": "application/json; charset=UTF-8",
        }
        if region.strip():
            headers["Ocp-Apim-Subscription-Region"] = region.strip()

        translated: List[str] = []
        for chunk in chunk_lines(lines, self.max_segments, self.max_chars):
            response = self._request_with_retry(
                "POST",
                MICROSOFT_API_URL,
                params={"api-version": "3.0", "from": src_lang, "to": target_lang},
                headers=headers,
                json=[{"Text": line} for line in chunk],
            )
            result = self._json(response)

            try:
                translated.extend(str(item["translations"][0]["text"]) for item in result)
            except (KeyError, IndexError, TypeError) as e:
                raise BackendFailure("Invalid API response format") from e

        return translated


class IBMTranslator(HTTPTranslator):
    """IBM Watson Language Translator v3.

    The credential is the API key, optionally followed by ``|service_url``
    when the instance does not live in the default region.
    """

    name = "ibm"
    max_segments = 50

    def __init__(self, *args: Any, service_url: str = IBM_DEFAULT_SERVICE_URL, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_url = service_url

    def translate(
        self,
        target_lang: str,
        src_lang: str,
        lines: List[str],
        api_key: Optional[str] = None,
    ) -> List[str]:
        if not lines:
            return []
        if not api_key:
            raise BackendFailure("IBM Language Translator requires an API key")

        key, _, service_url = api_key.partition("|")
        url = (service_url.strip() or self.service_url).rstrip("/") + "/v3/translate"

        translated: List[str] = []
        for chunk in chunk_lines(lines, self.max_segments, self.max_chars):
            response = self._request_with_retry(
                "POST",
                url,
                params={"version": IBM_API_VERSION},
                auth=("apikey", key.strip()),
                json={"text": chunk, "source": src_lang, "target": target_lang},
            )
            result = self._json(response)

            try:
                translated.extend(str(item["translation"]) for item in result["translations"])
            except (KeyError, TypeError) as e:
                raise BackendFailure("Invalid API response format") from e

        return translated


class AmazonTranslator(Translator):
    """Amazon Translate through boto3.

    The credential is ``access_key_id:secret_access_key`` with an optional
    ``:region`` suffix. Without one boto3's default credential chain is used.
    Lines are sent newline-joined, since the API takes a single text per call.
    """

    name = "amazon"
    max_chars = 3000

    def __init__(self, region_name: str = DEFAULT_AWS_REGION) -> None:
        self.region_name = region_name

    def _client(self, api_key: Optional[str]) -> Any:
        kwargs: Dict[str, str] = {"region_name": self.region_name}
        if api_key:
            parts = api_key.split(":")
            if len(parts) not in (2, 3):
                raise BackendFailure(
                    "Amazon credential must look like 'access_key_id:secret_access_key[:region]'"
                )
            kwargs["aws_access_key_id"] = parts[0].strip()
            kwargs["aws_secret_access_key"] = parts[1].strip()
            if len(parts) == 3 and parts[2].strip():
                kwargs["region_name"] = parts[2].strip()
        return boto3.client("translate", **kwargs)

    def translate(
        self,
        target_lang: str,
        src_lang: str,
        lines: List[str],
        api_key: Optional[str] = None,
    ) -> List[str]:
        if not lines:
            return []

        client = self._client(api_key)
        translated: List[str] = []

        for chunk in chunk_lines(lines, len(lines), self.max_chars):
            try:
                response = client.translate_text(
                    Text="\n".join(chunk),
                    SourceLanguageCode=src_lang,
                    TargetLanguageCode=target_lang,
                )
            except (BotoCoreError, ClientError) as e:
                raise BackendFailure(f"Amazon Translate request failed: {e}") from e

            try:
                translated.extend(str(response["TranslatedText"]).split("\n"))
            except (KeyError, TypeError) as e:
                raise BackendFailure("Invalid API response format") from e

        return translated


TRANSLATORS: Dict[str, Type[Translator]] = {
    "google": GoogleTranslator,
    "microsoft": MicrosoftTranslator,
    "ibm": IBMTranslator,
    "amazon": AmazonTranslator,
    "identity": IdentityTranslator,
}


def get_translator(service: str, **kwargs: Any) -> Translator:
    """Factory function to get a translator instance.

    Args:
        service: Translation service name
        **kwargs: Passed to the translator's constructor

    Returns:
        Translator instance

    Raises:
        TranslationError: If service is not supported
    """
    try:
        translator_class = TRANSLATORS[service.lower()]
    except KeyError:
        raise TranslationError(f"Unsupported translation service: {service}") from None
    return translator_class(**kwargs)


def _call_backend(
    translate_fn: TranslateFn,
    lines: List[str],
    src_lang: str,
    target_lang: str,
    api_key: Optional[str],
) -> List[str]:
    """Run one backend call and check that every line came back."""
    try:
        translated = list(translate_fn(target_lang, src_lang, list(lines), api_key))
    except TranslationError:
        raise
    except Exception as e:
        raise BackendFailure(f"Translation backend failed: {e}") from e

    if len(translated) != len(lines):
        raise TranslationArityMismatch(len(lines), len(translated))
    return [str(line) for line in translated]


def translate_document(
    document: Document,
    src_lang: str,
    target_lang: str,
    translate_fn: TranslateFn,
    api_key: Optional[str] = None,
) -> Document:
    """Translate every text line of a document with a single backend call.

    All lines are flattened in document order, translated together, and split
    back onto their cues using each cue's line count. Index, timing and layout
    of every cue are kept.

    Args:
        document: Parsed document
        src_lang: Source language code
        target_lang: Target language code
        translate_fn: Backend, called as ``translate_fn(target_lang, src_lang, lines, api_key)``
        api_key: Credential handed to the backend

    Returns:
        New document with translated text

    Raises:
        TranslationArityMismatch: If the backend returned a different number of lines
        BackendFailure: If the backend call failed
        TranslationError: If a translated line cannot be written into a cue
    """
    lines = document.flatten()
    if not lines:
        logger.debug("Nothing to translate in %s", document.source or "document")
        return document.with_entries(document.entries)

    translated = _call_backend(translate_fn, lines, src_lang, target_lang, api_key)

    entries = []
    position = 0
    for number, (entry, count) in enumerate(zip(document.entries, document.line_counts()), 1):
        group = translated[position:position + count]
        position += count
        try:
            entries.append(entry.with_text(group))
        except InvalidFormat as e:
            raise TranslationError(f"Translation of cue {number} cannot be written: {e}") from e

    logger.debug(
        "Translated %d lines in %d cues (%s -> %s)",
        len(lines),
        len(entries),
        src_lang,
        target_lang,
    )
    return document.with_entries(entries)


class SubtitleTranslator:
    """Main subtitle translation class.

    Binds a backend and its credential, so the rest of the pipeline only
    deals with documents and language codes.
    """

    def __init__(
        self,
        backend: Union[str, Translator, TranslateFn] = DEFAULT_SERVICE,
        api_key: Optional[str] = None,
    ):
        """Initialize the subtitle translator.

        Args:
            backend: Translation service name, Translator instance or any
                callable with the same signature
            api_key: API key for the translation service

        Raises:
            TranslationError: If service is not supported
        """
        if isinstance(backend, str):
            backend = get_translator(backend)

        self.backend: TranslateFn = backend
        self.api_key = api_key
        self.service_name = getattr(backend, "name", type(backend).__name__)

        logger.info("Initialized translator with service: %s", self.service_name)

    @classmethod
    def from_service(
        cls, service: str, api_key: Optional[str] = None, **kwargs: Any
    ) -> "SubtitleTranslator":
        """Build a translator for a named service.

        When no key is given the service's environment variable is used
        (see :func:`~subtranslator.config.settings.resolve_api_key`).

        Raises:
            TranslationError: If service is not supported
            ValueError: If the configured key file cannot be read
        """
        return cls(get_translator(service, **kwargs), resolve_api_key(service, api_key))

    def translate_lines(
        self,
        lines: List[str],
        src_lang: str = DEFAULT_SRC_LANGUAGE,
        target_lang: str = DEFAULT_TARGET_LANGUAGE,
    ) -> List[str]:
        """Translate a list of text lines.

        Args:
            lines: List of text lines to translate
            src_lang: Source language code
            target_lang: Target language code

        Returns:
            List of translated lines, one per input line

        Raises:
            TranslationError: If translation fails
        """
        if not lines:
            return []
        return _call_backend(self.backend, lines, src_lang, target_lang, self.api_key)

    def translate_document(
        self,
        document: Document,
        src_lang: str = DEFAULT_SRC_LANGUAGE,
        target_lang: str = DEFAULT_TARGET_LANGUAGE,
    ) -> Document:
        """Translate all cues of a document in one backend call."""
        return translate_document(document, src_lang, target_lang, self.backend, self.api_key)

    def get_service_info(self) -> Dict[str, Any]:
        """Get information about the translation service.

        Returns:
            Dictionary with service information
        """
        return {
            "service": self.service_name,
            "has_api_key": bool(self.api_key),
        }
