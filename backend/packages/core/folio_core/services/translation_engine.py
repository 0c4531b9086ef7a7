"""
Translation engine.

Async, markup-preserving HTML localization on top of a synchronous
translation provider. Transient provider failures are retried with
exponential backoff; any final failure surfaces as TranslationEngineError.
"""

import asyncio
import re
from typing import Protocol

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from folio_core import get_logger
from folio_core.config import TranslationEngineConfig

from .translation_providers import TranslationProvider, create_translation_provider

logger = get_logger(__name__)

# Substrings of error messages that indicate a transient failure
_RETRYABLE_PATTERNS: tuple[str, ...] = (
    "timeout",
    "timed out",
    "econnrefused",
    "enotfound",
    "network",
    "connection",
    "temporarily unavailable",
    "service unavailable",
    "internal server error",
    "gateway timeout",
    "bad gateway",
    "too many requests",
    "502",
    "503",
    "504",
)

_WRAPPER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<head[^>]*>.*?</head>", re.IGNORECASE | re.DOTALL),
    re.compile(r"</?(?:html|body|article)(?:\s[^>]*)?>", re.IGNORECASE),
)


class TranslationEngineError(Exception):
    """Raised when the translation engine cannot produce a translation."""


class TranslationEngine(Protocol):
    """Capability for translating HTML between locales."""

    async def localize_html(self, html: str, *, source_locale: str, target_locale: str) -> str:
        """Translate the text of ``html``, keeping its tag structure."""
        ...


def is_retryable_error(error: BaseException) -> bool:
    """
    Check whether a provider failure is worth retrying.

    Timeouts, connection failures, HTTP 429 and 5xx responses are
    retryable, as is any error whose message looks like one of them.

    Args:
        error: Exception raised by the provider.

    Returns:
        True if the call should be retried.
    """
    if isinstance(error, (TimeoutError, ConnectionError, httpx.TransportError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        return status_code == 429 or status_code >= 500
    message = str(error).lower()
    return any(pattern in message for pattern in _RETRYABLE_PATTERNS)


def strip_document_wrapper(html: str) -> str:
    """Remove html/head/body/article wrapper tags, keeping their content."""
    cleaned = html
    for pattern in _WRAPPER_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


class ProviderTranslationEngine:
    """
    Translation engine backed by a TranslationProvider.

    The fragment is wrapped in ``<article>`` to give the provider document
    context; any document wrapper in the provider's output is stripped.
    """

    def __init__(
        self,
        provider: TranslationProvider,
        max_attempts: int = 3,
        retry_initial_delay: float = 1.0,
        retry_max_delay: float = 10.0,
    ) -> None:
        self.provider = provider
        self.max_attempts = max(1, max_attempts)
        self.retry_initial_delay = retry_initial_delay
        self.retry_max_delay = retry_max_delay

    @classmethod
    def from_config(cls, config: TranslationEngineConfig) -> "ProviderTranslationEngine":
        """Build an engine with the provider and retry policy from config."""
        return cls(
            create_translation_provider(config),
            max_attempts=config.max_attempts,
            retry_initial_delay=config.retry_initial_delay,
            retry_max_delay=config.retry_max_delay,
        )

    async def localize_html(self, html: str, *, source_locale: str, target_locale: str) -> str:
        """
        Translate an HTML fragment.

        Args:
            html: HTML fragment to translate.
            source_locale: Locale of the fragment.
            target_locale: Locale to translate into.

        Returns:
            Translated HTML fragment.

        Raises:
            TranslationEngineError: If the provider fails after all attempts.
        """
        if source_locale == target_locale or not html.strip():
            return html

        wrapped = f"<article>{html}</article>"

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.retry_initial_delay, max=self.retry_max_delay
            ),
            retry=retry_if_exception(is_retryable_error),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    localized = await asyncio.to_thread(
                        self.provider.translate_html, wrapped, source_locale, target_locale
                    )
        except Exception as e:
            raise TranslationEngineError(
                f"Translation from {source_locale} to {target_locale} failed: {e}"
            ) from e

        return strip_document_wrapper(localized)

    @staticmethod
    def _log_retry(retry_state) -> None:  # type: ignore[no-untyped-def]
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Translation provider call failed; retrying",
            extra={"attempt": retry_state.attempt_number, "error": str(error)},
        )
