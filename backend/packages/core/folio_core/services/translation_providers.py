"""
Translation provider abstraction.

Supports Google Translate (free), DeepL, OpenAI and MTranServer as
configurable translation backends. Every provider can translate an HTML
fragment while leaving its tag structure untouched.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx
from bs4 import BeautifulSoup, Comment, NavigableString

from folio_core import get_logger
from folio_core.config import TranslationEngineConfig

logger = get_logger(__name__)

# Google Translate has a ~5000 character limit per request
_CHUNK_SIZE = 4500
_SEPARATOR = " ||| "

_DEFAULT_MTRAN_URL = "http://mtranserver:5001"
_DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

# Elements whose text must not be translated
_SKIP_ANCESTORS = frozenset({"code", "pre", "script", "style"})


def _has_skip_ancestor(node: NavigableString) -> bool:
    """Check if a text node is nested inside code/pre/script/style."""
    return any(parent.name in _SKIP_ANCESTORS for parent in node.parents)


def _keep_padding(original: str, translated: str) -> str:
    """Re-apply the original's leading/trailing whitespace to a translation."""
    stripped = original.strip()
    start = original.find(stripped)
    return original[:start] + translated.strip() + original[start + len(stripped) :]


def _markup_signature(html: str) -> list[tuple[str, list[tuple[str, str]]]]:
    """Tags of an HTML fragment in document order, with their attributes."""
    soup = BeautifulSoup(html, "html.parser")
    return [
        (tag.name, sorted((key, str(value)) for key, value in tag.attrs.items()))
        for tag in soup.find_all(True)
    ]


class TranslationProvider(ABC):
    """Base class for translation providers."""

    @abstractmethod
    def translate(self, text: str, source: str, target: str) -> str:
        """Translate a single text string."""

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        """Translate a list of texts. Default: translate one by one."""
        return [self.translate(t, source, target) for t in texts]

    def translate_html(self, html: str, source: str, target: str) -> str:
        """
        Translate the text of an HTML fragment, preserving its markup.

        Text nodes outside code/pre/script/style are batch-translated and
        written back in place; tags and attributes are never touched.

        Args:
            html: HTML fragment.
            source: Source language code.
            target: Target language code.

        Returns:
            HTML with translated text nodes.
        """
        soup = BeautifulSoup(html, "html.parser")

        nodes: list[NavigableString] = [
            node
            for node in soup.find_all(string=True)
            if not isinstance(node, Comment) and node.strip() and not _has_skip_ancestor(node)
        ]
        if not nodes:
            return html

        translated = self.translate_batch([node.strip() for node in nodes], source, target)

        for i, node in enumerate(nodes):
            text = translated[i] if i < len(translated) else ""
            if text and text.strip():
                node.replace_with(_keep_padding(str(node), text))

        return str(soup)


class FallbackProvider(TranslationProvider):
    """Provider wrapper that falls back to another provider on failures."""

    def __init__(self, primary: TranslationProvider, fallback: TranslationProvider) -> None:
        self.primary = primary
        self.fallback = fallback

    def translate(self, text: str, source: str, target: str) -> str:
        try:
            return self.primary.translate(text, source, target)
        except Exception:
            logger.exception("Primary translation provider failed; using fallback")
            return self.fallback.translate(text, source, target)

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        try:
            return self.primary.translate_batch(texts, source, target)
        except Exception:
            logger.exception("Primary batch translation failed; using fallback")
            return self.fallback.translate_batch(texts, source, target)

    def translate_html(self, html: str, source: str, target: str) -> str:
        try:
            return self.primary.translate_html(html, source, target)
        except Exception:
            logger.exception("Primary HTML translation failed; using fallback")
            return self.fallback.translate_html(html, source, target)


class GoogleFreeProvider(TranslationProvider):
    """Free Google Translate via deep-translator."""

    def translate(self, text: str, source: str, target: str) -> str:
        from deep_translator import GoogleTranslator

        if not text or not text.strip():
            return text
        translator = GoogleTranslator(source=source, target=target)
        result: str = translator.translate(text[:_CHUNK_SIZE])
        return result

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        """Batch translate using ||| separator for efficiency."""
        from deep_translator import GoogleTranslator

        if not texts:
            return []

        translator = GoogleTranslator(source=source, target=target)
        results: list[str] = [""] * len(texts)

        batch_start = 0
        while batch_start < len(texts):
            batch_texts: list[str] = []
            batch_indices: list[int] = []
            current_length = 0

            for i in range(batch_start, len(texts)):
                text = texts[i]
                needed = len(text) + len(_SEPARATOR)
                if current_length + needed > _CHUNK_SIZE and batch_texts:
                    break
                batch_texts.append(text)
                batch_indices.append(i)
                current_length += needed

            if not batch_texts:
                break

            combined = _SEPARATOR.join(batch_texts)

            if len(combined) <= _CHUNK_SIZE:
                translated_combined: str = translator.translate(combined)
                translated_parts = translated_combined.split("|||")
                for j, idx in enumerate(batch_indices):
                    results[idx] = translated_parts[j].strip() if j < len(translated_parts) else ""
            else:
                for j, idx in enumerate(batch_indices):
                    result: str = translator.translate(batch_texts[j][:_CHUNK_SIZE])
                    results[idx] = result

            batch_start += len(batch_texts)

        return results


class DeepLProvider(TranslationProvider):
    """DeepL translation provider."""

    # DeepL uses different language codes than standard
    _LANG_MAP: dict[str, str] = {
        "zh": "ZH-HANS",
        "zh-CN": "ZH-HANS",
        "zh-TW": "ZH-HANT",
        "en": "EN-US",
        "pt": "PT-BR",
    }

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def _map_lang(self, lang: str, *, is_source: bool = False) -> str | None:
        if is_source:
            if lang == "auto":
                return None
            # Source languages take no regional variant
            return lang.split("-")[0].upper()
        return self._LANG_MAP.get(lang, lang.upper())

    def _translate_text(self, text: str, source: str, target: str, **options: Any) -> str:
        import deepl

        if not text or not text.strip():
            return text

        translator = deepl.Translator(self.api_key)
        result = translator.translate_text(
            text,
            source_lang=self._map_lang(source, is_source=True),
            target_lang=self._map_lang(target),  # type: ignore[arg-type]
            **options,
        )
        return str(result)

    def translate(self, text: str, source: str, target: str) -> str:
        return self._translate_text(text, source, target)

    def translate_html(self, html: str, source: str, target: str) -> str:
        """Translate HTML using DeepL's native tag handling."""
        return self._translate_text(html, source, target, tag_handling="html")


class OpenAIProvider(TranslationProvider):
    """OpenAI translation provider."""

    def __init__(self, api_key: str, model: str = _DEFAULT_OPENAI_MODEL) -> None:
        self.api_key = api_key
        self.model = model

    def _complete(self, system_prompt: str, content: str) -> str:
        from openai import OpenAI

        client = OpenAI(api_key=self.api_key)
        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            temperature=0.3,
        )
        return response.choices[0].message.content or ""

    def translate(self, text: str, source: str, target: str) -> str:
        if not text or not text.strip():
            return text

        source_desc = "the source language" if source == "auto" else source
        return self._complete(
            f"You are a translator. Translate the following text from "
            f"{source_desc} to {target}. Output only the translation, "
            f"nothing else.",
            text,
        )

    def translate_html(self, html: str, source: str, target: str) -> str:
        if not html or not html.strip():
            return html

        source_desc = "the source language" if source == "auto" else source
        translated = self._complete(
            f"You are a translator. Translate the text content of the following "
            f"HTML fragment from {source_desc} to {target}. Keep every tag and "
            f"attribute exactly as given, do not translate code elements, and "
            f"output only the translated HTML.",
            html,
        )
        if _markup_signature(translated) != _markup_signature(html):
            logger.warning(
                "OpenAI output changed the HTML structure; translating text nodes instead",
                extra={"model": self.model},
            )
            return super().translate_html(html, source, target)
        return translated


class MTranProvider(TranslationProvider):
    """MTranServer translation provider via local HTTP service."""

    def __init__(
        self,
        base_url: str = _DEFAULT_MTRAN_URL,
        api_key: str = "",
        model: str = "",
        timeout: float = 20.0,
    ) -> None:
        self.base_url = (base_url or _DEFAULT_MTRAN_URL).rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _payload(self, source: str, target: str, **fields: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **fields,
            "source": source,
            "target": target,
            "source_language": source,
            "target_language": target,
        }
        if self.model:
            payload["model"] = self.model
        return payload

    def _extract_single(self, data: Any) -> str | None:
        if isinstance(data, str):
            return data

        if isinstance(data, dict):
            for key in ("translation", "translated_text", "text", "result"):
                value = data.get(key)
                if isinstance(value, str):
                    return value

            nested = data.get("data")
            if isinstance(nested, dict):
                return self._extract_single(nested)
        return None

    def _extract_batch(self, data: Any, expected_count: int) -> list[str] | None:
        items: Any | None = None
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            for key in ("translations", "translated_texts", "results", "data"):
                value = data.get(key)
                if isinstance(value, list):
                    items = value
                    break

        if not isinstance(items, list):
            return None

        parsed: list[str] = []
        for item in items:
            single = self._extract_single(item)
            if single is None:
                return None
            parsed.append(single)

        if len(parsed) != expected_count:
            return None
        return parsed

    def translate(self, text: str, source: str, target: str) -> str:
        if not text or not text.strip():
            return text

        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(
                f"{self.base_url}/translate",
                json=self._payload(source, target, text=text),
                headers=self._headers(),
            )
            response.raise_for_status()
            translated = self._extract_single(response.json())
            if translated is None:
                raise ValueError("MTranServer response does not contain translated text")
            return translated

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        if not texts:
            return []

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    f"{self.base_url}/translate/batch",
                    json=self._payload(source, target, texts=texts),
                    headers=self._headers(),
                )
                response.raise_for_status()
                parsed = self._extract_batch(response.json(), len(texts))
                if parsed is not None:
                    return parsed
                raise ValueError("MTranServer batch response is not parseable")
        except (httpx.HTTPError, ValueError):
            logger.exception("MTranServer batch translation failed; fallback to single requests")
            return [self.translate(t, source, target) for t in texts]


def _is_mtran_available(base_url: str, timeout: float = 0.8) -> bool:
    """Check whether MTranServer is reachable."""
    check_urls = [f"{base_url}/health", base_url]
    with httpx.Client(timeout=timeout) as client:
        for url in check_urls:
            try:
                client.get(url)
            except httpx.RequestError:
                continue
            # Any HTTP response means the server is reachable.
            return True
    return False


def create_translation_provider(config: TranslationEngineConfig | None) -> TranslationProvider:
    """
    Create a translation provider from engine configuration.

    Config fields used:
        - provider: "google" | "deepl" | "openai" | "mtran"
        - api_key: API key for DeepL/OpenAI/MTran
        - model: Model name for OpenAI/MTran (OpenAI default: "gpt-4o-mini")
        - base_url: Base URL for MTranServer (optional)

    Falls back to GoogleFreeProvider when provider is google, no key is
    provided for a keyed provider, or no config is given.
    """
    if config is None:
        return GoogleFreeProvider()

    provider = config.provider.lower()

    if provider == "deepl" and config.api_key:
        logger.info("Using DeepL translation provider")
        return DeepLProvider(config.api_key)

    if provider == "openai" and config.api_key:
        openai_model = config.model or _DEFAULT_OPENAI_MODEL
        logger.info(
            "Using OpenAI translation provider",
            extra={"model": openai_model},
        )
        return OpenAIProvider(config.api_key, openai_model)

    if provider == "mtran":
        resolved_base_url = config.base_url or _DEFAULT_MTRAN_URL
        logger.info(
            "Using MTran translation provider",
            extra={"base_url": resolved_base_url},
        )
        if not _is_mtran_available(resolved_base_url):
            logger.warning(
                "MTranServer is not reachable; falling back to Google Translate",
                extra={"base_url": resolved_base_url},
            )
            return GoogleFreeProvider()

        return FallbackProvider(
            primary=MTranProvider(
                base_url=resolved_base_url,
                api_key=config.api_key,
                model=config.model,
            ),
            fallback=GoogleFreeProvider(),
        )

    if provider not in ("google", "deepl", "openai"):
        logger.warning(
            "Unknown translation provider; using Google Translate",
            extra={"provider": provider},
        )
    return GoogleFreeProvider()
