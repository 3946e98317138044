"""Google Gemini backend for vaultclip."""

from __future__ import annotations

import asyncio
import logging
import math
import re

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from vaultclip.llm.base import ArticleBackend, BackendKind
from vaultclip.llm.models import ConfigError, NoContentError, ProviderError
from vaultclip.llm.prompts import build_conversion_prompt

DEFAULT_MODEL = "gemini-1.5-flash"

# Matches both the REST form ("retryDelay": "23s") and the gRPC form
# (retry_delay { seconds: 23 }).
_RETRY_DELAY_RE = re.compile(
    r"retry[_ ]?delay\W*(?:seconds\W*)?(\d+(?:\.\d+)?)",
    re.IGNORECASE,
)


def parse_retry_delay(text: str | None) -> float | None:
    """Extract the provider's retry hint in seconds, or None if absent/malformed."""
    if not text:
        return None
    match = _RETRY_DELAY_RE.search(text)
    if match is None:
        return None
    return float(match.group(1))


def _extract_text(response) -> str:
    """Join the text parts of every candidate in a generate_content response."""
    chunks: list[str] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                chunks.append(text)
    return "".join(chunks).strip()


class GeminiBackend(ArticleBackend):
    """Gemini adapter using the google-generativeai async SDK."""

    kind = BackendKind.API
    name = "GeminiAPI"

    def __init__(
        self,
        api_key: str | None,
        model_name: str | None = None,
        *,
        timeout: float = 60.0,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        if not api_key:
            raise ConfigError(
                "GEMINI_API_KEY is required for the Gemini API backend",
                field="api_key",
                backend=self.name,
            )
        self.api_key = api_key
        self.model_name = model_name or DEFAULT_MODEL
        self.timeout = timeout
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(self.model_name)

    async def convert(self, markup: str | None, source: str) -> str:
        prompt = build_conversion_prompt(markup)
        self.logger.info("converting %s with Gemini (%s)", source, self.model_name)

        try:
            response = await self._generate(prompt)
        except google_exceptions.TooManyRequests as e:
            delay = parse_retry_delay(str(e))
            if delay is None:
                raise self._provider_error(e, retryable=True) from e
            wait = math.ceil(delay)
            self.logger.warning(
                "Gemini rate limit hit for %s, retrying in %ds", source, wait
            )
            await asyncio.sleep(wait)
            try:
                response = await self._generate(prompt)
            except google_exceptions.GoogleAPIError as retry_error:
                raise self._provider_error(
                    retry_error, retryable=True
                ) from retry_error
        except google_exceptions.GoogleAPIError as e:
            raise self._provider_error(e) from e

        text = _extract_text(response)
        if not text:
            raise NoContentError(
                "No content generated by Gemini API", backend=self.name
            )
        return text

    async def _generate(self, prompt: str):
        return await self._model.generate_content_async(
            [prompt],
            request_options={"timeout": self.timeout},
        )

    def _provider_error(
        self, error: google_exceptions.GoogleAPIError, retryable: bool = False
    ) -> ProviderError:
        status = getattr(error, "code", None)
        status = status if isinstance(status, int) else None
        return ProviderError(
            f"Gemini API error ({status or 'unknown'}): {error}",
            backend=self.name,
            status=status,
            detail=str(error),
            retryable=retryable,
        )
