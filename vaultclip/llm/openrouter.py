"""OpenRouter chat-completions backend for vaultclip."""

from __future__ import annotations

import logging

import httpx

from vaultclip.llm.base import ArticleBackend, BackendKind
from vaultclip.llm.models import ConfigError, NoContentError, ProviderError
from vaultclip.llm.prompts import build_conversion_prompt

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-3.5-turbo"


def _message_content(data: object) -> str:
    """Pull choices[0].message.content out of a response body, or ''."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


class OpenRouterBackend(ArticleBackend):
    """OpenRouter adapter posting to its OpenAI-compatible endpoint via httpx."""

    kind = BackendKind.OPENROUTER
    name = "OpenRouter"

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float = 60.0,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        if not api_key:
            raise ConfigError(
                "OPENROUTER_API_KEY is required for OpenRouterBackend",
                field="openrouter_api_key",
                backend=self.name,
            )
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout

    async def convert(self, markup: str | None, source: str) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": build_conversion_prompt(markup)}],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        self.logger.info("converting %s with OpenRouter (%s)", source, self.model)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"OpenRouter request failed: {e}",
                backend=self.name,
                detail=str(e),
            ) from e

        if not resp.is_success:
            raise ProviderError(
                f"OpenRouter API error ({resp.status_code}): {resp.text}",
                backend=self.name,
                status=resp.status_code,
                detail=resp.text,
                retryable=resp.status_code == 429,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(
                f"OpenRouter returned malformed JSON: {e}",
                backend=self.name,
                status=resp.status_code,
                detail=resp.text,
            ) from e

        content = _message_content(data).strip()
        if not content:
            raise NoContentError("No content generated by OpenRouter API", backend=self.name)
        return content
