"""Ollama backend for vaultclip."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

from vaultclip.llm.base import ArticleBackend, BackendKind
from vaultclip.llm.models import ConfigError, NoContentError, ProviderError
from vaultclip.llm.prompts import build_conversion_prompt

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama2"

_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1", "0.0.0.0"}


def _validate_base_url(url: str) -> str:
    """Reject non-http(s) and header-injecting URLs; warn on remote hosts."""
    if "\r" in url or "\n" in url:
        raise ConfigError("CRLF injection detected in ollama_base_url", field="ollama_base_url")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ConfigError(
            f"ollama_base_url must be an http(s) URL, got {url!r}",
            field="ollama_base_url",
        )

    if parsed.hostname not in _LOCAL_HOSTS:
        logger.warning(
            "Ollama base URL %s is not localhost, make sure this is intentional",
            parsed.hostname,
        )
    return url


class OllamaBackend(ArticleBackend):
    """Ollama adapter using its REST chat endpoint via httpx."""

    kind = BackendKind.OLLAMA
    name = "Ollama"

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        *,
        timeout: float = 60.0,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        self.base_url = _validate_base_url((base_url or DEFAULT_BASE_URL).rstrip("/"))
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout

    async def convert(self, markup: str | None, source: str) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": build_conversion_prompt(markup)}],
            "stream": False,
        }
        self.logger.info("converting %s with Ollama (%s)", source, self.model)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(f"{self.base_url}/api/chat", json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Ollama request to {self.base_url} failed: {e}",
                backend=self.name,
                detail=str(e),
            ) from e

        if not resp.is_success:
            raise ProviderError(
                f"Ollama API error ({resp.status_code}): {resp.text}",
                backend=self.name,
                status=resp.status_code,
                detail=resp.text,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(
                f"Ollama returned malformed JSON: {e}",
                backend=self.name,
                status=resp.status_code,
                detail=resp.text,
            ) from e

        message = data.get("message") if isinstance(data, dict) else None
        content = (message or {}).get("content") or ""
        content = content.strip()
        if not content:
            raise NoContentError("No content generated by Ollama", backend=self.name)
        return content
