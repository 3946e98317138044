"""Abstract article backend interface for vaultclip."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum


class BackendKind(str, Enum):
    """Closed set of backend variants the selector can build."""

    MOCK = "mock"
    API = "api"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"
    CLI = "cli"


class ArticleBackend(ABC):
    """Backend-agnostic interface for turning page markup into Markdown.

    Every backend takes the same inputs and fails with the same error
    taxonomy (see vaultclip.llm.models), so callers never branch on kind.
    Instances hold configuration only and keep no state between calls.
    """

    kind: BackendKind
    name: str = "backend"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(type(self).__module__)

    @abstractmethod
    async def convert(self, markup: str | None, source: str) -> str:
        """Convert raw markup into article Markdown.

        ``source`` identifies the page (usually its URL) and is only used
        for log context.
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
