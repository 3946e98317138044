"""Article backend abstraction layer."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from vaultclip.config.models import BackendSettings
from vaultclip.llm.base import ArticleBackend, BackendKind
from vaultclip.llm.cli_tool import CLI_TOOLS, CLIToolBackend
from vaultclip.llm.gemini import GeminiBackend
from vaultclip.llm.mock import MockBackend
from vaultclip.llm.models import (
    BackendConfig,
    ConfigError,
    ConversionError,
    NoContentError,
    ProviderError,
    ToolError,
)
from vaultclip.llm.ollama import OllamaBackend
from vaultclip.llm.openrouter import OpenRouterBackend
from vaultclip.llm.prompts import build_conversion_prompt

# Order matters: it is the order listed in "invalid kind" errors.
VALID_KINDS = ("api", "mock", "ollama", "openrouter", "cli")


def _validate(config: BackendConfig) -> BackendKind:
    """Check the discriminant and the per-kind required fields."""
    if config.use_mock:
        return BackendKind.MOCK

    kind = config.kind.strip().lower()
    if kind not in VALID_KINDS:
        raise ConfigError(
            f"Invalid kind: {config.kind}. Must be one of: {', '.join(VALID_KINDS)}",
            field="kind",
        )

    if kind == "api" and not config.api_key:
        raise ConfigError("api_key is required for API-based backend", field="api_key")
    if kind == "openrouter" and not config.openrouter_api_key:
        raise ConfigError(
            "openrouter_api_key is required for OpenRouter backend",
            field="openrouter_api_key",
        )
    if kind == "cli":
        if not config.cli_command or not config.cli_command.strip():
            raise ConfigError("cli_command is required for CLI tool backend", field="cli_command")
        if config.cli_tool not in CLI_TOOLS:
            raise ConfigError(
                f"Invalid cli_tool: {config.cli_tool}. Must be one of: {', '.join(CLI_TOOLS)}",
                field="cli_tool",
            )
    return BackendKind(kind)


def _normalize(config: BackendConfig | Mapping[str, Any]) -> BackendConfig:
    if isinstance(config, BackendConfig):
        return config
    if not isinstance(config, Mapping):
        raise ConfigError(
            f"Backend config must be a mapping, got {type(config).__name__}"
        )
    try:
        return BackendConfig.model_validate(dict(config))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ConfigError(f"Invalid backend config: {e}", field=field) from e


def create_backend_from_config(
    config: BackendConfig | Mapping[str, Any],
    *,
    logger: logging.Logger | None = None,
) -> ArticleBackend:
    """Validate a backend config and build exactly one backend.

    Raises ConfigError naming the missing field or invalid kind before any
    backend is constructed.
    """
    cfg = _normalize(config)
    kind = _validate(cfg)

    if kind is BackendKind.MOCK:
        return MockBackend(logger=logger)
    if kind is BackendKind.API:
        return GeminiBackend(
            cfg.api_key, cfg.model_name, timeout=cfg.timeout, logger=logger
        )
    if kind is BackendKind.OLLAMA:
        return OllamaBackend(
            cfg.ollama_base_url, cfg.ollama_model, timeout=cfg.timeout, logger=logger
        )
    if kind is BackendKind.OPENROUTER:
        return OpenRouterBackend(
            cfg.openrouter_api_key,
            cfg.openrouter_model,
            base_url=cfg.openrouter_base_url,
            timeout=cfg.timeout,
            logger=logger,
        )
    return CLIToolBackend(
        cfg.cli_command,
        cfg.cli_tool,
        timeout=cfg.cli_timeout,
        max_output_bytes=cfg.cli_max_output_bytes,
        logger=logger,
    )


def create_backend_from_legacy_flag(
    use_mock: bool, *, logger: logging.Logger | None = None
) -> ArticleBackend:
    """Old boolean switch: True means the offline mock, False the Gemini API.

    False carries no API key, so it fails the same way a config without
    ``api_key`` does.
    """
    if not isinstance(use_mock, bool):
        raise ConfigError(f"Legacy flag must be a bool, got {type(use_mock).__name__}")
    kind = "mock" if use_mock else "api"
    return create_backend_from_config(BackendConfig(kind=kind, use_mock=use_mock), logger=logger)


def backend_config_from_settings(settings: BackendSettings) -> BackendConfig:
    """Bridge app-level settings to the selector config.

    Credentials are read from the environment variables named in settings.
    """

    def _env(name: str | None) -> str | None:
        if not name:
            return None
        return os.environ.get(name) or None

    return BackendConfig(
        kind=settings.kind,
        use_mock=settings.use_mock,
        api_key=_env(settings.api_key_env),
        model_name=settings.model_name,
        ollama_base_url=settings.ollama_base_url,
        ollama_model=settings.ollama_model,
        openrouter_api_key=_env(settings.openrouter_api_key_env),
        openrouter_model=settings.openrouter_model,
        openrouter_base_url=settings.openrouter_base_url,
        cli_command=settings.cli_command,
        cli_tool=settings.cli_tool,
        timeout=settings.timeout,
        cli_timeout=settings.cli_timeout,
        cli_max_output_bytes=settings.cli_max_output_bytes,
    )


def create_backend(
    settings: BackendSettings, *, logger: logging.Logger | None = None
) -> ArticleBackend:
    """Create a backend from app-level config."""
    return create_backend_from_config(backend_config_from_settings(settings), logger=logger)


__all__ = [
    "ArticleBackend",
    "BackendConfig",
    "BackendKind",
    "CLI_TOOLS",
    "CLIToolBackend",
    "ConfigError",
    "ConversionError",
    "GeminiBackend",
    "MockBackend",
    "NoContentError",
    "OllamaBackend",
    "OpenRouterBackend",
    "ProviderError",
    "ToolError",
    "VALID_KINDS",
    "backend_config_from_settings",
    "build_conversion_prompt",
    "create_backend",
    "create_backend_from_config",
    "create_backend_from_legacy_flag",
]
