"""Error types and runtime config for the backend subsystem."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

_DETAIL_LIMIT = 2000


def _truncate(text: str | None, limit: int = _DETAIL_LIMIT) -> str:
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more chars]"


class ConversionError(Exception):
    """Base class for every failure raised by a backend."""

    def __init__(self, message: str, *, backend: str | None = None) -> None:
        self.backend = backend
        super().__init__(message)


class ConfigError(ConversionError):
    """Invalid or missing configuration, raised before any backend call."""

    def __init__(
        self, message: str, *, field: str | None = None, backend: str | None = None
    ) -> None:
        self.field = field
        super().__init__(message, backend=backend)


class NoContentError(ConversionError):
    """The backend ran cleanly but generated no usable text."""


class ProviderError(ConversionError):
    """Network or provider-level failure (non-2xx, malformed body, transport)."""

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        status: int | None = None,
        detail: str = "",
        retryable: bool = False,
    ) -> None:
        self.status = status
        self.detail = detail
        self.retryable = retryable
        super().__init__(message, backend=backend)


class ToolError(ConversionError):
    """External CLI tool failure.

    ``reason`` is one of ``exit``, ``timeout``, ``output_limit``,
    ``empty_output`` or ``not_found`` so a timeout kill can be told apart
    from a buffer overflow.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        backend: str | None = None,
        exit_code: int | None = None,
        signal: str | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.reason = reason
        self.exit_code = exit_code
        self.signal = signal
        self.stdout = _truncate(stdout)
        self.stderr = _truncate(stderr)
        parts = [message]
        if exit_code is not None:
            parts.append(f"exit code: {exit_code}")
        if signal:
            parts.append(f"signal: {signal}")
        if self.stderr:
            parts.append(f"stderr: {self.stderr}")
        elif self.stdout:
            parts.append(f"stdout: {self.stdout}")
        super().__init__(" | ".join(parts), backend=backend)


class BackendConfig(BaseModel):
    """Normalized configuration handed to the backend selector.

    Extra keys are ignored and explicit ``None`` values fall back to the
    field default, so a partially filled mapping behaves like an omitted one.
    """

    model_config = ConfigDict(extra="ignore")

    kind: str = "api"
    use_mock: bool = False

    api_key: str | None = None
    model_name: str = "gemini-1.5-flash"

    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama2"

    openrouter_api_key: str | None = None
    openrouter_model: str = "openai/gpt-3.5-turbo"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    cli_command: str | None = None
    cli_tool: str | None = None

    timeout: float = Field(default=60.0, gt=0)
    cli_timeout: float = Field(default=120.0, gt=0)
    cli_max_output_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    @field_validator("*", mode="before")
    @classmethod
    def _none_means_default(cls, value, info):
        if value is None:
            default = cls.model_fields[info.field_name].get_default(call_default_factory=True)
            return default
        return value
