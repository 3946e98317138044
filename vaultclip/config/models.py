from pydantic import BaseModel, Field
from typing import Literal


class BackendSettings(BaseModel):
    kind: str = "mock"
    use_mock: bool = False
    api_key_env: str = "GEMINI_API_KEY"
    model_name: str = "gemini-1.5-flash"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama2"
    openrouter_api_key_env: str = "OPENROUTER_API_KEY"
    openrouter_model: str = "openai/gpt-3.5-turbo"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    cli_command: str | None = None
    cli_tool: str | None = None
    timeout: float = Field(default=60.0, gt=0)
    cli_timeout: float = Field(default=120.0, gt=0)
    cli_max_output_bytes: int = Field(default=10 * 1024 * 1024, gt=0)


class VaultConfig(BaseModel):
    notes_path: str = "./notes"
    delete_links: bool = True
    fetch_timeout: float = Field(default=30.0, gt=0)


class OutputConfig(BaseModel):
    base_dir: str = "./output"
    dry_run: bool = False


class VaultclipConfig(BaseModel):
    backend: BackendSettings = Field(default_factory=BackendSettings)
    vault: VaultConfig = Field(default_factory=VaultConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
