"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import VaultclipConfig

# Names a config file explicitly, like --config does.
CONFIG_ENV_VAR = "VAULTCLIP_CONFIG"
PROJECT_CONFIG = "vaultclip.yaml"

_ENV_REF_RE = re.compile(r"\$\{(\w+)\}")


def _discovered_paths() -> list[Path]:
    """Implicit locations, most specific first."""
    return [Path(PROJECT_CONFIG), Path.home() / ".vaultclip" / "config.yaml"]


def find_config_file(cli_path: str | None = None) -> Path | None:
    """Resolve which config file applies.

    An explicit path (``--config`` or ``$VAULTCLIP_CONFIG``) must exist;
    otherwise the first discovered file is used, or None for defaults.
    """
    explicit_sources = (("--config", cli_path), (CONFIG_ENV_VAR, os.environ.get(CONFIG_ENV_VAR)))
    for origin, explicit in explicit_sources:
        if explicit:
            path = Path(explicit).expanduser()
            if not path.is_file():
                raise ValueError(f"Config file not found: {explicit} (from {origin})")
            return path

    for path in _discovered_paths():
        if path.is_file():
            return path
    return None


def _read_mapping(path: Path) -> dict | None:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Cannot read {path}: {e}") from e
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")
    return raw


def load_config(cli_path: str | None = None) -> VaultclipConfig:
    """Load config: --config > $VAULTCLIP_CONFIG > ./vaultclip.yaml > ~/.vaultclip/config.yaml > defaults.

    An empty file means defaults.
    """
    path = find_config_file(cli_path)
    if path is None:
        return VaultclipConfig()

    raw = _read_mapping(path)
    if raw is None:
        return VaultclipConfig()
    try:
        return VaultclipConfig.model_validate(_expand_env_vars(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings; unset vars become empty."""
    if isinstance(obj, str):
        return _ENV_REF_RE.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `vaultclip config init`
DEFAULT_CONFIG_TEMPLATE = """\
# vaultclip.yaml

# Article backend
backend:
  kind: "mock"                 # mock | api | ollama | openrouter | cli
  # Gemini API
  api_key_env: "GEMINI_API_KEY"
  model_name: "gemini-1.5-flash"
  # Ollama
  ollama_base_url: "http://localhost:11434"
  ollama_model: "llama2"
  # OpenRouter
  openrouter_api_key_env: "OPENROUTER_API_KEY"
  openrouter_model: "openai/gpt-3.5-turbo"
  # External CLI tool
  # cli_command: "gemini"
  # cli_tool: "gemini"         # gemini | claude | codex
  timeout: 60                  # network timeout, seconds
  cli_timeout: 120             # subprocess timeout, seconds

# Vault
vault:
  notes_path: "./notes"
  delete_links: true           # remove processed links from source notes
  fetch_timeout: 30

# Output
output:
  base_dir: "./output"
  dry_run: false

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
