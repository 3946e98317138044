from .loader import find_config_file, load_config
from .models import (
    BackendSettings,
    OutputConfig,
    VaultclipConfig,
    VaultConfig,
)

__all__ = [
    "BackendSettings",
    "OutputConfig",
    "VaultclipConfig",
    "VaultConfig",
    "find_config_file",
    "load_config",
]
