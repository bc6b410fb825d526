from .config_loader import (
    RevLensConfig,
    get_config,
    get_config_path,
    load_unified_config,
    reload_config,
)

__all__ = [
    "RevLensConfig",
    "get_config",
    "get_config_path",
    "load_unified_config",
    "reload_config",
]
