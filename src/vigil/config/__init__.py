from vigil.config.io import get_config_path, load_config, load_config_file
from vigil.config.models import GlobalConfig, RootConfig, WatchConfig

__all__ = [
    "GlobalConfig",
    "RootConfig",
    "WatchConfig",
    "get_config_path",
    "load_config",
    "load_config_file",
]
