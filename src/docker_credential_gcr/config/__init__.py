"""Configuration package"""

from .logging import setup_logging
from .settings import GCRConfig, get_config, user_config_path

__all__ = ["GCRConfig", "get_config", "setup_logging", "user_config_path"]
