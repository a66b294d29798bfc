"""
Service shell: configuration, logging, preflight checks and process lifecycle.
"""

from .config import ConfigError, ServiceConfig, load_config
from .main import main, serve

__all__ = ["ConfigError", "ServiceConfig", "load_config", "main", "serve"]
