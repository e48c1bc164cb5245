"""
Client configuration loading.
"""

from .app_config import AppConfig, load_config

__all__ = ["AppConfig", "load_config"]
