"""Configuration loading."""
from .settings import NyuchiConfig, get_config, init_config

__all__ = ["NyuchiConfig", "get_config", "init_config"]
