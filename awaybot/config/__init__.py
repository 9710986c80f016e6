"""Configuration module for awaybot."""

from awaybot.config.loader import load_config, save_config, get_config_path
from awaybot.config.schema import Config

__all__ = ["Config", "load_config", "save_config", "get_config_path"]
