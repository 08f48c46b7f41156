"""Configuration: pydantic-settings Settings and the YAML config loader."""

from plugrag.config.loader import load_config
from plugrag.config.settings import Settings

__all__ = ["Settings", "load_config"]
