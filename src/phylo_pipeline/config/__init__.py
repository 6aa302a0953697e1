"""Configuration management for the phylogenetic batch pipeline."""

from .settings import get_settings, create_environment_config, Settings

__all__ = ["get_settings", "create_environment_config", "Settings"]
