"""Configuration loading for libprovision."""

from libprovision.config.loader import ConfigError, get_default_config, load_config
from libprovision.config.models import (
    ArtifactConfig,
    LibprovisionConfig,
    PrebuiltBinariesConfig,
)

__all__ = [
    "ArtifactConfig",
    "ConfigError",
    "LibprovisionConfig",
    "PrebuiltBinariesConfig",
    "get_default_config",
    "load_config",
]
