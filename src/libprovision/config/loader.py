"""Configuration file loading and merging.

Handles loading configuration from YAML files with:
- Project-level config (.libprovision.yml)
- Global config (~/.libprovision/config/config.yml)
- Environment variable expansion (${VAR})
- Config merging with proper precedence
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from libprovision.bootstrap.paths import get_libprovision_home
from libprovision.config.models import (
    ArtifactConfig,
    LibprovisionConfig,
    PrebuiltBinariesConfig,
)
from libprovision.config.validation import parse_bool, validate_config
from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)

# Config file names
PROJECT_CONFIG_NAMES = [
    ".libprovision.yml",
    ".libprovision.yaml",
    "libprovision.yml",
    "libprovision.yaml",
]
GLOBAL_CONFIG_NAME = "config.yml"

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or parsing error."""

    pass


def load_config(
    project_root: Path,
    cli_config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
) -> LibprovisionConfig:
    """Load configuration with proper precedence.

    Precedence (highest to lowest):
    1. CLI flags (cli_overrides)
    2. Custom config file (cli_config_path) OR project config (.libprovision.yml)
    3. Global config (~/.libprovision/config/config.yml)
    4. Built-in defaults

    Args:
        project_root: Project root directory for finding .libprovision.yml.
        cli_config_path: Optional path to custom config file (--config flag).
        cli_overrides: Dict of CLI flag overrides.

    Returns:
        Merged LibprovisionConfig instance.

    Raises:
        ConfigError: If specified config file doesn't exist, has parse errors,
            or holds a value of the wrong type.
    """
    sources: List[str] = []
    merged: Dict[str, Any] = {}

    # Layer 1: Global config
    global_path = find_global_config()
    if global_path and global_path.exists():
        try:
            global_dict = load_yaml_file(global_path)
            _validate_or_raise(global_dict, source=str(global_path))
            merged = merge_configs(merged, global_dict)
            sources.append(f"global:{global_path}")
            LOGGER.debug(f"Loaded global config from {global_path}")
        except (yaml.YAMLError, ConfigError, OSError) as e:
            LOGGER.warning(f"Failed to load global config: {e}")

    # Layer 2: Project or custom config
    config_path = cli_config_path
    label = "custom"
    if config_path is None:
        config_path = find_project_config(project_root)
        label = "project"
    elif not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    if config_path is not None:
        try:
            project_dict = load_yaml_file(config_path)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        _validate_or_raise(project_dict, source=str(config_path))
        merged = merge_configs(merged, project_dict)
        sources.append(f"{label}:{config_path}")
        LOGGER.debug(f"Loaded {label} config from {config_path}")

    # Layer 3: CLI overrides
    if cli_overrides:
        merged = merge_configs(merged, cli_overrides)
        sources.append("cli")
        LOGGER.debug("Applied CLI overrides")

    config = dict_to_config(merged, base_dir=project_root)
    config._config_sources = sources

    LOGGER.debug(f"Config loaded from sources: {sources}")
    return config


def _validate_or_raise(data: Dict[str, Any], source: str) -> None:
    """Validate a loaded config; wrong value types are fatal, unknown keys only warn."""
    type_errors = [
        w.message for w in validate_config(data, source=source) if "must be" in w.message
    ]
    if type_errors:
        raise ConfigError(f"Invalid config in {source}: {'; '.join(type_errors)}")


def find_project_config(project_root: Path) -> Optional[Path]:
    """Find config file in project root.

    Args:
        project_root: Directory to search in.

    Returns:
        Path to config file if found, None otherwise.
    """
    for name in PROJECT_CONFIG_NAMES:
        config_path = project_root / name
        if config_path.exists():
            return config_path
    return None


def find_global_config() -> Optional[Path]:
    """Find global config at ~/.libprovision/config/config.yml.

    Returns:
        Path to global config if it exists, None otherwise.
    """
    config_path = get_libprovision_home() / "config" / GLOBAL_CONFIG_NAME
    if config_path.exists():
        return config_path
    return None


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML config file.

    Performs environment variable expansion on string values.

    Args:
        path: Path to YAML file.

    Returns:
        Parsed dictionary.

    Raises:
        yaml.YAMLError: If YAML parsing fails.
        ConfigError: If the document is not a mapping.
        FileNotFoundError: If file doesn't exist.
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    data = yaml.safe_load(content)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data)


def expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if isinstance(data, dict):
        return {k: expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(_env_var_replacer, data)
    else:
        return data


def _env_var_replacer(match: re.Match[str]) -> str:
    """Replace environment variable reference with its value."""
    var_name = match.group(1)
    default_value = match.group(2)

    value = os.environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def merge_configs(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two config dicts, with overlay taking precedence.

    Rules:
    - Scalar values: overlay replaces base
    - Dicts: recursive merge
    """
    result = base.copy()

    for key, overlay_value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(overlay_value, dict):
            result[key] = merge_configs(result[key], overlay_value)
        else:
            result[key] = overlay_value

    return result


def _optional_str(value: Any) -> Optional[str]:
    """Treat empty strings (e.g. an unset ${VAR}) as not configured."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_download(value: Any, default: bool) -> bool:
    """Parse prebuilt_binaries.download, accepting true/false/yes/no/1/0 strings."""
    if value is None:
        return default
    parsed = parse_bool(value)
    if parsed is None:
        raise ConfigError(
            f"'prebuilt_binaries.download' must be a boolean, got {value!r}"
        )
    return parsed


def dict_to_config(data: Dict[str, Any], base_dir: Optional[Path] = None) -> LibprovisionConfig:
    """Convert validated dict to typed LibprovisionConfig.

    Args:
        data: Configuration dictionary.
        base_dir: Directory relative install_root values are resolved against.

    Returns:
        Typed LibprovisionConfig instance.

    Raises:
        ConfigError: If prebuilt_binaries.download is not a boolean.
    """
    artifact_data = data.get("artifact") or {}
    install_root: Optional[Path] = None
    raw_root = _optional_str(artifact_data.get("install_root"))
    if raw_root is not None:
        install_root = Path(raw_root).expanduser()
        if not install_root.is_absolute() and base_dir is not None:
            install_root = base_dir / install_root

    defaults = ArtifactConfig()
    artifact = ArtifactConfig(
        lib_name=_optional_str(artifact_data.get("lib_name")) or defaults.lib_name,
        install_root=install_root,
    )

    prebuilt_data = data.get("prebuilt_binaries") or {}
    prebuilt_defaults = PrebuiltBinariesConfig()
    prebuilt = PrebuiltBinariesConfig(
        download=_parse_download(
            prebuilt_data.get("download"), prebuilt_defaults.download
        ),
        force_version=_optional_str(prebuilt_data.get("force_version")),
        force_system_triple=_optional_str(prebuilt_data.get("force_system_triple")),
        release_base_url=(
            _optional_str(prebuilt_data.get("release_base_url"))
            or prebuilt_defaults.release_base_url
        ),
    )

    return LibprovisionConfig(artifact=artifact, prebuilt_binaries=prebuilt)


def get_default_config() -> LibprovisionConfig:
    """Get the built-in default configuration."""
    return LibprovisionConfig()
