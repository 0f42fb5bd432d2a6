"""Configuration validation for libprovision.

Validates known configuration keys and value types. Unknown keys produce
warnings with a close-match suggestion instead of failing the load.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Type, Union

import yaml

from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)


class ValidationSeverity(Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Config will fail at runtime
    WARNING = "warning"  # Likely mistake but config usable


@dataclass
class ConfigValidationIssue:
    """A validation issue for configuration with severity."""

    message: str
    source: str
    severity: ValidationSeverity
    key: Optional[str] = None
    suggestion: Optional[str] = None


@dataclass
class ConfigValidationWarning:
    """A validation warning for configuration."""

    message: str
    source: str
    key: Optional[str] = None
    suggestion: Optional[str] = None


# Valid top-level keys
VALID_TOP_LEVEL_KEYS: Set[str] = {
    "version",
    "artifact",
    "prebuilt_binaries",
}

_TypeSpec = Union[Type[Any], Tuple[Type[Any], ...]]

# Expected value types per section key; None is always accepted for optional keys
VALID_ARTIFACT_KEYS: Dict[str, _TypeSpec] = {
    "lib_name": str,
    "install_root": str,
}

VALID_PREBUILT_BINARIES_KEYS: Dict[str, _TypeSpec] = {
    "download": bool,
    "force_version": str,
    "force_system_triple": str,
    "release_base_url": str,
}

_SECTIONS: Dict[str, Dict[str, _TypeSpec]] = {
    "artifact": VALID_ARTIFACT_KEYS,
    "prebuilt_binaries": VALID_PREBUILT_BINARIES_KEYS,
}

_TYPE_NAMES: Dict[Any, str] = {bool: "a boolean", str: "a string", int: "an integer"}

# Accepted spellings for boolean values written as strings (e.g. from ${VAR:-false})
_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def parse_bool(value: Any) -> Optional[bool]:
    """Interpret a config value as a boolean.

    Returns:
        The boolean, or None if the value is not a recognized boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def _matches_type(value: Any, expected: _TypeSpec) -> bool:
    if value is None:
        return True
    if expected is bool and isinstance(value, str):
        # unexpanded ${VAR} references are checked after expansion
        return parse_bool(value) is not None or "${" in value
    return isinstance(value, expected)


def validate_config(
    data: Dict[str, Any],
    source: str,
) -> List[ConfigValidationWarning]:
    """Validate configuration dictionary.

    Does not raise exceptions - returns warnings instead.

    Args:
        data: Config dictionary to validate.
        source: Source file path for warning messages.

    Returns:
        List of validation warnings.
    """
    warnings: List[ConfigValidationWarning] = []

    if not isinstance(data, dict):  # type: ignore[unreachable]
        warnings.append(ConfigValidationWarning(
            message=f"Config must be a mapping, got {type(data).__name__}",
            source=source,
        ))
        return warnings  # type: ignore[unreachable]

    for key in data.keys():
        if key not in VALID_TOP_LEVEL_KEYS:
            suggestion = _suggest_key(key, VALID_TOP_LEVEL_KEYS)
            warning = ConfigValidationWarning(
                message=f"Unknown top-level key '{key}'",
                source=source,
                key=key,
                suggestion=suggestion,
            )
            warnings.append(warning)
            _log_warning(warning)

    for section_name, valid_keys in _SECTIONS.items():
        section = data.get(section_name)
        if section is None:
            continue
        if not isinstance(section, dict):
            warnings.append(ConfigValidationWarning(
                message=f"'{section_name}' must be a mapping, got {type(section).__name__}",
                source=source,
                key=section_name,
            ))
            continue
        warnings.extend(_validate_section(section_name, section, valid_keys, source))

    return warnings


def _validate_section(
    section_name: str,
    section: Dict[str, Any],
    valid_keys: Dict[str, _TypeSpec],
    source: str,
) -> List[ConfigValidationWarning]:
    """Check unknown keys and value types within one section."""
    warnings: List[ConfigValidationWarning] = []

    for key, value in section.items():
        full_key = f"{section_name}.{key}"
        expected = valid_keys.get(key)
        if expected is None:
            suggestion = _suggest_key(key, set(valid_keys))
            warning = ConfigValidationWarning(
                message=f"Unknown key '{full_key}'",
                source=source,
                key=full_key,
                suggestion=suggestion,
            )
            warnings.append(warning)
            _log_warning(warning)
            continue

        if not _matches_type(value, expected):
            type_name = _TYPE_NAMES.get(expected, str(expected))
            warnings.append(ConfigValidationWarning(
                message=f"'{full_key}' must be {type_name}, got {type(value).__name__}",
                source=source,
                key=full_key,
            ))

    return warnings


def _suggest_key(invalid_key: str, valid_keys: Set[str]) -> Optional[str]:
    """Suggest a valid key for a potential typo.

    Args:
        invalid_key: The invalid key entered.
        valid_keys: Set of valid keys.

    Returns:
        Closest matching valid key, or None if no good match.
    """
    matches = get_close_matches(invalid_key, list(valid_keys), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _log_warning(warning: ConfigValidationWarning) -> None:
    """Log a validation warning."""
    msg = f"{warning.message} in {warning.source}"
    if warning.suggestion:
        msg += f" (did you mean '{warning.suggestion}'?)"
    LOGGER.warning(msg)


def validate_config_file(config_path: Path) -> Tuple[bool, List[ConfigValidationIssue]]:
    """Validate a configuration file from disk.

    Checks file existence, YAML syntax, and configuration semantics.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Tuple of (is_valid, issues) where is_valid is False if any errors exist.
    """
    issues: List[ConfigValidationIssue] = []
    source = str(config_path)

    if not config_path.exists():
        issues.append(ConfigValidationIssue(
            message=f"Configuration file not found: {config_path}",
            source=source,
            severity=ValidationSeverity.ERROR,
        ))
        return False, issues

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        issues.append(ConfigValidationIssue(
            message=f"Invalid YAML syntax: {e}",
            source=source,
            severity=ValidationSeverity.ERROR,
        ))
        return False, issues

    if data is None:
        issues.append(ConfigValidationIssue(
            message="Configuration file is empty",
            source=source,
            severity=ValidationSeverity.WARNING,
        ))
        return True, issues

    # Type mismatches are errors, unknown keys are warnings
    for warning in validate_config(data, source):
        is_error = "must be" in warning.message
        issues.append(ConfigValidationIssue(
            message=warning.message,
            source=warning.source,
            severity=ValidationSeverity.ERROR if is_error else ValidationSeverity.WARNING,
            key=warning.key,
            suggestion=warning.suggestion,
        ))

    has_errors = any(issue.severity == ValidationSeverity.ERROR for issue in issues)
    return not has_errors, issues
