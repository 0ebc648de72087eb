"""
Configuration file loader for iac-dlp.

Supports loading configuration from:
- iac-dlp.toml / .iac-dlp.toml
- iac-dlp.yml / .iac-dlp.yml / iac-dlp.yaml / .iac-dlp.yaml

CLI flags override config file values.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .config import DEFAULT_MAX_FILE_BYTES

# Config file search order (first found wins)
CONFIG_FILE_NAMES = [
    "iac-dlp.toml",
    ".iac-dlp.toml",
    "iac-dlp.yml",
    ".iac-dlp.yml",
    "iac-dlp.yaml",
    ".iac-dlp.yaml",
]

# Optional section name wrapping the settings
CONFIG_SECTION = "iac-dlp"


@dataclass
class ProjectConfig:
    """
    Project-level configuration loaded from config files.

    All fields are optional - CLI flags will override any values set here.
    """

    # Directory bundling
    include_extensions: set[str] | None = None
    exclude_globs: set[str] | None = None
    max_file_bytes: int | None = None
    respect_gitignore: bool | None = None

    # Output
    line_numbers: bool | None = None

    # Engine settings (loaded from [anonymizer] section)
    anonymizer_config: dict[str, Any] = field(default_factory=dict)

    # Source file path (for debugging)
    _config_file: Path | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (sorted keys for determinism)."""
        result: dict[str, Any] = {}

        if self.include_extensions is not None:
            result["include_extensions"] = sorted(self.include_extensions)
        if self.exclude_globs is not None:
            result["exclude_globs"] = sorted(self.exclude_globs)
        if self.max_file_bytes is not None:
            result["max_file_bytes"] = self.max_file_bytes
        if self.respect_gitignore is not None:
            result["respect_gitignore"] = self.respect_gitignore
        if self.line_numbers is not None:
            result["line_numbers"] = self.line_numbers
        if self.anonymizer_config:
            result["anonymizer"] = self.anonymizer_config
        if self._config_file is not None:
            result["_loaded_from"] = str(self._config_file)

        return dict(sorted(result.items()))


def find_config_file(search_dir: Path) -> Path | None:
    """
    Find a configuration file in a directory.

    Args:
        search_dir: Directory to look in

    Returns:
        Path to the config file, or None if not found
    """
    for name in CONFIG_FILE_NAMES:
        config_path = search_dir / name
        if config_path.exists() and config_path.is_file():
            return config_path
    return None


def _unwrap_section(data: Any) -> dict[str, Any]:
    """Support both flat settings and a nested [iac-dlp] section."""
    if not isinstance(data, dict):
        return {}
    section = data.get(CONFIG_SECTION)
    if isinstance(section, dict):
        return section
    return data


def _parse_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML config file."""
    with open(path, "rb") as f:
        return _unwrap_section(tomllib.load(f))


def _parse_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML config file."""
    with open(path, encoding="utf-8") as f:
        return _unwrap_section(yaml.safe_load(f))


def _normalize_extensions(extensions: Any) -> set[str] | None:
    """Normalize extension list to set with leading dots."""
    if extensions is None:
        return None

    if isinstance(extensions, str):
        extensions = [e.strip() for e in extensions.split(",")]

    if not isinstance(extensions, (list, set)):
        return None

    result = set()
    for ext in extensions:
        ext = str(ext).strip().lower()
        if ext:
            if not ext.startswith("."):
                ext = f".{ext}"
            result.add(ext)

    return result if result else None


def _normalize_globs(globs: Any) -> set[str] | None:
    """Normalize glob patterns to set."""
    if globs is None:
        return None

    if isinstance(globs, str):
        globs = [g.strip() for g in globs.split(",")]

    if not isinstance(globs, (list, set)):
        return None

    result = {str(g).strip() for g in globs if g}
    return result if result else None


def _normalize_values(values: Any) -> list[str]:
    """Normalize a comma-separated string or list into a list of strings."""
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    return [str(v).strip() for v in values if str(v).strip()]


def load_config(search_dir: Path, config_path: Path | None = None) -> ProjectConfig:
    """
    Load configuration from a config file.

    Args:
        search_dir: Directory searched when no explicit path is given
        config_path: Explicit path to config file (optional)

    Returns:
        ProjectConfig with loaded values (unset values remain None)
    """
    if config_path is None:
        config_path = find_config_file(search_dir)

    if config_path is None or not config_path.exists():
        return ProjectConfig()

    suffix = config_path.suffix.lower()
    try:
        if suffix == ".toml":
            data = _parse_toml(config_path)
        elif suffix in (".yml", ".yaml"):
            data = _parse_yaml(config_path)
        else:
            return ProjectConfig()
    except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError):
        # Ignore unreadable config - the CLI works without one
        return ProjectConfig()

    config = ProjectConfig(_config_file=config_path)

    config.include_extensions = _normalize_extensions(
        data.get("include_extensions") or data.get("include_ext")
    )
    config.exclude_globs = _normalize_globs(data.get("exclude_globs") or data.get("exclude_glob"))

    if "max_file_bytes" in data:
        config.max_file_bytes = int(data["max_file_bytes"])
    if "respect_gitignore" in data:
        config.respect_gitignore = bool(data["respect_gitignore"])
    if "line_numbers" in data:
        config.line_numbers = bool(data["line_numbers"])

    anonymizer_data = data.get("anonymizer") or data.get("anonymize") or {}
    if isinstance(anonymizer_data, dict) and anonymizer_data:
        config.anonymizer_config = dict(anonymizer_data)

    return config


def merge_cli_with_config(
    config: ProjectConfig,
    *,
    # CLI arguments (None means not specified on CLI)
    include_ext: str | None = None,
    exclude_glob: str | None = None,
    max_file_bytes: int | None = None,
    no_gitignore: bool = False,
    line_numbers: bool | None = None,
    ignore: str | None = None,
    skip_category: str | None = None,
    max_value_length: int | None = None,
) -> dict[str, Any]:
    """
    Merge CLI arguments with config file values.

    CLI arguments take precedence over config file values. Ignore values and
    skipped categories from the CLI are added to those from the file.

    Returns:
        Dictionary with merged configuration values
    """
    result: dict[str, Any] = {}

    # Include extensions: CLI overrides config
    if include_ext:
        result["include_extensions"] = _normalize_extensions(include_ext)
    elif config.include_extensions is not None:
        result["include_extensions"] = config.include_extensions
    else:
        result["include_extensions"] = None  # Use defaults

    # Exclude globs: CLI overrides config
    if exclude_glob:
        result["exclude_globs"] = _normalize_globs(exclude_glob)
    elif config.exclude_globs is not None:
        result["exclude_globs"] = config.exclude_globs
    else:
        result["exclude_globs"] = None  # Use defaults

    # Max file bytes
    if max_file_bytes is not None:
        result["max_file_bytes"] = max_file_bytes
    elif config.max_file_bytes is not None:
        result["max_file_bytes"] = config.max_file_bytes
    else:
        result["max_file_bytes"] = DEFAULT_MAX_FILE_BYTES

    # Respect gitignore (CLI --no-gitignore sets False)
    if no_gitignore:
        result["respect_gitignore"] = False
    elif config.respect_gitignore is not None:
        result["respect_gitignore"] = config.respect_gitignore
    else:
        result["respect_gitignore"] = True  # Default

    # Line numbers
    if line_numbers is not None:
        result["line_numbers"] = line_numbers
    elif config.line_numbers is not None:
        result["line_numbers"] = config.line_numbers
    else:
        result["line_numbers"] = False  # Default

    # Anonymizer settings: file values extended by CLI values
    anonymizer = dict(config.anonymizer_config)
    if ignore:
        anonymizer["ignore_values"] = (
            _normalize_values(anonymizer.get("ignore_values")) + _normalize_values(ignore)
        )
    if skip_category:
        anonymizer["skip_categories"] = (
            _normalize_values(anonymizer.get("skip_categories"))
            + _normalize_values(skip_category)
        )
    if max_value_length is not None:
        anonymizer["max_value_length"] = max_value_length
    result["anonymizer_config"] = anonymizer

    return result
