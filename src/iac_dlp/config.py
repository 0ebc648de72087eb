"""
Configuration models and defaults for iac-dlp.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .categories import DEFAULT_IGNORE_VALUES, DEFAULT_MAX_VALUE_LENGTH, Category

# Current report schema version
REPORT_SCHEMA_VERSION = "1.0.0"

# Infrastructure-as-code file extensions picked up when bundling a directory
DEFAULT_INCLUDE_EXTENSIONS: set[str] = {
    ".tf",
    ".tfvars",
    ".json",
    ".yaml",
    ".yml",
}

# Default glob patterns to exclude when bundling a directory
DEFAULT_EXCLUDE_GLOBS: set[str] = {
    ".git/**",
    ".terraform/**",
}

DEFAULT_MAX_FILE_BYTES = 1_048_576  # 1 MB

# In-band header separating source units inside one text blob
FILE_HEADER_PREFIX = "### FILE:"
FILE_HEADER_SUFFIX = "###"
MULTI_FILE_BANNER = "# --- MULTI-FILE PROJECT ---"
NO_FILES_MESSAGE = "# No valid files found."


@dataclass
class AnonymizerConfig:
    """
    Configuration for the anonymization engine.

    Loaded from the [anonymizer] section of a config file or set programmatically.
    """

    # Additional literal values to leave visible (extends the built-in list)
    ignore_values: set[str] = field(default_factory=set)

    # Longest free-form quoted value that is scanned
    max_value_length: int = DEFAULT_MAX_VALUE_LENGTH

    # Alias categories to turn off. Secrets are always redacted.
    skip_categories: set[Category] = field(default_factory=set)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if Category.SECRET in self.skip_categories:
            raise ValueError("The Secret category cannot be skipped")
        if self.max_value_length < 1:
            raise ValueError(
                f"max_value_length must be positive, got {self.max_value_length}"
            )

    @property
    def all_ignore_values(self) -> frozenset[str]:
        """Built-in ignore list plus configured extras."""
        return DEFAULT_IGNORE_VALUES | {v.lower() for v in self.ignore_values}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnonymizerConfig:
        """Create AnonymizerConfig from a dictionary (e.g., from config file)."""
        ignore_values = data.get("ignore_values") or []
        if isinstance(ignore_values, str):
            ignore_values = [v.strip() for v in ignore_values.split(",")]

        skip = data.get("skip_categories") or []
        if isinstance(skip, str):
            skip = [c.strip() for c in skip.split(",")]

        return cls(
            ignore_values={str(v) for v in ignore_values if str(v).strip()},
            max_value_length=int(data.get("max_value_length", DEFAULT_MAX_VALUE_LENGTH)),
            skip_categories={Category.from_label(str(c)) for c in skip if str(c).strip()},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (sorted for determinism)."""
        return {
            "ignore_values": sorted(self.ignore_values),
            "max_value_length": self.max_value_length,
            "skip_categories": sorted(c.value for c in self.skip_categories),
        }


@dataclass
class SourceFile:
    """A file included in a bundle."""

    path: Path  # Absolute path
    relative_path: str  # Relative to bundle root, forward slashes
    size_bytes: int
    encoding: str = "utf-8"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "encoding": self.encoding,
            "path": self.relative_path,
            "size_bytes": self.size_bytes,
        }


@dataclass
class BundleStats:
    """Statistics from bundling source files."""

    files_scanned: int = 0
    files_included: int = 0
    files_skipped_size: int = 0
    files_skipped_binary: int = 0
    files_skipped_extension: int = 0
    files_skipped_gitignore: int = 0
    files_skipped_glob: int = 0
    files_unreadable: int = 0
    total_bytes_included: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "files_included": self.files_included,
            "files_scanned": self.files_scanned,
            "files_skipped": {
                "binary": self.files_skipped_binary,
                "extension": self.files_skipped_extension,
                "gitignore": self.files_skipped_gitignore,
                "glob": self.files_skipped_glob,
                "size": self.files_skipped_size,
                "unreadable": self.files_unreadable,
            },
            "total_bytes_included": self.total_bytes_included,
        }
