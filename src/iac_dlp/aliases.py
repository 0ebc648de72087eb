"""
Alias allocation for structural identifiers.

An allocator lives for exactly one anonymization call. It hands out stable,
sequential placeholder tokens (``CLOUD_ID_1``, ``CLOUD_ID_2``, ...) so that
relationships between resources survive anonymization.
"""

from __future__ import annotations

from collections.abc import Iterable

from .categories import DEFAULT_IGNORE_VALUES, Category


class AliasAllocator:
    """
    Assigns per-category sequential aliases to sensitive values.

    The lookup key is ``(category, value)`` with the value exactly as
    encountered, so values differing only in case get separate aliases.
    The ignore-list check, on the other hand, is case-insensitive.
    """

    def __init__(self, ignore_values: Iterable[str] = DEFAULT_IGNORE_VALUES):
        """
        Initialize the allocator.

        Args:
            ignore_values: Literal values that are never aliased
        """
        self._ignore_values = frozenset(v.lower() for v in ignore_values)
        self._aliases: dict[Category, dict[str, str]] = {}
        self.redaction_count = 0

    def is_ignored(self, value: str) -> bool:
        """Check if a value is exempt from aliasing."""
        return value.lower() in self._ignore_values

    def get_alias(self, value: str, category: Category) -> str:
        """
        Return the alias for a value, allocating one on first encounter.

        Args:
            value: The sensitive value as found in the text
            category: Category the value was detected under

        Returns:
            The alias token, or the value itself if it is on the ignore list
        """
        if self.is_ignored(value):
            return value

        category_aliases = self._aliases.setdefault(category, {})
        alias = category_aliases.get(value)
        if alias is None:
            alias = f"{category.alias_prefix}_{len(category_aliases) + 1}"
            category_aliases[value] = alias
            self.redaction_count += 1
        return alias

    def category_counts(self) -> dict[str, int]:
        """Distinct aliased values per category label, in first-seen order."""
        return {
            category.value: len(values)
            for category, values in self._aliases.items()
            if values
        }

    def __len__(self) -> int:
        return self.redaction_count
