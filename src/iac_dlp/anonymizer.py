"""
Sensitive-data anonymization engine for iac-dlp.

Rewrites infrastructure-as-code text before it leaves the local environment:

- Structural identifiers (emails, IPs, project IDs, bucket names, networks,
  owners, environment labels) are replaced by stable aliases such as
  ``NETWORK_TOPOGRAPHY_1``, so relationships between resources stay visible
- Secrets are replaced by ``[REDACTED_SECRET]`` and are not recoverable
- Ignore-listed values (``0.0.0.0/0``, ``default``, standard regions) are
  left verbatim because audits depend on them

The engine is a pure function of its input text. All alias state is created
per call and discarded afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .aliases import AliasAllocator
from .categories import SECRET_PLACEHOLDER, Action, CategoryRule, Scope, build_rules
from .config import AnonymizerConfig


@dataclass
class AnonymizationResult:
    """Output of one anonymization call."""

    sanitized_text: str
    redaction_count: int = 0  # Distinct aliased values, secrets excluded
    types: dict[str, int] = field(default_factory=dict)  # Category label -> distinct values
    secrets_redacted: int = 0  # Secret occurrences hard-redacted, reported separately

    @property
    def was_redacted(self) -> bool:
        """True if anything was aliased or hard-redacted."""
        return self.redaction_count > 0 or self.secrets_redacted > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization (deterministic key order)."""
        return {
            "redaction_count": self.redaction_count,
            "sanitized_text": self.sanitized_text,
            "secrets_redacted": self.secrets_redacted,
            "types": dict(sorted(self.types.items())),
        }


def secret_spans(pattern: re.Pattern[str] | None, text: str) -> list[tuple[int, int]]:
    """Character spans of the values a hard-redact pattern would destroy."""
    if pattern is None:
        return []
    return [match.span(2) for match in pattern.finditer(text)]


def apply_rule(
    rule: CategoryRule,
    text: str,
    allocator: AliasAllocator,
    secret_pattern: re.Pattern[str] | None = None,
) -> tuple[str, int]:
    """
    Run a single rule as a global substitution over the text.

    Key-scoped rules keep the key, operator, spacing and quotes verbatim and
    only replace the captured value. Whole-text rules skip matches inside a
    value of ``secret_pattern``, so the secret pass later destroys that value
    and nothing about it is counted.

    Args:
        rule: Rule to apply
        text: Current working text
        allocator: Alias allocator for this call
        secret_pattern: Hard-redact pattern whose values are left alone

    Returns:
        Tuple of (new_text, hard_redactions)
    """
    if rule.action is Action.HARD_REDACT:
        return rule.pattern.subn(
            lambda m: f"{m.group(1)}{SECRET_PLACEHOLDER}{m.group(3)}",
            text,
        )

    protected = secret_spans(secret_pattern, text) if rule.scope is Scope.TEXT else []

    def replace_value(match: re.Match[str]) -> str:
        if rule.scope is Scope.TEXT:
            start, end = match.span()
            if any(start < s_end and s_start < end for s_start, s_end in protected):
                return match.group(0)
            return allocator.get_alias(match.group(0), rule.category)
        alias = allocator.get_alias(match.group(2), rule.category)
        return f"{match.group(1)}{alias}{match.group(3)}"

    return rule.pattern.sub(replace_value, text), 0


class Anonymizer:
    """
    Runs the ordered category passes over infrastructure text.

    Passes, in order:
        Identity -> IP_Range -> Cloud_ID -> Resource_Name ->
        Network_Topography -> Secret -> Org_Metadata -> Env_Indicator

    Each pass sees the output of the previous one. An instance holds no
    per-call state, so it can be reused and shared between threads.
    """

    def __init__(self, config: AnonymizerConfig | None = None):
        """
        Initialize the anonymizer.

        Args:
            config: Engine configuration (ignore-list extras, value bound,
                skipped categories)
        """
        self.config = config or AnonymizerConfig()
        self.rules = [
            rule
            for rule in build_rules(self.config.max_value_length)
            if rule.category not in self.config.skip_categories
        ]
        self._ignore_values = self.config.all_ignore_values
        self._secret_pattern = next(
            rule.pattern for rule in self.rules if rule.action is Action.HARD_REDACT
        )

    def anonymize(self, text: str) -> AnonymizationResult:
        """
        Anonymize infrastructure text.

        Args:
            text: Raw text, possibly several files joined with sentinel headers

        Returns:
            AnonymizationResult with the sanitized text and statistics.
            Empty or blank input is returned unchanged with zero counts.
        """
        if not text or not text.strip():
            return AnonymizationResult(sanitized_text=text)

        allocator = AliasAllocator(self._ignore_values)
        processed = text
        secrets_redacted = 0

        for rule in self.rules:
            processed, hard_redactions = apply_rule(
                rule, processed, allocator, self._secret_pattern
            )
            secrets_redacted += hard_redactions

        return AnonymizationResult(
            sanitized_text=processed,
            redaction_count=allocator.redaction_count,
            types=allocator.category_counts(),
            secrets_redacted=secrets_redacted,
        )


def create_anonymizer(config: AnonymizerConfig | None = None) -> Anonymizer:
    """Factory function to create an anonymizer instance."""
    return Anonymizer(config=config)


def anonymize_iac(text: str, config: AnonymizerConfig | None = None) -> AnonymizationResult:
    """Anonymize text in one call."""
    return Anonymizer(config=config).anonymize(text)
