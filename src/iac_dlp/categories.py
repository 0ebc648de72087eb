"""
Sensitive-data categories and their matching rules for iac-dlp.

Each category is detected by one rule: a compiled pattern, a scope (whole-text
scan or key-scoped key/value scan) and an action (alias or hard-redact).

Rules are returned in pipeline order. ORDER MATTERS: every pass runs over the
output of the previous one, so alias tokens produced early must never be picked
up again later. Key-scoped alias patterns refuse a value that is already an
alias token or the secret placeholder. The secret pattern only refuses the
placeholder, so a secret that an earlier pass aliased is still destroyed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class Category(str, Enum):
    """Sensitive-data category. The value is the label used in statistics."""

    IDENTITY = "Identity"
    IP_RANGE = "IP_Range"
    CLOUD_ID = "Cloud_ID"
    RESOURCE_NAME = "Resource_Name"
    NETWORK_TOPOGRAPHY = "Network_Topography"
    SECRET = "Secret"
    ORG_METADATA = "Org_Metadata"
    ENV_INDICATOR = "Env_Indicator"

    @property
    def alias_prefix(self) -> str:
        """Prefix of alias tokens for this category (e.g. ``CLOUD_ID``)."""
        return self.value.upper()

    @classmethod
    def from_label(cls, label: str) -> Category:
        """Look up a category by label or member name, case-insensitively."""
        wanted = label.strip().lower()
        for category in cls:
            if wanted in (category.value.lower(), category.name.lower()):
                return category
        raise ValueError(f"Unknown category: {label}")


class Scope(str, Enum):
    """Where a rule looks for values."""

    TEXT = "text"  # whole text, regardless of surrounding keys
    KEY = "key"  # right-hand side of specific configuration keys


class Action(str, Enum):
    """What happens to a matched value."""

    ALIAS = "alias"
    HARD_REDACT = "hard_redact"


# Fixed placeholder for hard-redacted secrets
SECRET_PLACEHOLDER = "[REDACTED_SECRET]"

# Default bound for free-form quoted values (secrets, labels, metadata)
DEFAULT_MAX_VALUE_LENGTH = 4096

# Qualifying key names per key-scoped category
CLOUD_ID_KEYS: tuple[str, ...] = (
    "project",
    "project_id",
    "org_id",
    "billing_account",
    "folder_id",
    "service_account_id",
    "account_id",
)

RESOURCE_NAME_KEYS: tuple[str, ...] = (
    "bucket",
    "bucket_name",
    "database_instance",
    "instance_name",
    "repository_id",
    "container_name",
)

NETWORK_TOPOGRAPHY_KEYS: tuple[str, ...] = (
    "network",
    "subnetwork",
    "vpc",
    "dns_name",
    "domain_name",
)

SECRET_KEYS: tuple[str, ...] = (
    "password",
    "secret",
    "key_data",
    "private_key",
    "api_key",
    "token",
    "access_key",
    "auth_token",
    "certificate",
    "connection_string",
)

ORG_METADATA_KEYS: tuple[str, ...] = (
    "owner",
    "creator",
    "contact",
    "team",
    "cost_center",
    "business_unit",
)

# "labels?" and "tags?" in pattern form
ENV_INDICATOR_KEYS: tuple[str, ...] = (
    "name",
    "labels?",
    "tags?",
    "env",
    "environment",
    "tier",
    "role",
)

# Tier/environment words; a value only has to contain one of them
ENV_INDICATOR_WORDS: tuple[str, ...] = (
    "prod",
    "production",
    "master",
    "primary",
    "main",
    "staging",
    "stg",
    "dev",
    "development",
    "test",
    "uat",
    "dr",
    "backup",
    "secondary",
)

# Standard region names stay visible: they matter for residency findings
STANDARD_REGIONS: frozenset[str] = frozenset({
    # Google Cloud
    "us-central1",
    "us-east1",
    "us-east4",
    "us-west1",
    "us-west2",
    "europe-west1",
    "europe-west2",
    "europe-west3",
    "europe-west4",
    "europe-north1",
    "asia-east1",
    "asia-northeast1",
    "asia-south1",
    "asia-southeast1",
    "australia-southeast1",
    "northamerica-northeast1",
    "southamerica-east1",
    # AWS
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "eu-west-1",
    "eu-west-2",
    "eu-central-1",
    "ap-south-1",
    "ap-southeast-1",
    "ap-southeast-2",
    "ap-northeast-1",
})

# Values exempt from any transformation (compared lower-cased)
DEFAULT_IGNORE_VALUES: frozenset[str] = frozenset({
    "0.0.0.0/0",
    "::/0",
    "default",
    "standard",
    "enforced",
}) | STANDARD_REGIONS

# Exactly an alias token or the secret placeholder. Case-sensitive on purpose:
# a user value like "identity_1" is still a value.
_ALIAS_TOKEN = (
    r"(?:" + "|".join(re.escape(c.alias_prefix) for c in Category) + r")_\d+"
)
ALIAS_TOKEN_PATTERN = re.compile(
    r"^(?:" + _ALIAS_TOKEN + "|" + re.escape(SECRET_PLACEHOLDER) + r")$"
)

# Starts at a local-part boundary so an over-long address is never cut in half
EMAIL_PATTERN = re.compile(
    r"(?<![a-zA-Z0-9._%+-])([a-zA-Z0-9._%+-]{1,256}@[a-zA-Z0-9.-]{1,255}\.[a-zA-Z]{2,63})",
    re.IGNORECASE,
)

# IPv4 with optional prefix length; the wide-open range is never matched
IP_PATTERN = re.compile(
    r"\b(?!(?:0\.0\.0\.0(?:/0)?)\b)\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}(?:/\d{1,2})?\b"
)


def is_alias_token(value: str) -> bool:
    """Check if a value is an alias token or the secret placeholder."""
    return bool(ALIAS_TOKEN_PATTERN.match(value))


def key_value_pattern(
    keys: tuple[str, ...],
    value: str,
    lookahead: str = "",
    refuse_aliases: bool = True,
) -> re.Pattern[str]:
    """
    Compile a key-scoped pattern.

    Underscores in key names also match a dash or nothing (``api_key``,
    ``api-key``, ``apikey``). A quoted key (JSON style) is accepted.

    Groups:
        1. key, assignment operator and opening quote (kept verbatim)
        2. the value (handed to the rule's action)
        3. closing quote (kept verbatim)

    Args:
        keys: Key names (regex fragments) to match
        value: Regex for the value span
        lookahead: Extra lookahead the value must satisfy
        refuse_aliases: Refuse values that are exactly an alias token. The
            secret placeholder is always refused.

    Returns:
        Compiled, case-insensitive pattern
    """
    refused = re.escape(SECRET_PLACEHOLDER)
    if refuse_aliases:
        refused = r"(?-i:" + _ALIAS_TOKEN + r")|" + refused
    not_a_token = r"(?!(?:" + refused + r")[\"'])"
    key_alternatives = "|".join(key.replace("_", r"[_\-]?") for key in keys)
    return re.compile(
        r"((?:" + key_alternatives + r")[\"']?\s*[:=]\s*[\"'])"
        + r"(" + not_a_token + lookahead + value + r")"
        + r"([\"'])",
        re.IGNORECASE,
    )


@dataclass(frozen=True)
class CategoryRule:
    """A detection rule for one sensitive-data category."""

    category: Category
    scope: Scope
    pattern: re.Pattern[str]
    action: Action = Action.ALIAS
    keys: tuple[str, ...] = field(default=())

    @property
    def name(self) -> str:
        return self.category.value


def build_rules(max_value_length: int = DEFAULT_MAX_VALUE_LENGTH) -> list[CategoryRule]:
    """
    Build the ordered rule list.

    Args:
        max_value_length: Longest free-form quoted value that will be scanned.
            Longer values are left untouched.

    Returns:
        Rules in pipeline order: Identity, IP_Range, Cloud_ID, Resource_Name,
        Network_Topography, Secret, Org_Metadata, Env_Indicator
    """
    if max_value_length < 1:
        raise ValueError(f"max_value_length must be positive, got {max_value_length}")

    free_form = r"[^\"']{1," + str(max_value_length) + r"}"
    env_words = "|".join(ENV_INDICATOR_WORDS)
    env_lookahead = r"(?=[^\"']{0," + str(max_value_length) + r"}?(?:" + env_words + r"))"

    return [
        CategoryRule(
            category=Category.IDENTITY,
            scope=Scope.TEXT,
            pattern=EMAIL_PATTERN,
        ),
        CategoryRule(
            category=Category.IP_RANGE,
            scope=Scope.TEXT,
            pattern=IP_PATTERN,
        ),
        CategoryRule(
            category=Category.CLOUD_ID,
            scope=Scope.KEY,
            pattern=key_value_pattern(CLOUD_ID_KEYS, r"[a-zA-Z0-9\-_.:]{4,128}"),
            keys=CLOUD_ID_KEYS,
        ),
        CategoryRule(
            category=Category.RESOURCE_NAME,
            scope=Scope.KEY,
            pattern=key_value_pattern(RESOURCE_NAME_KEYS, r"[a-z0-9\-._]{3,128}"),
            keys=RESOURCE_NAME_KEYS,
        ),
        CategoryRule(
            category=Category.NETWORK_TOPOGRAPHY,
            scope=Scope.KEY,
            pattern=key_value_pattern(NETWORK_TOPOGRAPHY_KEYS, r"[a-z][a-z0-9\-]{2,128}"),
            keys=NETWORK_TOPOGRAPHY_KEYS,
        ),
        CategoryRule(
            category=Category.SECRET,
            scope=Scope.KEY,
            pattern=key_value_pattern(SECRET_KEYS, free_form, refuse_aliases=False),
            action=Action.HARD_REDACT,
            keys=SECRET_KEYS,
        ),
        CategoryRule(
            category=Category.ORG_METADATA,
            scope=Scope.KEY,
            pattern=key_value_pattern(ORG_METADATA_KEYS, free_form),
            keys=ORG_METADATA_KEYS,
        ),
        CategoryRule(
            category=Category.ENV_INDICATOR,
            scope=Scope.KEY,
            pattern=key_value_pattern(ENV_INDICATOR_KEYS, free_form, lookahead=env_lookahead),
            keys=ENV_INDICATOR_KEYS,
        ),
    ]


# Rules built with the default value bound
CATEGORY_RULES: list[CategoryRule] = build_rules()
