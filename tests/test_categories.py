"""Tests for category definitions and rule patterns."""

import pytest

from iac_dlp.categories import (
    CATEGORY_RULES,
    DEFAULT_IGNORE_VALUES,
    EMAIL_PATTERN,
    IP_PATTERN,
    Action,
    Category,
    Scope,
    build_rules,
    is_alias_token,
    key_value_pattern,
)


class TestCategory:
    """Tests for the Category enum."""

    def test_alias_prefix(self):
        assert Category.CLOUD_ID.alias_prefix == "CLOUD_ID"
        assert Category.NETWORK_TOPOGRAPHY.alias_prefix == "NETWORK_TOPOGRAPHY"
        assert Category.IP_RANGE.alias_prefix == "IP_RANGE"

    @pytest.mark.parametrize(
        "label",
        ["Env_Indicator", "env_indicator", "ENV_INDICATOR", " Env_Indicator "],
    )
    def test_from_label(self, label):
        """Labels and member names resolve case-insensitively."""
        assert Category.from_label(label) is Category.ENV_INDICATOR

    def test_from_label_unknown(self):
        with pytest.raises(ValueError, match="Unknown category"):
            Category.from_label("Hostname")


class TestPatterns:
    """Tests for the whole-text patterns."""

    @pytest.mark.parametrize(
        "text",
        ["jane.doe@example.com", "svc-app@proj.iam.gserviceaccount.com", "a+b@c.io"],
    )
    def test_email_matches(self, text):
        match = EMAIL_PATTERN.search(f'"{text}"')
        assert match is not None
        assert match.group(0) == text

    def test_email_requires_tld(self):
        assert EMAIL_PATTERN.search("user@localhost") is None

    def test_email_not_matched_mid_local_part(self):
        """An address is matched from the start of its local part."""
        address = "a" * 80 + "@corp.com"
        match = EMAIL_PATTERN.search(f'"{address}"')

        assert match.group(0) == address

    def test_overlong_local_part_skipped_whole(self):
        """No tail fragment of an over-long address is matched."""
        assert EMAIL_PATTERN.search("x" * 300 + "@corp.com") is None

    @pytest.mark.parametrize(
        "text",
        ["10.0.0.0/8", "192.168.1.10", "35.192.10.55", "172.16.0.0/12"],
    )
    def test_ip_matches(self, text):
        match = IP_PATTERN.search(f'"{text}"')
        assert match is not None
        assert match.group(0) == text

    @pytest.mark.parametrize("text", ["0.0.0.0", "0.0.0.0/0", '["0.0.0.0/0"]'])
    def test_open_range_never_matches(self, text):
        """The wide-open range is excluded from IP detection."""
        assert IP_PATTERN.search(text) is None

    def test_version_string_not_ip(self):
        assert IP_PATTERN.search('version = "1.2.3"') is None


class TestAliasTokens:
    """Tests for alias token recognition."""

    @pytest.mark.parametrize(
        "value",
        ["CLOUD_ID_1", "IDENTITY_12", "ENV_INDICATOR_3", "[REDACTED_SECRET]"],
    )
    def test_tokens(self, value):
        assert is_alias_token(value)

    @pytest.mark.parametrize(
        "value",
        ["cloud_id_1", "CLOUD_ID_", "CLOUD_ID_1x", "prod-CLOUD_ID_1", "HOSTNAME_1"],
    )
    def test_not_tokens(self, value):
        assert not is_alias_token(value)


class TestKeyValuePattern:
    """Tests for key-scoped pattern construction."""

    def test_groups(self):
        """Groups split key/operator/quote, value, closing quote."""
        pattern = key_value_pattern(("owner",), r"[^\"']{1,100}")
        match = pattern.search('owner = "jane"')

        assert match.group(1) == 'owner = "'
        assert match.group(2) == "jane"
        assert match.group(3) == '"'

    @pytest.mark.parametrize(
        "text",
        ['api_key = "k"', 'api-key = "k"', 'apikey = "k"', 'API_KEY: "k"', '"api_key": "k"'],
    )
    def test_key_spellings(self, text):
        """Underscores also match dashes or nothing; JSON keys are quoted."""
        pattern = key_value_pattern(("api_key",), r"[^\"']{1,100}")
        assert pattern.search(text) is not None

    def test_single_quotes(self):
        pattern = key_value_pattern(("tier",), r"[^\"']{1,100}")
        match = pattern.search("tier:'primary'")

        assert match.group(1) == "tier:'"
        assert match.group(2) == "primary"

    @pytest.mark.parametrize("value", ["CLOUD_ID_1", "IDENTITY_2", "[REDACTED_SECRET]"])
    def test_refuses_alias_tokens(self, value):
        """A value that is exactly a token is not captured again."""
        pattern = key_value_pattern(("project",), r"[^\"']{1,100}")
        assert pattern.search(f'project = "{value}"') is None

    def test_secret_pattern_accepts_alias_tokens(self):
        """With refuse_aliases off only the placeholder is refused."""
        pattern = key_value_pattern(("token",), r"[^\"']{1,100}", refuse_aliases=False)

        assert pattern.search('token = "IDENTITY_1"').group(2) == "IDENTITY_1"
        assert pattern.search('token = "[REDACTED_SECRET]"') is None

    def test_value_containing_token_still_matches(self):
        pattern = key_value_pattern(("name",), r"[^\"']{1,100}")
        match = pattern.search('name = "prod-IP_RANGE_1"')

        assert match.group(2) == "prod-IP_RANGE_1"

    def test_lookahead(self):
        pattern = key_value_pattern(
            ("name",), r"[^\"']{1,100}", lookahead=r"(?=[^\"']{0,100}?(?:prod))"
        )
        assert pattern.search('name = "corp-prod"') is not None
        assert pattern.search('name = "corp-app"') is None


class TestRules:
    """Tests for the rule list."""

    def test_secret_is_the_only_hard_redact(self):
        hard = [rule.category for rule in CATEGORY_RULES if rule.action is Action.HARD_REDACT]
        assert hard == [Category.SECRET]

    def test_text_scoped_rules(self):
        text_scoped = [rule.category for rule in CATEGORY_RULES if rule.scope is Scope.TEXT]
        assert text_scoped == [Category.IDENTITY, Category.IP_RANGE]

    def test_key_scoped_rules_carry_keys(self):
        for rule in CATEGORY_RULES:
            if rule.scope is Scope.KEY:
                assert rule.keys

    def test_rule_name(self):
        assert CATEGORY_RULES[0].name == "Identity"

    def test_value_bound(self):
        """Free-form values longer than the bound are not matched."""
        rules = {rule.category: rule for rule in build_rules(max_value_length=5)}
        pattern = rules[Category.ORG_METADATA].pattern

        assert pattern.search('owner = "abcde"') is not None
        assert pattern.search('owner = "abcdef"') is None

    def test_invalid_bound(self):
        with pytest.raises(ValueError):
            build_rules(max_value_length=0)

    def test_cloud_id_minimum_length(self):
        rules = {rule.category: rule for rule in CATEGORY_RULES}
        pattern = rules[Category.CLOUD_ID].pattern

        assert pattern.search('project = "abc"') is None
        assert pattern.search('project = "abcd"') is not None

    def test_network_value_must_start_with_letter(self):
        rules = {rule.category: rule for rule in CATEGORY_RULES}
        pattern = rules[Category.NETWORK_TOPOGRAPHY].pattern

        assert pattern.search('network = "10-net"') is None
        assert pattern.search('network = "corp-net"') is not None


class TestIgnoreValues:
    """Tests for the built-in ignore list."""

    @pytest.mark.parametrize(
        "value",
        ["0.0.0.0/0", "::/0", "default", "us-central1", "europe-west1", "standard", "enforced"],
    )
    def test_defaults_present(self, value):
        assert value in DEFAULT_IGNORE_VALUES

    def test_stored_lower_case(self):
        assert all(value == value.lower() for value in DEFAULT_IGNORE_VALUES)
