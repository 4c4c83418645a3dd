"""Unit tests for the settings analyzer and its rule table."""

import pytest

from rcanalyzer.analyzers.settings import (
    MSG_2FA_DISABLED,
    SETTING_RULES,
    as_bool,
    analyze_settings,
    find_rule,
)
from rcanalyzer.config import build_rules
from rcanalyzer.core.normalizer import SettingEntry, normalize
from rcanalyzer.models import (
    ERROR,
    INFO,
    SETTINGS,
    TYPE_CONFIGURATION,
    TYPE_PERFORMANCE,
    TYPE_SECURITY,
    WARNING,
)

RULES = build_rules()


def _analyze(settings: dict):
    """Run the settings analyzer over a key-value settings map."""
    return analyze_settings(normalize(settings, SETTINGS), RULES)


class TestSettingRules:
    """Tests for individual setting rules."""

    def test_two_factor_disabled(self) -> None:
        """Disabled 2FA is a single Error-level Security issue."""
        result = _analyze({"Accounts_TwoFactorAuthentication_Enabled": False})

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.issue_type == TYPE_SECURITY
        assert issue.severity == ERROR
        assert issue.message == MSG_2FA_DISABLED
        assert issue.setting == "Accounts_TwoFactorAuthentication_Enabled"

    def test_two_factor_enabled_is_good(self) -> None:
        """Enabled 2FA lands in the good-settings list."""
        result = _analyze({"Accounts_TwoFactorAuthentication_Enabled": "true"})

        assert result.issues == ()
        assert "Two-factor authentication enabled" in result.summary.good_settings

    def test_public_registration(self) -> None:
        """A public registration form is a Warning."""
        result = _analyze({"Accounts_RegistrationForm": "Public"})
        assert [(i.issue_type, i.severity) for i in result.issues] == [
            (TYPE_SECURITY, WARNING)
        ]

    def test_large_upload_limit(self) -> None:
        """Uploads above 100MB raise a Performance warning."""
        result = _analyze({"FileUpload_MaxFileSize": 200 * 1024 * 1024})

        issue = result.issues[0]
        assert issue.issue_type == TYPE_PERFORMANCE
        assert issue.message == "Large file upload limit (200MB)"

    def test_small_upload_limit_is_good(self) -> None:
        """Uploads at or below 100MB are reported as good."""
        result = _analyze({"FileUpload_MaxFileSize": 50 * 1024 * 1024})
        assert result.issues == ()
        assert "File upload limit: 50MB" in result.summary.good_settings

    def test_rate_limiter_disabled(self) -> None:
        """A disabled API rate limiter is an Error."""
        result = _analyze({"API_Enable_Rate_Limiter": False})
        assert result.issues[0].severity == ERROR

    def test_debug_log_level(self) -> None:
        """Log_Level 2 is debug and flagged; other levels are good."""
        debug = _analyze({"Log_Level": "2"})
        normal = _analyze({"Log_Level": "0"})

        assert debug.issues[0].message == "Debug logging enabled in production"
        assert normal.issues == ()
        assert "Log level: 0" in normal.summary.good_settings

    def test_http_site_url(self) -> None:
        """Plain-HTTP site URLs are flagged with the URL in the message."""
        result = _analyze({"Site_Url": "http://chat.example.com"})
        assert "http://chat.example.com" in result.issues[0].message

    def test_anonymous_read_is_configuration(self) -> None:
        """Anonymous read is a configuration concern, not a security one."""
        result = _analyze({"Accounts_AllowAnonymousRead": True})
        assert result.issues[0].issue_type == TYPE_CONFIGURATION

    def test_password_reset_info(self) -> None:
        """Password reset via email is an Info-level finding."""
        result = _analyze({"Accounts_PasswordReset": True})
        assert result.issues[0].severity == INFO

    def test_find_rule_is_exact(self) -> None:
        """Rule keys match whole setting names only."""
        assert find_rule("Site_Url", SETTING_RULES) is not None
        assert find_rule("Site_Url_Extra", SETTING_RULES) is None


class TestClassification:
    """Tests for security/performance binning of settings."""

    def test_unknown_performance_key(self) -> None:
        """Custom_Cache_TTL is binned as performance without any issue."""
        result = _analyze({"Custom_Cache_TTL": 300})

        assert result.issues == ()
        assert result.summary.performance_settings == {"Custom_Cache_TTL": 300}
        assert result.summary.security_settings == {}

    def test_unknown_key_in_both_bins(self) -> None:
        """A key matching both keyword sets sits in both bins."""
        result = _analyze({"Custom_Token_Timeout": 60})
        assert "Custom_Token_Timeout" in result.summary.security_settings
        assert "Custom_Token_Timeout" in result.summary.performance_settings

    def test_rule_category_drives_bin(self) -> None:
        """Known keys are binned by their rule category."""
        result = _analyze({"Accounts_RegistrationForm": "Disabled", "Message_MaxAllowedSize": 5000})
        assert "Accounts_RegistrationForm" in result.summary.security_settings
        assert "Message_MaxAllowedSize" in result.summary.performance_settings

    def test_uncoercible_value_is_skipped(self) -> None:
        """Values that cannot be coerced are skipped, not raised."""
        result = _analyze({"FileUpload_MaxFileSize": "lots", "Message_MaxAllowedSize": 50000})

        assert result.summary.skipped_settings == ("FileUpload_MaxFileSize",)
        assert len(result.issues) == 1
        assert result.summary.total_settings == 2

    def test_non_finite_number_is_skipped(self) -> None:
        """An infinite size limit is skipped like any other bad number."""
        result = _analyze({"FileUpload_MaxFileSize": float("inf")})

        assert result.summary.skipped_settings == ("FileUpload_MaxFileSize",)
        assert result.issues == ()

    def test_bins_are_read_only(self) -> None:
        """Classification bins cannot be modified on the summary."""
        result = _analyze({"Custom_Cache_TTL": 300})

        with pytest.raises(TypeError):
            result.summary.performance_settings["Custom_Cache_TTL"] = 0
        assert result.summary.to_dict()["performanceSettings"] == {"Custom_Cache_TTL": 300}

    def test_null_values_are_ignored(self) -> None:
        """Settings without a value are counted but never evaluated."""
        entries = [SettingEntry(key="Accounts_TwoFactorAuthentication_Enabled", value=None)]
        result = analyze_settings(entries, RULES)
        assert result.issues == ()
        assert result.summary.total_settings == 1


class TestCoercion:
    """Tests for boolean coercion."""

    @pytest.mark.parametrize("raw", [True, "true", "TRUE", "1", 1, "yes"])
    def test_truthy(self, raw: object) -> None:
        """Common true spellings coerce to True."""
        assert as_bool(raw) is True

    def test_rejects_other_values(self) -> None:
        """Non-boolean values raise ValueError."""
        with pytest.raises(ValueError):
            as_bool("maybe")
