"""Unit tests for the apps and omnichannel analyzers."""

import pytest

from rcanalyzer.analyzers.apps import analyze_apps, is_disabled, is_enabled
from rcanalyzer.analyzers.omnichannel import analyze_omnichannel
from rcanalyzer.config import build_rules
from rcanalyzer.core.normalizer import normalize
from rcanalyzer.models import (
    APPS,
    INFO,
    OMNICHANNEL,
    TYPE_APP_STATUS,
    TYPE_APP_VERSION,
    TYPE_OMNICHANNEL,
    WARNING,
)

RULES = build_rules()


def _apps(records: list[dict]):
    return analyze_apps(normalize(records, APPS), RULES)


def _omni(settings: dict):
    return analyze_omnichannel(normalize(settings, OMNICHANNEL), RULES)


# ---------------------------------------------------------------------------
# Apps
# ---------------------------------------------------------------------------


class TestAppsAnalyzer:
    """Tests for analyze_apps."""

    def test_outdated_version(self) -> None:
        """Major versions 0-2 are flagged as possibly outdated."""
        result = _apps([{"name": "Giphy", "version": "2.1.0", "author": "RC", "status": "enabled"}])

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.issue_type == TYPE_APP_VERSION
        assert issue.severity == WARNING
        assert issue.message == "App Giphy v2.1.0 by RC may be outdated"

    def test_current_version_not_flagged(self) -> None:
        """Versions 3 and up are not flagged, nor is 10.x."""
        result = _apps(
            [
                {"name": "Poll", "version": "3.0.0", "status": "enabled"},
                {"name": "Meet", "version": "10.2.0", "status": "enabled"},
            ]
        )
        assert result.issues == ()
        assert result.summary.enabled_apps == 2

    def test_disabled_plain_app(self) -> None:
        """A disabled ordinary app is an Info status finding."""
        result = _apps([{"name": "Poll", "version": "3.0.0", "status": "disabled"}])

        assert [(i.issue_type, i.severity) for i in result.issues] == [(TYPE_APP_STATUS, INFO)]
        assert result.summary.disabled_apps == 1
        assert result.summary.security_risk_apps == 0

    def test_disabled_security_app_escalates(self) -> None:
        """A disabled security or ops app is a Warning and a risk."""
        result = _apps([{"name": "LDAP Sync", "version": "4.0.0", "status": "manually_disabled"}])

        issue = result.issues[0]
        assert issue.severity == WARNING
        assert issue.message == "Security-related app LDAP Sync is disabled"
        assert result.summary.security_risk_apps == 1

    def test_keyword_bins(self) -> None:
        """Apps are binned by name and description keywords."""
        result = _apps(
            [
                {"name": "OAuth Helper", "version": "3.0.0", "status": "enabled"},
                {"name": "Grafana", "description": "metrics export", "version": "3.0.0"},
                {"name": "Jira Connector", "version": "3.0.0", "status": "enabled"},
            ]
        )
        summary = result.summary
        assert summary.security_apps == ("OAuth Helper",)
        assert summary.performance_apps == ("Grafana",)
        assert summary.integration_apps == ("Jira Connector",)
        assert summary.total_apps == 3

    def test_status_helpers(self) -> None:
        """Status strings are recognized case-insensitively."""
        assert is_enabled("AUTO_ENABLED")
        assert is_disabled("invalid_settings_disabled")
        assert not is_enabled("unknown")
        assert not is_disabled("unknown")


# ---------------------------------------------------------------------------
# Omnichannel
# ---------------------------------------------------------------------------


class TestOmnichannelAnalyzer:
    """Tests for analyze_omnichannel."""

    def test_manual_routing(self) -> None:
        """Manual selection routing is a Warning."""
        result = _omni({"Livechat_enabled": True, "Livechat_Routing_Method": "Manual_Selection"})

        assert [(i.issue_type, i.severity) for i in result.issues] == [(TYPE_OMNICHANNEL, WARNING)]
        assert result.summary.routing_method == "Manual_Selection"
        assert result.summary.livechat_enabled is True

    def test_livechat_disabled(self) -> None:
        """Disabled livechat is Info only."""
        result = _omni({"Livechat_enabled": False})
        assert [i.severity for i in result.issues] == [INFO]
        assert result.summary.disabled_features == 1

    def test_offline_form_and_limits(self) -> None:
        """Offline form, agent limit and queue size are checked."""
        result = _omni(
            {
                "Livechat_offline_form_unavailable": True,
                "Omnichannel_max_agent_number": 0,
                "Livechat_Queue_Size": 250,
            }
        )
        messages = sorted(i.message for i in result.issues)
        assert messages == [
            "Large queue size configured (250)",
            "Livechat offline form is unavailable",
            "No maximum agents configured",
        ]

    def test_feature_counts(self) -> None:
        """Boolean-valued settings count as enabled or disabled features."""
        result = _omni(
            {
                "Livechat_enabled": "true",
                "Livechat_show_queue_list_link": False,
                "Livechat_guest_pool_with_no_agents": True,
                "Livechat_title": "Support",
            }
        )
        assert result.summary.enabled_features == 2
        assert result.summary.disabled_features == 1
        assert result.summary.total_settings == 4

    def test_security_keys_collected(self) -> None:
        """Security-looking omnichannel keys feed the security review."""
        result = _omni({"Livechat_secret_token": "abc"})
        assert result.summary.security_settings == {"Livechat_secret_token": "abc"}

    def test_omnichannel_service_disabled(self) -> None:
        """A disabled Omnichannel service is reported as Info."""
        result = _omni({"Omnichannel_enabled": False})

        assert len(result.issues) == 1
        assert result.issues[0].severity == INFO
        assert result.issues[0].message == "Omnichannel service is disabled"

    def test_omnichannel_service_enabled(self) -> None:
        """An enabled Omnichannel service raises nothing."""
        result = _omni({"Omnichannel_enable": "true"})
        assert result.issues == ()
        assert result.summary.enabled_features == 1

    def test_routing_key_variants(self) -> None:
        """Any key containing routing_method is checked and summarized."""
        result = _omni({"Omnichannel_Routing_Method": "Manual_Selection"})

        assert [i.severity for i in result.issues] == [WARNING]
        assert result.summary.routing_method == "Manual_Selection"

    def test_security_settings_read_only(self) -> None:
        """The summary's security settings cannot be changed after analysis."""
        result = _omni({"Livechat_secret_token": "abc"})

        with pytest.raises(TypeError):
            result.summary.security_settings["Livechat_secret_token"] = "changed"
        assert result.summary.to_dict()["totalSettings"] == 1
