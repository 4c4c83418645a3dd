"""Unit tests for the statistics analyzer."""

from rcanalyzer.analyzers.statistics import (
    DEFAULT_THRESHOLDS,
    StatisticsThresholds,
    analyze_statistics,
    extract_statistics,
)
from rcanalyzer.config import build_rules
from rcanalyzer.core.normalizer import normalize
from rcanalyzer.models import (
    CRITICAL,
    INFO,
    STATISTICS,
    TYPE_PERFORMANCE,
    TYPE_SECURITY,
    TYPE_VERSION,
    WARNING,
)

RULES = build_rules()

_GB = 1024**3


def _healthy_stats(**overrides: object) -> dict:
    """Return a statistics document that raises no issues."""
    stats = {
        "version": "6.5.0",
        "process": {"nodeVersion": "v14.21.3", "uptime": 7 * 86400},
        "os": {"totalmem": 16 * _GB, "freemem": 8 * _GB, "platform": "linux", "arch": "x64"},
        "totalUsers": 500,
        "onlineUsers": 40,
        "totalMessages": 100_000,
        "totalRooms": 300,
        "dbSize": 2 * _GB,
    }
    stats.update(overrides)
    return stats


def _issues(document: dict, rules=RULES) -> list:
    return list(analyze_statistics(normalize(document, STATISTICS), rules).issues)


class TestExtraction:
    """Tests for extract_statistics."""

    def test_nested_fields(self) -> None:
        """Nested process/os fields are extracted and memory computed."""
        summary = extract_statistics(_healthy_stats())

        assert summary.version == "6.5.0"
        assert summary.node_version == "v14.21.3"
        assert summary.memory_used_percent == 50.0
        assert summary.online_percent == 8.0
        assert summary.uptime_readable == "7d 0h"

    def test_missing_fields_default(self) -> None:
        """Absent fields fall back to unknown or zero."""
        summary = extract_statistics({})
        assert summary.version == "unknown"
        assert summary.total_users == 0
        assert summary.memory_used_percent is None
        assert summary.uptime_readable == "unknown"

    def test_non_finite_values_are_skipped(self) -> None:
        """Infinite and NaN figures are treated as absent."""
        summary = extract_statistics(
            _healthy_stats(
                totalUsers=float("inf"),
                totalRooms=float("nan"),
                process={"nodeVersion": "v18.0.0", "uptime": float("inf")},
            )
        )

        assert summary.total_users == 0
        assert summary.total_rooms == 0
        assert summary.uptime_seconds is None
        assert summary.uptime_readable == "unknown"

    def test_non_ascii_version_digits(self) -> None:
        """A version with non-ASCII digits has no major version to check."""
        assert _issues(_healthy_stats(version="٣.0.0")) == []


class TestChecks:
    """Tests for the threshold checks."""

    def test_healthy_document_has_no_issues(self) -> None:
        """A healthy server raises nothing."""
        assert _issues(_healthy_stats()) == []

    def test_memory_critical(self) -> None:
        """Memory use above 85% is Critical."""
        document = _healthy_stats(os={"totalmem": 100, "freemem": 10})
        issues = _issues(document)
        assert [(i.severity, i.metric) for i in issues] == [(CRITICAL, "memoryUsedPercent")]

    def test_memory_warning(self) -> None:
        """Memory use between 75% and 85% is a Warning."""
        document = _healthy_stats(os={"totalmem": 100, "freemem": 20})
        assert [i.severity for i in _issues(document)] == [WARNING]

    def test_load_and_volume(self) -> None:
        """Large DB, user load and message volume are reported."""
        document = _healthy_stats(
            dbSize=20 * _GB,
            totalUsers=20_000,
            onlineUsers=1_500,
            totalMessages=60_000_000,
        )
        metrics = {i.metric: i.severity for i in _issues(document)}

        assert metrics == {
            "dbSize": WARNING,
            "totalUsers": INFO,
            "onlineUsers": WARNING,
            "totalMessages": WARNING,
        }

    def test_recent_restart(self) -> None:
        """Uptime below one day is a restart warning."""
        document = _healthy_stats(process={"nodeVersion": "v16.0.0", "uptime": 3600})
        issues = _issues(document)
        assert issues[0].metric == "uptime"
        assert "0d 1h" in issues[0].message

    def test_old_runtime_and_server(self) -> None:
        """Old Node.js and RocketChat majors raise version findings."""
        document = _healthy_stats(
            version="5.4.2",
            process={"nodeVersion": "v12.22.1", "uptime": 7 * 86400},
        )
        types = sorted(i.issue_type for i in _issues(document))
        assert types == sorted([TYPE_VERSION, TYPE_SECURITY])

    def test_rooms_per_user(self) -> None:
        """Many rooms per user is an Info finding."""
        document = _healthy_stats(totalUsers=10, totalRooms=1000)
        issues = _issues(document)
        assert [(i.metric, i.severity, i.issue_type) for i in issues] == [
            ("roomsPerUser", INFO, TYPE_PERFORMANCE)
        ]

    def test_no_document_is_empty(self) -> None:
        """Missing statistics give an empty result."""
        result = analyze_statistics([], RULES)
        assert result.summary is None
        assert result.issues == ()


class TestThresholdOverrides:
    """Tests for performanceThresholds overrides."""

    def test_override_applies(self) -> None:
        """A configured memory limit replaces the default."""
        rules = build_rules({"performanceThresholds": {"memoryWarningPercent": 40}})
        assert StatisticsThresholds.from_rules(rules).memory_warning_percent == 40.0

        issues = _issues(_healthy_stats(), rules)
        assert [i.metric for i in issues] == ["memoryUsedPercent"]

    def test_unknown_and_bad_overrides_ignored(self) -> None:
        """Unknown names and non-numeric values keep the defaults."""
        rules = build_rules(
            {"performanceThresholds": {"nope": 1, "memoryCriticalPercent": "high"}}
        )
        assert StatisticsThresholds.from_rules(rules) == DEFAULT_THRESHOLDS

    def test_non_finite_override_ignored(self) -> None:
        """An infinite threshold keeps the default."""
        rules = build_rules({"performanceThresholds": {"memoryWarningPercent": float("inf")}})
        assert StatisticsThresholds.from_rules(rules) == DEFAULT_THRESHOLDS
