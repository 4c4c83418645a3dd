"""Unit tests for the log analyzer."""

from datetime import datetime, timezone

from rcanalyzer.analyzers.logs import analyze_logs
from rcanalyzer.config import build_rules
from rcanalyzer.core.normalizer import LogEntry, normalize
from rcanalyzer.core.scoring import score_issues
from rcanalyzer.models import (
    CRITICAL,
    ERROR,
    INFO,
    LOGS,
    TYPE_LOG_ERROR,
    TYPE_LOG_WARNING,
    TYPE_SECURITY,
    WARNING,
)

RULES = build_rules()


def _entries(records: list[dict]) -> list[LogEntry]:
    """Normalize raw log records."""
    return normalize(records, LOGS)


class TestLogAnalyzer:
    """Tests for analyze_logs."""

    def test_repeated_timeouts(self) -> None:
        """Three error-level timeouts give three Error issues and score 70."""
        records = [
            {"ts": f"2024-01-01T10:0{i}:00Z", "level": 40, "msg": "Connection timeout"}
            for i in range(3)
        ]
        result = analyze_logs(_entries(records), RULES)

        assert result.summary.error_count == 3
        assert result.summary.patterns["timeout"] == 3
        assert len(result.issues) == 3
        assert all(i.issue_type == TYPE_LOG_ERROR for i in result.issues)
        assert all(i.severity == ERROR for i in result.issues)
        assert score_issues(result.issues) == 70.0

    def test_message_matching_several_categories(self) -> None:
        """Each matching pattern in each category is its own issue."""
        records = [{"level": 30, "msg": "Unauthorized request failed, will retry"}]
        result = analyze_logs(_entries(records), RULES)

        types = sorted(i.issue_type for i in result.issues)
        assert types == sorted([TYPE_LOG_ERROR, TYPE_LOG_WARNING, TYPE_SECURITY])
        patterns = {i.pattern for i in result.issues}
        assert patterns == {"failed", "retry", "unauthorized"}

    def test_severity_escalates_to_entry_level(self) -> None:
        """A warning pattern on a fatal entry is reported as Critical."""
        records = [{"level": 60, "msg": "Deprecated API used"}]
        result = analyze_logs(_entries(records), RULES)

        assert result.summary.critical_count == 1
        assert [i.severity for i in result.issues] == [CRITICAL]

    def test_security_pattern_baseline(self) -> None:
        """Security matches on info entries are Warning severity."""
        records = [{"level": 20, "msg": "Permission denied for user bob"}]
        result = analyze_logs(_entries(records), RULES)

        assert len(result.issues) == 1
        assert result.issues[0].issue_type == TYPE_SECURITY
        assert result.issues[0].severity == WARNING

    def test_clean_logs_have_no_issues(self) -> None:
        """Messages that match nothing produce no issues."""
        records = [{"level": 20, "msg": "Server started"}, {"level": "info", "msg": "ok"}]
        result = analyze_logs(_entries(records), RULES)

        assert result.issues == ()
        assert result.summary.info_count == 2
        assert result.summary.total_entries == 2

    def test_time_range_ignores_bad_timestamps(self) -> None:
        """Unparseable timestamps are excluded from the time range."""
        records = [
            {"ts": "2024-01-01T12:00:00Z", "level": 20, "msg": "a"},
            {"ts": "not-a-date", "level": 20, "msg": "b"},
            {"ts": "2024-01-01T08:00:00Z", "level": 20, "msg": "c"},
        ]
        result = analyze_logs(_entries(records), RULES)

        start, end = result.summary.time_range
        assert start == datetime(2024, 1, 1, 8, tzinfo=timezone.utc)
        assert end == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        assert result.summary.total_entries == 3

    def test_issue_carries_timestamp(self) -> None:
        """Issues inherit the parsed timestamp of their log entry."""
        records = [{"ts": 1704103200000, "level": 40, "msg": "Error saving"}]
        result = analyze_logs(_entries(records), RULES)
        assert result.issues[0].timestamp == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    def test_long_messages_are_trimmed(self) -> None:
        """Issue messages are whitespace-collapsed and capped at 200 chars."""
        records = [{"level": 40, "msg": "error   " + "x" * 500}]
        result = analyze_logs(_entries(records), RULES)

        message = result.issues[0].message
        assert len(message) == 200
        assert message.startswith("error x")
        assert message.endswith("...")

    def test_custom_patterns(self) -> None:
        """Configured patterns replace the defaults of their category."""
        rules = build_rules({"logPatterns": {"error": ["mongo"]}})
        records = [{"level": 20, "msg": "MongoError: timeout"}]
        result = analyze_logs(_entries(records), rules)

        error_issues = [i for i in result.issues if i.issue_type == TYPE_LOG_ERROR]
        assert [i.pattern for i in error_issues] == ["mongo"]
        assert error_issues[0].severity == ERROR

    def test_empty_input(self) -> None:
        """No entries give an empty summary."""
        result = analyze_logs([], RULES)
        assert result.summary.total_entries == 0
        assert result.summary.time_range is None
        assert result.severity_counts[INFO] == 0
