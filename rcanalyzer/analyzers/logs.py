"""Log analyzer.

Classifies normalized log entries by level and matches every message
against the configured error, warning and security patterns. A message
may match several patterns across categories; each match is its own issue.
"""

import logging
import re
from collections.abc import Iterable
from datetime import datetime

from rcanalyzer.config import RuleConfig
from rcanalyzer.core.normalizer import LogEntry, parse_timestamp
from rcanalyzer.models import (
    COMPONENT_NAMES,
    CRITICAL,
    ERROR,
    LOGS,
    TYPE_LOG_ERROR,
    TYPE_LOG_WARNING,
    TYPE_SECURITY,
    WARNING,
    AnalysisResult,
    Issue,
    LogSummary,
    max_severity,
)

logger = logging.getLogger(__name__)

_MAX_MESSAGE_LENGTH: int = 200


def _pattern_categories(
    rules: RuleConfig,
) -> list[tuple[tuple[re.Pattern[str], ...], str, str]]:
    """Return ``(patterns, issue_type, base_severity)`` per category."""
    patterns = rules.log_patterns
    return [
        (patterns.error, TYPE_LOG_ERROR, ERROR),
        (patterns.warning, TYPE_LOG_WARNING, WARNING),
        (patterns.security, TYPE_SECURITY, WARNING),
    ]


def _trim(message: str) -> str:
    message = " ".join(message.split())
    if len(message) > _MAX_MESSAGE_LENGTH:
        return message[: _MAX_MESSAGE_LENGTH - 3] + "..."
    return message


def analyze_logs(entries: Iterable[LogEntry], rules: RuleConfig) -> AnalysisResult:
    """Analyze normalized log entries.

    Args:
        entries: Output of the normalizer for the logs domain.
        rules: Rule configuration holding the log patterns.

    Returns:
        An :class:`AnalysisResult` whose summary is a :class:`LogSummary`.
    """
    categories = _pattern_categories(rules)
    component = COMPONENT_NAMES[LOGS]

    issues: list[Issue] = []
    counts = {CRITICAL: 0, ERROR: 0, WARNING: 0}
    info_count = 0
    total = 0
    start: datetime | None = None
    end: datetime | None = None
    pattern_counts: dict[str, int] = {}

    for entry in entries:
        total += 1

        timestamp = parse_timestamp(entry.timestamp)
        if timestamp is not None:
            if start is None or timestamp < start:
                start = timestamp
            if end is None or timestamp > end:
                end = timestamp
        elif entry.timestamp is not None:
            logger.debug("Unparseable log timestamp: %r", entry.timestamp)

        if entry.level in counts:
            counts[entry.level] += 1
        else:
            info_count += 1

        if not entry.message:
            continue

        message = _trim(entry.message)
        for patterns, issue_type, base_severity in categories:
            for pattern in patterns:
                if not pattern.search(entry.message):
                    continue
                pattern_counts[pattern.pattern] = pattern_counts.get(pattern.pattern, 0) + 1
                issues.append(
                    Issue(
                        issue_type=issue_type,
                        severity=max_severity(base_severity, entry.level),
                        message=message,
                        component=component,
                        pattern=pattern.pattern,
                        timestamp=timestamp,
                        context=entry.raw,
                    )
                )

    time_range = (start, end) if start is not None and end is not None else None
    summary = LogSummary(
        total_entries=total,
        critical_count=counts[CRITICAL],
        error_count=counts[ERROR],
        warning_count=counts[WARNING],
        info_count=info_count,
        time_range=time_range,
        patterns=pattern_counts,
    )

    logger.info(
        "Log analysis complete. Found %d issues in %d entries", len(issues), total
    )
    return AnalysisResult(domain=LOGS, issues=tuple(issues), summary=summary)
