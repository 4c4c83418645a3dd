"""Insight engines: pattern frequency and time distribution of issues.

Pure folds over an issue set. Nothing here affects scoring.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from rcanalyzer.models import Insights, Issue


def pattern_frequency(issues: Iterable[Issue]) -> list[tuple[str, int]]:
    """Count issues per matched pattern, most frequent first."""
    counts = Counter(issue.pattern for issue in issues if issue.pattern)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def hourly_distribution(issues: Iterable[Issue]) -> dict[int, int]:
    """Count timestamped issues per hour of day (UTC); all 24 hours present."""
    hours = {hour: 0 for hour in range(24)}
    for issue in issues:
        if issue.timestamp is not None:
            hours[issue.timestamp.hour] += 1
    return hours


def daily_distribution(issues: Iterable[Issue]) -> dict[str, int]:
    """Count timestamped issues per calendar day, in date order."""
    counts = Counter(
        issue.timestamp.date().isoformat()
        for issue in issues
        if issue.timestamp is not None
    )
    return dict(sorted(counts.items()))


def issue_time_range(issues: Iterable[Issue]) -> tuple[datetime, datetime] | None:
    """Return the earliest and latest issue timestamps, if any."""
    stamps = [issue.timestamp for issue in issues if issue.timestamp is not None]
    if not stamps:
        return None
    return min(stamps), max(stamps)


def build_insights(issues: Iterable[Issue]) -> Insights:
    issues = list(issues)
    return Insights(
        error_patterns=tuple(pattern_frequency(issues)),
        hourly=hourly_distribution(issues),
        daily=daily_distribution(issues),
        time_range=issue_time_range(issues),
    )
