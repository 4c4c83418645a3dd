"""Data models for dump findings, per-domain results and health scores."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any


# ---------------------------------------------------------------------------
# Severity constants & ordering
# ---------------------------------------------------------------------------

CRITICAL: str = "Critical"
ERROR: str = "Error"
WARNING: str = "Warning"
INFO: str = "Info"

SEVERITIES: tuple[str, ...] = (CRITICAL, ERROR, WARNING, INFO)

SEVERITY_ORDER: dict[str, int] = {
    CRITICAL: 4,
    ERROR: 3,
    WARNING: 2,
    INFO: 1,
}

# Points deducted from a 100-point score per issue
SEVERITY_WEIGHTS: dict[str, float] = {
    CRITICAL: 20.0,
    ERROR: 10.0,
    WARNING: 2.0,
    INFO: 0.5,
}


def normalize_severity(value: Any) -> str:
    """Map *value* case-insensitively onto one of the four severities.

    Anything outside the vocabulary becomes ``Info``.
    """
    if isinstance(value, str):
        lowered = value.strip().lower()
        for level in SEVERITIES:
            if level.lower() == lowered:
                return level
    return INFO


def max_severity(first: str, second: str) -> str:
    """Return the more severe of two levels."""
    if SEVERITY_ORDER.get(second, 0) > SEVERITY_ORDER.get(first, 0):
        return second
    return first


# ---------------------------------------------------------------------------
# Issue types
# ---------------------------------------------------------------------------

TYPE_SECURITY: str = "Security"
TYPE_PERFORMANCE: str = "Performance"
TYPE_CONFIGURATION: str = "Configuration"
TYPE_APP_VERSION: str = "App Version"
TYPE_APP_STATUS: str = "App Status"
TYPE_OMNICHANNEL: str = "Omnichannel"
TYPE_LOG_ERROR: str = "Log Error"
TYPE_LOG_WARNING: str = "Log Warning"
TYPE_ANALYSIS_ERROR: str = "Analysis Error"
TYPE_VERSION: str = "Version"


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

LOGS: str = "logs"
SETTINGS: str = "settings"
STATISTICS: str = "statistics"
APPS: str = "apps"
OMNICHANNEL: str = "omnichannel"

DOMAINS: tuple[str, ...] = (LOGS, SETTINGS, STATISTICS, APPS, OMNICHANNEL)

# Display label of each domain in component scores and reports
COMPONENT_NAMES: dict[str, str] = {
    LOGS: "Logs",
    SETTINGS: "Settings",
    STATISTICS: "Performance",
    APPS: "Apps",
    OMNICHANNEL: "Omnichannel",
}


def _iso(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


# ---------------------------------------------------------------------------
# Issue model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Issue:
    """A single classified finding.

    Attributes:
        issue_type: Category of the finding (e.g. "Security").
        severity: ``Critical``, ``Error``, ``Warning`` or ``Info``.
        message: Human-readable description. Also the deduplication key
            of the security review.
        component: Display name of the domain that produced the issue.
        pattern: Regular expression that matched a log message.
        setting: Configuration key the finding is about.
        metric: Statistic the finding is about.
        app: Installed app the finding is about.
        version: Version string of the app or server.
        value: Raw value of the setting or metric.
        timestamp: Time of the originating log entry, if any.
        context: The originating record, kept for traceability.
    """

    issue_type: str
    severity: str
    message: str
    component: str = ""
    pattern: str | None = None
    setting: str | None = None
    metric: str | None = None
    app: str | None = None
    version: str | None = None
    value: Any = None
    timestamp: datetime | None = None
    context: Any = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"[{self.severity}] {self.issue_type} ({self.component}): {self.message}"

    @property
    def weight(self) -> float:
        """Points this issue deducts from a health score."""
        return SEVERITY_WEIGHTS.get(self.severity, SEVERITY_WEIGHTS[INFO])

    def to_dict(self) -> dict:
        """Return a JSON-serializable dictionary representation."""
        data: dict[str, Any] = {
            "type": self.issue_type,
            "severity": self.severity,
            "message": self.message,
            "component": self.component,
            "timestamp": _iso(self.timestamp),
        }
        for key in ("pattern", "setting", "metric", "app", "version"):
            attr = getattr(self, key)
            if attr is not None:
                data[key] = attr
        if self.value is not None:
            data["value"] = self.value
        return data


# ---------------------------------------------------------------------------
# Domain summaries
# ---------------------------------------------------------------------------


def _freeze(instance: Any, *names: str) -> None:
    """Replace dict fields of a frozen dataclass with read-only copies."""
    for name in names:
        object.__setattr__(instance, name, MappingProxyType(dict(getattr(instance, name))))


@dataclass(frozen=True)
class LogSummary:
    total_entries: int = 0
    critical_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    time_range: tuple[datetime, datetime] | None = None
    patterns: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze(self, "patterns")

    def to_dict(self) -> dict:
        return {
            "totalEntries": self.total_entries,
            "criticalCount": self.critical_count,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "infoCount": self.info_count,
            "timeRange": (
                {"start": _iso(self.time_range[0]), "end": _iso(self.time_range[1])}
                if self.time_range
                else None
            ),
            "patterns": dict(self.patterns),
        }


@dataclass(frozen=True)
class SettingsSummary:
    """Settings sorted into classification bins.

    A key may sit in both ``security_settings`` and
    ``performance_settings``.
    """

    total_settings: int = 0
    security_settings: Mapping[str, Any] = field(default_factory=dict)
    performance_settings: Mapping[str, Any] = field(default_factory=dict)
    good_settings: tuple[str, ...] = ()
    skipped_settings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "security_settings", "performance_settings")

    def to_dict(self) -> dict:
        return {
            "totalSettings": self.total_settings,
            "securitySettings": dict(self.security_settings),
            "performanceSettings": dict(self.performance_settings),
            "goodSettings": list(self.good_settings),
            "skippedSettings": list(self.skipped_settings),
        }


@dataclass(frozen=True)
class StatisticsSummary:
    version: str = "unknown"
    node_version: str = "unknown"
    platform: str = "unknown"
    arch: str = "unknown"
    os_type: str = "unknown"
    os_release: str = "unknown"
    uptime_seconds: float | None = None
    total_memory: float | None = None
    free_memory: float | None = None
    memory_used_percent: float | None = None
    total_users: int = 0
    online_users: int = 0
    away_users: int = 0
    busy_users: int = 0
    offline_users: int = 0
    online_percent: float | None = None
    total_messages: int = 0
    total_rooms: int = 0
    total_channels: int = 0
    total_private_groups: int = 0
    total_direct_messages: int = 0
    total_livechat_rooms: int = 0
    db_size: float | None = None
    federation_enabled: bool = False
    ldap_enabled: bool = False
    livechat_enabled: bool = False
    enterprise_ready: bool = False

    @property
    def uptime_readable(self) -> str:
        if self.uptime_seconds is None or not math.isfinite(self.uptime_seconds):
            return "unknown"
        seconds = int(self.uptime_seconds)
        return f"{seconds // 86400}d {(seconds % 86400) // 3600}h"

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "nodeVersion": self.node_version,
            "platform": self.platform,
            "arch": self.arch,
            "osType": self.os_type,
            "osRelease": self.os_release,
            "uptime": self.uptime_readable,
            "uptimeSeconds": self.uptime_seconds,
            "totalMemory": self.total_memory,
            "freeMemory": self.free_memory,
            "memoryUsedPercent": self.memory_used_percent,
            "totalUsers": self.total_users,
            "onlineUsers": self.online_users,
            "awayUsers": self.away_users,
            "busyUsers": self.busy_users,
            "offlineUsers": self.offline_users,
            "onlinePercent": self.online_percent,
            "totalMessages": self.total_messages,
            "totalRooms": self.total_rooms,
            "totalChannels": self.total_channels,
            "totalPrivateGroups": self.total_private_groups,
            "totalDirectMessages": self.total_direct_messages,
            "totalLivechatRooms": self.total_livechat_rooms,
            "dbSize": self.db_size,
            "federationEnabled": self.federation_enabled,
            "ldapEnabled": self.ldap_enabled,
            "livechatEnabled": self.livechat_enabled,
            "enterpriseReady": self.enterprise_ready,
        }


@dataclass(frozen=True)
class AppsSummary:
    total_apps: int = 0
    enabled_apps: int = 0
    disabled_apps: int = 0
    outdated_apps: int = 0
    security_risk_apps: int = 0
    security_apps: tuple[str, ...] = ()
    performance_apps: tuple[str, ...] = ()
    integration_apps: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "totalApps": self.total_apps,
            "enabledApps": self.enabled_apps,
            "disabledApps": self.disabled_apps,
            "outdatedApps": self.outdated_apps,
            "securityRiskApps": self.security_risk_apps,
            "securityApps": list(self.security_apps),
            "performanceApps": list(self.performance_apps),
            "integrationApps": list(self.integration_apps),
        }


@dataclass(frozen=True)
class OmnichannelSummary:
    total_settings: int = 0
    enabled_features: int = 0
    disabled_features: int = 0
    livechat_enabled: bool | None = None
    routing_method: str | None = None
    security_settings: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze(self, "security_settings")

    def to_dict(self) -> dict:
        return {
            "totalSettings": self.total_settings,
            "enabledFeatures": self.enabled_features,
            "disabledFeatures": self.disabled_features,
            "livechatEnabled": self.livechat_enabled,
            "routingMethod": self.routing_method,
        }


# ---------------------------------------------------------------------------
# AnalysisResult model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one domain analyzer invocation.

    Attributes:
        domain: One of :data:`DOMAINS`.
        issues: Findings produced for the domain.
        summary: Domain summary, or ``None`` when the domain had no usable
            input (file absent or malformed).
        source: Path of the file that was analyzed.
        error: File-level error message when the file was malformed.
    """

    domain: str
    issues: tuple[Issue, ...] = ()
    summary: Any = None
    source: str | None = None
    error: str | None = None

    @classmethod
    def empty(cls, domain: str) -> "AnalysisResult":
        """Result for a domain whose dump file is absent."""
        return cls(domain=domain)

    @classmethod
    def from_error(cls, domain: str, source: str | None, message: str) -> "AnalysisResult":
        """Result for a file that exists but could not be analyzed."""
        issue = Issue(
            issue_type=TYPE_ANALYSIS_ERROR,
            severity=CRITICAL,
            message=message,
            component=COMPONENT_NAMES.get(domain, domain),
            context=source,
        )
        return cls(domain=domain, issues=(issue,), source=source, error=message)

    @property
    def severity_counts(self) -> dict[str, int]:
        counts = {level: 0 for level in SEVERITIES}
        for issue in self.issues:
            counts[issue.severity] = counts.get(issue.severity, 0) + 1
        return counts

    def to_dict(self) -> dict:
        """Return a JSON-serializable dictionary of the domain result."""
        return {
            "source": self.source,
            "error": self.error,
            "summary": self.summary.to_dict() if self.summary is not None else None,
            "severity": self.severity_counts,
            "issues": [issue.to_dict() for issue in self.issues],
        }


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HealthScore:
    """Severity-weighted health snapshot of a dump."""

    overall_score: float = 100.0
    component_scores: Mapping[str, float] = field(default_factory=dict)
    issue_counts: Mapping[str, int] = field(default_factory=dict)
    recommendations: tuple[str, ...] = ()
    detailed_breakdown: tuple[str, ...] = ()
    rating: str = "Excellent"

    def __post_init__(self) -> None:
        _freeze(self, "component_scores", "issue_counts")

    @property
    def total_issues(self) -> int:
        return sum(self.issue_counts.values())

    def to_dict(self) -> dict:
        return {
            "overall": self.overall_score,
            "rating": self.rating,
            "totalIssues": self.total_issues,
            "criticalIssues": self.issue_counts.get(CRITICAL, 0),
            "errorIssues": self.issue_counts.get(ERROR, 0),
            "warningIssues": self.issue_counts.get(WARNING, 0),
            "infoIssues": self.issue_counts.get(INFO, 0),
            "componentScores": dict(self.component_scores),
            "recommendations": list(self.recommendations),
            "detailedBreakdown": list(self.detailed_breakdown),
        }


@dataclass(frozen=True)
class SecurityReview:
    """Deduplicated security findings and the derived security score."""

    score: float = 100.0
    security_issues: tuple[Issue, ...] = ()
    deductions: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "issues": [issue.to_dict() for issue in self.security_issues],
            "deductions": list(self.deductions),
        }


@dataclass(frozen=True)
class Insights:
    """Read-only folds over the full issue set, for reporting."""

    error_patterns: tuple[tuple[str, int], ...] = ()
    hourly: Mapping[int, int] = field(default_factory=dict)
    daily: Mapping[str, int] = field(default_factory=dict)
    time_range: tuple[datetime, datetime] | None = None

    def __post_init__(self) -> None:
        _freeze(self, "hourly", "daily")

    def to_dict(self) -> dict:
        return {
            "errorPatterns": [
                {"pattern": pattern, "count": count}
                for pattern, count in self.error_patterns
            ],
            "trends": {
                "hourly": {str(hour): count for hour, count in self.hourly.items()},
                "daily": dict(self.daily),
                "timeRange": (
                    {"start": _iso(self.time_range[0]), "end": _iso(self.time_range[1])}
                    if self.time_range
                    else None
                ),
            },
        }


@dataclass(frozen=True)
class DumpAnalysis:
    """Everything the engine produces for one dump."""

    dump_path: str
    results: dict[str, AnalysisResult]
    health: HealthScore
    security: SecurityReview
    insights: Insights

    @property
    def all_issues(self) -> list[Issue]:
        issues: list[Issue] = []
        for domain in DOMAINS:
            result = self.results.get(domain)
            if result is not None:
                issues.extend(result.issues)
        return issues

    def filter_issues(self, min_severity: str) -> list[Issue]:
        """Return issues at or above *min_severity*."""
        threshold = SEVERITY_ORDER.get(min_severity, 0)
        return [
            issue
            for issue in self.all_issues
            if SEVERITY_ORDER.get(issue.severity, 0) >= threshold
        ]

    def has_severity(self, level: str) -> bool:
        """Return ``True`` if any issue meets or exceeds *level*.

        Severity ordering: ``Critical > Error > Warning > Info``.
        """
        return bool(self.filter_issues(level))
