"""Statistics analyzer.

Extracts runtime, memory, user, message and database figures from the
statistics document and applies fixed performance thresholds.
"""

import dataclasses
import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from rcanalyzer.config import RuleConfig
from rcanalyzer.models import (
    COMPONENT_NAMES,
    CRITICAL,
    INFO,
    STATISTICS,
    TYPE_PERFORMANCE,
    TYPE_SECURITY,
    TYPE_VERSION,
    WARNING,
    AnalysisResult,
    Issue,
    StatisticsSummary,
)

logger = logging.getLogger(__name__)

_GB: int = 1024**3

_MAJOR_RE = re.compile(r"^\s*v?([0-9]+)")


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatisticsThresholds:
    """Performance thresholds.

    Defaults are the built-in constants; the ``performanceThresholds``
    section of the rule document may override any field by its camelCase
    name (e.g. ``memoryCriticalPercent``).
    """

    memory_critical_percent: float = 85.0
    memory_warning_percent: float = 75.0
    db_size_warning_bytes: float = 10 * _GB
    user_count_info: int = 10_000
    online_users_warning: int = 1_000
    message_count_warning: int = 50_000_000
    min_uptime_seconds: float = 86_400
    min_node_major: int = 14
    min_server_major: int = 6
    rooms_per_user_info: float = 50.0

    @classmethod
    def from_rules(cls, rules: RuleConfig) -> "StatisticsThresholds":
        overrides: dict[str, Any] = {}
        by_camel = {_camel(f.name): f.name for f in dataclasses.fields(cls)}
        for key, value in rules.performance_thresholds.items():
            name = by_camel.get(key, key)
            if name not in by_camel.values():
                logger.warning("Ignoring unknown performance threshold: %s", key)
                continue
            try:
                number = float(value)
            except (TypeError, ValueError):
                number = math.nan
            if math.isfinite(number):
                overrides[name] = number
            else:
                logger.warning("Ignoring non-numeric performance threshold: %s=%r", key, value)
        return cls(**overrides)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


DEFAULT_THRESHOLDS = StatisticsThresholds()


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------


def _lookup(document: dict, *paths: str) -> Any:
    """Return the first non-``None`` value among dotted *paths*."""
    for path in paths:
        node: Any = document
        for part in path.split("."):
            if not isinstance(node, dict):
                node = None
                break
            node = node.get(part)
        if node is not None:
            return node
    return None


def _number(document: dict, *paths: str) -> float | None:
    value = _lookup(document, *paths)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Skipping non-numeric statistic %s: %r", paths[0], value)
        return None
    if not math.isfinite(number):
        logger.debug("Skipping non-finite statistic %s: %r", paths[0], value)
        return None
    return number


def _count(document: dict, *paths: str) -> int:
    value = _number(document, *paths)
    return int(value) if value is not None else 0


def _text(document: dict, *paths: str) -> str:
    value = _lookup(document, *paths)
    return "unknown" if value is None else str(value)


def _flag(document: dict, *paths: str) -> bool:
    value = _lookup(document, *paths)
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _major(version: str) -> int | None:
    match = _MAJOR_RE.match(version)
    return int(match.group(1)) if match else None


def _percent(part: float | None, whole: float | None) -> float | None:
    if part is None or not whole:
        return None
    return round(part / whole * 100, 2)


def extract_statistics(document: dict) -> StatisticsSummary:
    """Pull the analyzed fields out of a statistics document."""
    total_memory = _number(document, "os.totalmem", "totalmem")
    free_memory = _number(document, "os.freemem", "freemem")
    used_memory = (
        total_memory - free_memory
        if total_memory is not None and free_memory is not None
        else None
    )
    total_users = _count(document, "totalUsers")
    online_users = _count(document, "onlineUsers")

    return StatisticsSummary(
        version=_text(document, "version", "wizard.version"),
        node_version=_text(document, "process.nodeVersion", "nodeVersion"),
        platform=_text(document, "os.platform"),
        arch=_text(document, "os.arch"),
        os_type=_text(document, "os.type"),
        os_release=_text(document, "os.release"),
        uptime_seconds=_number(document, "process.uptime", "os.uptime", "uptime"),
        total_memory=total_memory,
        free_memory=free_memory,
        memory_used_percent=_percent(used_memory, total_memory),
        total_users=total_users,
        online_users=online_users,
        away_users=_count(document, "awayUsers"),
        busy_users=_count(document, "busyUsers"),
        offline_users=_count(document, "offlineUsers"),
        online_percent=_percent(float(online_users), float(total_users)),
        total_messages=_count(document, "totalMessages"),
        total_rooms=_count(document, "totalRooms"),
        total_channels=_count(document, "totalChannels"),
        total_private_groups=_count(document, "totalPrivateGroups"),
        total_direct_messages=_count(document, "totalDirectMessages"),
        total_livechat_rooms=_count(document, "totalLivechatRooms", "totalLivechat"),
        db_size=_number(document, "dbSize", "mongoDBStats.dataSize"),
        federation_enabled=_flag(document, "federationEnabled"),
        ldap_enabled=_flag(document, "ldapEnabled"),
        livechat_enabled=_flag(document, "livechatEnabled"),
        enterprise_ready=_flag(document, "enterpriseReady"),
    )


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_summary(stats: StatisticsSummary, limits: StatisticsThresholds) -> list[Issue]:
    component = COMPONENT_NAMES[STATISTICS]
    issues: list[Issue] = []

    def add(issue_type: str, severity: str, message: str, metric: str, value: Any, **extra: Any) -> None:
        issues.append(
            Issue(
                issue_type=issue_type,
                severity=severity,
                message=message,
                component=component,
                metric=metric,
                value=value,
                **extra,
            )
        )

    memory = stats.memory_used_percent
    if memory is not None:
        if memory > limits.memory_critical_percent:
            add(TYPE_PERFORMANCE, CRITICAL, f"Memory usage critical: {memory:.1f}% used", "memoryUsedPercent", memory)
        elif memory > limits.memory_warning_percent:
            add(TYPE_PERFORMANCE, WARNING, f"High memory usage: {memory:.1f}% used", "memoryUsedPercent", memory)

    if stats.db_size is not None and stats.db_size > limits.db_size_warning_bytes:
        add(
            TYPE_PERFORMANCE, WARNING,
            f"Large database size: {stats.db_size / _GB:.1f}GB", "dbSize", stats.db_size,
        )

    if stats.total_users > limits.user_count_info:
        add(
            TYPE_PERFORMANCE, INFO,
            f"Large user base: {stats.total_users} users", "totalUsers", stats.total_users,
        )

    if stats.online_users > limits.online_users_warning:
        add(
            TYPE_PERFORMANCE, WARNING,
            f"High user load: {stats.online_users} online users", "onlineUsers", stats.online_users,
        )

    if stats.total_messages > limits.message_count_warning:
        add(
            TYPE_PERFORMANCE, WARNING,
            f"High message volume: {stats.total_messages} messages", "totalMessages", stats.total_messages,
        )

    if stats.total_users > 0:
        rooms_per_user = stats.total_rooms / stats.total_users
        if rooms_per_user > limits.rooms_per_user_info:
            add(
                TYPE_PERFORMANCE, INFO,
                f"High rooms-to-users ratio: {rooms_per_user:.0f} rooms per user",
                "roomsPerUser", round(rooms_per_user, 2),
            )

    if stats.uptime_seconds is not None and stats.uptime_seconds < limits.min_uptime_seconds:
        add(
            TYPE_PERFORMANCE, WARNING,
            f"Recent restart detected: uptime {stats.uptime_readable}", "uptime", stats.uptime_seconds,
        )

    node_major = _major(stats.node_version)
    if node_major is not None and node_major < limits.min_node_major:
        add(
            TYPE_VERSION, WARNING,
            f"Outdated Node.js runtime: {stats.node_version}", "nodeVersion", stats.node_version,
            version=stats.node_version,
        )

    server_major = _major(stats.version)
    if server_major is not None and server_major < limits.min_server_major:
        add(
            TYPE_SECURITY, WARNING,
            f"RocketChat version may be outdated: {stats.version}", "version", stats.version,
            version=stats.version,
        )

    return issues


def analyze_statistics(entries: list[dict], rules: RuleConfig) -> AnalysisResult:
    """Analyze the normalized statistics document.

    Args:
        entries: Normalizer output: a single statistics object, or nothing.
        rules: Rule configuration; ``performance_thresholds`` may override
            :class:`StatisticsThresholds` defaults.
    """
    if not entries:
        return AnalysisResult.empty(STATISTICS)

    limits = StatisticsThresholds.from_rules(rules)
    stats = extract_statistics(entries[0])
    issues = _check_summary(stats, limits)

    logger.info(
        "Statistics analysis complete. Version: %s, users: %d (%d online)",
        stats.version,
        stats.total_users,
        stats.online_users,
    )
    return AnalysisResult(domain=STATISTICS, issues=tuple(issues), summary=stats)
