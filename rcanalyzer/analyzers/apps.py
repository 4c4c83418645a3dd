"""Installed apps analyzer.

Sorts apps into security, performance and integration bins by keyword,
flags old major versions, and escalates disabled security/ops apps.
"""

import logging
import re
from collections.abc import Iterable

from rcanalyzer.config import RuleConfig
from rcanalyzer.core.normalizer import AppRecord
from rcanalyzer.models import (
    APPS,
    COMPONENT_NAMES,
    INFO,
    TYPE_APP_STATUS,
    TYPE_APP_VERSION,
    WARNING,
    AnalysisResult,
    AppsSummary,
    Issue,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Keyword sets
# ---------------------------------------------------------------------------

SECURITY_APP_RE = re.compile(
    r"auth|security|login|oauth|ldap|saml|sso|2fa|password|captcha", re.IGNORECASE
)
PERFORMANCE_APP_RE = re.compile(
    r"monitor|performance|metrics|analytics|stats|health|apm", re.IGNORECASE
)
INTEGRATION_APP_RE = re.compile(
    r"webhook|api|bot|connector|integration|bridge|jira|github|gitlab|zapier", re.IGNORECASE
)

# A disabled app matching these is a security risk
SECURITY_OPS_APP_RE = re.compile(
    r"auth|security|login|oauth|ldap|saml|sso|audit|backup|monitor|compliance|antivirus",
    re.IGNORECASE,
)

OUTDATED_VERSION_RE = re.compile(r"^[0-2]\.")

_ENABLED_STATUSES = {"enabled", "true", "auto_enabled", "manually_enabled", "initialized"}


def is_enabled(status: str) -> bool:
    return status.strip().lower() in _ENABLED_STATUSES


def is_disabled(status: str) -> bool:
    lowered = status.strip().lower()
    return lowered == "false" or "disabled" in lowered


def analyze_apps(apps: Iterable[AppRecord], rules: RuleConfig) -> AnalysisResult:
    """Analyze installed-app records.

    Args:
        apps: Output of the normalizer for the apps domain.
        rules: Rule configuration (unused by app checks).

    Returns:
        An :class:`AnalysisResult` whose summary is an :class:`AppsSummary`.
    """
    component = COMPONENT_NAMES[APPS]
    issues: list[Issue] = []
    security_apps: list[str] = []
    performance_apps: list[str] = []
    integration_apps: list[str] = []
    total = enabled = disabled = outdated = security_risk = 0

    for app in apps:
        total += 1
        haystack = f"{app.name} {app.description}"

        if SECURITY_APP_RE.search(haystack):
            security_apps.append(app.name)
        if PERFORMANCE_APP_RE.search(haystack):
            performance_apps.append(app.name)
        if INTEGRATION_APP_RE.search(haystack):
            integration_apps.append(app.name)

        if OUTDATED_VERSION_RE.match(app.version):
            outdated += 1
            issues.append(
                Issue(
                    issue_type=TYPE_APP_VERSION,
                    severity=WARNING,
                    message=f"App {app.name} v{app.version} by {app.author} may be outdated",
                    component=component,
                    app=app.name,
                    version=app.version,
                    context=app.raw,
                )
            )

        if is_enabled(app.status):
            enabled += 1
        elif is_disabled(app.status):
            disabled += 1
            risky = bool(SECURITY_OPS_APP_RE.search(app.name))
            if risky:
                security_risk += 1
            issues.append(
                Issue(
                    issue_type=TYPE_APP_STATUS,
                    severity=WARNING if risky else INFO,
                    message=(
                        f"Security-related app {app.name} is disabled"
                        if risky
                        else f"App {app.name} is disabled"
                    ),
                    component=component,
                    app=app.name,
                    version=app.version or None,
                    value=app.status,
                    context=app.raw,
                )
            )

    summary = AppsSummary(
        total_apps=total,
        enabled_apps=enabled,
        disabled_apps=disabled,
        outdated_apps=outdated,
        security_risk_apps=security_risk,
        security_apps=tuple(security_apps),
        performance_apps=tuple(performance_apps),
        integration_apps=tuple(integration_apps),
    )

    logger.info(
        "Apps analysis complete. Found %d apps (%d enabled, %d disabled)",
        total,
        enabled,
        disabled,
    )
    return AnalysisResult(domain=APPS, issues=tuple(issues), summary=summary)
