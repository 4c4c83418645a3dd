"""Omnichannel (Livechat) configuration analyzer."""

import logging
from collections.abc import Iterable
from typing import Any

from rcanalyzer.analyzers.settings import (
    CONFIGURATION,
    SECURITY,
    SECURITY_KEY_RE,
    SettingRule,
    as_bool,
    as_number,
    evaluate_rule,
    find_rule,
)
from rcanalyzer.config import RuleConfig
from rcanalyzer.core.normalizer import SettingEntry
from rcanalyzer.models import (
    COMPONENT_NAMES,
    INFO,
    OMNICHANNEL,
    TYPE_OMNICHANNEL,
    WARNING,
    AnalysisResult,
    Issue,
    OmnichannelSummary,
)

logger = logging.getLogger(__name__)

MAX_QUEUE_SIZE: int = 100

OMNICHANNEL_RULES: list[SettingRule] = [
    SettingRule(
        "(?i).*Omnichannel_enable.*", CONFIGURATION, lambda v: v is False, INFO,
        "Omnichannel service is disabled", good="Omnichannel service is enabled",
        coerce=as_bool, issue_type=TYPE_OMNICHANNEL,
    ),
    SettingRule(
        "Livechat_enabled", CONFIGURATION, lambda v: v is False, INFO,
        "Livechat is disabled", good="Livechat is enabled",
        coerce=as_bool, issue_type=TYPE_OMNICHANNEL,
    ),
    SettingRule(
        "(?i).*routing_method.*", CONFIGURATION, lambda v: v == "Manual_Selection", WARNING,
        "Livechat routing is set to manual selection",
        good="Routing method: {value}", issue_type=TYPE_OMNICHANNEL,
    ),
    SettingRule(
        "Livechat_offline_form_unavailable", CONFIGURATION, lambda v: v is True, WARNING,
        "Livechat offline form is unavailable",
        coerce=as_bool, issue_type=TYPE_OMNICHANNEL,
    ),
    SettingRule(
        "(?i).*max_agent_number.*", CONFIGURATION, lambda n: n < 1, WARNING,
        "No maximum agents configured", good="Max agents: {value:.0f}",
        coerce=as_number, issue_type=TYPE_OMNICHANNEL,
    ),
    SettingRule(
        "(?i).*queue_size.*", CONFIGURATION, lambda n: n > MAX_QUEUE_SIZE, WARNING,
        "Large queue size configured ({value:.0f})", good="Queue size: {value:.0f}",
        coerce=as_number, issue_type=TYPE_OMNICHANNEL,
    ),
]


def _feature_state(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, int)) and str(value).strip().lower() in ("true", "1"):
        return True
    if isinstance(value, (str, int)) and str(value).strip().lower() in ("false", "0"):
        return False
    return None


def analyze_omnichannel(entries: Iterable[SettingEntry], rules: RuleConfig) -> AnalysisResult:
    """Analyze omnichannel setting entries.

    Boolean-valued settings are counted as enabled or disabled features.
    """
    component = COMPONENT_NAMES[OMNICHANNEL]
    issues: list[Issue] = []
    security: dict[str, Any] = {}
    total = enabled = disabled = 0
    livechat_enabled: bool | None = None
    routing_method: str | None = None

    for entry in entries:
        total += 1

        state = _feature_state(entry.value)
        if state is True:
            enabled += 1
        elif state is False:
            disabled += 1

        if entry.key == "Livechat_enabled":
            livechat_enabled = state
        elif "routing_method" in entry.key.lower() and entry.value is not None:
            routing_method = str(entry.value)

        rule = find_rule(entry.key, OMNICHANNEL_RULES)
        if rule is None:
            if SECURITY_KEY_RE.search(entry.key):
                security[entry.key] = entry.value
            continue
        if rule.category == SECURITY:
            security[entry.key] = entry.value
        if entry.value is None:
            continue

        try:
            issue, _good = evaluate_rule(rule, entry, component)
        except (ValueError, TypeError) as exc:
            logger.debug("Skipping omnichannel setting %s: %s", entry.key, exc)
            continue
        if issue is not None:
            issues.append(issue)

    summary = OmnichannelSummary(
        total_settings=total,
        enabled_features=enabled,
        disabled_features=disabled,
        livechat_enabled=livechat_enabled,
        routing_method=routing_method,
        security_settings=security,
    )

    logger.info(
        "Omnichannel analysis complete. %d settings (%d enabled, %d disabled)",
        total,
        enabled,
        disabled,
    )
    return AnalysisResult(domain=OMNICHANNEL, issues=tuple(issues), summary=summary)
