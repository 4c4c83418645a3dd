"""Settings analyzer.

Well-known settings are checked against a declarative rule table; each rule
has a predicate on the (coerced) value, a fixed severity and a message
template. Keys without a rule are classified by substring only.
"""

import logging
import math
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from rcanalyzer.config import RuleConfig
from rcanalyzer.core.normalizer import SettingEntry
from rcanalyzer.models import (
    COMPONENT_NAMES,
    ERROR,
    INFO,
    SETTINGS,
    TYPE_CONFIGURATION,
    TYPE_PERFORMANCE,
    TYPE_SECURITY,
    WARNING,
    AnalysisResult,
    Issue,
    SettingsSummary,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Categories & generic classification
# ---------------------------------------------------------------------------

SECURITY: str = "security"
PERFORMANCE: str = "performance"
CONFIGURATION: str = "configuration"

_CATEGORY_TYPES: dict[str, str] = {
    SECURITY: TYPE_SECURITY,
    PERFORMANCE: TYPE_PERFORMANCE,
    CONFIGURATION: TYPE_CONFIGURATION,
}

SECURITY_KEY_RE = re.compile(
    r"password|auth|token|secret|ldap|saml|oauth|security|encryption|ssl|tls",
    re.IGNORECASE,
)
PERFORMANCE_KEY_RE = re.compile(
    r"cache|limit|timeout|max|pool|buffer|memory|cpu|performance|rate|throttle",
    re.IGNORECASE,
)

_MB: int = 1024 * 1024

MAX_UPLOAD_MB: float = 100
MAX_MESSAGE_SIZE: int = 10000

# Shared with the security review so its deductions dedupe against these
MSG_2FA_DISABLED = "Two-factor authentication is disabled"
MSG_PUBLIC_REGISTRATION = "Public user registration is enabled"
MSG_PASSWORD_RESET = "Password reset via email is enabled"
MSG_FILESYSTEM_STORAGE = "File uploads are stored on the local filesystem"


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------


def as_bool(value: Any) -> bool:
    """Coerce a setting value to ``bool``.

    Raises:
        ValueError: If *value* has no boolean reading.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise ValueError(f"not a boolean: {value!r}")


def as_number(value: Any) -> float:
    """Coerce a setting value to ``float``.

    Raises:
        ValueError: If *value* is not a finite number.
        TypeError: If *value* is of a non-numeric type.
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not a number")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def as_text(value: Any) -> str:
    return "" if value is None else str(value)


def bytes_to_mb(value: Any) -> float:
    return as_number(value) / _MB


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SettingRule:
    """One entry of a setting rule table.

    Attributes:
        key: Regular expression the setting key must fully match.
        category: ``security``, ``performance`` or ``configuration``.
        check: Predicate on the coerced value; ``True`` means deviation.
        severity: Severity of the issue raised on deviation.
        message: Issue message template; may reference ``{value}``.
        good: Template recorded in the good-settings list when the check
            passes, or ``None``.
        coerce: Converts the raw value before ``check`` runs.
        issue_type: Overrides the type derived from *category*.
    """

    key: str
    category: str
    check: Callable[[Any], bool]
    severity: str
    message: str | None
    good: str | None = None
    coerce: Callable[[Any], Any] = as_text
    issue_type: str | None = None

    def matches(self, key: str) -> bool:
        return re.fullmatch(self.key, key) is not None

    @property
    def type(self) -> str:
        return self.issue_type or _CATEGORY_TYPES[self.category]


def _is_false(value: bool) -> bool:
    return value is False


def _is_true(value: bool) -> bool:
    return value is True


def _never(_value: Any) -> bool:
    return False


SETTING_RULES: list[SettingRule] = [
    # Authentication & accounts
    SettingRule(
        "Accounts_TwoFactorAuthentication_Enabled", SECURITY, _is_false, ERROR,
        MSG_2FA_DISABLED, good="Two-factor authentication enabled", coerce=as_bool,
    ),
    SettingRule(
        "Accounts_RegistrationForm", SECURITY, lambda v: v.lower() == "public", WARNING,
        MSG_PUBLIC_REGISTRATION, good="Registration form: {value}",
    ),
    SettingRule(
        "Accounts_AllowAnonymousRead", CONFIGURATION, _is_true, WARNING,
        "Anonymous reading is enabled", coerce=as_bool,
    ),
    SettingRule(
        "Accounts_AllowAnonymousWrite", SECURITY, _is_true, ERROR,
        "Anonymous writing is enabled", coerce=as_bool,
    ),
    SettingRule(
        "Accounts_PasswordReset", SECURITY, _is_true, INFO,
        MSG_PASSWORD_RESET, coerce=as_bool,
    ),
    SettingRule(
        "Accounts_Password_Policy_Enabled", SECURITY, _is_false, WARNING,
        "Password policy is not enforced", good="Password policy enforced", coerce=as_bool,
    ),
    SettingRule(
        "LDAP_Enable", SECURITY, _never, INFO,
        None, good="LDAP authentication enabled", coerce=as_bool,
    ),
    SettingRule(
        "SAML_Custom_Default", SECURITY, _never, INFO,
        None, good="SAML authentication enabled", coerce=as_bool,
    ),
    # File upload & storage
    SettingRule(
        "FileUpload_MaxFileSize", PERFORMANCE, lambda mb: mb > MAX_UPLOAD_MB, WARNING,
        "Large file upload limit ({value:.0f}MB)",
        good="File upload limit: {value:.0f}MB", coerce=bytes_to_mb,
    ),
    SettingRule(
        "FileUpload_Storage_Type", SECURITY, lambda v: v.lower() == "filesystem", INFO,
        MSG_FILESYSTEM_STORAGE, good="Storage type: {value}",
    ),
    SettingRule(
        "FileUpload_ProtectFiles", SECURITY, _is_false, WARNING,
        "Uploaded files are accessible without authentication", coerce=as_bool,
    ),
    # Rate limiting & API
    SettingRule(
        "API_Enable_Rate_Limiter", SECURITY, _is_false, ERROR,
        "API rate limiting is disabled", good="API rate limiting enabled", coerce=as_bool,
    ),
    SettingRule(
        "API_Enable_Rate_Limiter_Dev", CONFIGURATION, _is_true, WARNING,
        "Development rate limiter is enabled in production", coerce=as_bool,
    ),
    SettingRule(
        "API_CORS_Origin", SECURITY, lambda v: v.strip() == "*", WARNING,
        "CORS allows requests from any origin",
    ),
    # Messages & retention
    SettingRule(
        "Message_MaxAllowedSize", PERFORMANCE, lambda n: n > MAX_MESSAGE_SIZE, WARNING,
        "Large message size limit ({value:.0f} chars)",
        good="Message size limit: {value:.0f} characters", coerce=as_number,
    ),
    SettingRule(
        "RetentionPolicy_Enabled", CONFIGURATION, _is_false, WARNING,
        "No message retention policy configured",
        good="Message retention policy enabled", coerce=as_bool,
    ),
    # Federation & encryption
    SettingRule(
        "Federation_Enabled", CONFIGURATION, _never, INFO,
        None, good="Federation enabled", coerce=as_bool,
    ),
    SettingRule(
        "E2E_Enable", SECURITY, _is_false, WARNING,
        "End-to-end encryption is disabled",
        good="End-to-end encryption enabled", coerce=as_bool,
    ),
    # Site & embedding
    SettingRule(
        "Site_Url", SECURITY, lambda v: v.lower().startswith("http://"), WARNING,
        "Site URL does not use HTTPS ({value})",
    ),
    SettingRule(
        "Iframe_Restrict_Access", SECURITY, _is_false, WARNING,
        "Iframe access restriction is disabled", coerce=as_bool,
    ),
    # Logging (RocketChat: 0 errors only, 1 information, 2 debug)
    SettingRule(
        "Log_Level", PERFORMANCE, lambda v: v.strip() == "2", WARNING,
        "Debug logging enabled in production", good="Log level: {value}",
    ),
]


def find_rule(key: str, rules: list[SettingRule]) -> SettingRule | None:
    """Return the first rule whose key pattern matches *key*."""
    for rule in rules:
        if rule.matches(key):
            return rule
    return None


def evaluate_rule(
    rule: SettingRule,
    entry: SettingEntry,
    component: str,
) -> tuple[Issue | None, str | None]:
    """Apply *rule* to *entry*.

    Returns:
        ``(issue, good)``: the deviation issue or the good-settings line;
        at most one of them is set.

    Raises:
        ValueError, TypeError: If the value cannot be coerced.
    """
    value = rule.coerce(entry.value)
    if rule.check(value):
        if rule.message is None:
            return None, None
        issue = Issue(
            issue_type=rule.type,
            severity=rule.severity,
            message=rule.message.format(value=value),
            component=component,
            setting=entry.key,
            value=entry.value,
            context=entry.raw,
        )
        return issue, None
    if rule.good is not None:
        return None, rule.good.format(value=value)
    return None, None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_settings(entries: Iterable[SettingEntry], rules: RuleConfig) -> AnalysisResult:
    """Analyze normalized setting entries.

    Args:
        entries: Output of the normalizer for the settings domain.
        rules: Rule configuration. Setting thresholds are fixed constants;
            the parameter keeps the analyzer signatures uniform.

    Returns:
        An :class:`AnalysisResult` whose summary is a
        :class:`SettingsSummary`.
    """
    component = COMPONENT_NAMES[SETTINGS]
    issues: list[Issue] = []
    security: dict[str, Any] = {}
    performance: dict[str, Any] = {}
    good: list[str] = []
    skipped: list[str] = []
    total = 0

    for entry in entries:
        total += 1
        rule = find_rule(entry.key, SETTING_RULES)

        if rule is None:
            if SECURITY_KEY_RE.search(entry.key):
                security[entry.key] = entry.value
            if PERFORMANCE_KEY_RE.search(entry.key):
                performance[entry.key] = entry.value
            continue

        if rule.category == SECURITY:
            security[entry.key] = entry.value
        elif rule.category == PERFORMANCE:
            performance[entry.key] = entry.value

        if entry.value is None:
            continue

        try:
            issue, good_line = evaluate_rule(rule, entry, component)
        except (ValueError, TypeError) as exc:
            logger.debug("Skipping setting %s: %s", entry.key, exc)
            skipped.append(entry.key)
            continue

        if issue is not None:
            issues.append(issue)
        if good_line is not None:
            good.append(good_line)

    summary = SettingsSummary(
        total_settings=total,
        security_settings=security,
        performance_settings=performance,
        good_settings=tuple(good),
        skipped_settings=tuple(skipped),
    )

    logger.info(
        "Settings analysis complete. Reviewed %d settings, found %d issues",
        total,
        len(issues),
    )
    return AnalysisResult(domain=SETTINGS, issues=tuple(issues), summary=summary)
