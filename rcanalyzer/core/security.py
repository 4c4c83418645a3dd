"""Security review across all domain results.

Re-checks the security-relevant settings with a focused rule set, then folds
in every ``Security`` issue from every domain. Messages are the
deduplication key: a message already recorded is never deducted twice.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from rcanalyzer.analyzers.settings import (
    MSG_2FA_DISABLED,
    MSG_FILESYSTEM_STORAGE,
    MSG_PASSWORD_RESET,
    MSG_PUBLIC_REGISTRATION,
    as_bool,
)
from rcanalyzer.models import (
    COMPONENT_NAMES,
    ERROR,
    INFO,
    SETTINGS,
    TYPE_SECURITY,
    WARNING,
    AnalysisResult,
    Issue,
    SecurityReview,
)

logger = logging.getLogger(__name__)

SECURITY_ISSUE_DEDUCTION: float = 5.0


def _bool_is(expected: bool) -> Callable[[Any], bool]:
    def check(value: Any) -> bool:
        try:
            return as_bool(value) is expected
        except ValueError:
            return False

    return check


def _text_is(expected: str) -> Callable[[Any], bool]:
    def check(value: Any) -> bool:
        return isinstance(value, str) and value.strip().lower() == expected

    return check


# (setting key, check, severity, message, deduction)
SECURITY_CHECKS: list[tuple[str, Callable[[Any], bool], str, str, float]] = [
    ("Accounts_TwoFactorAuthentication_Enabled", _bool_is(False), ERROR, MSG_2FA_DISABLED, 20.0),
    ("Accounts_RegistrationForm", _text_is("public"), WARNING, MSG_PUBLIC_REGISTRATION, 10.0),
    ("Accounts_PasswordReset", _bool_is(True), INFO, MSG_PASSWORD_RESET, 5.0),
    ("FileUpload_Storage_Type", _text_is("filesystem"), INFO, MSG_FILESYSTEM_STORAGE, 5.0),
]


def aggregate_security(results: Mapping[str, AnalysisResult]) -> SecurityReview:
    """Build the security review for one set of domain results.

    Args:
        results: Domain -> analysis result.

    Returns:
        A :class:`SecurityReview`; the score floors at 0.
    """
    score = 100.0
    seen: set[str] = set()
    security_issues: list[Issue] = []
    deductions: list[str] = []

    def record(issue: Issue, points: float) -> None:
        nonlocal score
        if issue.message in seen:
            return
        seen.add(issue.message)
        security_issues.append(issue)
        score -= points
        deductions.append(f"-{points:g} {issue.message}")

    for domain, result in results.items():
        settings = getattr(result.summary, "security_settings", None)
        if not settings:
            continue
        for key, check, severity, message, points in SECURITY_CHECKS:
            if key in settings and check(settings[key]):
                record(
                    Issue(
                        issue_type=TYPE_SECURITY,
                        severity=severity,
                        message=message,
                        component=COMPONENT_NAMES.get(domain, COMPONENT_NAMES[SETTINGS]),
                        setting=key,
                        value=settings[key],
                    ),
                    points,
                )

    for result in results.values():
        for issue in result.issues:
            if issue.issue_type == TYPE_SECURITY:
                record(issue, SECURITY_ISSUE_DEDUCTION)

    score = max(0.0, score)
    logger.info(
        "Security review complete. Score %.1f, %d unique issues", score, len(security_issues)
    )
    return SecurityReview(
        score=score,
        security_issues=tuple(security_issues),
        deductions=tuple(deductions),
    )
