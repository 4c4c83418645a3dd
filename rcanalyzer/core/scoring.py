"""Health score calculation and recommendations.

Every issue deducts its severity weight from 100; repeats compound. The
fold is commutative, so issue order never changes a score.
"""

from collections.abc import Iterable, Mapping

from rcanalyzer.models import (
    APPS,
    COMPONENT_NAMES,
    CRITICAL,
    DOMAINS,
    ERROR,
    LOGS,
    OMNICHANNEL,
    SETTINGS,
    SEVERITIES,
    STATISTICS,
    TYPE_SECURITY,
    AnalysisResult,
    HealthScore,
    Issue,
)

SECURITY_COMPONENT: str = "Security"

# Component score below which a recommendation is raised
COMPONENT_ALERT_THRESHOLD: float = 80.0

# (lower bound, rating, commentary), highest band first
SCORE_BANDS: list[tuple[float, str, str]] = [
    (90.0, "Excellent", "Overall health is excellent; keep up regular monitoring and updates"),
    (75.0, "Good", "Overall health is good; address the remaining warnings when convenient"),
    (60.0, "Fair", "Overall health is fair; plan remediation of the reported issues"),
    (40.0, "Poor", "Overall health is poor; prioritize fixing errors and security findings"),
    (0.0, "Critical", "Overall health is critical; immediate remediation is required"),
]


def clamp_score(score: float) -> float:
    return max(0.0, min(100.0, score))


def score_issues(issues: Iterable[Issue]) -> float:
    """Return ``max(0, 100 - sum of severity weights)`` for *issues*."""
    return clamp_score(100.0 - sum(issue.weight for issue in issues))


def rate_score(score: float) -> tuple[str, str]:
    """Return the ``(rating, commentary)`` band of *score*."""
    for lower, rating, commentary in SCORE_BANDS:
        if score >= lower:
            return rating, commentary
    return SCORE_BANDS[-1][1], SCORE_BANDS[-1][2]


def _recommendations(
    counts: dict[str, int],
    components: dict[str, float],
    overall: float,
    results: Mapping[str, AnalysisResult],
) -> list[str]:
    recs: list[str] = []

    if counts[CRITICAL]:
        recs.append(
            f"URGENT: Address {counts[CRITICAL]} critical issue(s) immediately"
        )
    if counts[ERROR]:
        recs.append(
            f"Resolve {counts[ERROR]} error-level issue(s) to improve stability"
        )

    def below(name: str) -> bool:
        return components.get(name, 100.0) < COMPONENT_ALERT_THRESHOLD

    if below(SECURITY_COMPONENT):
        recs.append(
            "Review authentication and access settings: enable two-factor "
            "authentication and restrict public registration"
        )
    if below(COMPONENT_NAMES[STATISTICS]):
        recs.append(
            "Investigate resource usage: memory, database size and user load; "
            "consider scaling horizontally"
        )
    if below(COMPONENT_NAMES[LOGS]):
        recs.append("Review recurring errors and warnings in the server logs")
    if below(COMPONENT_NAMES[SETTINGS]):
        recs.append("Review the configuration settings flagged by the settings analysis")

    apps = results.get(APPS)
    if apps is not None and apps.issues:
        recs.append("Update outdated apps and review disabled ones in Administration > Apps")
    if below(COMPONENT_NAMES[OMNICHANNEL]):
        recs.append("Review omnichannel routing and offline availability configuration")

    recs.append(rate_score(overall)[1])
    return recs


def calculate_health_score(results: Mapping[str, AnalysisResult]) -> HealthScore:
    """Compute the health score of a set of domain results.

    Args:
        results: Domain -> analysis result. Missing domains score 100.

    Returns:
        A fresh :class:`HealthScore`.
    """
    all_issues: list[Issue] = []
    components: dict[str, float] = {}
    breakdown: list[str] = []

    for domain in DOMAINS:
        result = results.get(domain)
        issues = list(result.issues) if result is not None else []
        components[COMPONENT_NAMES[domain]] = score_issues(issues)
        all_issues.extend(issues)

    # Results under non-standard domain keys still count toward the total
    for domain, result in results.items():
        if domain not in DOMAINS:
            all_issues.extend(result.issues)

    components[SECURITY_COMPONENT] = score_issues(
        issue for issue in all_issues if issue.issue_type == TYPE_SECURITY
    )

    counts = {level: 0 for level in SEVERITIES}
    for issue in all_issues:
        counts[issue.severity] = counts.get(issue.severity, 0) + 1
        breakdown.append(
            f"-{issue.weight:g} [{issue.severity}] {issue.component or 'General'}: {issue.message}"
        )

    overall = score_issues(all_issues)
    rating, _ = rate_score(overall)

    return HealthScore(
        overall_score=overall,
        component_scores=components,
        issue_counts=counts,
        recommendations=tuple(_recommendations(counts, components, overall, results)),
        detailed_breakdown=tuple(breakdown),
        rating=rating,
    )
