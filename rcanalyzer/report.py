"""JSON and CSV serialization of a dump analysis."""

import csv
import io
from datetime import datetime, timezone

from rcanalyzer import __app_name__, __version__
from rcanalyzer.models import (
    DOMAINS,
    STATISTICS,
    TYPE_PERFORMANCE,
    DumpAnalysis,
    Issue,
)

CSV_COLUMNS: list[str] = ["Timestamp", "Type", "Severity", "Component", "Message"]


def build_json_report(analysis: DumpAnalysis, min_severity: str | None = None) -> dict:
    """Return the JSON report document for *analysis*.

    Args:
        analysis: Pipeline output.
        min_severity: When set, only issues at or above this level are
            listed in the summary section. Scores are never filtered.
    """
    issues = (
        analysis.filter_issues(min_severity) if min_severity else analysis.all_issues
    )
    stats = analysis.results[STATISTICS]

    return {
        "metadata": {
            "reportType": "RocketChat Support Dump Analysis",
            "version": __version__,
            "generatedAt": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "dumpPath": analysis.dump_path,
            "analyzer": __app_name__,
            "sources": {
                domain: analysis.results[domain].source for domain in DOMAINS
            },
        },
        "healthScore": analysis.health.to_dict(),
        "summary": {
            "totalIssues": len(issues),
            "issues": [issue.to_dict() for issue in issues],
        },
        "analysis": {
            domain: analysis.results[domain].to_dict() for domain in DOMAINS
        },
        "insights": {
            **analysis.insights.to_dict(),
            "security": analysis.security.to_dict(),
            "performance": {
                "statistics": stats.summary.to_dict() if stats.summary else None,
                "issues": [
                    issue.to_dict()
                    for issue in analysis.all_issues
                    if issue.issue_type == TYPE_PERFORMANCE
                ],
            },
        },
    }


def _csv_row(issue: Issue) -> list[str]:
    return [
        issue.timestamp.isoformat() if issue.timestamp else "",
        issue.issue_type,
        issue.severity,
        issue.component,
        issue.message,
    ]


def build_csv_report(issues: list[Issue]) -> str:
    """Return one CSV row per issue, with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for issue in issues:
        writer.writerow(_csv_row(issue))
    return buffer.getvalue()
