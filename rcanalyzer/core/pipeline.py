"""Unified analysis pipeline.

Discovers the dump files **once**, runs every domain through
normalize -> analyze, then aggregates all results into a single
:class:`~rcanalyzer.models.DumpAnalysis`.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from rcanalyzer.analyzers.apps import analyze_apps
from rcanalyzer.analyzers.logs import analyze_logs
from rcanalyzer.analyzers.omnichannel import analyze_omnichannel
from rcanalyzer.analyzers.settings import analyze_settings
from rcanalyzer.analyzers.statistics import analyze_statistics
from rcanalyzer.config import RuleConfig, load_rules
from rcanalyzer.core.insights import build_insights
from rcanalyzer.core.normalizer import normalize
from rcanalyzer.core.scoring import calculate_health_score
from rcanalyzer.core.security import aggregate_security
from rcanalyzer.exceptions import MalformedInputError
from rcanalyzer.models import (
    APPS,
    DOMAINS,
    LOGS,
    OMNICHANNEL,
    SETTINGS,
    STATISTICS,
    AnalysisResult,
    DumpAnalysis,
)
from rcanalyzer.utils import find_dump_files, read_json_file

logger = logging.getLogger(__name__)

Analyzer = Callable[[Any, RuleConfig], AnalysisResult]

ANALYZERS: dict[str, Analyzer] = {
    LOGS: analyze_logs,
    SETTINGS: analyze_settings,
    STATISTICS: analyze_statistics,
    APPS: analyze_apps,
    OMNICHANNEL: analyze_omnichannel,
}


def analyze_document(domain: str, document: Any, rules: RuleConfig) -> AnalysisResult:
    """Normalize and analyze one parsed document.

    Raises:
        MalformedInputError: If the document shape is not recognized.
    """
    entries = normalize(document, domain)
    return ANALYZERS[domain](entries, rules)


def analyze_file(domain: str, path: str | None, rules: RuleConfig) -> AnalysisResult:
    """Analyze the dump file of one domain.

    A missing file yields an empty result; a malformed one yields a result
    holding a single ``Critical`` ``Analysis Error`` issue.
    """
    if path is None:
        logger.debug("No %s file found for analysis", domain)
        return AnalysisResult.empty(domain)

    logger.info("Analyzing %s: %s", domain, Path(path).name)
    try:
        document = read_json_file(path)
        result = analyze_document(domain, document, rules)
    except MalformedInputError as exc:
        logger.warning("Could not analyze %s file %s: %s", domain, path, exc.message)
        return AnalysisResult.from_error(
            domain, path, f"Failed to analyze {domain} file {Path(path).name}: {exc.message}"
        )

    return AnalysisResult(
        domain=result.domain,
        issues=result.issues,
        summary=result.summary,
        source=path,
    )


def run_analysis(dump_path: Path, rules: RuleConfig | None = None) -> DumpAnalysis:
    """Execute a full analysis of the dump at *dump_path*.

    Files are discovered **once**. Each domain is analyzed independently;
    a damaged file affects only its own domain.

    Args:
        dump_path: Dump directory, or a single dump file.
        rules: Rule configuration; built-in defaults when ``None``.

    Returns:
        A :class:`DumpAnalysis` with every domain result and the aggregates.
    """
    rules = rules if rules is not None else load_rules()
    dump = find_dump_files(dump_path)

    results = {
        domain: analyze_file(domain, dump.get(domain), rules) for domain in DOMAINS
    }

    health = calculate_health_score(results)
    security = aggregate_security(results)
    issues = [issue for result in results.values() for issue in result.issues]
    insights = build_insights(issues)

    logger.info(
        "Analysis complete. Health score %.1f (%s), %d issues",
        health.overall_score,
        health.rating,
        len(issues),
    )
    return DumpAnalysis(
        dump_path=str(dump_path),
        results=results,
        health=health,
        security=security,
        insights=insights,
    )
