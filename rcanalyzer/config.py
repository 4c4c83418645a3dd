"""Analyzer configuration constants and rule loading."""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rcanalyzer import __app_name__, __version__
from rcanalyzer.exceptions import ConfigurationError
from rcanalyzer.models import APPS, LOGS, OMNICHANNEL, SETTINGS, STATISTICS

APP_NAME: str = __app_name__
VERSION: str = __version__

# Dump file name fragments per domain, checked in this order so that
# e.g. "omnichannel-settings.json" is not taken for the settings file.
DUMP_FILE_PATTERNS: list[tuple[str, tuple[str, ...]]] = [
    (OMNICHANNEL, ("omnichannel",)),
    (APPS, ("apps",)),
    (STATISTICS, ("statistics", "stats")),
    (SETTINGS, ("settings",)),
    (LOGS, ("log",)),
]

DUMP_FILE_EXTENSIONS: list[str] = [".json"]

DEFAULT_IGNORE_DIRS: list[str] = [
    ".git",
    "__pycache__",
    "node_modules",
]

# Used when no rule document is given, or a category is missing from it
DEFAULT_LOG_PATTERNS: dict[str, list[str]] = {
    "error": [
        "error",
        "exception",
        "failed",
        "timeout",
        "connection refused",
        "cannot connect",
    ],
    "warning": [
        "warn",
        "deprecated",
        "slow",
        "retry",
        "fallback",
    ],
    "security": [
        "unauthorized",
        "authentication failed",
        "permission denied",
        "forbidden",
        "brute.?force",
        "breach",
    ],
}


# ---------------------------------------------------------------------------
# Rule configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LogPatterns:
    """Compiled, case-insensitive log message patterns per category."""

    error: tuple[re.Pattern[str], ...] = ()
    warning: tuple[re.Pattern[str], ...] = ()
    security: tuple[re.Pattern[str], ...] = ()


@dataclass(frozen=True)
class RuleConfig:
    """Rules applied by the domain analyzers.

    Attributes:
        log_patterns: Regular expressions matched against log messages.
        performance_thresholds: Overrides for the statistics thresholds,
            keyed by camelCase threshold name.
    """

    log_patterns: LogPatterns = field(default_factory=LogPatterns)
    performance_thresholds: dict[str, Any] = field(default_factory=dict)


def compile_patterns(category: str, patterns: Any) -> tuple[re.Pattern[str], ...]:
    """Compile one ``logPatterns`` category.

    Raises:
        ConfigurationError: If *patterns* is not a list of valid regexes.
    """
    if not isinstance(patterns, list):
        raise ConfigurationError(
            "Log pattern category must be a list",
            {"category": category},
        )

    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        if not isinstance(pattern, str):
            raise ConfigurationError(
                "Log pattern must be a string",
                {"category": category, "pattern": repr(pattern)},
            )
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as exc:
            raise ConfigurationError(
                f"Invalid log pattern: {exc}",
                {"category": category, "pattern": pattern},
            ) from exc
    return tuple(compiled)


def build_rules(document: dict[str, Any] | None = None) -> RuleConfig:
    """Build a :class:`RuleConfig` from a parsed rule document.

    Categories missing from the document fall back to
    :data:`DEFAULT_LOG_PATTERNS`.
    """
    document = document or {}
    raw_patterns = document.get("logPatterns") or {}
    if not isinstance(raw_patterns, dict):
        raise ConfigurationError("logPatterns must be an object")

    compiled = {
        category: compile_patterns(
            category, raw_patterns.get(category, defaults)
        )
        for category, defaults in DEFAULT_LOG_PATTERNS.items()
    }

    thresholds = document.get("performanceThresholds") or {}
    if not isinstance(thresholds, dict):
        raise ConfigurationError("performanceThresholds must be an object")

    return RuleConfig(
        log_patterns=LogPatterns(**compiled),
        performance_thresholds=dict(thresholds),
    )


def load_rules(path: Path | None = None) -> RuleConfig:
    """Load the rule configuration document at *path*.

    Args:
        path: JSON rule document. ``None`` selects the built-in defaults.

    Returns:
        The compiled :class:`RuleConfig`.

    Raises:
        ConfigurationError: If the document cannot be read or is invalid.
    """
    if path is None:
        return build_rules()

    try:
        with open(path, encoding="utf-8") as fh:
            document = json.load(fh)
    except FileNotFoundError as exc:
        raise ConfigurationError("Rule file not found", {"path": str(path)}) from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigurationError(
            f"Rule file could not be read: {exc}", {"path": str(path)}
        ) from exc

    if not isinstance(document, dict):
        raise ConfigurationError("Rule document must be a JSON object", {"path": str(path)})

    return build_rules(document)
