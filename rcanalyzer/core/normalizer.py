"""Format normalizer.

Support dumps differ between RocketChat versions: the same domain may be
exported as a bare array, wrapped in an object field, or (for logs in newer
dumps) as a ``queue`` of JSON-encoded strings. Each domain has an ordered
list of shape matchers; every matcher is a pure function returning the
entry list, or ``None`` when the document does not have its shape. The
first match wins.
"""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from rcanalyzer.exceptions import MalformedInputError
from rcanalyzer.models import (
    APPS,
    CRITICAL,
    ERROR,
    INFO,
    LOGS,
    OMNICHANNEL,
    SETTINGS,
    STATISTICS,
    WARNING,
)

logger = logging.getLogger(__name__)

ShapeMatcher = Callable[[Any], "list[Any] | None"]

# ASCII only: str.isdigit() also accepts characters int() rejects
_INTEGER_RE = re.compile(r"-?[0-9]+")


# ---------------------------------------------------------------------------
# Canonical entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LogEntry:
    timestamp: Any
    level: str
    message: str
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class SettingEntry:
    key: str
    value: Any
    setting_type: str = "unknown"
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class AppRecord:
    name: str
    version: str = ""
    status: str = "unknown"
    author: str = "unknown"
    description: str = ""
    raw: Any = field(default=None, compare=False, repr=False)


# ---------------------------------------------------------------------------
# Level & timestamp mapping
# ---------------------------------------------------------------------------

_STRING_LEVELS: dict[str, str] = {
    "fatal": CRITICAL,
    "critical": CRITICAL,
    "crit": CRITICAL,
    "emerg": CRITICAL,
    "alert": CRITICAL,
    "error": ERROR,
    "err": ERROR,
    "warn": WARNING,
    "warning": WARNING,
    "info": INFO,
    "information": INFO,
    "notice": INFO,
    "debug": INFO,
    "trace": INFO,
    "verbose": INFO,
}


def _map_numeric_level(level: float) -> str:
    # pino: 10 trace, 20 debug/info, 30 warn, 40 error, 50 fatal, 60 fatal
    if level >= 50:
        return CRITICAL
    if level >= 40:
        return ERROR
    if level >= 30:
        return WARNING
    return INFO


def map_level(level: Any) -> str:
    """Map a raw log level onto one of the four canonical severities.

    Numeric levels follow the RocketChat/pino convention
    (``20`` info, ``30`` warn, ``40`` error, ``>= 50`` critical). Strings are
    matched case-insensitively; digit strings are treated as numbers.
    Anything else is ``Info``.
    """
    if isinstance(level, bool):
        return INFO
    if isinstance(level, (int, float)):
        return _map_numeric_level(level)
    if isinstance(level, str):
        lowered = level.strip().lower()
        if _INTEGER_RE.fullmatch(lowered):
            return _map_numeric_level(float(lowered))
        return _STRING_LEVELS.get(lowered, INFO)
    return INFO


def _unwrap_date(value: Any) -> Any:
    # MongoDB extended JSON: {"$date": "..."} or {"$date": {"$numberLong": "..."}}
    while isinstance(value, dict) and "$date" in value:
        value = value["$date"]
    if isinstance(value, dict) and "$numberLong" in value:
        value = value["$numberLong"]
    return value


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a log timestamp into an aware UTC ``datetime``.

    Accepts ISO-8601 strings, epoch seconds or milliseconds, and MongoDB
    ``$date`` wrappers. Returns ``None`` for anything unparseable.
    """
    value = _unwrap_date(value)
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if _INTEGER_RE.fullmatch(text):
            # float() has no digit limit; out-of-range values fail below
            value = int(text) if len(text) <= 18 else float(text)
        else:
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)

    if isinstance(value, (int, float)):
        try:
            seconds = value / 1000 if abs(value) >= 1e11 else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    return None


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

_MESSAGE_FIELDS = ("message", "msg", "text")
_LEVEL_FIELDS = ("level", "severity")
_TIMESTAMP_FIELDS = ("timestamp", "time", "ts", "@timestamp", "_updatedAt", "createdAt")


def _first(record: dict, names: tuple[str, ...]) -> Any:
    for name in names:
        if record.get(name) is not None:
            return record[name]
    return None


def _to_log_entry(record: Any) -> LogEntry | None:
    if not isinstance(record, dict):
        return None
    message = _first(record, _MESSAGE_FIELDS)
    return LogEntry(
        timestamp=_unwrap_date(_first(record, _TIMESTAMP_FIELDS)),
        level=map_level(_first(record, _LEVEL_FIELDS)),
        message="" if message is None else str(message),
        raw=record,
    )


def _to_log_entries(records: list[Any]) -> list[LogEntry]:
    entries = []
    for record in records:
        entry = _to_log_entry(record)
        if entry is None:
            logger.debug("Skipping non-object log record: %r", record)
            continue
        entries.append(entry)
    return entries


def _to_setting_entry(record: Any) -> SettingEntry | None:
    if not isinstance(record, dict):
        return None
    key = record.get("_id", record.get("key"))
    if not isinstance(key, str) or not key:
        return None
    return SettingEntry(
        key=key,
        value=record.get("value"),
        setting_type=str(record.get("type", "unknown")),
        raw=record,
    )


def _to_setting_entries(records: list[Any]) -> list[SettingEntry]:
    entries = []
    for record in records:
        entry = _to_setting_entry(record)
        if entry is None:
            logger.debug("Skipping setting record without key: %r", record)
            continue
        entries.append(entry)
    return entries


def _app_status(value: Any) -> str:
    if isinstance(value, bool):
        return "enabled" if value else "disabled"
    if value is None:
        return "unknown"
    return str(value)


def _to_app_record(record: Any) -> AppRecord | None:
    if not isinstance(record, dict):
        return None
    info = record.get("info") if isinstance(record.get("info"), dict) else record
    name = info.get("name") or record.get("name")
    if not name:
        return None
    author = info.get("author", "unknown")
    if isinstance(author, dict):
        author = author.get("name", "unknown")
    return AppRecord(
        name=str(name),
        version=str(info.get("version") or record.get("version") or ""),
        status=_app_status(record.get("status", info.get("status"))),
        author=str(author),
        description=str(info.get("description") or ""),
        raw=record,
    )


def _to_app_records(records: list[Any]) -> list[AppRecord]:
    apps = []
    for record in records:
        app = _to_app_record(record)
        if app is None:
            logger.debug("Skipping app record without name: %r", record)
            continue
        apps.append(app)
    return apps


def _field_list(document: Any, name: str) -> list[Any] | None:
    if isinstance(document, dict) and isinstance(document.get(name), list):
        return document[name]
    return None


# ---------------------------------------------------------------------------
# Log shapes
# ---------------------------------------------------------------------------


def _logs_from_array(document: Any) -> list[LogEntry] | None:
    if not isinstance(document, list):
        return None
    return _to_log_entries(document)


def _logs_from_logs_field(document: Any) -> list[LogEntry] | None:
    records = _field_list(document, "logs")
    return None if records is None else _to_log_entries(records)


def _logs_from_queue(document: Any) -> list[LogEntry] | None:
    records = _field_list(document, "queue")
    if records is None:
        return None

    entries = []
    for item in records:
        record = item
        if isinstance(item, dict) and isinstance(item.get("string"), str):
            try:
                record = json.loads(item["string"])
            except json.JSONDecodeError:
                logger.debug("Skipping queue item with undecodable body")
                continue
            if isinstance(record, dict) and record.get("ts") is None and "ts" in item:
                record = {**record, "ts": item["ts"]}
        entry = _to_log_entry(record)
        if entry is not None:
            entries.append(entry)
    return entries


def _logs_from_single_object(document: Any) -> list[LogEntry] | None:
    if not isinstance(document, dict):
        return None
    return [_to_log_entry(document)]


# ---------------------------------------------------------------------------
# Settings / omnichannel shapes
# ---------------------------------------------------------------------------


def _settings_from_array(document: Any) -> list[SettingEntry] | None:
    if not isinstance(document, list):
        return None
    return _to_setting_entries(document)


def _settings_from_settings_field(document: Any) -> list[SettingEntry] | None:
    records = _field_list(document, "settings")
    return None if records is None else _to_setting_entries(records)


def _settings_from_data_field(document: Any) -> list[SettingEntry] | None:
    records = _field_list(document, "data")
    return None if records is None else _to_setting_entries(records)


def _settings_from_key_value_map(document: Any) -> list[SettingEntry] | None:
    if not isinstance(document, dict):
        return None
    if any(isinstance(value, (dict, list)) for value in document.values()):
        return None
    return [
        SettingEntry(key=str(key), value=value, raw={str(key): value})
        for key, value in document.items()
    ]


# ---------------------------------------------------------------------------
# Statistics shapes
# ---------------------------------------------------------------------------


def _statistics_from_field(name: str) -> ShapeMatcher:
    def matcher(document: Any) -> list[dict] | None:
        if isinstance(document, dict) and isinstance(document.get(name), dict):
            return [document[name]]
        return None

    return matcher


def _statistics_from_array(document: Any) -> list[dict] | None:
    if isinstance(document, list):
        for item in document:
            if isinstance(item, dict):
                return [item]
    return None


def _statistics_from_object(document: Any) -> list[dict] | None:
    return [document] if isinstance(document, dict) else None


# ---------------------------------------------------------------------------
# Apps shapes
# ---------------------------------------------------------------------------


def _apps_from_array(document: Any) -> list[AppRecord] | None:
    if not isinstance(document, list):
        return None
    return _to_app_records(document)


def _apps_from_apps_field(document: Any) -> list[AppRecord] | None:
    records = _field_list(document, "apps")
    return None if records is None else _to_app_records(records)


def _apps_from_data_field(document: Any) -> list[AppRecord] | None:
    records = _field_list(document, "data")
    return None if records is None else _to_app_records(records)


def _apps_from_single_object(document: Any) -> list[AppRecord] | None:
    if not isinstance(document, dict):
        return None
    app = _to_app_record(document)
    return None if app is None else [app]


# ---------------------------------------------------------------------------
# Shape registry
# ---------------------------------------------------------------------------

_SETTINGS_SHAPES: list[tuple[str, ShapeMatcher]] = [
    ("array", _settings_from_array),
    ("settings", _settings_from_settings_field),
    ("data", _settings_from_data_field),
    ("key-value", _settings_from_key_value_map),
]

SHAPES: dict[str, list[tuple[str, ShapeMatcher]]] = {
    LOGS: [
        ("array", _logs_from_array),
        ("logs", _logs_from_logs_field),
        ("queue", _logs_from_queue),
        ("single", _logs_from_single_object),
    ],
    SETTINGS: _SETTINGS_SHAPES,
    OMNICHANNEL: _SETTINGS_SHAPES,
    STATISTICS: [
        ("statistics", _statistics_from_field("statistics")),
        ("stats", _statistics_from_field("stats")),
        ("array", _statistics_from_array),
        ("object", _statistics_from_object),
    ],
    APPS: [
        ("array", _apps_from_array),
        ("apps", _apps_from_apps_field),
        ("data", _apps_from_data_field),
        ("single", _apps_from_single_object),
    ],
}


def detect_shape(document: Any, domain: str) -> str | None:
    """Return the name of the first shape matching *document*, if any."""
    for name, matcher in SHAPES[domain]:
        if matcher(document) is not None:
            return name
    return None


def normalize(document: Any, domain: str) -> list[Any]:
    """Extract the canonical entry list of *domain* from a parsed document.

    Args:
        document: Parsed JSON, or ``None`` when the domain's file is absent.
        domain: One of the dump domains.

    Returns:
        Canonical entries (``LogEntry``, ``SettingEntry``, ``AppRecord``, or
        the statistics object). Empty when *document* is ``None``.

    Raises:
        MalformedInputError: If no known shape matches.
        KeyError: If *domain* is unknown.
    """
    shapes = SHAPES[domain]
    if document is None:
        return []

    for name, matcher in shapes:
        entries = matcher(document)
        if entries is not None:
            logger.debug("Normalized %s document as %r shape (%d entries)", domain, name, len(entries))
            return entries

    raise MalformedInputError(
        f"Unrecognized {domain} document shape",
        {"type": type(document).__name__},
    )
