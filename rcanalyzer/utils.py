"""Dump discovery and file helpers."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from rcanalyzer.config import (
    DEFAULT_IGNORE_DIRS,
    DUMP_FILE_EXTENSIONS,
    DUMP_FILE_PATTERNS,
)
from rcanalyzer.exceptions import MalformedInputError
from rcanalyzer.models import DOMAINS

logger = logging.getLogger(__name__)


def validate_path(path: str) -> Path:
    """Resolve and validate that *path* points to an existing file or directory.

    Args:
        path: Raw path string from the CLI.

    Returns:
        Resolved ``Path`` object.

    Raises:
        FileNotFoundError: If the path does not exist.
    """
    resolved = Path(path).resolve()

    if not resolved.exists():
        raise FileNotFoundError(f"Path does not exist: {resolved}")

    return resolved


def classify_dump_file(filename: str) -> str | None:
    """Return the domain a dump file belongs to, judged by its name."""
    if os.path.splitext(filename)[1].lower() not in DUMP_FILE_EXTENSIONS:
        return None

    lowered = filename.lower()
    for domain, fragments in DUMP_FILE_PATTERNS:
        if any(fragment in lowered for fragment in fragments):
            return domain
    return None


class DumpFiles:
    """Container returned by :func:`find_dump_files`.

    Attributes:
        files: Domain -> path of its dump file, ``None`` when absent.
        files_scanned: Total number of files that were inspected.
    """

    __slots__ = ("files", "files_scanned")

    def __init__(self) -> None:
        self.files: dict[str, str | None] = {domain: None for domain in DOMAINS}
        self.files_scanned: int = 0

    def get(self, domain: str) -> str | None:
        return self.files.get(domain)

    @property
    def found(self) -> dict[str, str]:
        return {domain: path for domain, path in self.files.items() if path}


def find_dump_files(
    dump_path: Path,
    *,
    ignore_dirs: set[str] | None = None,
) -> DumpFiles:
    """Locate the dump file of each domain under *dump_path*.

    A directory is walked in sorted order and the first matching file per
    domain wins. A single file is classified by its own name.

    Args:
        dump_path: Dump directory or a single dump file.
        ignore_dirs: Optional set of directory names to skip.

    Returns:
        A :class:`DumpFiles` mapping every domain to a path or ``None``.
    """
    _ignore_dirs = (
        ignore_dirs if ignore_dirs is not None else set(DEFAULT_IGNORE_DIRS)
    )

    result = DumpFiles()

    if dump_path.is_file():
        result.files_scanned = 1
        domain = classify_dump_file(dump_path.name)
        if domain is not None:
            result.files[domain] = str(dump_path)
        return result

    for dirpath, dirnames, filenames in os.walk(dump_path):
        # Prune ignored directories in-place so os.walk skips them
        dirnames[:] = sorted(d for d in dirnames if d not in _ignore_dirs)

        for filename in sorted(filenames):
            result.files_scanned += 1
            domain = classify_dump_file(filename)
            if domain is None or result.files[domain] is not None:
                continue
            result.files[domain] = os.path.join(dirpath, filename)
            logger.debug("Found %s file: %s", domain, result.files[domain])

    return result


def read_json_file(path: str) -> Any:
    """Read and parse a JSON dump file.

    Raises:
        MalformedInputError: If the file cannot be read or is not valid JSON.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(
            f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            {"path": path},
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedInputError(f"File could not be read: {exc}", {"path": path}) from exc
