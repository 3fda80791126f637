"""Outcome log: which strategy produced each fix.

Every resolved request is appended to ``.securefix/outcomes.log`` so the
success rate of generative versus deterministic fixes can be reviewed with
``securefix history``. One pipe-delimited line per request::

    timestamp | category | strategy | success | engine | detail

``detail`` holds the fallback or failure kind, empty for a clean result.
"""

from __future__ import annotations

import fcntl
import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Protocol

from securefix.core.config import get_securefix_dir
from securefix.core.models import OutcomeRecord, Strategy

logger = logging.getLogger(__name__)

LOG_FILENAME = "outcomes.log"
FIELDS = ("timestamp", "category", "strategy", "success", "engine", "detail")

_HEADER = (
    "# SecureFix Outcome Log\n"
    f"# Format: {' | '.join(FIELDS)}\n"
    "#\n"
)


class Recorder(Protocol):
    def record(self, record: OutcomeRecord) -> None:
        ...


@dataclass
class OutcomeSummary:
    total: int = 0
    generative: int = 0
    deterministic: int = 0
    failures: int = 0
    fallbacks: int = 0
    by_category: dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if not self.total:
            return 0.0
        return (self.total - self.failures) / self.total


def format_record(record: OutcomeRecord) -> str:
    """Render one record as a log line (without the newline)."""
    values = (
        record.timestamp.isoformat(timespec="milliseconds"),
        record.category.value,
        record.strategy.value if record.strategy else "none",
        "success" if record.success else "failure",
        record.engine.value if record.engine else "none",
        _sanitise(record.detail),
    )
    return " | ".join(values)


def parse_line(line: str) -> dict[str, str] | None:
    """Inverse of :func:`format_record`; None for comments and malformed lines."""
    if not line.strip() or line.startswith("#"):
        return None
    values = [v.strip() for v in line.split("|")]
    if len(values) != len(FIELDS):
        return None
    return dict(zip(FIELDS, values))


class OutcomeRecorder:
    """Append-only outcome log shared by every fix request.

    Writers in one process are serialised by a ``threading.Lock``. Across
    processes each append tries a non-blocking exclusive ``fcntl`` lock; if
    another process holds it the line is appended without the lock.
    """

    def __init__(self, project_path: Path | None = None, filename: str = LOG_FILENAME) -> None:
        self._path = get_securefix_dir(project_path) / filename
        self._lock = threading.Lock()
        if not self._path.exists():
            self._path.write_text(_HEADER, encoding="utf-8")

    @property
    def path(self) -> Path:
        return self._path

    def record(self, record: OutcomeRecord) -> None:
        self._append(format_record(record) + "\n")
        logger.debug("Recorded %s outcome", record.category.value)

    def read_all(self) -> str:
        with self._lock:
            try:
                return self._path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return ""

    def read_entries(self, last_n: int = 50) -> list[dict[str, str]]:
        """Parsed entries, newest last. ``last_n=0`` returns all of them."""
        entries = list(self._iter_entries())
        return entries[-last_n:] if last_n else entries

    def summary(self) -> OutcomeSummary:
        """Aggregate counts over the whole log."""
        summary = OutcomeSummary()
        categories: Counter[str] = Counter()
        for entry in self._iter_entries():
            summary.total += 1
            categories[entry["category"]] += 1
            if entry["success"] != "success":
                summary.failures += 1
                continue
            if entry["strategy"] == Strategy.GENERATIVE.value:
                summary.generative += 1
            else:
                summary.deterministic += 1
            if entry["detail"]:
                summary.fallbacks += 1
        summary.by_category = dict(categories)
        return summary

    def clear(self) -> None:
        """Drop every entry, keeping the header."""
        with self._lock:
            self._path.write_text(_HEADER, encoding="utf-8")

    def _iter_entries(self) -> Iterator[dict[str, str]]:
        for line in self.read_all().splitlines():
            entry = parse_line(line)
            if entry is not None:
                yield entry

    def _append(self, text: str) -> None:
        with self._lock, open(self._path, "a", encoding="utf-8") as fh:
            locked = self._try_lock(fh.fileno())
            try:
                fh.write(text)
                fh.flush()
            finally:
                if locked:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    def _try_lock(self, fd: int) -> bool:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            logger.debug("%s is locked by another process, appending without lock", self._path)
            return False
        return True


def _sanitise(value: str) -> str:
    """Keep a free-text field on one line and free of the column separator."""
    return value.replace("|", "/").replace("\r", "").replace("\n", " ")
