"""
orion/store/report_store.py
Report persistence. One list of reports, serialized as a JSON array.

To add a backend: subclass ReportStore and implement the four methods.
Callers (chat session, manual form, history) never know which backend runs.

The file backend tolerates a missing file (empty list) and a malformed
file (warning, reset to an empty list). Writes go through a temporary file
and os.replace so a crash mid-write never leaves half a JSON array behind.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from orion.models.record import Report

logger = logging.getLogger(__name__)

STORAGE_KEY = 'orion-reports'


class StoreError(Exception):
    """Reading or writing the report list failed."""


class ReportStore(ABC):

    @abstractmethod
    def append(self, report: Report) -> None:
        """Add one report. Raises StoreError if it cannot be written."""
        ...

    @abstractmethod
    def list_all(self) -> List[Report]:
        """All reports in insertion order."""
        ...

    def get(self, report_id: str) -> Optional[Report]:
        for report in self.list_all():
            if report.id == report_id:
                return report
        return None

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryReportStore(ReportStore):
    """List-backed store for tests and throwaway sessions."""

    def __init__(self, reports: Optional[List[Report]] = None):
        self._reports = list(reports or [])
        self._lock    = threading.Lock()

    def append(self, report: Report) -> None:
        with self._lock:
            self._reports.append(report)

    def list_all(self) -> List[Report]:
        with self._lock:
            return list(self._reports)

    def clear(self) -> None:
        with self._lock:
            self._reports.clear()


class JsonFileReportStore(ReportStore):
    """
    Reports kept in a single JSON file (default: orion-reports.json).
    Appends are serialized through a lock: read, add, write atomically.
    """

    def __init__(self, path: Path = Path(f'{STORAGE_KEY}.json')):
        self.path  = Path(path)
        self._lock = threading.Lock()

    # ── INTERNAL ──────────────────────────────────────────────

    def _read(self) -> List[Report]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding='utf-8') or '[]')
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Malformed report store {self.path}: {e} — resetting to empty list")
            self._write([])
            return []
        except OSError as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(raw, list):
            logger.warning(f"Report store {self.path} is not a JSON array — resetting to empty list")
            self._write([])
            return []

        reports: List[Report] = []
        for item in raw:
            try:
                reports.append(Report.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping unreadable report entry in {self.path}: {e}")
        return reports

    def _write(self, reports: List[Report]) -> None:
        payload = json.dumps([r.to_dict() for r in reports], ensure_ascii=False, indent=2)
        directory = self.path.parent if str(self.path.parent) else Path('.')
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f'.{self.path.name}.', suffix='.tmp', dir=str(directory)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Cannot write {self.path}: {e}") from e

    # ── PUBLIC ────────────────────────────────────────────────

    def append(self, report: Report) -> None:
        with self._lock:
            reports = self._read()
            reports.append(report)
            self._write(reports)
        logger.info(f"Report {report.id} stored ({report.type}) → {self.path}")

    def list_all(self) -> List[Report]:
        with self._lock:
            return self._read()

    def clear(self) -> None:
        with self._lock:
            self._write([])
        logger.info(f"Report store cleared: {self.path}")
