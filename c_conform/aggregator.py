"""Finding aggregation: ordering, de-duplication and thread-safe collection."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from c_conform.rules.base import Finding


def aggregate(findings: Iterable[Finding]) -> list[Finding]:
    """Sort findings by (path, line, column, rule id) and collapse exact duplicates.

    Two findings are duplicates when rule, location and message all match.
    Ties keep the first finding submitted.
    """
    unique: dict[tuple[str, str, int, int, str], Finding] = {}
    for finding in findings:
        key = (finding.rule_id, finding.path, finding.line, finding.column, finding.message)
        unique.setdefault(key, finding)
    return sorted(unique.values(), key=lambda item: (*item.sort_key, item.message))


class FindingAggregator:
    """Collects findings submitted from concurrent per-file workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._findings: list[Finding] = []

    def submit(self, findings: Iterable[Finding]) -> None:
        batch = list(findings)
        with self._lock:
            self._findings.extend(batch)

    def findings(self) -> list[Finding]:
        """Return an aggregated snapshot of everything submitted so far."""
        with self._lock:
            snapshot = list(self._findings)
        return aggregate(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._findings)
