"""Per-collection mutation counters with debounced aggregated reporting.

Every add/change/remove event for a collection name pushes that name's report
timer back by the quiet period, so a burst of writes produces a single report
once the collection goes quiet. Counts reset to zero after each report.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Literal

from fixturekeeper.counter.schemas import MutationReport
from fixturekeeper.lib.logger import get_logger
from fixturekeeper.lib.scheduler import Scheduler

logger = get_logger(__name__)

Reporter = Callable[[MutationReport], None]
_Field = Literal["added", "changed", "removed"]

DEFAULT_DELAY_SECONDS = 1.0


def log_report(report: MutationReport) -> None:
    """Default reporter: one INFO log line per report."""

    logger.info(
        report.summary(),
        extra={
            "event": "fixtures_report",
            "collection": report.collection,
            "added": report.added,
            "changed": report.changed,
            "removed": report.removed,
        },
    )


@dataclass
class MutationCounter:
    name: str
    added: int = 0
    changed: int = 0
    removed: int = 0
    generation: int = 0
    pending: bool = False

    def reset(self) -> None:
        self.added = self.changed = self.removed = 0
        self.pending = False

    def to_report(self) -> MutationReport:
        return MutationReport(
            collection=self.name,
            added=self.added,
            changed=self.changed,
            removed=self.removed,
        )


class MutationCounterRegistry:
    """Owns the counters for every collection name and their report timers."""

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float = DEFAULT_DELAY_SECONDS,
        reporters: Iterable[Reporter] = (log_report,),
        history_size: int = 50,
    ) -> None:
        if delay <= 0:
            raise ValueError("Report delay must be positive")
        self._scheduler = scheduler
        self._delay = delay
        self._reporters = list(reporters)
        self._lock = threading.Lock()
        self._counters: dict[str, MutationCounter] = {}
        self._history: deque[MutationReport] = deque(maxlen=history_size)

    @property
    def delay(self) -> float:
        return self._delay

    def record_added(self, name: str, count: int = 1) -> None:
        self._record(name, "added", count)

    def record_changed(self, name: str, count: int = 1) -> None:
        self._record(name, "changed", count)

    def record_removed(self, name: str, count: int = 1) -> None:
        self._record(name, "removed", count)

    def add_reporter(self, reporter: Reporter) -> None:
        with self._lock:
            self._reporters.append(reporter)

    def snapshot(self) -> dict[str, dict[str, int]]:
        """Return counts still waiting to be reported, keyed by collection name."""

        with self._lock:
            return {
                name: {"added": counter.added, "changed": counter.changed, "removed": counter.removed}
                for name, counter in self._counters.items()
                if counter.pending
            }

    def reports(self) -> list[MutationReport]:
        with self._lock:
            return list(self._history)

    def flush_pending(self) -> list[MutationReport]:
        """Emit every pending report immediately instead of waiting for its timer."""

        with self._lock:
            names = [name for name, counter in self._counters.items() if counter.pending]
        for name in names:
            self._scheduler.cancel(name)
        emitted: list[MutationReport] = []
        for name in names:
            report = self._take(name, generation=None)
            if report is not None:
                self._publish(report)
                emitted.append(report)
        return emitted

    def reset(self) -> None:
        """Drop all counters, pending timers and report history."""

        with self._lock:
            names = list(self._counters)
            self._counters.clear()
            self._history.clear()
        for name in names:
            self._scheduler.cancel(name)

    def _record(self, name: str, field: _Field, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            counter = self._counters.get(name)
            if counter is None:
                counter = self._counters[name] = MutationCounter(name=name)
            setattr(counter, field, getattr(counter, field) + count)
            counter.generation += 1
            counter.pending = True
            generation = counter.generation
            self._scheduler.cancel(name)
            self._scheduler.schedule(name, self._delay, lambda: self._fire(name, generation))

    def _fire(self, name: str, generation: int) -> None:
        report = self._take(name, generation)
        if report is not None:
            self._publish(report)

    def _take(self, name: str, generation: int | None) -> MutationReport | None:
        with self._lock:
            counter = self._counters.get(name)
            if counter is None or not counter.pending:
                return None
            if generation is not None and generation != counter.generation:
                return None
            report = counter.to_report()
            counter.reset()
            self._history.append(report)
            return report

    def _publish(self, report: MutationReport) -> None:
        with self._lock:
            reporters = list(self._reporters)
        for reporter in reporters:
            reporter(report)
