"""Bounded worker pool that ingests every discovered file exactly once.

The producer acquires a slot from a BoundedSemaphore(capacity) before each
submission and workers release it on completion, so at most `capacity` tasks
are ever submitted but not completed. Workers pull tasks from a queue until
they receive a sentinel.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .errors import SchedulerConsistencyError
from .models import DiscoveredFile, RunSummary, TaskResult
from .parsers.base import BaseParser
from .task import IngestionTask

logger = logging.getLogger("trec_ingest")


@dataclass(frozen=True)
class ProgressSnapshot:
    total_discovered: int
    submitted: int
    completed: int

    @property
    def percent(self) -> float:
        if not self.total_discovered:
            return 100.0
        return self.completed / self.total_discovered * 100.0


class SchedulerState:
    """Run-wide counters. All transitions happen under one lock."""

    def __init__(self, total_discovered: int):
        self.total_discovered = total_discovered
        self.submitted = 0
        self.completed = 0
        self._lock = threading.Lock()

    def record_submitted(self) -> ProgressSnapshot:
        with self._lock:
            if self.submitted >= self.total_discovered:
                raise SchedulerConsistencyError(self.total_discovered, self.completed)
            self.submitted += 1
            return self._snapshot()

    def record_completed(self) -> ProgressSnapshot:
        with self._lock:
            if self.completed >= self.submitted:
                raise SchedulerConsistencyError(self.total_discovered, self.completed + 1)
            self.completed += 1
            return self._snapshot()

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(self.total_discovered, self.submitted, self.completed)


class IngestionScheduler:
    def __init__(self, parser: BaseParser, sink, num_threads: int, capacity: Optional[int] = None,
                 on_progress: Optional[Callable[[ProgressSnapshot], None]] = None):
        capacity = capacity or 4 * num_threads
        if num_threads < 1:
            raise ValueError("num_threads must be >= 1")
        if capacity < num_threads:
            raise ValueError(f"capacity ({capacity}) must be >= num_threads ({num_threads})")

        self.parser = parser
        self.sink = sink
        self.num_threads = num_threads
        self.capacity = capacity
        self.on_progress = on_progress

        self.state: Optional[SchedulerState] = None
        self.results: List[TaskResult] = []
        self._results_lock = threading.Lock()
        self._last_logged_percent = -1

    def run(self, files: Sequence[DiscoveredFile]) -> RunSummary:
        """Ingest files, check the accounting, then commit the sink.

        Raises SchedulerConsistencyError if the completed count does not match
        the discovered count after the drain; the sink is closed uncommitted.
        """
        start = time.monotonic()
        self.state = SchedulerState(len(files))
        self.results = []
        self._last_logged_percent = -1

        logger.info(
            f"Indexing {len(files)} files with {self.num_threads} threads "
            f"(in-flight capacity {self.capacity})"
        )

        tasks: "queue.Queue[Optional[IngestionTask]]" = queue.Queue()
        slots = threading.BoundedSemaphore(self.capacity)
        workers = [
            threading.Thread(target=self._worker, args=(tasks, slots), name=f"ingest-{i}", daemon=True)
            for i in range(self.num_threads)
        ]
        for w in workers:
            w.start()

        try:
            for f in files:
                slots.acquire()
                self.state.record_submitted()
                tasks.put(IngestionTask(f, self.parser, self.sink))
        finally:
            for _ in workers:
                tasks.put(None)
            for w in workers:
                w.join()

        snapshot = self.state.snapshot()
        if snapshot.completed != snapshot.total_discovered or len(self.results) != snapshot.total_discovered:
            self.sink.close()
            raise SchedulerConsistencyError(snapshot.total_discovered, snapshot.completed)

        try:
            self.sink.commit()
            num_indexed = self.sink.num_docs()
        finally:
            self.sink.close()

        return RunSummary(
            files_total=snapshot.total_discovered,
            files_failed=sum(1 for r in self.results if r.failed),
            documents_indexed=num_indexed,
            documents_skipped=sum(r.documents_skipped for r in self.results),
            elapsed_seconds=time.monotonic() - start,
        )

    def _worker(self, tasks: queue.Queue, slots: threading.BoundedSemaphore):
        while True:
            task = tasks.get()
            if task is None:
                return
            try:
                result = task.run()
                with self._results_lock:
                    self.results.append(result)
                    self._report(self.state.record_completed())
            except Exception:
                # the drain check turns the missing completion into a fatal error
                logger.exception(f"Worker {threading.current_thread().name} lost task {task.file.path}")
            finally:
                slots.release()

    def _report(self, snapshot: ProgressSnapshot):
        percent = int(snapshot.percent)
        if percent > self._last_logged_percent:
            self._last_logged_percent = percent
            logger.info(f"{snapshot.percent:.2f} percentage completed")
        else:
            logger.debug(f"{snapshot.completed}/{snapshot.total_discovered} files completed")
        if self.on_progress:
            self.on_progress(snapshot)
