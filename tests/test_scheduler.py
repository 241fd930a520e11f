import threading
import time
from pathlib import Path

import pytest

import trec_ingest.scheduler as scheduler_module
from conftest import trec_doc
from trec_ingest.errors import SchedulerConsistencyError
from trec_ingest.models import DiscoveredFile
from trec_ingest.parsers import get_parser
from trec_ingest.parsers.trectext import TrecTextParser
from trec_ingest.scheduler import IngestionScheduler, SchedulerState


class FakeSink:
    def __init__(self):
        self.documents = []
        self.committed = False
        self.closed = False
        self._lock = threading.Lock()

    def add_document(self, doc) -> None:
        with self._lock:
            self.documents.append(doc)

    def num_docs(self) -> int:
        return len(self.documents)

    def commit(self) -> None:
        self.committed = True

    def close(self) -> None:
        self.closed = True


class SlowParser(TrecTextParser):
    """Tracks how many files are being read at the same time."""

    def __init__(self):
        super().__init__()
        self.active = 0
        self.max_active = 0
        self.reads = []
        self._lock = threading.Lock()

    def read(self, path):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.reads.append(path)
        try:
            time.sleep(0.01)
            yield from super().read(path)
        finally:
            with self._lock:
                self.active -= 1


def _collection(write_text, count: int, docs_per_file: int = 2) -> list:
    files = []
    for i in range(count):
        body = "".join(trec_doc(f"F{i}-D{j}", f"file {i} doc {j}") for j in range(docs_per_file))
        files.append(DiscoveredFile.from_path(str(write_text(f"coll/part{i}/f{i}.txt", body))))
    return files


def test_every_file_completed_once(write_text) -> None:
    files = _collection(write_text, 5)
    parser = SlowParser()
    sink = FakeSink()
    snapshots = []

    summary = IngestionScheduler(parser, sink, num_threads=2, capacity=2, on_progress=snapshots.append).run(files)

    assert sorted(parser.reads) == sorted(f.path for f in files)
    assert parser.max_active <= 2
    assert summary.files_total == 5
    assert summary.files_failed == 0
    assert summary.documents_indexed == 10
    assert sink.committed and sink.closed

    assert [s.completed for s in snapshots] == [1, 2, 3, 4, 5]
    assert all(s.submitted - s.completed <= 2 for s in snapshots)
    assert snapshots[-1].percent == 100.0


def test_corrupt_file_does_not_stop_the_run(write_text, tmp_path: Path) -> None:
    files = _collection(write_text, 3)
    bad = tmp_path / "coll" / "bad.txt"
    bad.write_bytes(b"\x1f\x8b not really gzip")
    files.append(DiscoveredFile.from_path(str(bad)))
    sink = FakeSink()

    summary = IngestionScheduler(get_parser("trectext"), sink, num_threads=2).run(files)

    assert summary.files_total == 4
    assert summary.files_failed == 1
    assert summary.documents_indexed == 6
    assert sink.committed


def test_sink_count_matches_task_counts(write_text) -> None:
    files = _collection(write_text, 8, docs_per_file=3)
    sink = FakeSink()
    scheduler = IngestionScheduler(get_parser("trectext"), sink, num_threads=3, capacity=4)

    summary = scheduler.run(files)

    assert summary.documents_indexed == sum(r.documents_indexed for r in scheduler.results) == 24


def test_empty_collection_commits(tmp_path: Path) -> None:
    sink = FakeSink()

    summary = IngestionScheduler(get_parser("trectext"), sink, num_threads=2).run([])

    assert summary.files_total == 0
    assert summary.documents_indexed == 0
    assert sink.committed


def test_capacity_below_threads_rejected() -> None:
    with pytest.raises(ValueError):
        IngestionScheduler(get_parser("trectext"), FakeSink(), num_threads=4, capacity=2)
    with pytest.raises(ValueError):
        IngestionScheduler(get_parser("trectext"), FakeSink(), num_threads=0)


def test_default_capacity() -> None:
    assert IngestionScheduler(get_parser("trectext"), FakeSink(), num_threads=3).capacity == 12


def test_lost_completion_is_fatal(write_text, monkeypatch) -> None:
    class FlakyState(SchedulerState):
        calls = 0

        def record_completed(self):
            FlakyState.calls += 1
            if FlakyState.calls == 2:
                raise RuntimeError("lost")
            return super().record_completed()

    monkeypatch.setattr(scheduler_module, "SchedulerState", FlakyState)
    files = _collection(write_text, 4)
    sink = FakeSink()

    with pytest.raises(SchedulerConsistencyError) as exc_info:
        IngestionScheduler(get_parser("trectext"), sink, num_threads=2).run(files)

    assert exc_info.value.discovered == 4
    assert exc_info.value.completed == 3
    assert "totalFiles = 4 is not equal to completedTaskCount = 3" in str(exc_info.value)
    assert sink.closed
    assert not sink.committed


def test_state_rejects_completion_before_submission() -> None:
    state = SchedulerState(1)

    with pytest.raises(SchedulerConsistencyError):
        state.record_completed()

    state.record_submitted()
    state.record_completed()
    with pytest.raises(SchedulerConsistencyError):
        state.record_submitted()
