import logging
import threading
from pathlib import Path

from trec_ingest.logger import setup_logger


def _flush(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        handler.flush()


def test_run_log_keeps_debug_while_console_stays_quiet(tmp_path: Path, capsys) -> None:
    logger = setup_logger(str(tmp_path / "logs"), logging.INFO)

    logger.debug("Starting: /data/en0000/00.warc.gz")
    logger.info("Indexing 3 files")
    _flush(logger)

    err = capsys.readouterr().err
    run_log = (tmp_path / "logs" / "ingest.log").read_text(encoding="utf-8")
    assert "Indexing 3 files" in err
    assert "Starting:" not in err
    assert "Starting: /data/en0000/00.warc.gz" in run_log
    assert "[INFO] MainThread trec_ingest: Indexing 3 files" in run_log


def test_worker_thread_name_is_logged(tmp_path: Path) -> None:
    logger = setup_logger(str(tmp_path / "logs"))

    worker = threading.Thread(target=lambda: logger.warning("Skipped record X: parse_error"), name="ingest-3")
    worker.start()
    worker.join()
    _flush(logger)

    run_log = (tmp_path / "logs" / "ingest.log").read_text(encoding="utf-8")
    assert "[WARNING] ingest-3 trec_ingest: Skipped record X: parse_error" in run_log


def test_setup_again_moves_the_run_log(tmp_path: Path) -> None:
    setup_logger(str(tmp_path / "first"))
    logger = setup_logger(str(tmp_path / "second"))

    logger.info("second run")
    _flush(logger)

    assert len(logger.handlers) == 2
    assert "second run" not in (tmp_path / "first" / "ingest.log").read_text(encoding="utf-8")
    assert "second run" in (tmp_path / "second" / "ingest.log").read_text(encoding="utf-8")
