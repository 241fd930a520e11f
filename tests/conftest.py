import gzip
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Optional

import pytest


@pytest.fixture(autouse=True)
def reset_logger_handlers() -> Iterator[None]:
    yield
    logger = logging.getLogger("trec_ingest")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def warc09_record(warc_type: str, trec_id: Optional[str], payload: bytes,
                  content_length: Optional[str] = None) -> bytes:
    length = content_length if content_length is not None else str(len(payload))
    header = f"WARC/0.18\nWARC-Type: {warc_type}\n"
    if trec_id:
        header += f"WARC-TREC-ID: {trec_id}\n"
    header += f"Content-Length: {length}\n\n"
    return header.encode() + payload + b"\n\n"


def warc12_record(warc_type: str, trec_id: Optional[str], payload: bytes) -> bytes:
    header = f"WARC/1.0\r\nWARC-Type: {warc_type}\r\n"
    if trec_id:
        header += f"WARC-TREC-ID: {trec_id}\r\n"
    header += f"Content-Length: {len(payload)}\r\n\r\n"
    return header.encode() + payload + b"\r\n\r\n"


def http_response(html: str) -> bytes:
    return b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\n" + html.encode()


def trec_doc(docno: str, text: str) -> str:
    return f"<DOC>\n<DOCNO> {docno} </DOCNO>\n<TEXT>\n{text}\n</TEXT>\n</DOC>\n"


@pytest.fixture
def write_gz(tmp_path: Path) -> Callable[[str, bytes], Path]:
    def _write(relpath: str, data: bytes) -> Path:
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        with gzip.open(path, "wb") as f:
            f.write(data)
        return path

    return _write


@pytest.fixture
def write_text(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(relpath: str, data: str) -> Path:
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data, encoding="utf-8")
        return path

    return _write
