"""ClueWeb09 / ClueWeb12 WARC parsers.

The two crawls use different WARC generations, so each gets its own grammar:

    ClueWeb09  WARC/0.18  lines end in LF or CRLF, no block trailer
    ClueWeb12  WARC/1.0   CRLF version line, block followed by CRLF CRLF

Both identify documents by WARC-TREC-ID and frame the block with
Content-Length. Only `response` records become documents.
"""

import io
import logging
from typing import BinaryIO, Dict, Iterator, Optional

from ..errors import TruncatedRecordError
from ..extractor import HtmlParseError, HtmlTextExtractor, strip_http_headers
from ..models import ParseResult, RawRecord, Skip
from .base import BaseParser

logger = logging.getLogger("trec_ingest")

RESPONSE = "response"
BAD_FRAMING = "<bad-framing>"


class WarcParser(BaseParser):
    version: bytes = b""
    id_field: str = "WARC-TREC-ID"
    crlf_version_line: bool = False
    block_trailer: bytes = b""

    def __init__(self, store_term_vectors: bool = False, positional: bool = True,
                 extractor: Optional[HtmlTextExtractor] = None):
        super().__init__(store_term_vectors, positional)
        self.extractor = extractor or HtmlTextExtractor()

    def open(self, stream: BinaryIO) -> Iterator[RawRecord]:
        if not hasattr(stream, "peek"):
            stream = io.BufferedReader(stream)
        while self._seek_version(stream):
            headers = self._read_headers(stream)
            record_id = headers.get(self.id_field)

            try:
                length = int(headers["Content-Length"])
                if length < 0:
                    raise ValueError(length)
            except (KeyError, ValueError) as e:
                logger.error(f"[{self.name}] Bad Content-Length in record {record_id}: {e!r}")
                yield RawRecord(BAD_FRAMING, b"", record_id, headers)
                continue

            payload = stream.read(length)
            if len(payload) < length:
                raise TruncatedRecordError(
                    f"record {record_id}: expected {length} bytes, got {len(payload)}"
                )
            self._consume_trailer(stream)

            yield RawRecord(headers.get("WARC-Type", ""), payload, record_id, headers)

    def parse(self, record: RawRecord) -> ParseResult:
        if record.record_type == BAD_FRAMING:
            return Skip(record.record_id, "bad_framing")
        if record.record_type != RESPONSE:
            return None

        try:
            text = self.extractor.extract(strip_http_headers(record.payload))
        except HtmlParseError as e:
            logger.error(f"Parsing document failed, skipping document: {record.record_id}: {e}")
            return Skip(record.record_id, "parse_error")

        # don't index empty documents but count them
        if not text:
            return Skip(record.record_id, "empty")

        return self.make_document(record.record_id, text)

    def _seek_version(self, stream: BinaryIO) -> bool:
        while True:
            line = stream.readline()
            if not line:
                return False
            if not line.startswith(self.version):
                continue
            if self.crlf_version_line and not line.endswith(b"\r\n"):
                continue
            return True

    def _read_headers(self, stream: BinaryIO) -> Dict[str, str]:
        headers = {}
        while True:
            line = stream.readline()
            if not line:
                raise TruncatedRecordError(f"[{self.name}] stream ended inside a WARC header")
            line = line.rstrip(b"\r\n")
            if not line.strip():
                return headers
            name, sep, value = line.decode("utf-8", errors="replace").partition(":")
            if sep:
                headers[name.strip()] = value.strip()

    def _consume_trailer(self, stream: BinaryIO):
        if self.block_trailer and stream.peek(len(self.block_trailer)).startswith(self.block_trailer):
            stream.read(len(self.block_trailer))


class ClueWeb09Parser(WarcParser):
    name = "clueweb09"
    version = b"WARC/0.18"


class ClueWeb12Parser(WarcParser):
    name = "clueweb12"
    version = b"WARC/1.0"
    crlf_version_line = True
    block_trailer = b"\r\n\r\n"
