"""TREC text / TREC web (Gov2) parsers for <DOC>...</DOC> framed collections.

    <DOC>
    <DOCNO> GX000-00-0000000 </DOCNO>
    ...
    </DOC>

Lines outside a <DOC> pair are ignored. The body is every line between the
framing tags, DOCNO and other tag lines included; the last DOCNO wins.
End of stream closes an open record.
"""

import io
import logging
import re
from typing import BinaryIO, Iterator, List, Optional

from ..models import ParseResult, RawRecord
from .base import BaseParser

logger = logging.getLogger("trec_ingest")

DOC = "<DOC>"
TERMINATING_DOC = "</DOC>"
DOCNO_TAG = re.compile(r"<DOCNO>\s*(\S+)\s*<")


class TrecTextParser(BaseParser):
    name = "trectext"
    compressed = None  # plain or gzip, by magic bytes

    def open(self, stream: BinaryIO) -> Iterator[RawRecord]:
        reader = io.TextIOWrapper(stream, encoding="utf-8", errors="replace", newline=None)
        in_doc = False
        docno: Optional[str] = None
        lines: List[str] = []

        for raw_line in reader:
            line = raw_line.strip()

            if not in_doc:
                if not line.startswith(DOC):
                    continue
                in_doc = True
                docno, lines = None, []
                line = line[len(DOC):].lstrip()

            end = line.find(TERMINATING_DOC)
            content = line[:end].rstrip() if end >= 0 else line

            m = DOCNO_TAG.search(content)
            if m:
                docno = m.group(1)
            if content:
                lines.append(content)

            if end >= 0:
                in_doc = False
                yield RawRecord("doc", "\n".join(lines), docno)

        if in_doc:
            logger.debug(f"[{self.name}] Stream ended inside record {docno}, closing it")
            yield RawRecord("doc", "\n".join(lines), docno)

    def parse(self, record: RawRecord) -> ParseResult:
        if not record.payload:
            return None
        return self.make_document(record.record_id, record.payload)


class TrecWebParser(TrecTextParser):
    """Gov2 / WT2g collections: same framing as TREC text, always gzipped."""

    name = "trecweb"
    compressed = True
