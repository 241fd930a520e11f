"""Abstract base class for all collection parsers."""

import gzip
import io
import logging
from abc import ABC, abstractmethod
from typing import BinaryIO, Iterator, Union

from ..models import Document, ParseResult, RawRecord, Skip

logger = logging.getLogger("trec_ingest")

GZIP_MAGIC = b"\x1f\x8b"
BUFFER_SIZE = 1 << 16


class BaseParser(ABC):
    """One physical container format.

    Subclasses implement open() (framing: stream -> raw records) and parse()
    (raw record -> Document, Skip or None). Parsers only produce documents;
    submitting them to an index is the ingestion task's job.
    """

    name: str = ""
    # True: always gunzip; None: gunzip when the magic bytes say so
    compressed: Union[bool, None] = True

    def __init__(self, store_term_vectors: bool = False, positional: bool = True):
        self.store_term_vectors = store_term_vectors
        self.positional = positional

    @abstractmethod
    def open(self, stream: BinaryIO) -> Iterator[RawRecord]:
        """Yield the raw records framed in a decompressed byte stream."""
        ...

    @abstractmethod
    def parse(self, record: RawRecord) -> ParseResult:
        ...

    def read(self, path: str) -> Iterator[Union[Document, Skip]]:
        """Open path and yield its documents and skips.

        Stream errors (corrupt gzip, truncation, unreadable file) propagate.
        """
        with open(path, "rb", buffering=BUFFER_SIZE) as raw:
            with self._decompress(raw) as stream:
                for record in self.open(stream):
                    result = self.parse(record)
                    if result is not None:
                        yield result

    def make_document(self, docid, body: str) -> Document:
        return Document(
            docid=docid,
            body=body,
            store_term_vectors=self.store_term_vectors,
            positional=self.positional,
        )

    def _decompress(self, raw: io.BufferedReader) -> BinaryIO:
        if self.compressed is None and raw.peek(2)[:2] != GZIP_MAGIC:
            return raw
        return io.BufferedReader(gzip.GzipFile(fileobj=raw, mode="rb"), BUFFER_SIZE)
