"""One discovered file parsed end to end and submitted to the index."""

import logging
import sys
from dataclasses import dataclass

from .models import DiscoveredFile, Skip, TaskResult
from .parsers.base import BaseParser

logger = logging.getLogger("trec_ingest")


@dataclass(frozen=True)
class IngestionTask:
    file: DiscoveredFile
    parser: BaseParser
    sink: object  # anything with add_document(Document)

    def run(self) -> TaskResult:
        """Parse the file and add its documents to the sink.

        Never raises: a stream or sink error marks the result failed, and the
        documents already accepted by the sink stay counted.
        """
        result = TaskResult(file=self.file)
        logger.debug(f"[{self.parser.name}] Starting: {self.file.path}")

        try:
            for item in self.parser.read(self.file.path):
                if isinstance(item, Skip):
                    self._skip(result, item.record_id, item.reason)
                elif item.is_blank():
                    self._skip(result, item.docid, "empty")
                else:
                    self.sink.add_document(item)
                    result.documents_indexed += 1
        except Exception as e:
            result.failed = True
            result.error = f"{type(e).__name__}: {e}"
            logger.error(f"[{self.parser.name}] Failed: {self.file.path}: {result.error}")

        print(f"{self.file.display_path}\t{result.documents_indexed}", flush=True)
        return result

    def _skip(self, result: TaskResult, record_id, reason: str):
        result.documents_skipped += 1
        if record_id is None:
            record_id = f"<no-id>@{self.file.path}#{result.documents_indexed + result.documents_skipped}"
        if reason != "empty":
            logger.warning(f"Skipped record {record_id}: {reason}")
        # audit trail of skipped ids
        print(record_id, file=sys.stderr, flush=True)
